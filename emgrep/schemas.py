"""Persisted record schemas.

`SetSummary` is the finalized, immutable record of one recorded set. Its wire
form uses the short field names of the stored history list
(``ts, reps, tut, dur, avg, peak, mvc, presetId``).
"""
from __future__ import annotations
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from .errors import PersistenceError


class SetSummary(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    timestamp: datetime = Field(alias="ts")
    reps: int = Field(ge=0)
    tut_sec: float = Field(alias="tut", ge=0)
    duration_sec: float = Field(alias="dur", ge=0)
    avg_v: float = Field(alias="avg")
    peak_v: float = Field(alias="peak")
    mvc_v: float = Field(alias="mvc")
    preset_id: Optional[str] = Field(default=None, alias="presetId")

    def to_json_dict(self) -> dict[str, Any]:
        """Wire form; `presetId` is left out when unset."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_json_dict(cls, j: Mapping[str, Any]) -> "SetSummary":
        return cls.model_validate(dict(j))


HistoryList = TypeAdapter(list[SetSummary])


def dump_history(summaries: Iterable[SetSummary]) -> str:
    """Serialize summaries (most recent first) to a JSON list."""
    return HistoryList.dump_json(list(summaries), by_alias=True, exclude_none=True).decode()


def parse_history(text: Optional[str]) -> list[SetSummary]:
    """Parse a stored history list; empty or missing text is an empty history."""
    if not text or not text.strip():
        return []
    try:
        return HistoryList.validate_json(text)
    except ValidationError as exc:
        raise PersistenceError(f"corrupt set history: {exc.error_count()} invalid field(s)") from exc

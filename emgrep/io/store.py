"""Persisted tracker state.

Three logical records are kept: the last selected preset id, the calibration
and threshold scalars, and the set history (most recent first). Missing
values load as None so the caller can fall back to its defaults.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..db.models import Preference
from ..db.session import Base, make_engine, make_sessionmaker
from ..errors import PersistenceError
from ..schemas import SetSummary, dump_history, parse_history

logger = logging.getLogger(__name__)

KEY_PRESET = "preset_id"
KEY_MVC = "mvc_peak"
KEY_HI = "thresh_hi"
KEY_LO = "thresh_lo"
KEY_HISTORY = "history_json"


class History:
    """In-memory set history, most recent first."""

    def __init__(self, items: Iterable[SetSummary] = ()):
        self._items: list[SetSummary] = list(items)

    def prepend(self, summary: SetSummary) -> None:
        self._items.insert(0, summary)

    def replace(self, items: Iterable[SetSummary]) -> None:
        self._items = list(items)

    def items(self) -> list[SetSummary]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[SetSummary]:
        return iter(list(self._items))


@dataclass
class PersistedState:
    preset_id: Optional[str] = None
    mvc_peak: Optional[float] = None
    thresh_hi: Optional[float] = None
    thresh_lo: Optional[float] = None
    history: list[SetSummary] = field(default_factory=list)


def _to_float(key: str, raw: Optional[str]) -> Optional[float]:
    if raw is None or raw == "":
        return None
    try:
        return float(raw)
    except ValueError:
        logger.warning("ignoring non-numeric stored value for %s: %r", key, raw)
        return None


class StateStore:
    """Key/value backed store; subclasses provide `_get_many` and `_set_many`."""

    def _get_many(self, keys: Iterable[str]) -> dict[str, str]:
        raise NotImplementedError

    def _set_many(self, items: dict[str, str]) -> None:
        raise NotImplementedError

    def load_basic(self) -> PersistedState:
        """Preset id and scalars only; `history` is left empty."""
        rows = self._get_many([KEY_PRESET, KEY_MVC, KEY_HI, KEY_LO])
        return PersistedState(
            preset_id=rows.get(KEY_PRESET) or None,
            mvc_peak=_to_float(KEY_MVC, rows.get(KEY_MVC)),
            thresh_hi=_to_float(KEY_HI, rows.get(KEY_HI)),
            thresh_lo=_to_float(KEY_LO, rows.get(KEY_LO)),
        )

    def load_history(self) -> list[SetSummary]:
        """Stored history, most recent first. Raises PersistenceError when corrupt."""
        return parse_history(self._get_many([KEY_HISTORY]).get(KEY_HISTORY))

    def load(self) -> PersistedState:
        state = self.load_basic()
        state.history = self.load_history()
        return state

    def save_basic(self, preset_id: str, mvc_peak: float, thresh_hi: float, thresh_lo: float) -> None:
        self._set_many({
            KEY_PRESET: preset_id,
            KEY_MVC: repr(float(mvc_peak)),
            KEY_HI: repr(float(thresh_hi)),
            KEY_LO: repr(float(thresh_lo)),
        })

    def save_history(self, summaries: Iterable[SetSummary]) -> None:
        self._set_many({KEY_HISTORY: dump_history(summaries)})


class MemoryStateStore(StateStore):
    """Process-local store (tests, dry runs)."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self.data: dict[str, str] = dict(initial or {})

    def _get_many(self, keys):
        return {k: self.data[k] for k in keys if k in self.data}

    def _set_many(self, items):
        self.data.update(items)


class SqlStateStore(StateStore):
    """sqlite-backed store using one `preferences` row per key."""

    def __init__(self, sqlite_path: str | Path):
        self.engine = make_engine(sqlite_path)
        Base.metadata.create_all(bind=self.engine)
        self.SessionLocal = make_sessionmaker(self.engine)

    def _get_many(self, keys):
        keys = list(keys)
        try:
            with self.SessionLocal() as db:
                rows = db.query(Preference).filter(Preference.key.in_(keys)).all()
                return {r.key: r.value for r in rows}
        except SQLAlchemyError as exc:
            raise PersistenceError(f"failed to load state: {exc}") from exc

    def _set_many(self, items):
        try:
            with self.SessionLocal() as db:
                for key, value in items.items():
                    db.merge(Preference(key=key, value=value))
                db.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"failed to save state: {exc}") from exc

    def close(self) -> None:
        self.engine.dispose()

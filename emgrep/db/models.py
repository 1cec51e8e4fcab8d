"""
Database models.

Persisted tracker state is a small set of named values (selected preset,
MVC reference, thresholds, set history as JSON), stored as key/value rows.
"""
from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .session import Base


class Preference(Base):
    """
    One persisted named value
    """
    __tablename__ = "preferences"
    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[str] = mapped_column(Text)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, onupdate=datetime.now)

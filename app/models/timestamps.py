"""Timezone-aware timestamp columns shared by the table models."""
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, DateTime


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive values. SQLite hands stored timestamps back without an offset."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def timestamp_column(nullable: bool = False) -> Column:
    """A fresh DateTime(timezone=True) column; a Column cannot be shared between fields."""
    return Column(DateTime(timezone=True), nullable=nullable)

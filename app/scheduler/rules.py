"""Recurrence rule value object."""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Optional


class Frequency(str, Enum):
    """How often a checklist repeats. Values are the wire strings."""

    DAILY = "Daily"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"
    QUARTERLY = "Quarterly"
    HALF_YEARLY = "Half-Yearly"
    YEARLY = "Yearly"
    INTERVAL = "Interval"

    @classmethod
    def parse(cls, value) -> "Frequency":
        """Parse a frequency, tolerating case and separators. Unknown values become Daily."""
        if isinstance(value, cls):
            return value
        key = str(value or "").replace("-", "").replace("_", "").replace(" ", "").lower()
        for member in cls:
            if member.value.replace("-", "").lower() == key:
                return member
        return cls.DAILY


# Calendar-month jump applied on every non-initial advance
MONTH_JUMPS = {
    Frequency.QUARTERLY: 3,
    Frequency.HALF_YEARLY: 6,
    Frequency.YEARLY: 12,
}

# Frequencies that pick their days by scanning forward through a set of allowed values
SCANNED = frozenset({Frequency.WEEKLY, Frequency.MONTHLY})

DEFAULT_WEEKDAY = 1  # Monday
DEFAULT_MONTH_DAY = 1
DEFAULT_MONTH = 1  # January


def _as_int(value) -> Optional[int]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _bounded(value, low: int, high: int) -> Optional[int]:
    number = _as_int(value)
    if number is None or not low <= number <= high:
        return None
    return number


def _bounded_set(values: Optional[Iterable], low: int, high: int) -> FrozenSet[int]:
    if not values or isinstance(values, (str, bytes)):
        return frozenset()
    result = (_bounded(v, low, high) for v in values)
    return frozenset(v for v in result if v is not None)


@dataclass(frozen=True)
class RecurrenceRule:
    """
    Normalized recurrence rule.

    The allowed sets are resolved once, at construction: the multi-value
    fields win, otherwise the legacy scalar (or a default) supplies the
    single allowed value. The sets are never empty.
    """

    frequency: Frequency
    allowed_weekdays: FrozenSet[int] = frozenset({DEFAULT_WEEKDAY})
    allowed_month_days: FrozenSet[int] = frozenset({DEFAULT_MONTH_DAY})
    interval_days: int = 1
    target_day: int = DEFAULT_MONTH_DAY
    target_month: int = DEFAULT_MONTH

    @classmethod
    def from_config(cls, frequency, config: Optional[Dict[str, Any]] = None) -> "RecurrenceRule":
        """
        Build a rule from a stored frequency config.

        Args:
            frequency: Frequency member or wire string
            config: Dict with any of days_of_week, days_of_month, interval_days,
                day_of_week, day_of_month, month

        Returns:
            RecurrenceRule with every field defaulted
        """
        config = config or {}

        weekdays = _bounded_set(config.get("days_of_week"), 0, 6)
        if not weekdays:
            legacy = _bounded(config.get("day_of_week"), 0, 6)
            weekdays = frozenset({DEFAULT_WEEKDAY if legacy is None else legacy})

        month_days = _bounded_set(config.get("days_of_month"), 1, 31)
        legacy_day = _bounded(config.get("day_of_month"), 1, 31)
        if not month_days:
            month_days = frozenset({legacy_day or DEFAULT_MONTH_DAY})

        interval = _as_int(config.get("interval_days"))
        if interval is None or interval < 1:
            interval = 1

        return cls(
            frequency=Frequency.parse(frequency),
            allowed_weekdays=weekdays,
            allowed_month_days=month_days,
            interval_days=interval,
            target_day=min(month_days),
            target_month=_bounded(config.get("month"), 1, 12) or DEFAULT_MONTH,
        )

    @property
    def is_scanned(self) -> bool:
        return self.frequency in SCANNED

    @property
    def month_jump(self) -> Optional[int]:
        return MONTH_JUMPS.get(self.frequency)

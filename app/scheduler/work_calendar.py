"""
Non-working-day oracle.

A day is non-working when it is a holiday or when its weekday index is one
of the organization's weekend days. Weekday indices follow the convention
used across the API: 0=Sunday .. 6=Saturday.
"""
from dataclasses import dataclass
from datetime import date, datetime
from typing import FrozenSet, Iterable, Optional

DEFAULT_WEEKENDS = frozenset({0})

WEEKDAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


def weekday_index(day: date) -> int:
    """Weekday of `day` with 0=Sunday .. 6=Saturday."""
    return day.isoweekday() % 7


def to_day(value) -> date:
    """Strip the time of day from a date, datetime or ISO string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return datetime.fromisoformat(value.replace('Z', '+00:00')).date()
    raise TypeError(f"Cannot interpret {value!r} as a calendar day")


@dataclass(frozen=True)
class WorkCalendar:
    """Holiday dates plus weekend weekday indices."""

    holidays: FrozenSet[date] = frozenset()
    weekends: FrozenSet[int] = DEFAULT_WEEKENDS

    @classmethod
    def build(cls, holidays: Optional[Iterable] = None, weekends: Optional[Iterable[int]] = None) -> "WorkCalendar":
        """
        Build a calendar from loosely typed configuration.

        Missing holidays mean no holidays; missing weekends mean Sunday only.
        An explicit empty weekend list is honoured (seven-day operations).
        Weekend values outside 0..6 are ignored.
        """
        holiday_days = frozenset(to_day(h) for h in (holidays or []) if h is not None)
        if weekends is None:
            weekend_days = DEFAULT_WEEKENDS
        else:
            weekend_days = frozenset(
                int(w) for w in weekends
                if isinstance(w, int) and not isinstance(w, bool) and 0 <= w <= 6
            )
        return cls(holidays=holiday_days, weekends=weekend_days)

    @classmethod
    def for_tenant(cls, tenant) -> "WorkCalendar":
        """Calendar of a tenant record; defaults when the tenant is unknown."""
        if tenant is None:
            return cls()
        return cls.build(
            holidays=[h.holiday_date for h in (tenant.holidays or [])],
            weekends=tenant.weekends,
        )

    def is_holiday(self, day: date) -> bool:
        return day in self.holidays

    def is_weekend(self, day: date) -> bool:
        return weekday_index(day) in self.weekends

    def is_non_working(self, day) -> bool:
        day = to_day(day)
        return self.is_holiday(day) or self.is_weekend(day)

    def is_working(self, day) -> bool:
        return not self.is_non_working(day)

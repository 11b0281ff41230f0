"""Recurrence Validator."""
from typing import Dict, Any, Iterable, Optional

from app.scheduler import Frequency

FREQUENCIES = [f.value for f in Frequency]


def _new_result() -> Dict[str, Any]:
    return {
        "valid": True,
        "errors": [],
        "warnings": []
    }


def _fail(result: Dict[str, Any], message: str) -> Dict[str, Any]:
    result["valid"] = False
    result["errors"].append(message)
    return result


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class RecurrenceValidator:
    """Validate checklist recurrence settings and tenant calendars."""

    @staticmethod
    def validate_frequency_config(frequency: str, config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Validate a frequency and its config.

        The scheduling core tolerates anything by falling back to defaults;
        this catches values a user most likely did not mean.

        Args:
            frequency: One of Daily, Weekly, Monthly, Quarterly, Half-Yearly, Yearly, Interval
            config: days_of_week, days_of_month, interval_days, day_of_week, day_of_month, month

        Returns:
            Dict with validation result
        """
        result = _new_result()
        config = config or {}

        if frequency not in FREQUENCIES:
            return _fail(result, f"Frequency must be one of: {', '.join(FREQUENCIES)}")

        days_of_week = config.get("days_of_week") or []
        if any(not _is_int(d) or not 0 <= d <= 6 for d in days_of_week):
            _fail(result, "days_of_week values must be integers 0 (Sunday) to 6 (Saturday)")

        days_of_month = config.get("days_of_month") or []
        if any(not _is_int(d) or not 1 <= d <= 31 for d in days_of_month):
            _fail(result, "days_of_month values must be integers 1 to 31")

        for key, low, high in (("day_of_week", 0, 6), ("day_of_month", 1, 31), ("month", 1, 12)):
            value = config.get(key)
            if value is not None and (not _is_int(value) or not low <= value <= high):
                _fail(result, f"{key} must be an integer {low} to {high}")

        if not result["valid"]:
            return result

        if frequency == Frequency.INTERVAL.value:
            interval = config.get("interval_days")
            if not _is_int(interval) or interval < 1:
                return _fail(result, "Interval frequency requires interval_days >= 1")

        if frequency == Frequency.WEEKLY.value and not days_of_week and config.get("day_of_week") is None:
            result["warnings"].append("No weekday given for a Weekly checklist; defaulting to Monday")

        if frequency == Frequency.MONTHLY.value:
            if not days_of_month and config.get("day_of_month") is None:
                result["warnings"].append("No day of month given for a Monthly checklist; defaulting to the 1st")
            if any(d > 28 for d in days_of_month) or (config.get("day_of_month") or 0) > 28:
                result["warnings"].append("Days after the 28th fall on the last day of shorter months")

        return result

    @staticmethod
    def validate_weekends(weekends: Optional[Iterable[int]]) -> Dict[str, Any]:
        """
        Validate a weekend configuration.

        Args:
            weekends: Weekday indices, 0=Sunday..6=Saturday

        Returns:
            Dict with validation result
        """
        result = _new_result()
        if weekends is None:
            return result

        weekends = list(weekends)
        if any(not _is_int(w) or not 0 <= w <= 6 for w in weekends):
            return _fail(result, "Weekend days must be integers 0 (Sunday) to 6 (Saturday)")

        if len(set(weekends)) == 7:
            return _fail(result, "At least one weekday must be a working day")

        if not weekends:
            result["warnings"].append("No weekend days configured; every day is a working day")

        return result

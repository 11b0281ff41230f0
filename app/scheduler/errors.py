"""Exceptions raised by the scheduling core."""
from datetime import date
from typing import Any, Dict, Optional


class SchedulerError(Exception):
    """Base exception for scheduling errors"""
    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class SchedulingAnomaly(SchedulerError):
    """
    A scan exceeded its iteration cap or failed to move forward.

    Raised instead of looping forever, e.g. when a calendar marks every
    weekday as a weekend.
    """
    def __init__(self, message: str, anchor: Optional[date] = None, **details):
        if anchor is not None:
            details["anchor"] = anchor.isoformat()
        super().__init__("SCHEDULING_ANOMALY", message, details)

"""History actions and the read-only view of a task the reconciler works on."""
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Iterable, Optional, Set, Tuple

from app.scheduler.rules import RecurrenceRule
from app.scheduler.work_calendar import to_day


class HistoryAction(str, Enum):
    CREATED = "Checklist Created"
    COMPLETED = "Completed"
    ADMINISTRATIVE_COMPLETION = "Administrative Completion"
    UPDATED = "Updated"
    PAUSED = "Paused"
    RESUMED = "Resumed"


COMPLETION_ACTIONS = frozenset({HistoryAction.COMPLETED, HistoryAction.ADMINISTRATIVE_COMPLETION})


@dataclass(frozen=True)
class HistoryEntry:
    action: HistoryAction
    timestamp: datetime
    instance_date: Optional[date] = None

    @property
    def is_completion(self) -> bool:
        return self.action in COMPLETION_ACTIONS

    @property
    def resolved_day(self) -> date:
        """
        The occurrence this entry refers to.

        Entries without one count for the calendar day of their timestamp,
        in whatever zone the timestamp carries. Persisted rows are moved into
        the tenant zone before they get here.
        """
        return to_day(self.instance_date or self.timestamp)


@dataclass(frozen=True)
class TaskSnapshot:
    """What the scheduling core needs to know about a recurring task."""

    rule: RecurrenceRule
    next_due_date: date
    history: Tuple[HistoryEntry, ...] = field(default_factory=tuple)


def completed_days(history: Iterable[HistoryEntry]) -> Set[date]:
    """Calendar days already satisfied by a completion-class entry."""
    return {entry.resolved_day for entry in history if entry.is_completion}

"""
Scheduling Core

Pure date arithmetic for recurring checklists:
- work_calendar: holiday and weekend predicate
- rules: normalized recurrence rules
- resolver: rule + anchor -> next valid date
- reconciler: pointer + history -> outstanding occurrences, completion policy

Nothing in this package touches the database or the network.
"""

from app.scheduler.errors import SchedulerError, SchedulingAnomaly
from app.scheduler.history import COMPLETION_ACTIONS, HistoryAction, HistoryEntry, TaskSnapshot
from app.scheduler.reconciler import (
    CompletionKind,
    CompletionOutcome,
    Reconciliation,
    VisibleInstance,
    apply_completion,
    effective_owner_ids,
    is_on_leave,
    is_scheduled_occurrence,
    list_visible_instances,
    reconcile,
)
from app.scheduler.resolver import project_occurrences, resolve_next_date
from app.scheduler.rules import Frequency, RecurrenceRule
from app.scheduler.work_calendar import WorkCalendar, weekday_index

__all__ = [
    "COMPLETION_ACTIONS",
    "CompletionKind",
    "CompletionOutcome",
    "Frequency",
    "HistoryAction",
    "HistoryEntry",
    "RecurrenceRule",
    "Reconciliation",
    "SchedulerError",
    "SchedulingAnomaly",
    "TaskSnapshot",
    "VisibleInstance",
    "WorkCalendar",
    "apply_completion",
    "effective_owner_ids",
    "is_on_leave",
    "is_scheduled_occurrence",
    "list_visible_instances",
    "project_occurrences",
    "reconcile",
    "resolve_next_date",
    "weekday_index",
]

"""
Occurrence Reconciler

Walks a task's due-date pointer forward to today and reports every
occurrence that is due and not yet completed, including missed (backlog)
days. Also decides how completing a given occurrence moves the pointer,
and which task owners a viewer covers for while colleagues are on leave.

Generation is lazy: nothing here is persisted. Callers store the pointer
returned by apply_completion.
"""
import os
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Iterable, List, Optional

from app.scheduler.errors import SchedulingAnomaly
from app.scheduler.history import TaskSnapshot, completed_days
from app.scheduler.resolver import MAX_SCAN_DAYS, resolve_next_date
from app.scheduler.work_calendar import WorkCalendar, to_day
from app.utils.logger import scheduler_logger as logger

BACKLOG_SCAN_LIMIT = int(os.environ.get("BACKLOG_SCAN_LIMIT", "366"))
OCCURRENCE_CHECK_LIMIT = int(os.environ.get("OCCURRENCE_CHECK_LIMIT", "3660"))


@dataclass(frozen=True)
class VisibleInstance:
    instance_date: date
    is_backlog: bool


@dataclass
class Reconciliation:
    """Outstanding occurrences, oldest first, plus the reason generation stopped early (if it did)."""

    instances: List[VisibleInstance] = field(default_factory=list)
    anomaly: Optional[str] = None


class CompletionKind(str, Enum):
    ADVANCED = "advanced"   # the current pointer was completed
    BACKLOG = "backlog"     # an earlier, missed occurrence was completed
    IN_PLACE = "in_place"   # a date past the pointer; recorded without moving it


@dataclass(frozen=True)
class CompletionOutcome:
    kind: CompletionKind
    instance_date: date
    previous_due_date: date
    next_due_date: date

    @property
    def advanced(self) -> bool:
        return self.kind is CompletionKind.ADVANCED


def reconcile(
    task: TaskSnapshot,
    today,
    work_calendar: Optional[WorkCalendar] = None,
    limit: int = BACKLOG_SCAN_LIMIT,
) -> Reconciliation:
    """
    Generate the visible occurrences of a task up to and including today.

    Args:
        task: Rule, due-date pointer and history of the task
        today: The viewer's current day
        work_calendar: Tenant calendar
        limit: Maximum number of occurrences examined

    Returns:
        Reconciliation with instances sorted oldest first. When the walk is
        cut short (scan limit, resolver anomaly, pointer not advancing) the
        instances found so far are kept and `anomaly` says why.
    """
    work_calendar = work_calendar or WorkCalendar()
    today = to_day(today)
    done = completed_days(task.history)

    result = Reconciliation()
    pointer = to_day(task.next_due_date)
    examined = 0

    while pointer <= today:
        if examined >= limit:
            result.anomaly = f"Backlog scan stopped after {limit} occurrences at {pointer.isoformat()}"
            break
        examined += 1

        if pointer not in done:
            result.instances.append(VisibleInstance(instance_date=pointer, is_backlog=pointer < today))

        try:
            next_pointer = resolve_next_date(task.rule, pointer, False, work_calendar)
        except SchedulingAnomaly as e:
            result.anomaly = e.message
            break

        if next_pointer <= pointer:
            result.anomaly = f"Resolver did not advance past {pointer.isoformat()}"
            break
        pointer = next_pointer

    if result.anomaly:
        logger.warning(
            "Occurrence generation halted",
            reason=result.anomaly,
            frequency=task.rule.frequency.value,
            next_due_date=task.next_due_date,
            emitted=len(result.instances),
        )

    result.instances.sort(key=lambda instance: instance.instance_date)
    return result


def list_visible_instances(
    task: TaskSnapshot,
    today,
    work_calendar: Optional[WorkCalendar] = None,
    limit: int = BACKLOG_SCAN_LIMIT,
) -> List[VisibleInstance]:
    """Outstanding occurrences of a task, oldest first. See reconcile()."""
    return reconcile(task, today, work_calendar, limit).instances


def apply_completion(
    task: TaskSnapshot,
    instance_date,
    work_calendar: Optional[WorkCalendar] = None,
) -> CompletionOutcome:
    """
    Decide where the due-date pointer goes when an occurrence is completed.

    Only completing the exact pointer date advances it. Backlog days before
    the pointer and dates past it leave the pointer alone, so today's card
    stays visible after a missed day is caught up.

    When advancing, occurrences already completed ahead of time are skipped
    so the pointer keeps naming the earliest outstanding occurrence.
    """
    instance = to_day(instance_date)
    current = to_day(task.next_due_date)

    if instance < current:
        return CompletionOutcome(CompletionKind.BACKLOG, instance, current, current)
    if instance > current:
        return CompletionOutcome(CompletionKind.IN_PLACE, instance, current, current)

    done = completed_days(task.history)
    next_due = resolve_next_date(task.rule, instance, False, work_calendar)
    hops = 0
    while next_due in done:
        hops += 1
        if hops > MAX_SCAN_DAYS:
            raise SchedulingAnomaly("Every upcoming occurrence is already completed", anchor=instance)
        next_due = resolve_next_date(task.rule, next_due, False, work_calendar)

    return CompletionOutcome(CompletionKind.ADVANCED, instance, current, next_due)


def is_scheduled_occurrence(
    task: TaskSnapshot,
    start_date,
    instance_date,
    work_calendar: Optional[WorkCalendar] = None,
    limit: int = OCCURRENCE_CHECK_LIMIT,
) -> Optional[bool]:
    """
    Whether the task's rule ever produces `instance_date`.

    Dates on or after the pointer are looked up along the pointer's own walk,
    earlier dates along the walk from the initial resolution of start_date.
    Returns None when `limit` occurrences pass without reaching the date.

    Raises:
        SchedulingAnomaly: If the resolver cannot produce a next date
    """
    work_calendar = work_calendar or WorkCalendar()
    day = to_day(instance_date)
    start = to_day(start_date)
    if day < start:
        return False

    pointer = to_day(task.next_due_date)
    current = pointer if day >= pointer else resolve_next_date(task.rule, start, True, work_calendar)
    for _ in range(limit):
        if current >= day:
            return current == day
        current = resolve_next_date(task.rule, current, False, work_calendar)
    return None


def is_on_leave(employee, today) -> bool:
    """
    Whether an employee's leave window covers `today`.

    Reads on_leave, leave_start and leave_end; a missing bound is open-ended.
    """
    if employee is None or not getattr(employee, "on_leave", False):
        return False
    today = to_day(today)
    start = getattr(employee, "leave_start", None)
    end = getattr(employee, "leave_end", None)
    if start is not None and to_day(start) > today:
        return False
    if end is not None and to_day(end) < today:
        return False
    return True


def effective_owner_ids(viewer, colleagues: Iterable, today) -> List:
    """
    Owners whose checklists a viewer should see today.

    The viewer's own tasks, unless the viewer is on leave, plus the tasks of
    every colleague who is on leave today and named the viewer as buddy.
    """
    owners = []
    if not is_on_leave(viewer, today):
        owners.append(viewer.id)
    for colleague in colleagues:
        if colleague.id == viewer.id or colleague.id in owners:
            continue
        if getattr(colleague, "buddy_id", None) == viewer.id and is_on_leave(colleague, today):
            owners.append(colleague.id)
    return owners

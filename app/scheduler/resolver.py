"""
Recurrence Resolver

Computes the next valid occurrence of a checklist: the raw advance demanded
by the rule, then a skip over holidays and weekends that keeps weekly and
monthly rules on their allowed days. Quarterly, Half-Yearly and Yearly jumps
are measured from the target day, not from where a skip pushed it.

Every loop is capped at MAX_SCAN_DAYS iterations; exceeding the cap raises
SchedulingAnomaly instead of hanging.
"""
import calendar
from datetime import date, timedelta
from typing import List, Optional

from dateutil.relativedelta import relativedelta

from app.scheduler.errors import SchedulingAnomaly
from app.scheduler.rules import Frequency, RecurrenceRule
from app.scheduler.work_calendar import WorkCalendar, to_day, weekday_index

MAX_SCAN_DAYS = 366
ONE_DAY = timedelta(days=1)


def _month_length(day: date) -> int:
    return calendar.monthrange(day.year, day.month)[1]


def matches_rule(rule: RecurrenceRule, day: date) -> bool:
    """
    Whether `day` is one of the rule's allowed days.

    Only weekly and monthly rules restrict days. A monthly target beyond the
    end of a short month lands on that month's last day.
    """
    if rule.frequency is Frequency.WEEKLY:
        return weekday_index(day) in rule.allowed_weekdays
    if rule.frequency is Frequency.MONTHLY:
        if day.day in rule.allowed_month_days:
            return True
        last_day = _month_length(day)
        return day.day == last_day and max(rule.allowed_month_days) > last_day
    return True


def _scan_forward(rule: RecurrenceRule, day: date) -> date:
    """First allowed day on or after `day`."""
    start = day
    steps = 0
    while not matches_rule(rule, day):
        steps += 1
        if steps > MAX_SCAN_DAYS:
            raise SchedulingAnomaly(
                f"No allowed {rule.frequency.value} day within {MAX_SCAN_DAYS} days",
                anchor=start,
            )
        day += ONE_DAY
    return day


def _is_target_day(rule: RecurrenceRule, day: date) -> bool:
    """Whether `day` is where a month-jumping rule lands before any holiday skip."""
    if rule.frequency is Frequency.YEARLY and day.month != rule.target_month:
        return False
    return day.day == min(rule.target_day, _month_length(day))


def _period_anchor(rule: RecurrenceRule, anchor: date, work_calendar: WorkCalendar) -> date:
    """
    The target day an occurrence was pushed forward from.

    Walks back over the run of non-working days just before `anchor`. Month
    jumps count from that day, so a skip across a month or year boundary
    does not swallow the following period.
    """
    if _is_target_day(rule, anchor):
        return anchor
    day = anchor - ONE_DAY
    for _ in range(MAX_SCAN_DAYS):
        if not work_calendar.is_non_working(day):
            break
        if _is_target_day(rule, day):
            return day
        day -= ONE_DAY
    return anchor


def _month_jump(rule: RecurrenceRule, base: date) -> date:
    if rule.frequency is Frequency.YEARLY:
        return base + relativedelta(years=1, month=rule.target_month, day=rule.target_day)
    # relativedelta clamps the day to the length of the target month
    return base + relativedelta(months=rule.month_jump, day=rule.target_day)


def _raw_advance(rule: RecurrenceRule, anchor: date, is_initial: bool, work_calendar: WorkCalendar) -> date:
    if rule.is_scanned:
        return _scan_forward(rule, anchor if is_initial else anchor + ONE_DAY)

    # the first occurrence starts exactly on the chosen date
    if is_initial:
        return anchor

    if rule.frequency is Frequency.INTERVAL:
        return anchor + timedelta(days=rule.interval_days)

    if rule.month_jump:
        candidate = _month_jump(rule, _period_anchor(rule, anchor, work_calendar))
        if candidate <= anchor:
            candidate = _month_jump(rule, anchor)
        return candidate

    return anchor + ONE_DAY


def _skip_non_working(rule: RecurrenceRule, day: date, work_calendar: WorkCalendar) -> date:
    start = day
    steps = 0
    while work_calendar.is_non_working(day):
        steps += 1
        if steps > MAX_SCAN_DAYS:
            raise SchedulingAnomaly(
                f"No working day within {MAX_SCAN_DAYS} days",
                anchor=start,
                weekends=sorted(work_calendar.weekends),
            )
        day += ONE_DAY
        if rule.is_scanned:
            day = _scan_forward(rule, day)
    return day


def resolve_next_date(
    rule: RecurrenceRule,
    anchor_date,
    is_initial: bool = False,
    work_calendar: Optional[WorkCalendar] = None,
) -> date:
    """
    Resolve the next occurrence of a rule.

    Args:
        rule: Normalized recurrence rule
        anchor_date: Start date (initial) or the occurrence being advanced from
        is_initial: True when seeding the first occurrence of a new task
        work_calendar: Holidays and weekends; defaults to Sunday-only weekends

    Returns:
        A working day satisfying the rule. Strictly after the anchor when
        is_initial is False, on or after it otherwise.

    Raises:
        SchedulingAnomaly: If no valid day exists within MAX_SCAN_DAYS
    """
    work_calendar = work_calendar or WorkCalendar()
    anchor = to_day(anchor_date)
    candidate = _raw_advance(rule, anchor, is_initial, work_calendar)
    return _skip_non_working(rule, candidate, work_calendar)


def project_occurrences(
    rule: RecurrenceRule,
    start_date,
    work_calendar: Optional[WorkCalendar] = None,
    count: int = 10,
) -> List[date]:
    """First `count` occurrences of a rule, beginning with the initial resolution from start_date."""
    if count < 1:
        return []
    occurrences = [resolve_next_date(rule, start_date, True, work_calendar)]
    while len(occurrences) < count:
        occurrences.append(resolve_next_date(rule, occurrences[-1], False, work_calendar))
    return occurrences

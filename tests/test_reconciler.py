import unittest
from datetime import date, datetime
from types import SimpleNamespace

from app.scheduler import (
    CompletionKind,
    HistoryAction,
    HistoryEntry,
    TaskSnapshot,
    WorkCalendar,
    apply_completion,
    effective_owner_ids,
    is_on_leave,
    is_scheduled_occurrence,
    list_visible_instances,
    reconcile,
    resolve_next_date,
)
from tests.fixtures import completion, rule, snapshot

CAL = WorkCalendar.build()
MON, TUE, WED, THU = date(2026, 1, 5), date(2026, 1, 6), date(2026, 1, 7), date(2026, 1, 8)


class TestReconcile(unittest.TestCase):

    def test_backlog_and_today_oldest_first(self):
        instances = list_visible_instances(snapshot(rule("Daily"), MON), THU, CAL)
        self.assertEqual([i.instance_date for i in instances], [MON, TUE, WED, THU])
        self.assertEqual([i.is_backlog for i in instances], [True, True, True, False])

    def test_completed_backlog_day_not_reemitted(self):
        instances = list_visible_instances(snapshot(rule("Daily"), MON, completed=[TUE]), THU, CAL)
        self.assertEqual([i.instance_date for i in instances], [MON, WED, THU])

    def test_completion_without_instance_date_counts_for_its_timestamp_day(self):
        entry = HistoryEntry(action=HistoryAction.ADMINISTRATIVE_COMPLETION, timestamp=datetime(2026, 1, 7, 17, 30))
        task = TaskSnapshot(rule=rule("Daily"), next_due_date=MON, history=(entry,))
        self.assertNotIn(WED, [i.instance_date for i in list_visible_instances(task, THU, CAL)])

    def test_non_completion_entries_ignored(self):
        entry = HistoryEntry(action=HistoryAction.UPDATED, timestamp=datetime(2026, 1, 6, 9), instance_date=TUE)
        task = TaskSnapshot(rule=rule("Daily"), next_due_date=MON, history=(entry,))
        self.assertIn(TUE, [i.instance_date for i in list_visible_instances(task, THU, CAL)])

    def test_future_pointer_shows_nothing(self):
        self.assertEqual(list_visible_instances(snapshot(rule("Daily"), THU), MON, CAL), [])

    def test_non_working_days_never_emitted(self):
        instances = list_visible_instances(snapshot(rule("Daily"), date(2026, 1, 1)), date(2026, 1, 12), CAL)
        self.assertNotIn(date(2026, 1, 4), [i.instance_date for i in instances])
        self.assertNotIn(date(2026, 1, 11), [i.instance_date for i in instances])
        self.assertEqual(len(instances), 10)

    def test_scan_limit_reports_anomaly(self):
        result = reconcile(snapshot(rule("Daily"), MON), THU, CAL, limit=2)
        self.assertEqual([i.instance_date for i in result.instances], [MON, TUE])
        self.assertIn("stopped", result.anomaly)

    def test_resolver_anomaly_keeps_instances_found_so_far(self):
        seven_day_week = WorkCalendar.build(weekends=[])
        task = snapshot(rule("Daily"), MON)
        self.assertIsNone(reconcile(task, THU, seven_day_week).anomaly)

        result = reconcile(snapshot(rule("Weekly", days_of_week=[0]), date(2026, 1, 4)), date(2026, 1, 20), CAL)
        self.assertEqual([i.instance_date for i in result.instances], [date(2026, 1, 4)])
        self.assertIsNotNone(result.anomaly)


class TestApplyCompletion(unittest.TestCase):

    def test_completing_pointer_advances(self):
        outcome = apply_completion(snapshot(rule("Daily"), WED), WED, CAL)
        self.assertIs(outcome.kind, CompletionKind.ADVANCED)
        self.assertTrue(outcome.advanced)
        self.assertEqual(outcome.previous_due_date, WED)
        self.assertEqual(outcome.next_due_date, resolve_next_date(rule("Daily"), WED, False, CAL))

    def test_backlog_completion_leaves_pointer(self):
        outcome = apply_completion(snapshot(rule("Daily"), WED), MON, CAL)
        self.assertIs(outcome.kind, CompletionKind.BACKLOG)
        self.assertEqual(outcome.next_due_date, WED)

    def test_future_completion_is_in_place(self):
        outcome = apply_completion(snapshot(rule("Daily"), MON), THU, CAL)
        self.assertIs(outcome.kind, CompletionKind.IN_PLACE)
        self.assertFalse(outcome.advanced)
        self.assertEqual(outcome.next_due_date, MON)

    def test_advance_skips_days_completed_ahead(self):
        outcome = apply_completion(snapshot(rule("Daily"), MON, completed=[TUE, WED]), MON, CAL)
        self.assertEqual(outcome.next_due_date, THU)

    def test_backlog_then_pointer_lifecycle(self):
        task = snapshot(rule("Daily"), WED)
        backlog = apply_completion(task, MON, CAL)
        task = TaskSnapshot(task.rule, backlog.next_due_date, task.history + (completion(MON),))
        self.assertEqual(task.next_due_date, WED)
        self.assertEqual([i.instance_date for i in list_visible_instances(task, WED, CAL)], [WED])

        advanced = apply_completion(task, WED, CAL)
        self.assertEqual(advanced.next_due_date, THU)


class TestScheduledOccurrence(unittest.TestCase):

    def test_days_before_start_are_never_occurrences(self):
        task = snapshot(rule("Daily"), TUE)
        self.assertFalse(is_scheduled_occurrence(task, MON, date(2026, 1, 2), CAL))

    def test_non_working_day_is_not_an_occurrence(self):
        task = snapshot(rule("Daily"), MON)
        self.assertFalse(is_scheduled_occurrence(task, MON, date(2026, 1, 11), CAL))  # Sunday
        self.assertTrue(is_scheduled_occurrence(task, MON, date(2026, 1, 10), CAL))

    def test_weekly_rule_only_produces_its_weekdays(self):
        weekly = snapshot(rule("Weekly", days_of_week=[1, 3]), MON)
        self.assertTrue(is_scheduled_occurrence(weekly, MON, WED, CAL))
        self.assertFalse(is_scheduled_occurrence(weekly, MON, THU, CAL))

    def test_interval_chain_is_followed(self):
        every_third = snapshot(rule("Interval", interval_days=3), THU)
        self.assertTrue(is_scheduled_occurrence(every_third, MON, THU, CAL))
        self.assertFalse(is_scheduled_occurrence(every_third, MON, date(2026, 1, 9), CAL))
        # dates behind the pointer are walked from the start date
        self.assertFalse(is_scheduled_occurrence(every_third, MON, TUE, CAL))

    def test_walk_limit_gives_up(self):
        task = snapshot(rule("Daily"), MON)
        self.assertIsNone(is_scheduled_occurrence(task, MON, date(2026, 3, 2), CAL, limit=5))


class TestLeave(unittest.TestCase):

    def _employee(self, id, on_leave=False, start=None, end=None, buddy_id=None):
        return SimpleNamespace(id=id, on_leave=on_leave, leave_start=start, leave_end=end, buddy_id=buddy_id)

    def test_leave_window_bounds(self):
        emp = self._employee(1, True, MON, WED)
        self.assertTrue(is_on_leave(emp, MON))
        self.assertTrue(is_on_leave(emp, WED))
        self.assertFalse(is_on_leave(emp, THU))
        self.assertFalse(is_on_leave(emp, date(2026, 1, 4)))

    def test_open_ended_leave(self):
        self.assertTrue(is_on_leave(self._employee(1, True, None, None), THU))
        self.assertTrue(is_on_leave(self._employee(1, True, MON, None), date(2026, 6, 1)))
        self.assertFalse(is_on_leave(self._employee(1, False, MON, THU), TUE))
        self.assertFalse(is_on_leave(None, TUE))

    def test_buddy_covers_colleague_on_leave(self):
        viewer = self._employee(2)
        away = self._employee(1, True, MON, WED, buddy_id=2)
        back = self._employee(3, True, date(2025, 12, 1), date(2025, 12, 5), buddy_id=2)
        other_buddy = self._employee(4, True, MON, WED, buddy_id=9)
        self.assertEqual(effective_owner_ids(viewer, [away, back, other_buddy], TUE), [2, 1])
        self.assertEqual(effective_owner_ids(viewer, [away], THU), [2])

    def test_viewer_on_leave_sees_only_covered_tasks(self):
        viewer = self._employee(2, True, MON, WED, buddy_id=5)
        away = self._employee(1, True, MON, WED, buddy_id=2)
        self.assertEqual(effective_owner_ids(viewer, [away], TUE), [1])


if __name__ == "__main__":
    unittest.main()

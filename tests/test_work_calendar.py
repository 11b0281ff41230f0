import unittest
from datetime import date, datetime
from types import SimpleNamespace

from app.scheduler import WorkCalendar, weekday_index
from app.scheduler.work_calendar import to_day


class TestWeekdayIndex(unittest.TestCase):

    def test_sunday_is_zero(self):
        self.assertEqual(weekday_index(date(2026, 1, 4)), 0)  # Sunday
        self.assertEqual(weekday_index(date(2026, 1, 5)), 1)  # Monday
        self.assertEqual(weekday_index(date(2026, 1, 3)), 6)  # Saturday

    def test_to_day_strips_time(self):
        self.assertEqual(to_day(datetime(2026, 1, 5, 23, 59)), date(2026, 1, 5))
        self.assertEqual(to_day("2026-01-05T08:30:00Z"), date(2026, 1, 5))
        self.assertEqual(to_day(date(2026, 1, 5)), date(2026, 1, 5))
        with self.assertRaises(TypeError):
            to_day(20260105)


class TestWorkCalendar(unittest.TestCase):

    def test_defaults_to_sunday_weekend_and_no_holidays(self):
        cal = WorkCalendar.build()
        self.assertEqual(cal.weekends, frozenset({0}))
        self.assertEqual(cal.holidays, frozenset())
        self.assertTrue(cal.is_non_working(date(2026, 1, 4)))
        self.assertTrue(cal.is_working(date(2026, 1, 3)))

    def test_explicit_empty_weekends_means_seven_day_week(self):
        cal = WorkCalendar.build(weekends=[])
        self.assertTrue(cal.is_working(date(2026, 1, 4)))

    def test_invalid_weekend_values_ignored(self):
        cal = WorkCalendar.build(weekends=[6, 7, -1, "0", True])
        self.assertEqual(cal.weekends, frozenset({6}))

    def test_holidays_accept_mixed_inputs(self):
        cal = WorkCalendar.build(holidays=[date(2026, 1, 26), "2026-08-15", datetime(2026, 10, 2, 9, 0), None])
        self.assertTrue(cal.is_holiday(date(2026, 1, 26)))
        self.assertTrue(cal.is_holiday(date(2026, 8, 15)))
        self.assertTrue(cal.is_holiday(date(2026, 10, 2)))
        self.assertFalse(cal.is_holiday(date(2026, 1, 27)))
        self.assertTrue(cal.is_non_working(datetime(2026, 1, 26, 18, 0)))

    def test_for_tenant_reads_holidays_and_weekends(self):
        tenant = SimpleNamespace(
            holidays=[SimpleNamespace(holiday_date=date(2026, 1, 26))],
            weekends=[0, 6],
        )
        cal = WorkCalendar.for_tenant(tenant)
        self.assertTrue(cal.is_non_working(date(2026, 1, 26)))
        self.assertTrue(cal.is_non_working(date(2026, 1, 3)))
        self.assertTrue(cal.is_working(date(2026, 1, 2)))

    def test_for_unknown_tenant_uses_defaults(self):
        self.assertEqual(WorkCalendar.for_tenant(None), WorkCalendar())


if __name__ == "__main__":
    unittest.main()

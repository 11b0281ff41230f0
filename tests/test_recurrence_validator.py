import unittest

from app.services.recurrence_validator import RecurrenceValidator


class TestFrequencyConfig(unittest.TestCase):

    def test_unknown_frequency_rejected(self):
        result = RecurrenceValidator.validate_frequency_config("Fortnightly", {})
        self.assertFalse(result["valid"])

    def test_interval_requires_positive_days(self):
        self.assertFalse(RecurrenceValidator.validate_frequency_config("Interval", {})["valid"])
        self.assertFalse(RecurrenceValidator.validate_frequency_config("Interval", {"interval_days": 0})["valid"])
        self.assertTrue(RecurrenceValidator.validate_frequency_config("Interval", {"interval_days": 14})["valid"])

    def test_out_of_range_days_rejected(self):
        for config in ({"days_of_week": [7]}, {"days_of_month": [0]}, {"month": 13}, {"day_of_month": 32}):
            with self.subTest(config=config):
                self.assertFalse(RecurrenceValidator.validate_frequency_config("Monthly", config)["valid"])

    def test_defaults_produce_warnings(self):
        weekly = RecurrenceValidator.validate_frequency_config("Weekly", None)
        self.assertTrue(weekly["valid"])
        self.assertEqual(len(weekly["warnings"]), 1)

        monthly = RecurrenceValidator.validate_frequency_config("Monthly", {"days_of_month": [1, 31]})
        self.assertTrue(monthly["valid"])
        self.assertTrue(any("28th" in w for w in monthly["warnings"]))


class TestWeekends(unittest.TestCase):

    def test_missing_weekends_valid(self):
        self.assertTrue(RecurrenceValidator.validate_weekends(None)["valid"])

    def test_all_days_off_rejected(self):
        self.assertFalse(RecurrenceValidator.validate_weekends(range(7))["valid"])

    def test_empty_weekends_warns(self):
        result = RecurrenceValidator.validate_weekends([])
        self.assertTrue(result["valid"])
        self.assertEqual(len(result["warnings"]), 1)

    def test_bad_values_rejected(self):
        self.assertFalse(RecurrenceValidator.validate_weekends([0, 9])["valid"])


if __name__ == "__main__":
    unittest.main()

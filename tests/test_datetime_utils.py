import unittest

from mystic_habits.utils.datetime_utils import (
    FixedClock,
    SystemClock,
    is_valid_day,
    short_label,
    shift_day,
    trailing_days,
)


class TestDayHelpers(unittest.TestCase):
    def test_trailing_days_are_chronological(self) -> None:
        self.assertEqual(
            trailing_days("2024-03-01", 3),
            ["2024-02-28", "2024-02-29", "2024-03-01"],
        )
        self.assertEqual(trailing_days("2024-03-01", 0), [])

    def test_shift_and_labels(self) -> None:
        self.assertEqual(shift_day("2024-12-31", 1), "2025-01-01")
        self.assertEqual(short_label("2025-06-13"), "06-13")
        self.assertEqual(short_label(""), "")

    def test_day_validation(self) -> None:
        self.assertTrue(is_valid_day("2025-06-13"))
        self.assertFalse(is_valid_day("2025-02-30"))
        self.assertFalse(is_valid_day(20250613))
        self.assertFalse(is_valid_day(None))


class TestClocks(unittest.TestCase):
    def test_fixed_clock(self) -> None:
        clock = FixedClock("2025-06-13")
        self.assertEqual(clock.yesterday(), "2025-06-12")
        self.assertEqual(clock.days_ago(13), "2025-05-31")
        self.assertEqual(clock.range_days(2), ["2025-06-12", "2025-06-13"])
        self.assertEqual(clock.advance(), "2025-06-14")
        clock.set("2025-01-01")
        self.assertEqual(clock.today(), "2025-01-01")

    def test_fixed_clock_rejects_bad_day(self) -> None:
        with self.assertRaises(ValueError):
            FixedClock("yesterday")
        with self.assertRaises(ValueError):
            FixedClock("2025-06-13").set("2025/06/13")

    def test_system_clock(self) -> None:
        self.assertTrue(is_valid_day(SystemClock().today()))
        self.assertTrue(is_valid_day(SystemClock("Asia/Tokyo").today()))


if __name__ == "__main__":
    unittest.main(verbosity=2)

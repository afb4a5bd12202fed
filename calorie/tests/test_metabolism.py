import unittest
from datetime import date, timedelta

from calorie.domain.DailyRecord import DaySummary
from calorie.domain.UserProfile import UserProfile
from calorie.logic.history.metabolism import analyze_metabolism, target_scale, activity_fraction

PROFILE = UserProfile(age=30, sex="male", height_cm=180, weight_kg=80)
START = date(2025, 1, 6)  # Monday


def _history(days):
    out = []
    for i in range(days):
        day = START + timedelta(days=i)
        burned = 500 if day.weekday() in (0, 2, 4) else 100
        out.append(DaySummary(day, 2100, burned, 2))
    return out


class TestMetabolism(unittest.TestCase):
    def test_bmr(self):
        self.assertEqual(PROFILE.bmr(), 1780)

    def test_short_history_is_insufficient(self):
        profile = analyze_metabolism(_history(6), PROFILE)
        self.assertEqual(profile.data_quality, "insufficient")
        self.assertEqual(profile.confidence_score, 20)
        self.assertFalse(profile.is_confident)
        self.assertEqual(target_scale(profile), 1.0)
        self.assertEqual(activity_fraction(profile), 0.30)

    def test_empty_days_are_ignored(self):
        days = _history(6) + [DaySummary(START + timedelta(days=6), 0, 300, 0)]
        self.assertEqual(analyze_metabolism(days, PROFILE).total_data_points, 6)

    def test_month_of_history(self):
        profile = analyze_metabolism(_history(30), PROFILE)
        self.assertEqual(profile.data_quality, "good")
        self.assertEqual(profile.confidence_score, 85)
        self.assertTrue(profile.is_confident)
        self.assertEqual(profile.weekly_activity_pattern[0], 500)
        self.assertEqual(profile.weekly_activity_pattern[1], 100)
        self.assertAlmostEqual(profile.average_daily_burn, 8200 / 30)
        # below the moderate-activity estimate, so targets are scaled down
        self.assertEqual(target_scale(profile), 0.95)
        self.assertEqual(activity_fraction(profile), 0.25)

    def test_no_profile(self):
        self.assertEqual(target_scale(None), 1.0)
        self.assertEqual(activity_fraction(None), 0.30)


if __name__ == '__main__':
    unittest.main()

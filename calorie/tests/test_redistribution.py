import unittest
from datetime import date, timedelta

from calorie.domain.DailyRecord import DailyRecord
from calorie.domain.UserProfile import PlannedSession
from calorie.domain.WeeklyGoal import WeeklyGoal
from calorie.logic.progress.weekly import calculate_weekly_progress
from calorie.logic.redistribution.engine import (
    calculate_redistribution, adjustment_reason, pace_threshold, OVER_BUDGET, UNDER_BUDGET, ON_TRACK,
)

MONDAY = date(2025, 3, 3)


def _records(days, consumed_each, burned_each=0):
    return [DailyRecord(date=MONDAY + timedelta(days=i), target=2000,
                        consumed=consumed_each, burned=burned_each) for i in range(days)]


class TestWeeklyProgress(unittest.TestCase):
    def test_burned_calories_add_back(self):
        goal = WeeklyGoal.create(MONDAY, 2000, 14000)
        progress = calculate_weekly_progress(goal, _records(3, 2300, 100), MONDAY + timedelta(days=3))
        self.assertEqual(progress.total_consumed, 6900)
        self.assertEqual(progress.total_burned, 300)
        self.assertEqual(progress.remaining_calories, 14000 - 6900 + 300)
        self.assertEqual(progress.projected_outcome, 6600)
        self.assertEqual(progress.days_elapsed, 3)

    def test_no_goal(self):
        self.assertIsNone(calculate_weekly_progress(None, [], MONDAY))

    def test_records_outside_the_week_are_ignored(self):
        goal = WeeklyGoal.create(MONDAY, 2000, 14000)
        stray = DailyRecord(date=MONDAY - timedelta(days=1), target=2000, consumed=5000)
        progress = calculate_weekly_progress(goal, [stray], MONDAY)
        self.assertEqual(progress.total_consumed, 0)


class TestRedistribution(unittest.TestCase):
    def setUp(self):
        self.goal = WeeklyGoal.create(MONDAY, 2000, 14000)

    def test_over_budget_after_three_heavy_days(self):
        thursday = MONDAY + timedelta(days=3)
        progress = calculate_weekly_progress(self.goal, _records(3, 2300, 100), thursday)
        self.assertAlmostEqual(pace_threshold(2000, 3), 600 * (0.5 + 3 / 7))
        self.assertEqual(adjustment_reason(progress, self.goal), OVER_BUDGET)

        result = calculate_redistribution(progress, self.goal)
        self.assertEqual(result.remaining_days, 4)
        self.assertEqual(result.remaining_calories, 7400)
        self.assertEqual(result.recommended_daily_targets, (1850, 1850, 1850, 1850))
        self.assertEqual(result.target_for(thursday), 1850)
        self.assertIsNone(result.target_for(MONDAY))

    def test_targets_never_below_floor(self):
        progress = calculate_weekly_progress(self.goal, _records(3, 4000), MONDAY + timedelta(days=3))
        result = calculate_redistribution(progress, self.goal)
        self.assertEqual(result.recommended_daily_targets, (1200,) * 4)

    def test_under_budget(self):
        tuesday = MONDAY + timedelta(days=1)
        progress = calculate_weekly_progress(self.goal, _records(1, 1000), tuesday)
        self.assertEqual(adjustment_reason(progress, self.goal), UNDER_BUDGET)

    def test_low_usage_is_never_over_budget(self):
        goal = WeeklyGoal.create(MONDAY, 2000, 20000)
        progress = calculate_weekly_progress(goal, _records(1, 2500), MONDAY + timedelta(days=1))
        self.assertEqual(adjustment_reason(progress, goal), ON_TRACK)

    def test_banked_calories_count_as_on_pace(self):
        tuesday = MONDAY + timedelta(days=1)
        progress = calculate_weekly_progress(self.goal, _records(1, 1500), tuesday)
        self.assertEqual(adjustment_reason(progress, self.goal), UNDER_BUDGET)
        self.assertEqual(adjustment_reason(progress, self.goal, banked_so_far=-500), ON_TRACK)

    def test_training_day_gets_a_boost_and_total_is_conserved(self):
        wednesday = MONDAY + timedelta(days=2)
        sessions = [PlannedSession(wednesday, "running", "high", 600)]
        progress = calculate_weekly_progress(self.goal, [], MONDAY)
        result = calculate_redistribution(progress, self.goal, planned_sessions=sessions)
        self.assertEqual(result.target_for(wednesday), 2180)
        self.assertEqual(result.target_for(MONDAY), 1970)
        self.assertEqual(sum(result.recommended_daily_targets), 14000)

    def test_low_intensity_session_changes_nothing(self):
        sessions = [PlannedSession(MONDAY + timedelta(days=2), "yoga", "low", 300)]
        progress = calculate_weekly_progress(self.goal, [], MONDAY)
        result = calculate_redistribution(progress, self.goal, planned_sessions=sessions)
        self.assertEqual(set(result.recommended_daily_targets), {2000})

    def test_week_over(self):
        progress = calculate_weekly_progress(self.goal, [], MONDAY + timedelta(days=7))
        result = calculate_redistribution(progress, self.goal)
        self.assertEqual(result.remaining_days, 0)
        self.assertEqual(result.recommended_daily_targets, ())


if __name__ == '__main__':
    unittest.main()

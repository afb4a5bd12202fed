import unittest
from dataclasses import replace
from datetime import date, datetime, timedelta

from calorie.domain.DailyRecord import DailyRecord
from calorie.domain.EngineState import EngineState
from calorie.domain.Recovery import RecoverySession
from calorie.logic.goals.weekly_goal import set_weekly_goal
from calorie.logic.locking.daily_target import lock, get_locked, effective_target, is_lock_valid
from calorie.logic.queries import remaining_calories_for_today
from calorie.logic.records.store import log_meal, log_workout

MONDAY = date(2025, 3, 3)
WEDNESDAY = MONDAY + timedelta(days=2)


class TestDailyTargetLock(unittest.TestCase):
    def setUp(self):
        self.now = datetime(2025, 3, 5, 10, 0)
        self.state = set_weekly_goal(EngineState.empty(), 2000, self.now, current_week_allowance=14000)

    def test_first_meal_locks_todays_target(self):
        state, _ = log_meal(self.state, "Porridge", 400, "breakfast", self.now)
        # 14000 spread over Wednesday..Sunday
        self.assertEqual(get_locked(state, WEDNESDAY, WEDNESDAY), 2800)
        self.assertEqual(state.record_for(WEDNESDAY).target_locked_at, self.now)

    def test_lock_survives_later_meals(self):
        state, _ = log_meal(self.state, "Porridge", 400, "breakfast", self.now)
        later = self.now + timedelta(hours=8)
        state, _ = log_meal(state, "Pizza", 1800, "dinner", later)
        self.assertEqual(get_locked(state, WEDNESDAY, WEDNESDAY), 2800)
        self.assertEqual(effective_target(state, WEDNESDAY, WEDNESDAY), 2800)
        self.assertEqual(remaining_calories_for_today(state, WEDNESDAY), 600)

    def test_burned_calories_raise_remaining(self):
        state, _ = log_meal(self.state, "Lunch", 1000, "lunch", self.now)
        state, _ = log_workout(state, "Run", "running", 300, 30, "high", self.now)
        self.assertEqual(remaining_calories_for_today(state, WEDNESDAY), 2800 - 1000 + 300)

    def test_lock_taken_on_another_day_is_stale(self):
        stale = DailyRecord(date=WEDNESDAY, target=2100, locked_daily_target=1900,
                            target_locked_at=self.now - timedelta(days=1))
        state = self.state.with_record(stale)
        self.assertFalse(is_lock_valid(stale, WEDNESDAY))
        self.assertIsNone(get_locked(state, WEDNESDAY, WEDNESDAY))

        state, value = lock(state, WEDNESDAY, self.now)
        self.assertEqual(value, 2100)
        self.assertEqual(state.record_for(WEDNESDAY).target_locked_at, self.now)

    def test_past_lock_is_never_rewritten(self):
        past = DailyRecord(date=MONDAY, target=2300, locked_daily_target=2100,
                           target_locked_at=datetime(2025, 3, 3, 8, 0))
        state = self.state.with_record(past)
        self.assertEqual(get_locked(state, MONDAY, WEDNESDAY), 2100)
        new_state, value = lock(state, MONDAY, self.now)
        self.assertEqual(value, 2100)
        self.assertIs(new_state, state)

    def test_lock_without_record_stores_nothing(self):
        state, value = lock(self.state, WEDNESDAY, self.now)
        self.assertEqual(value, 2800)
        self.assertIsNone(state.record_for(WEDNESDAY))

    def test_lock_without_goal(self):
        state, value = lock(EngineState.empty(), WEDNESDAY, self.now)
        self.assertIsNone(value)

    def test_banking_and_recovery_adjustments_add_up(self):
        record = DailyRecord(date=WEDNESDAY, target=2000, banking_adjustment=-200)
        session = RecoverySession(
            id="s1", plan_id="p1", option_id="gentle_7day",
            start_date=MONDAY, end_date=MONDAY + timedelta(days=7),
            adjusted_target=1900, daily_adjustment=-100,
            days_completed=2, days_remaining=5, adherence_rate=100.0,
        )
        state = self.state.with_record(record).with_recovery(active_session=session)
        self.assertEqual(effective_target(state, WEDNESDAY, WEDNESDAY), 1700)

        deep_cut = state.with_record(replace(record, banking_adjustment=-700))
        self.assertEqual(effective_target(deep_cut, WEDNESDAY, WEDNESDAY), 1200)

    def test_session_does_not_cover_its_end_date(self):
        session = RecoverySession(
            id="s1", plan_id="p1", option_id="quick_3day",
            start_date=MONDAY, end_date=WEDNESDAY,
            adjusted_target=1800, daily_adjustment=-200,
            days_completed=0, days_remaining=2, adherence_rate=100.0,
        )
        state = self.state.with_recovery(active_session=session)
        self.assertEqual(effective_target(state, WEDNESDAY, WEDNESDAY), 2800)
        self.assertEqual(effective_target(state, MONDAY + timedelta(days=1), WEDNESDAY), 1800)


class TestTargetBeforeFirstWrite(unittest.TestCase):
    def setUp(self):
        monday_morning = datetime(2025, 3, 3, 8, 0)
        state = set_weekly_goal(EngineState.empty(), 2000, monday_morning, current_week_allowance=14000)
        self.state, _ = log_meal(state, "Big lunch", 500, "lunch", monday_morning)
        self.tuesday = MONDAY + timedelta(days=1)
        self.now = datetime(2025, 3, 4, 7, 0)

    def test_target_does_not_move_at_first_write(self):
        # 13500 left over Tuesday..Sunday
        before = effective_target(self.state, self.tuesday, self.tuesday)
        self.assertEqual(before, 2250)
        self.assertEqual(remaining_calories_for_today(self.state, self.tuesday), 2250)

        state, _ = log_meal(self.state, "Toast", 100, "breakfast", self.now)
        self.assertEqual(get_locked(state, self.tuesday, self.tuesday), before)
        self.assertEqual(remaining_calories_for_today(state, self.tuesday), 2150)

    def test_future_days_use_redistribution(self):
        friday = MONDAY + timedelta(days=4)
        self.assertEqual(effective_target(self.state, friday, self.tuesday), 2250)
        # past days without a record keep the baseline
        self.assertEqual(effective_target(self.state, MONDAY - timedelta(days=1), self.tuesday), 2000)

    def test_goal_change_restarts_today_at_redistributed_target(self):
        state, _ = log_meal(self.state, "Toast", 100, "breakfast", self.now)
        state = set_weekly_goal(state, 1800, self.now)
        # 12600 less the 600 eaten so far, over Tuesday..Sunday
        self.assertEqual(state.record_for(self.tuesday).target, 2000)
        self.assertIsNone(get_locked(state, self.tuesday, self.tuesday))
        self.assertEqual(effective_target(state, self.tuesday, self.tuesday), 2000)
        self.assertEqual(state.record_for(MONDAY).target, 2000)


if __name__ == '__main__':
    unittest.main()

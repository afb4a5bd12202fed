import unittest
from dataclasses import replace
from datetime import date, datetime, timedelta

from calorie.domain.BankingPlan import BankingPlan
from calorie.domain.DailyRecord import DailyRecord
from calorie.domain.EngineState import EngineState
from calorie.domain.UserProfile import PlannedSession
from calorie.domain.WeeklyGoal import WeeklyGoal
from calorie.logic.rollover.coordinator import (
    roll_over, refresh, migrate_legacy_goal, needs_rollover, week_balance, LITERAL, INVERTED,
)

MONDAY = date(2025, 3, 3)
NEXT_MONDAY = MONDAY + timedelta(days=7)


def _week_state(net_per_day):
    goal = WeeklyGoal.create(MONDAY, 2000, 14000)
    records = tuple(
        DailyRecord(date=MONDAY + timedelta(days=i), target=2000, consumed=net_per_day + 100, burned=100)
        for i in range(7)
    )
    return EngineState(goal=goal, records=records)


class TestRollover(unittest.TestCase):
    def test_unused_calories_carry_over_literally(self):
        state = _week_state(13200 // 7)
        state = state.with_record(replace(state.record_for(MONDAY), consumed=13200 - 6 * (13200 // 7) + 100))
        self.assertEqual(week_balance(state), -800)

        rolled, summary = roll_over(state, NEXT_MONDAY, LITERAL)
        self.assertEqual(summary.balance, -800)
        self.assertEqual(summary.new_allowance, 13200)
        self.assertEqual(rolled.goal.current_week_allowance, 13200)
        self.assertEqual(rolled.goal.weekly_allowance, 14000)
        self.assertEqual(rolled.goal.week_start_date, NEXT_MONDAY)

    def test_inverted_policy(self):
        state = _week_state(13200 // 7)
        state = state.with_record(replace(state.record_for(MONDAY), consumed=13200 - 6 * (13200 // 7) + 100))
        rolled, summary = roll_over(state, NEXT_MONDAY, INVERTED)
        self.assertEqual(summary.new_allowance, 14800)

    def test_allowance_never_negative(self):
        rolled, summary = roll_over(_week_state(4500), NEXT_MONDAY, LITERAL)
        self.assertEqual(summary.new_allowance, 14000 + (4500 * 7 - 14000))
        rolled, summary = roll_over(_week_state(0), NEXT_MONDAY, LITERAL)
        self.assertEqual(summary.new_allowance, 0)

    def test_old_records_are_archived(self):
        rolled, summary = roll_over(_week_state(2000), NEXT_MONDAY + timedelta(days=2))
        self.assertEqual(rolled.records, ())
        self.assertEqual(summary.pruned_records, 7)
        self.assertEqual(len(rolled.history), 7)
        self.assertEqual(rolled.history[0].date, MONDAY)
        self.assertEqual(rolled.history[0].consumed, 2100)

    def test_stale_banking_plan_and_sessions_dropped(self):
        plan = BankingPlan(id="b1", week_start_date=MONDAY, target_date=MONDAY + timedelta(days=5),
                           daily_reduction=100, total_banked=300, remaining_days_count=3,
                           created_at=datetime(2025, 3, 3, 9, 0))
        state = _week_state(2000)
        state = replace(
            state.with_goal(replace(state.goal, banking_plan=plan)),
            planned_sessions=(PlannedSession(MONDAY + timedelta(days=1), "running", "high", 500),
                              PlannedSession(NEXT_MONDAY + timedelta(days=1), "running", "high", 500)),
        )
        rolled, _ = roll_over(state, NEXT_MONDAY)
        self.assertIsNone(rolled.goal.banking_plan)
        self.assertEqual([s.date for s in rolled.planned_sessions], [NEXT_MONDAY + timedelta(days=1)])

    def test_same_week_is_a_no_op(self):
        state = _week_state(2000)
        self.assertFalse(needs_rollover(state.goal, MONDAY + timedelta(days=6)))
        rolled, summary = refresh(state, MONDAY + timedelta(days=6))
        self.assertIsNone(summary)
        self.assertIs(rolled, state)

    def test_no_goal(self):
        state, summary = refresh(EngineState.empty(), NEXT_MONDAY)
        self.assertIsNone(summary)


class TestLegacyMigration(unittest.TestCase):
    def test_missing_current_week_allowance_is_prorated(self):
        legacy = WeeklyGoal(week_start_date=MONDAY, daily_baseline=2000, weekly_allowance=14000)
        state = migrate_legacy_goal(EngineState(goal=legacy), MONDAY + timedelta(days=2))
        self.assertEqual(state.goal.current_week_allowance, 10000)

    def test_migrated_goal_left_alone(self):
        state = EngineState(goal=WeeklyGoal.create(MONDAY, 2000, 9000))
        self.assertIs(migrate_legacy_goal(state, MONDAY), state)


if __name__ == '__main__':
    unittest.main()

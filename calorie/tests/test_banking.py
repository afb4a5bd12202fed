import unittest
from datetime import date, datetime, timedelta

from calorie.domain.EngineState import EngineState
from calorie.logic.banking.planner import (
    validate_banking_plan, create_banking_plan, cancel_banking_plan, update_banking_plan,
    available_target_dates, is_banking_available,
)
from calorie.logic.goals.weekly_goal import set_weekly_goal
from calorie.logic.locking.daily_target import effective_target

MONDAY = date(2025, 3, 3)
NOW = datetime(2025, 3, 3, 9, 0)


def _state(baseline=2000):
    return set_weekly_goal(EngineState.empty(), baseline, NOW, current_week_allowance=baseline * 7)


class TestBankingValidation(unittest.TestCase):
    def test_requires_goal(self):
        result = validate_banking_plan(EngineState.empty(), MONDAY + timedelta(days=3), 200, MONDAY)
        self.assertFalse(result.is_valid)
        self.assertEqual(result.errors, ("No active weekly goal",))

    def test_date_errors(self):
        state = _state()
        self.assertIn("Target date must be in the future",
                      validate_banking_plan(state, MONDAY, 200, MONDAY).errors)
        self.assertIn("Target date must be within the next 7 days",
                      validate_banking_plan(state, MONDAY + timedelta(days=8), 200, MONDAY).errors)
        self.assertIn("Target date must leave at least one day to bank from",
                      validate_banking_plan(state, MONDAY + timedelta(days=1), 200, MONDAY).errors)

    def test_reduction_errors(self):
        state = _state()
        target = MONDAY + timedelta(days=3)
        self.assertIn("Daily reduction must be greater than 0",
                      validate_banking_plan(state, target, 0, MONDAY).errors)
        self.assertIn("Daily reduction cannot exceed 500 calories",
                      validate_banking_plan(state, target, 600, MONDAY).errors)

    def test_below_safe_minimum(self):
        result = validate_banking_plan(_state(1500), MONDAY + timedelta(days=3), 400, MONDAY)
        self.assertFalse(result.is_valid)
        self.assertTrue(result.errors[0].startswith("Daily targets would drop to 1100"))

    def test_warnings_do_not_block(self):
        result = validate_banking_plan(_state(1600), MONDAY + timedelta(days=3), 350, MONDAY)
        self.assertTrue(result.is_valid)
        self.assertIn("This plan results in very low daily targets", result.warnings)
        self.assertIn("Large daily reductions may be difficult to maintain", result.warnings)

    def test_available_dates(self):
        dates = available_target_dates(MONDAY)
        self.assertEqual(dates[0], MONDAY + timedelta(days=1))
        self.assertEqual(len(dates), 7)
        self.assertTrue(is_banking_available(_state(), MONDAY))
        self.assertFalse(is_banking_available(EngineState.empty(), MONDAY))


class TestBankingPlan(unittest.TestCase):
    def setUp(self):
        self.state = _state()
        self.thursday = MONDAY + timedelta(days=3)

    def test_bank_two_days_onto_thursday(self):
        state, validation, plan = create_banking_plan(self.state, self.thursday, 200, NOW)
        self.assertTrue(validation.is_valid)
        self.assertEqual(plan.total_banked, 400)
        self.assertEqual(plan.remaining_days_count, 2)
        self.assertEqual([d.new_target for d in validation.impact_preview.affected_days], [1800, 1800])

        tuesday, wednesday = MONDAY + timedelta(days=1), MONDAY + timedelta(days=2)
        self.assertEqual(effective_target(state, tuesday, MONDAY), 1800)
        self.assertEqual(effective_target(state, wednesday, MONDAY), 1800)
        self.assertEqual(effective_target(state, self.thursday, MONDAY), 2400)
        self.assertEqual(state.record_for(self.thursday).adjusted_target, 2400)
        self.assertIs(state.goal.active_banking_plan, plan)

    def test_overlay_nets_to_zero(self):
        state, _, _ = create_banking_plan(self.state, self.thursday, 200, NOW)
        self.assertEqual(sum(r.banking_adjustment or 0 for r in state.records), 0)

    def test_rejected_plan_leaves_state_untouched(self):
        state, validation, plan = create_banking_plan(self.state, self.thursday, 900, NOW)
        self.assertIsNone(plan)
        self.assertFalse(validation.is_valid)
        self.assertIs(state, self.state)

    def test_cancel_clears_every_overlay(self):
        state, _, plan = create_banking_plan(self.state, self.thursday, 200, NOW)
        state = cancel_banking_plan(state)
        self.assertIsNone(state.goal.active_banking_plan)
        self.assertFalse(state.goal.banking_plan.is_active)
        self.assertTrue(all(r.banking_adjustment is None for r in state.records))
        self.assertEqual(effective_target(state, self.thursday, MONDAY), 2000)

    def test_update_replaces_previous_overlay(self):
        state, _, first = create_banking_plan(self.state, self.thursday, 200, NOW)
        saturday = MONDAY + timedelta(days=5)
        state, validation, second = update_banking_plan(state, saturday, 100, NOW)
        self.assertTrue(validation.is_valid)
        self.assertNotEqual(first.id, second.id)
        self.assertEqual(second.total_banked, 400)
        self.assertEqual(state.record_for(self.thursday).banking_adjustment, -100)
        self.assertEqual(effective_target(state, saturday, MONDAY), 2400)
        self.assertEqual(sum(r.banking_adjustment or 0 for r in state.records), 0)

    def test_goal_change_drops_overlay(self):
        state, _, _ = create_banking_plan(self.state, self.thursday, 200, NOW)
        state = set_weekly_goal(state, 1800, NOW)
        self.assertIsNone(state.goal.active_banking_plan)
        self.assertTrue(all(r.banking_adjustment is None for r in state.records))


if __name__ == '__main__':
    unittest.main()

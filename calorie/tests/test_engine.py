import unittest
from datetime import date, datetime, timedelta

from calorie.domain.EngineState import EngineState
from calorie.domain.Recovery import ActivitySuggestion
from calorie.domain.WeeklyGoal import WeeklyGoal
from calorie.events.Event_Bus import (
    EventBus, GOAL_SET, OVEREATING_DETECTED, OVEREATING_CLEARED, WEEK_ROLLED_OVER,
    BANKING_CREATED, BANKING_CANCELLED, RECOVERY_STARTED, JOB_FAILED,
)
from calorie.infra.Activity_Proxy import DailySummary
from calorie.infra.Job_Queue import CHECK_OVEREATING, SYNC_BURNED, PERSIST
from calorie.infra.State_Repository import StateRepository
from calorie.infra.Storage import InMemoryStorage
from calorie.logic.engine import CalorieBudgetEngine
from calorie.utilities.backup import BackupManager
from calorie.utilities.clock import FixedClock

MONDAY = date(2025, 3, 3)
KEY = "engine-test"


class FakeProxy:
    def __init__(self, active=None):
        self.active = active or {}
        self.calls = []

    def get_daily_summary(self, day):
        self.calls.append(day)
        if day not in self.active:
            return None
        return DailySummary(day, self.active[day])


class BrokenStorage(InMemoryStorage):
    def set(self, key, value):
        raise OSError("disk full")


class TestCalorieBudgetEngine(unittest.TestCase):
    def setUp(self):
        self.clock = FixedClock(datetime(2025, 3, 3, 8, 0))
        self.storage = InMemoryStorage()
        self.repo = StateRepository(self.storage, KEY, BackupManager(self.storage, KEY, clock=self.clock))
        self.bus = EventBus()
        self.events = []
        for name in (GOAL_SET, OVEREATING_DETECTED, OVEREATING_CLEARED, WEEK_ROLLED_OVER,
                     BANKING_CREATED, BANKING_CANCELLED, RECOVERY_STARTED, JOB_FAILED):
            self.bus.subscribe(name, lambda n, p: self.events.append((n, p)))
        self.proxy = FakeProxy({MONDAY: 350})
        self.suggestions = [ActivitySuggestion("Evening walk", "Walk 30 minutes after dinner", "walking", 30, 123)]
        self.engine = CalorieBudgetEngine(
            self.repo, clock=self.clock, activity_proxy=self.proxy,
            suggestion_provider=lambda context: self.suggestions, bus=self.bus,
        )
        self.engine.set_weekly_goal(2000, 14000)
        self.engine.run_pending_jobs()

    def _names(self):
        return [n for n, _ in self.events]

    def test_goal_is_persisted_and_backed_up(self):
        self.assertIn(GOAL_SET, self._names())
        self.assertEqual(self.repo.load(), self.engine.state)
        self.assertEqual(len(self.repo.backups.list_backups()), 1)

    def test_meal_schedules_follow_up_jobs(self):
        self.engine.log_meal("Oats", 400, "breakfast")
        kinds = {job.kind for job in self.engine.jobs.pending()}
        self.assertEqual(kinds, {CHECK_OVEREATING, SYNC_BURNED, PERSIST})

        self.engine.run_pending_jobs()
        self.assertEqual(self.engine.jobs.pending(), [])
        self.assertEqual(self.engine.state.record_for(MONDAY).burned, 350)
        self.assertEqual(self.engine.get_remaining_calories_for_today(), 2000 - 400 + 350)
        self.assertEqual(self.repo.load(), self.engine.state)

    def test_overeating_flow(self):
        self.engine.log_meal("Feast", 2700, "dinner")
        self.engine.run_pending_jobs()
        event = self.engine.get_pending_overeating_event()
        self.assertEqual(event.excess_calories, 700)
        self.assertIn(OVEREATING_DETECTED, self._names())

        plan = self.engine.create_recovery_plan(event.id)
        self.assertEqual(plan.ai_activity_suggestions, tuple(self.suggestions))
        session = self.engine.start_recovery_session(plan.id, plan.recommended_option.id)
        self.assertIsNotNone(session)
        self.assertIn(RECOVERY_STARTED, self._names())
        self.assertIsNone(self.engine.get_pending_overeating_event())
        self.assertEqual(self.engine.get_active_recovery_session(), session)

    def test_suggestion_failure_does_not_block_plan(self):
        def broken(context):
            raise RuntimeError("model unavailable")

        self.engine.suggestion_provider = broken
        self.engine.log_meal("Feast", 2700, "dinner")
        self.engine.run_pending_jobs()
        plan = self.engine.create_recovery_plan(self.engine.get_pending_overeating_event().id)
        self.assertEqual(plan.ai_activity_suggestions, ())

    def test_deleting_the_meal_clears_the_event(self):
        meal = self.engine.log_meal("Feast", 2700, "dinner")
        self.engine.run_pending_jobs()
        self.assertTrue(self.engine.delete_meal(MONDAY, meal.id))
        self.engine.run_pending_jobs()
        self.assertIsNone(self.engine.get_pending_overeating_event())
        self.assertIn(OVEREATING_CLEARED, self._names())

    def test_banking_events(self):
        validation, plan = self.engine.create_banking_plan(MONDAY + timedelta(days=3), 200)
        self.assertTrue(validation.is_valid)
        self.assertEqual(self.engine.get_banking_plan(), plan)
        self.assertTrue(self.engine.cancel_banking_plan())
        self.assertFalse(self.engine.cancel_banking_plan())
        self.assertEqual(self._names().count(BANKING_CREATED), 1)
        self.assertEqual(self._names().count(BANKING_CANCELLED), 1)

    def test_rollover_on_new_week(self):
        self.engine.log_meal("Lunch", 1500, "lunch")
        self.clock.advance(days=7)
        summary = self.engine.refresh()
        self.assertEqual(summary.new_week_start, MONDAY + timedelta(days=7))
        self.assertIn(WEEK_ROLLED_OVER, self._names())
        self.assertEqual(self.engine.state.records, ())
        self.assertIsNone(self.engine.refresh())

    def test_commands_roll_the_week_first(self):
        self.clock.advance(days=8)
        self.engine.log_meal("Toast", 300, "breakfast")
        self.assertEqual(self.engine.state.goal.week_start_date, MONDAY + timedelta(days=7))
        self.assertEqual([r.date for r in self.engine.state.records], [MONDAY + timedelta(days=8)])

    def test_sync_current_week_queues_elapsed_days(self):
        self.clock.advance(days=2)
        self.assertEqual(self.engine.sync_current_week(), 3)
        self.engine.run_pending_jobs()
        self.assertEqual(sorted(self.proxy.calls), [MONDAY, MONDAY + timedelta(days=1), MONDAY + timedelta(days=2)])

    def test_persist_failure_is_reported(self):
        engine = CalorieBudgetEngine(StateRepository(BrokenStorage(), KEY), clock=self.clock, bus=self.bus)
        engine.set_weekly_goal(2000)
        for _ in range(engine.jobs.max_attempts):
            engine.run_pending_jobs()
        self.assertIn(JOB_FAILED, self._names())

    def test_restore_from_backup(self):
        self.engine.create_backup()
        saved = self.engine.state
        self.engine.log_meal("Snack", 200, "snack")
        self.assertTrue(self.engine.restore_from_backup())
        self.assertEqual(self.engine.state, saved)

    def test_corrupt_store_recovers_on_startup(self):
        self.storage.set(KEY, b"\x00garbage")
        engine = CalorieBudgetEngine(self.repo, clock=self.clock, bus=self.bus)
        self.assertIsNotNone(engine.state.goal)
        self.assertEqual(engine.state.goal.daily_baseline, 2000)



class TestWeekWalk(unittest.TestCase):
    INTAKE = (2600, 1550, 2300, 1900, 2800, 1200, 2100)

    def setUp(self):
        self.clock = FixedClock(datetime(2025, 3, 3, 7, 0))
        self.engine = CalorieBudgetEngine(StateRepository(InMemoryStorage(), KEY), clock=self.clock, bus=EventBus())
        self.engine.set_weekly_goal(2000, 14000)
        self.engine.run_pending_jobs()

    def test_budget_is_conserved_and_targets_hold_at_first_write(self):
        locked = []
        for offset, intake in enumerate(self.INTAKE):
            today = MONDAY + timedelta(days=offset)
            self.clock.set(datetime(today.year, today.month, today.day, 7, 0))
            self.engine.refresh()

            overview = self.engine.get_week_overview()
            eaten = sum(d.consumed - d.burned for d in overview.days if d.date < today)
            planned = sum(d.target for d in overview.days if d.date >= today)
            remaining_days = 7 - offset
            self.assertLessEqual(abs(eaten + planned - 14000), remaining_days, today)

            before = self.engine.get_daily_progress().target
            self.engine.log_meal("Day total", intake, "dinner")
            self.engine.run_pending_jobs()
            self.assertEqual(self.engine.get_locked_daily_target(), before, today)
            locked.append(before)

        self.assertEqual(locked, [2000, 1900, 1970, 1888, 1883, 1425, 1650])
        self.assertTrue(all(t >= 1200 for t in locked))


class TestLegacyGoalOnStartup(unittest.TestCase):
    def test_missing_allowance_is_filled_before_the_first_query(self):
        repo = StateRepository(InMemoryStorage(), KEY)
        legacy = WeeklyGoal(week_start_date=MONDAY, daily_baseline=2000, weekly_allowance=14000)
        repo.save(EngineState(goal=legacy))
        clock = FixedClock(datetime(2025, 3, 5, 9, 0))

        engine = CalorieBudgetEngine(repo, clock=clock, bus=EventBus())
        # Wednesday..Sunday
        self.assertEqual(engine.get_current_week_progress().current_week_allowance, 10000)
        self.assertEqual([job.kind for job in engine.jobs.pending()], [PERSIST])

        engine.run_pending_jobs()
        self.assertEqual(repo.load().goal.current_week_allowance, 10000)

    def test_current_goal_is_not_rewritten(self):
        repo = StateRepository(InMemoryStorage(), KEY)
        repo.save(EngineState(goal=WeeklyGoal.create(MONDAY, 2000, 14000)))
        engine = CalorieBudgetEngine(repo, clock=FixedClock(datetime(2025, 3, 5, 9, 0)), bus=EventBus())
        self.assertEqual(engine.state.goal.current_week_allowance, 14000)
        self.assertEqual(engine.jobs.pending(), [])


if __name__ == '__main__':
    unittest.main()

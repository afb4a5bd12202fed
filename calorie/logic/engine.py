"""CalorieBudgetEngine: the single writer over EngineState.

Commands run the pure transitions in `calorie.logic` under one lock and swap
the committed state in a single assignment; queries read whatever state is
committed at the time. Side effects that may be slow or fail (activity sync,
persistence, backups, re-detection) are submitted as jobs and look at the
then-current state when they run.
"""
from __future__ import annotations
from contextlib import contextmanager
from datetime import date, datetime
from threading import RLock
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple
import logging

from calorie.domain.BankingPlan import BankingPlan
from calorie.domain.DailyRecord import Macros, MealEntry, WorkoutEntry
from calorie.domain.EngineState import EngineState
from calorie.domain.Recovery import (
    ActivitySuggestion, OvereatingEvent, RecoveryPlan, RecoverySession, RecoverySettings,
)
from calorie.domain.UserProfile import UserProfile, PlannedSession
from calorie.events import event_helpers
from calorie.events.Event_Bus import EventBus
from calorie.infra.Activity_Proxy import ActivityProxyClient
from calorie.infra.Job_Queue import (
    Job, JobQueue, JobRunReport, SYNC_BURNED, CHECK_OVEREATING, CLEANUP_RECOVERY, PERSIST, BACKUP,
)
from calorie.infra.State_Repository import StateRepository
from calorie.logic import queries
from calorie.logic.banking import planner as banking
from calorie.logic.goals import weekly_goal as goals
from calorie.logic.history.metabolism import MetabolismProfile
from calorie.logic.locking.daily_target import lock
from calorie.logic.progress.weekly import WeeklyProgress
from calorie.logic.records import store
from calorie.logic.recovery import detector
from calorie.logic.recovery import planner as recovery
from calorie.logic.redistribution import targets
from calorie.logic.redistribution.engine import Redistribution
from calorie.logic.rollover import coordinator
from calorie.utilities.clock import SystemClock
from calorie.utilities.config import CARRYOVER_POLICY
from calorie.utilities.dates import week_dates

logger = logging.getLogger(__name__)

SuggestionProvider = Callable[[Dict[str, Any]], Iterable[ActivitySuggestion]]


class CalorieBudgetEngine:
    def __init__(self, repository: StateRepository, clock=None, jobs: Optional[JobQueue] = None,
                 activity_proxy: Optional[ActivityProxyClient] = None,
                 suggestion_provider: Optional[SuggestionProvider] = None,
                 bus: Optional[EventBus] = None, carryover_policy: str = CARRYOVER_POLICY):
        self.repository = repository
        self.clock = clock or SystemClock()
        self.activity_proxy = activity_proxy
        self.suggestion_provider = suggestion_provider
        self.bus = bus
        self.carryover_policy = carryover_policy
        self.jobs = jobs or JobQueue()
        if self.jobs.on_failure is None:
            self.jobs.on_failure = self._job_failed
        self._lock = RLock()
        self._outbox: List[Tuple[Callable, tuple]] = []
        loaded = repository.load()
        self._state = coordinator.migrate_legacy_goal(loaded, self._today())

        self.jobs.register(SYNC_BURNED, self._run_sync)
        self.jobs.register(CHECK_OVEREATING, self.check_for_overeating_event)
        self.jobs.register(CLEANUP_RECOVERY, self._run_cleanup)
        self.jobs.register(PERSIST, self._run_persist)
        self.jobs.register(BACKUP, lambda _day: self.create_backup())
        if self._state is not loaded:
            self._schedule(PERSIST)

    # ------------------------------------------------------------------ plumbing

    @property
    def state(self) -> EngineState:
        return self._state

    def _now(self) -> datetime:
        return self.clock.now()

    def _today(self) -> date:
        return self.clock.now().date()

    def _notify(self, publisher: Callable, *args):
        self._outbox.append((publisher, args))

    def _commit(self, state: EngineState) -> bool:
        if state == self._state:
            return False
        self._state = state
        self.jobs.submit(Job(PERSIST))
        return True

    def _refresh_locked(self) -> Optional[coordinator.RolloverSummary]:
        today = self._today()
        state, summary = coordinator.refresh(self._state, today, self.carryover_policy)
        state, completed = recovery.refresh_session_progress(state, today)
        self._commit(state)
        if summary is not None:
            self._notify(event_helpers.publish_week_rolled_over, summary)
        if completed is not None:
            self._notify(event_helpers.publish_recovery_ended, completed)
        return summary

    @contextmanager
    def _writing(self):
        """Hold the writer lock with the week rolled forward; publish events afterwards."""
        with self._lock:
            self._refresh_locked()
            yield
            outbox, self._outbox = self._outbox, []
        for publisher, args in outbox:
            publisher(*args, bus=self.bus)

    def _schedule(self, kind: str, day: Optional[date] = None):
        self.jobs.submit(Job(kind, day))

    def _job_failed(self, job: Job, attempts: int):
        event_helpers.publish_job_failed(job.kind, job.day, attempts, bus=self.bus)

    def _run_sync(self, day: Optional[date]):
        self.sync_active_calories(day or self._today())

    def _run_cleanup(self, day: Optional[date]):
        self.cleanup_stale_recovery_events(day or self._today())

    def _run_persist(self, _day=None):
        if not self.repository.save(self._state):
            raise RuntimeError("state could not be persisted")

    def run_pending_jobs(self) -> JobRunReport:
        return self.jobs.run_pending()

    # ------------------------------------------------------------------ queries

    def get_current_week_progress(self) -> Optional[WeeklyProgress]:
        return targets.current_week_progress(self._state, self._today())

    def get_calorie_redistribution(self) -> Optional[Redistribution]:
        return targets.calorie_redistribution(self._state, self._today())

    def get_remaining_calories_for_today(self) -> int:
        return queries.remaining_calories_for_today(self._state, self._today())

    def get_calorie_bank_status(self) -> Optional[queries.BankStatus]:
        return queries.calorie_bank_status(self._state, self._today())

    def get_daily_progress(self) -> Optional[queries.DailyProgress]:
        return queries.daily_progress(self._state, self._today())

    def get_locked_daily_target(self, day: Optional[date] = None) -> Optional[int]:
        return queries.locked_daily_target(self._state, day, self._today())

    def get_pending_overeating_event(self) -> Optional[OvereatingEvent]:
        return queries.pending_overeating_event(self._state)

    def get_active_recovery_session(self) -> Optional[RecoverySession]:
        return queries.active_recovery_session(self._state)

    def get_banking_plan(self) -> Optional[BankingPlan]:
        goal = self._state.goal
        return goal.active_banking_plan if goal else None

    def validate_banking_plan(self, target_date: date, daily_reduction: int) -> banking.BankingValidation:
        return banking.validate_banking_plan(self._state, target_date, daily_reduction, self._today())

    def is_banking_available(self) -> bool:
        return banking.is_banking_available(self._state, self._today())

    def get_available_banking_dates(self) -> List[date]:
        return banking.available_target_dates(self._today())

    def get_recovery_plan(self, plan_id: str) -> Optional[RecoveryPlan]:
        return self._state.recovery.find_plan(plan_id)

    def get_recovery_history(self) -> Tuple[RecoverySession, ...]:
        return self._state.recovery.session_history

    def get_week_overview(self) -> Optional[queries.WeekOverview]:
        return queries.week_overview(self._state, self._today())

    def get_metabolism_profile(self) -> Optional[MetabolismProfile]:
        return targets.metabolism_profile(self._state, self._today())

    # ------------------------------------------------------------------ commands

    def refresh(self) -> Optional[coordinator.RolloverSummary]:
        """Roll the week forward and update session progress if the date moved."""
        with self._lock:
            summary = self._refresh_locked()
            outbox, self._outbox = self._outbox, []
        for publisher, args in outbox:
            publisher(*args, bus=self.bus)
        return summary

    def set_weekly_goal(self, daily_baseline: int, current_week_allowance: Optional[int] = None):
        with self._writing():
            previous = self._state.goal.active_banking_plan if self._state.goal else None
            self._commit(goals.set_weekly_goal(self._state, daily_baseline, self._now(), current_week_allowance))
            goal = self._state.goal
            if previous is not None:
                self._notify(event_helpers.publish_banking_cancelled, previous)
            self._notify(event_helpers.publish_goal_set, goal)
        self._schedule(BACKUP)
        return goal

    def log_meal(self, name: str, calories: int, category: str = "snack",
                 macros: Optional[Macros] = None) -> MealEntry:
        with self._writing():
            state, meal = store.log_meal(self._state, name, calories, category, self._now(), macros)
            self._commit(state)
        day = meal.timestamp.date()
        self._schedule(CHECK_OVEREATING, day)
        self._schedule(SYNC_BURNED, day)
        return meal

    def update_daily_calories(self, calories: int) -> MealEntry:
        with self._writing():
            state, meal = store.update_daily_calories(self._state, calories, self._now())
            self._commit(state)
        day = meal.timestamp.date()
        self._schedule(CHECK_OVEREATING, day)
        self._schedule(CLEANUP_RECOVERY, day)
        self._schedule(SYNC_BURNED, day)
        return meal

    def log_workout(self, name: str, sport: str, calories_burned: int, duration_minutes: int,
                    intensity: str = "moderate") -> WorkoutEntry:
        with self._writing():
            state, workout = store.log_workout(self._state, name, sport, calories_burned,
                                               duration_minutes, intensity, self._now())
            self._commit(state)
        return workout

    def update_water_intake(self, glasses: int) -> None:
        with self._writing():
            self._commit(store.update_water_intake(self._state, glasses, self._now()))

    def update_burned_calories(self, day: date, burned: int) -> None:
        with self._writing():
            self._commit(store.update_burned_calories(self._state, day, burned, self._now()))

    def delete_meal(self, day: date, meal_id: str) -> bool:
        with self._writing():
            state, deleted = store.delete_meal(self._state, day, meal_id, self._now())
            self._commit(state)
        if deleted:
            self._schedule(CLEANUP_RECOVERY, day)
        return deleted

    def edit_meal(self, day: date, meal_id: str, name: Optional[str] = None,
                  calories: Optional[int] = None, category: Optional[str] = None) -> Optional[MealEntry]:
        with self._writing():
            state, meal = store.edit_meal(self._state, day, meal_id, self._now(), name, calories, category)
            self._commit(state)
        if meal is not None:
            self._schedule(CHECK_OVEREATING, day)
            self._schedule(CLEANUP_RECOVERY, day)
        return meal

    def lock_daily_target(self, day: Optional[date] = None) -> Optional[int]:
        with self._writing():
            state, value = lock(self._state, day or self._today(), self._now())
            self._commit(state)
        return value

    def set_user_profile(self, profile: UserProfile) -> None:
        with self._writing():
            self._commit(goals.set_user_profile(self._state, profile))

    def plan_session(self, session: PlannedSession) -> None:
        with self._writing():
            self._commit(goals.plan_session(self._state, session))

    def remove_planned_session(self, session: PlannedSession) -> None:
        with self._writing():
            self._commit(goals.remove_planned_session(self._state, session))

    # banking

    def create_banking_plan(self, target_date: date, daily_reduction: int):
        with self._writing():
            previous = self.get_banking_plan()
            state, validation, plan = banking.create_banking_plan(
                self._state, target_date, daily_reduction, self._now())
            self._commit(state)
            if plan is not None:
                if previous is not None:
                    self._notify(event_helpers.publish_banking_cancelled, previous)
                self._notify(event_helpers.publish_banking_created, plan)
        return validation, plan

    def update_banking_plan(self, target_date: date, daily_reduction: int):
        with self._writing():
            previous = self.get_banking_plan()
            state, validation, plan = banking.update_banking_plan(
                self._state, target_date, daily_reduction, self._now())
            self._commit(state)
            if plan is not None:
                if previous is not None:
                    self._notify(event_helpers.publish_banking_cancelled, previous)
                self._notify(event_helpers.publish_banking_created, plan)
        return validation, plan

    def cancel_banking_plan(self) -> bool:
        with self._writing():
            previous = self.get_banking_plan()
            if previous is None:
                return False
            self._commit(banking.cancel_banking_plan(self._state))
            self._notify(event_helpers.publish_banking_cancelled, previous)
        return True

    # overeating and recovery

    def check_for_overeating_event(self, day: Optional[date] = None) -> Optional[OvereatingEvent]:
        day = day or self._today()
        with self._writing():
            before = {e.id: e for e in self._state.recovery.events if e.date == day}
            state, event = detector.check_for_overeating_event(self._state, day, self._now())
            self._commit(state)
            if event is not None and before.get(event.id) != event:
                self._notify(event_helpers.publish_overeating_detected, event)
            elif event is None and before:
                self._notify(event_helpers.publish_overeating_cleared, day)
        return event

    def cleanup_stale_recovery_events(self, day: date) -> None:
        with self._writing():
            had_events = any(e.date == day for e in self._state.recovery.events)
            self._commit(detector.cleanup_stale_recovery_events(self._state, day, self._now()))
            if had_events and not any(e.date == day for e in self._state.recovery.events):
                self._notify(event_helpers.publish_overeating_cleared, day)

    def acknowledge_overeating_event(self, event_id: str) -> bool:
        with self._writing():
            state, found = detector.acknowledge_overeating_event(self._state, event_id)
            self._commit(state)
        return found

    def _fetch_suggestions(self, event: OvereatingEvent) -> List[ActivitySuggestion]:
        if self.suggestion_provider is None:
            return []
        try:
            return list(self.suggestion_provider(recovery.suggestion_context(self._state, event)))
        except Exception:
            logger.exception("Activity suggestions unavailable for event %s", event.id)
            return []

    def create_recovery_plan(self, event_id: str) -> Optional[RecoveryPlan]:
        event = self._state.recovery.find_event(event_id)
        if event is None:
            return None
        suggestions = self._fetch_suggestions(event)
        with self._writing():
            state, plan = recovery.create_recovery_plan(self._state, event_id, self._now(), suggestions)
            self._commit(state)
        return plan

    def select_recovery_option(self, plan_id: str, option_id: str) -> bool:
        with self._writing():
            state, ok = recovery.select_recovery_option(self._state, plan_id, option_id)
            self._commit(state)
        return ok

    def start_recovery_session(self, plan_id: str, option_id: str) -> Optional[RecoverySession]:
        with self._writing():
            state, session = recovery.start_recovery_session(self._state, plan_id, option_id, self._now())
            self._commit(state)
            if session is not None:
                self._notify(event_helpers.publish_recovery_started, session)
        return session

    def abandon_recovery_session(self) -> Optional[RecoverySession]:
        with self._writing():
            state, session = recovery.abandon_recovery_session(self._state)
            self._commit(state)
            if session is not None:
                self._notify(event_helpers.publish_recovery_ended, session)
        return session

    def update_recovery_settings(self, settings: RecoverySettings) -> None:
        with self._writing():
            self._commit(self._state.with_recovery(settings=settings))

    # activity sync

    def sync_active_calories(self, day: Optional[date] = None) -> bool:
        """Pull the day's active calories from the proxy and overwrite burned calories."""
        day = day or self._today()
        if self.activity_proxy is None:
            return False
        summary = self.activity_proxy.get_daily_summary(day)
        if summary is None:
            return False
        with self._writing():
            self._commit(store.update_burned_calories(self._state, day, summary.active_calories or 0, self._now()))
        return True

    def sync_current_week(self) -> int:
        """Queue a burned-calorie sync for every day of the week up to today."""
        goal = self._state.goal
        if goal is None:
            return 0
        today = self._today()
        days = [d for d in week_dates(goal.week_start_date) if d <= today]
        for day in days:
            self._schedule(SYNC_BURNED, day)
        return len(days)

    # persistence

    def create_backup(self) -> Optional[str]:
        return self.repository.backup(self._state)

    def restore_from_backup(self) -> bool:
        restored = self.repository.restore_from_backup()
        if restored is None:
            return False
        with self._lock:
            self._state = restored
        self.refresh()
        return True

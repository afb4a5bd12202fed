"""Overeating detection.

Detection locks the day's target first, then compares consumption with the
effective target. Events are kept idempotent per date: re-detection updates
the existing event in place and a day that drops back under the mild
threshold loses its event.
"""
from __future__ import annotations
from dataclasses import replace
from datetime import date, datetime
from typing import Optional, Tuple
import logging

from calorie.domain.EngineState import EngineState
from calorie.domain.Recovery import OvereatingEvent, OvereatingThresholds
from calorie.logic.locking.daily_target import lock, effective_target
from calorie.logic.progress.weekly import WeeklyProgress
from calorie.logic.redistribution.targets import current_week_progress
from calorie.logic.records.store import new_id
from calorie.utilities.constants import STALE_EVENT_DELTA

logger = logging.getLogger(__name__)


def detect_overeating(consumed: int, target: int, day: date, thresholds: OvereatingThresholds,
                      now: datetime) -> Optional[OvereatingEvent]:
    """Judge the day on its own."""
    excess = consumed - target
    trigger = thresholds.classify(excess)
    if trigger is None:
        return None
    return OvereatingEvent(id=new_id(), date=day, excess_calories=excess,
                           trigger_type=trigger, detected_at=now)


def detect_overeating_in_week(consumed: int, target: int, day: date, progress: WeeklyProgress,
                              thresholds: OvereatingThresholds, now: datetime) -> Optional[OvereatingEvent]:
    """Judge the day against the slack the week still has.

    A high day is not an event while the week's net usage (today included)
    is still inside the allowance; otherwise the event carries the weekly
    overage rather than the daily one.
    """
    if thresholds.classify(consumed - target) is None:
        return None
    balance = progress.current_week_allowance - progress.projected_outcome
    if balance >= 0:
        return None
    excess = abs(balance)
    trigger = thresholds.classify(excess)
    if trigger is None:
        return None
    return OvereatingEvent(id=new_id(), date=day, excess_calories=excess,
                           trigger_type=trigger, detected_at=now)


def _remove_events_for(state: EngineState, day: date) -> EngineState:
    kept = tuple(e for e in state.recovery.events if e.date != day)
    if len(kept) == len(state.recovery.events):
        return state
    logger.info("Cleared overeating event for %s", day)
    return state.with_recovery(events=kept)


def _upsert_event(state: EngineState, event: OvereatingEvent) -> Tuple[EngineState, OvereatingEvent]:
    existing = [e for e in state.recovery.events if e.date == event.date]
    if not existing:
        return state.with_recovery(events=state.recovery.events + (event,)), event
    current = existing[0]
    updated = replace(current, excess_calories=event.excess_calories, trigger_type=event.trigger_type)
    events = []
    for e in state.recovery.events:
        if e.id == current.id:
            events.append(updated)
        elif e.date != event.date:
            events.append(e)
    return state.with_recovery(events=tuple(events)), updated


def check_for_overeating_event(state: EngineState, day: Optional[date],
                               now: datetime) -> Tuple[EngineState, Optional[OvereatingEvent]]:
    """Detect overeating for day (default today) and store the outcome."""
    day = day or now.date()
    settings = state.recovery.settings
    record = state.record_for(day)
    if state.goal is None or record is None or not settings.enable_recovery_mode:
        return state, None

    state, _ = lock(state, day, now)
    target = effective_target(state, day, now.date())
    if settings.weekly_context_detection:
        progress = current_week_progress(state, now.date())
        event = detect_overeating_in_week(record.consumed, target, day, progress, settings.thresholds, now)
    else:
        event = detect_overeating(record.consumed, target, day, settings.thresholds, now)

    if event is None:
        return _remove_events_for(state, day), None
    state, stored = _upsert_event(state, event)
    logger.info("Overeating on %s: %s kcal over (%s)", day, stored.excess_calories, stored.trigger_type)
    return state, stored


def cleanup_stale_recovery_events(state: EngineState, day: date, now: datetime) -> EngineState:
    """Drop or refresh the event for day after consumption was corrected downwards."""
    record = state.record_for(day)
    events = [e for e in state.recovery.events if e.date == day]
    if state.goal is None or record is None or not events:
        return state
    excess = record.consumed - effective_target(state, day, now.date())
    if excess <= state.recovery.settings.thresholds.mild:
        return _remove_events_for(state, day)
    pending = [e for e in events if not e.user_acknowledged]
    if pending and abs(pending[0].excess_calories - excess) > STALE_EVENT_DELTA:
        state, _ = check_for_overeating_event(state, day, now)
    return state


def acknowledge_overeating_event(state: EngineState, event_id: str) -> Tuple[EngineState, bool]:
    event = state.recovery.find_event(event_id)
    if event is None:
        return state, False
    events = tuple(replace(e, user_acknowledged=True) if e.id == event_id else e for e in state.recovery.events)
    return state.with_recovery(events=events), True

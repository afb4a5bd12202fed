"""Daily target lock.

A day's target is frozen the first time something needs it to be stable
(a meal is logged, overeating is checked). Remaining calories and overeating
detection read the frozen value so that later redistribution shifts never
move the goalposts within a day.

Validity rules:
  * past dates: a stored lock is always valid and never rewritten;
  * today: valid only if it was taken today (a lock carried over from a
    previous session on another day is stale);
  * future dates: valid as stored.
"""
from __future__ import annotations
from dataclasses import replace
from datetime import date, datetime
from typing import Optional, Tuple
import logging

from calorie.domain.DailyRecord import DailyRecord
from calorie.domain.EngineState import EngineState
from calorie.logic.redistribution.targets import recommended_target
from calorie.utilities.config import MIN_DAILY_CALORIES

logger = logging.getLogger(__name__)


def is_lock_valid(record: DailyRecord, today: date) -> bool:
    if record.locked_daily_target is None:
        return False
    if record.date == today:
        return record.target_locked_at is not None and record.target_locked_at.date() == today
    return True


def get_locked(state: EngineState, day: date, today: date) -> Optional[int]:
    """The valid lock for day, or None."""
    record = state.record_for(day)
    if record is None or not is_lock_valid(record, today):
        return None
    return record.locked_daily_target


def lock(state: EngineState, day: date, now: datetime) -> Tuple[EngineState, Optional[int]]:
    """Freeze the record's stored target for day and return the locked value.

    An existing valid lock is returned unchanged. Without a record there is
    nothing to freeze: the target a new record would start with is returned
    and nothing is stored.
    """
    if state.goal is None:
        return state, None
    record = state.record_for(day)
    today = now.date()
    if record is None:
        return state, recommended_target(state, day, today)
    if is_lock_valid(record, today):
        return state, record.locked_daily_target
    locked = replace(record, locked_daily_target=record.target, target_locked_at=now)
    logger.info("Locked target %s for %s", record.target, day)
    return state.with_record(locked), record.target


def base_target(state: EngineState, day: date, today: date) -> Optional[int]:
    """The lock if valid, else what lock() would freeze right now."""
    if state.goal is None:
        return None
    locked = get_locked(state, day, today)
    if locked is not None:
        return locked
    record = state.record_for(day)
    if record is not None:
        return record.target
    return recommended_target(state, day, today)


def effective_target(state: EngineState, day: date, today: date,
                     min_daily: int = MIN_DAILY_CALORIES) -> Optional[int]:
    """Base target with the banking overlay and an active recovery session applied.

    The two overlays add up; the result is never below the safety floor.
    """
    base = base_target(state, day, today)
    if base is None:
        return None
    adjustment = 0
    record = state.record_for(day)
    if record is not None and record.banking_adjustment:
        adjustment += record.banking_adjustment
    session = state.recovery.active_session
    if session is not None and session.is_active and session.covers(day):
        adjustment += session.daily_adjustment
    return max(min_daily, base + adjustment)

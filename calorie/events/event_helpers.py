"""Event helper utilities.

Publishing helpers used by the engine. Each takes the bus explicitly so an
engine built for tests can use its own bus instead of the global one.

Quick import:
    from calorie.events.event_helpers import publish_overeating_detected, publish_week_rolled_over
"""
from __future__ import annotations
from datetime import date
from typing import Any, Optional

from .Event_Bus import (
    EventBus, GLOBAL_EVENT_BUS,
    GOAL_SET, OVEREATING_DETECTED, OVEREATING_CLEARED, BANKING_CREATED, BANKING_CANCELLED,
    WEEK_ROLLED_OVER, RECOVERY_STARTED, RECOVERY_ENDED, JOB_FAILED,
)

__all__ = [
    'publish_goal_set', 'publish_overeating_detected', 'publish_overeating_cleared',
    'publish_banking_created', 'publish_banking_cancelled', 'publish_week_rolled_over',
    'publish_recovery_started', 'publish_recovery_ended', 'publish_job_failed',
]


def _bus(bus: Optional[EventBus]) -> EventBus:
    return bus if bus is not None else GLOBAL_EVENT_BUS


def publish_goal_set(goal: Any, bus: Optional[EventBus] = None):
    _bus(bus).publish(GOAL_SET, goal)


def publish_overeating_detected(event: Any, bus: Optional[EventBus] = None):
    """Publish a budget.overeating_detected event (payload: OvereatingEvent)."""
    _bus(bus).publish(OVEREATING_DETECTED, event)


def publish_overeating_cleared(day: date, bus: Optional[EventBus] = None):
    _bus(bus).publish(OVEREATING_CLEARED, {'date': day})


def publish_banking_created(plan: Any, bus: Optional[EventBus] = None):
    _bus(bus).publish(BANKING_CREATED, plan)


def publish_banking_cancelled(plan: Any, bus: Optional[EventBus] = None):
    _bus(bus).publish(BANKING_CANCELLED, plan)


def publish_week_rolled_over(summary: Any, bus: Optional[EventBus] = None):
    _bus(bus).publish(WEEK_ROLLED_OVER, summary)


def publish_recovery_started(session: Any, bus: Optional[EventBus] = None):
    _bus(bus).publish(RECOVERY_STARTED, session)


def publish_recovery_ended(session: Any, bus: Optional[EventBus] = None):
    _bus(bus).publish(RECOVERY_ENDED, session)


def publish_job_failed(kind: str, day: Optional[date], attempts: int, bus: Optional[EventBus] = None):
    """Publish a budget.job_failed event once a background job has used up its retries."""
    _bus(bus).publish(JOB_FAILED, {'kind': kind, 'date': day, 'attempts': attempts})

"""Simple Event Bus / Observer implementation for engine notifications.

Event names:
  budget.goal_set -> payload WeeklyGoal
  budget.overeating_detected -> payload OvereatingEvent
  budget.overeating_cleared -> payload {"date": date}
  budget.banking_created -> payload BankingPlan
  budget.banking_cancelled -> payload BankingPlan
  budget.week_rolled_over -> payload RolloverSummary
  budget.recovery_started -> payload RecoverySession
  budget.recovery_ended -> payload RecoverySession
  budget.job_failed -> payload {"kind": str, "date": date | None, "attempts": int}

Subscribers are callables taking (event_name, payload).
"""
from __future__ import annotations
from collections import defaultdict
from typing import Callable, Any, Dict, List
import logging

logger = logging.getLogger(__name__)

# --- Event name constants (used across modules) ---
GOAL_SET = "budget.goal_set"
OVEREATING_DETECTED = "budget.overeating_detected"
OVEREATING_CLEARED = "budget.overeating_cleared"
BANKING_CREATED = "budget.banking_created"
BANKING_CANCELLED = "budget.banking_cancelled"
WEEK_ROLLED_OVER = "budget.week_rolled_over"
RECOVERY_STARTED = "budget.recovery_started"
RECOVERY_ENDED = "budget.recovery_ended"
JOB_FAILED = "budget.job_failed"

ALL_EVENTS = (
    GOAL_SET, OVEREATING_DETECTED, OVEREATING_CLEARED, BANKING_CREATED, BANKING_CANCELLED,
    WEEK_ROLLED_OVER, RECOVERY_STARTED, RECOVERY_ENDED, JOB_FAILED,
)


class EventBus:
    def __init__(self):
        self._subscribers: Dict[str, List[Callable[[str, Any], None]]] = defaultdict(list)

    def subscribe(self, event_name: str, callback: Callable[[str, Any], None]):
        if callback not in self._subscribers[event_name]:
            self._subscribers[event_name].append(callback)

    def unsubscribe(self, event_name: str, callback: Callable[[str, Any], None]):
        try:
            self._subscribers[event_name].remove(callback)
        except (ValueError, KeyError):
            pass

    def publish(self, event_name: str, payload: Any):
        for cb in list(self._subscribers.get(event_name, [])):
            try:
                cb(event_name, payload)
            except Exception:
                logger.exception("Error delivering %s to %s", event_name, cb)


# A singleton-like instance (can be imported)
GLOBAL_EVENT_BUS = EventBus()


def publish_event(event_name: str, payload: Any = None) -> None:
    """Publish an event on the global bus."""
    GLOBAL_EVENT_BUS.publish(event_name, payload)


__all__ = [
    'EventBus', 'GLOBAL_EVENT_BUS', 'publish_event', 'ALL_EVENTS',
    'GOAL_SET', 'OVEREATING_DETECTED', 'OVEREATING_CLEARED', 'BANKING_CREATED', 'BANKING_CANCELLED',
    'WEEK_ROLLED_OVER', 'RECOVERY_STARTED', 'RECOVERY_ENDED', 'JOB_FAILED',
]

"""Web-facing observers for engine events.

Subscribes to every budget.* event on the GLOBAL_EVENT_BUS and keeps an
in-memory ring buffer of recent alerts that the web layer can poll
(`/api/alerts?since=<cursor>`).

  * Each alert gets an auto-increment integer id used as the polling cursor.
  * A Lock guards the buffer; it is per process, which is fine for
    non-critical notifications.
  * MAX_EVENTS caps memory.
"""
from __future__ import annotations
from typing import List, Dict, Any
from threading import Lock
from datetime import datetime, date, timezone
import logging

from .Event_Bus import GLOBAL_EVENT_BUS, ALL_EVENTS

logger = logging.getLogger(__name__)

_lock = Lock()
_events: List[Dict[str, Any]] = []
_next_id = 1
MAX_EVENTS = 300
_started = False


def _normalize(payload: Any) -> Dict[str, Any]:
    if hasattr(payload, 'to_dict'):
        return payload.to_dict()
    if isinstance(payload, dict):
        return {k: (v.isoformat() if isinstance(v, date) else v) for k, v in payload.items()}
    return {}


def _record(event_name: str, payload: Any):  # signature expected by EventBus
    global _next_id
    try:
        with _lock:
            evt = {
                'id': _next_id,
                'type': event_name,
                'ts': datetime.now(timezone.utc).isoformat(),
            }
            evt['payload'] = _normalize(payload)
            _events.append(evt)
            _next_id += 1
            if len(_events) > MAX_EVENTS:
                del _events[: len(_events) - MAX_EVENTS]
    except Exception:
        logger.exception("Failed to record event %s", event_name)


def start():
    """Idempotent start: subscribe observers once."""
    global _started
    if _started:
        return
    for name in ALL_EVENTS:
        GLOBAL_EVENT_BUS.subscribe(name, _record)
    _started = True


def get_events(since: int | None = None, prefix: str | None = None) -> Dict[str, Any]:
    """Return alerts newer than 'since' (exclusive), plus the cursor to poll with next.

    prefix narrows the result to one event family, e.g. "budget.recovery".
    The cursor still advances past filtered-out alerts.
    """
    with _lock:
        data = [e for e in _events if since is None or e['id'] > since]
        if prefix:
            data = [e for e in data if e['type'].startswith(prefix)]
        next_cursor = _events[-1]['id'] if _events else since or 0
    return {'events': data, 'next_cursor': next_cursor}


__all__ = ['start', 'get_events']

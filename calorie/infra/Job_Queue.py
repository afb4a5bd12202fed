"""Background job queue.

A job only names what to do and for which date; handlers look up whatever
state they need when they run, never at submission time. Pending jobs are
deduplicated per (kind, date), so scheduling the same sync twice before it
runs is harmless. A failing job is logged and retried on the next run until
it reaches max_attempts.
"""
from __future__ import annotations
from collections import OrderedDict
from dataclasses import dataclass
from datetime import date
from threading import Lock
from typing import Callable, Dict, List, Optional
import logging

from calorie.utilities.config import JOB_MAX_ATTEMPTS

logger = logging.getLogger(__name__)

SYNC_BURNED = "sync_burned"
CHECK_OVEREATING = "check_overeating"
CLEANUP_RECOVERY = "cleanup_recovery"
PERSIST = "persist"
BACKUP = "backup"


@dataclass(frozen=True)
class Job:
    kind: str
    day: Optional[date] = None


@dataclass(frozen=True)
class JobRunReport:
    succeeded: int = 0
    retrying: int = 0
    failed: int = 0


class JobQueue:
    def __init__(self, max_attempts: int = JOB_MAX_ATTEMPTS,
                 on_failure: Optional[Callable[[Job, int], None]] = None):
        self.max_attempts = max_attempts
        self.on_failure = on_failure
        self._pending: "OrderedDict[Job, int]" = OrderedDict()
        self._handlers: Dict[str, Callable[[Optional[date]], object]] = {}
        self._lock = Lock()

    def register(self, kind: str, handler: Callable[[Optional[date]], object]):
        self._handlers[kind] = handler

    def submit(self, job: Job) -> bool:
        """Queue job unless an identical one is already pending."""
        with self._lock:
            if job in self._pending:
                return False
            self._pending[job] = 0
            return True

    def pending(self) -> List[Job]:
        with self._lock:
            return list(self._pending)

    def _take(self, skip) -> Optional[tuple]:
        with self._lock:
            for job, attempts in self._pending.items():
                if job not in skip:
                    del self._pending[job]
                    return job, attempts
        return None

    def run_pending(self) -> JobRunReport:
        """Run every pending job once, including jobs queued by handlers meanwhile."""
        succeeded = retrying = failed = 0
        failed_now = set()
        while True:
            taken = self._take(failed_now)
            if taken is None:
                break
            job, attempts = taken
            handler = self._handlers.get(job.kind)
            if handler is None:
                logger.warning("No handler registered for job %s", job.kind)
                failed_now.add(job)
                failed += 1
                continue
            try:
                handler(job.day)
                succeeded += 1
            except Exception:
                attempts += 1
                failed_now.add(job)
                logger.exception("Job %s for %s failed (attempt %s/%s)", job.kind, job.day,
                                 attempts, self.max_attempts)
                if attempts < self.max_attempts:
                    with self._lock:
                        self._pending.setdefault(job, attempts)
                    retrying += 1
                else:
                    failed += 1
                    if self.on_failure is not None:
                        self.on_failure(job, attempts)
        return JobRunReport(succeeded, retrying, failed)

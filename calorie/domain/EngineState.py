"""The whole persisted engine state as one immutable value.

Transitions in `calorie.logic` take an EngineState and return a new one; the
engine swaps the committed value in a single assignment so readers never see
a half-applied change.
"""
from __future__ import annotations
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Optional, Tuple, Dict, Any, Iterable, Callable

from calorie.domain.DailyRecord import DailyRecord, DaySummary
from calorie.domain.WeeklyGoal import WeeklyGoal
from calorie.domain.Recovery import RecoveryState
from calorie.domain.UserProfile import UserProfile, PlannedSession
from calorie.utilities.dates import in_week

SCHEMA_VERSION = 2


@dataclass(frozen=True)
class EngineState:
    goal: Optional[WeeklyGoal] = None
    records: Tuple[DailyRecord, ...] = ()
    recovery: RecoveryState = field(default_factory=RecoveryState)
    profile: Optional[UserProfile] = None
    planned_sessions: Tuple[PlannedSession, ...] = ()
    history: Tuple[DaySummary, ...] = ()
    schema_version: int = SCHEMA_VERSION

    @staticmethod
    def empty() -> "EngineState":
        return EngineState()

    def record_for(self, day: date) -> Optional[DailyRecord]:
        for record in self.records:
            if record.date == day:
                return record
        return None

    def week_records(self) -> Tuple[DailyRecord, ...]:
        if self.goal is None:
            return ()
        return tuple(r for r in self.records if in_week(self.goal.week_start_date, r.date))

    def with_record(self, record: DailyRecord) -> "EngineState":
        others = [r for r in self.records if r.date != record.date]
        others.append(record)
        return replace(self, records=tuple(sorted(others, key=lambda r: r.date)))

    def map_records(self, fn: Callable[[DailyRecord], DailyRecord],
                    dates: Optional[Iterable[date]] = None) -> "EngineState":
        wanted = set(dates) if dates is not None else None
        return replace(self, records=tuple(
            fn(r) if wanted is None or r.date in wanted else r for r in self.records
        ))

    def with_goal(self, goal: Optional[WeeklyGoal]) -> "EngineState":
        return replace(self, goal=goal)

    def with_recovery(self, **changes) -> "EngineState":
        return replace(self, recovery=replace(self.recovery, **changes))

    def sessions_on(self, day: date) -> Tuple[PlannedSession, ...]:
        return tuple(s for s in self.planned_sessions if s.date == day)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "EngineState":
        goal = data.get("goal")
        return EngineState(
            goal=WeeklyGoal.from_dict(goal) if goal else None,
            records=tuple(sorted(
                (DailyRecord.from_dict(r) for r in data.get("records", [])),
                key=lambda r: r.date,
            )),
            recovery=RecoveryState.from_dict(data.get("recovery")),
            profile=UserProfile.from_dict(data.get("profile")),
            planned_sessions=tuple(PlannedSession.from_dict(s) for s in data.get("planned_sessions", [])),
            history=tuple(DaySummary.from_dict(h) for h in data.get("history", [])),
            schema_version=int(data.get("schema_version", SCHEMA_VERSION)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema_version": self.schema_version,
            "goal": self.goal.to_dict() if self.goal else None,
            "records": [r.to_dict() for r in self.records],
            "recovery": self.recovery.to_dict(),
            "profile": self.profile.to_dict() if self.profile else None,
            "planned_sessions": [s.to_dict() for s in self.planned_sessions],
            "history": [h.to_dict() for h in self.history],
        }

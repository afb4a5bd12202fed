"""Goal configuration transitions."""
from __future__ import annotations
from dataclasses import replace
from datetime import datetime
from typing import Optional
import logging

from calorie.domain.EngineState import EngineState
from calorie.domain.UserProfile import UserProfile, PlannedSession
from calorie.domain.WeeklyGoal import WeeklyGoal
from calorie.logic.redistribution.targets import calorie_redistribution, recommended_target
from calorie.utilities.constants import DAYS_PER_WEEK
from calorie.utilities.dates import monday_of, days_until_next_monday

logger = logging.getLogger(__name__)


def set_weekly_goal(state: EngineState, daily_baseline: int, now: datetime,
                    current_week_allowance: Optional[int] = None) -> EngineState:
    """Replace the goal wholesale.

    A first goal set mid-week is prorated over the days left in the week.
    Changing an existing goal keeps this week's full allowance at the new
    baseline. Today's and future records drop their locks and restart at the
    new goal's redistributed targets; past records keep theirs.
    """
    today = now.date()
    week_start = monday_of(today)
    if current_week_allowance is None:
        if state.goal is None:
            current_week_allowance = daily_baseline * days_until_next_monday(today)
        else:
            current_week_allowance = daily_baseline * DAYS_PER_WEEK
    goal = WeeklyGoal.create(week_start, daily_baseline, current_week_allowance)
    previous = state.goal.active_banking_plan if state.goal else None
    if previous is not None:
        logger.info("Goal change cancels banking plan %s", previous.id)

    state = state.map_records(lambda r: r.without_banking()).with_goal(goal)
    redistribution = calorie_redistribution(state, today)
    fresh = state

    def reset(record):
        if record.date < today:
            return record
        return replace(record, target=recommended_target(fresh, record.date, today, redistribution),
                       locked_daily_target=None, target_locked_at=None)

    state = state.map_records(reset)
    logger.info("Weekly goal set: baseline %s, allowance %s", daily_baseline, current_week_allowance)
    return state


def set_user_profile(state: EngineState, profile: UserProfile) -> EngineState:
    return replace(state, profile=profile)


def plan_session(state: EngineState, session: PlannedSession) -> EngineState:
    """Add a planned training session; one per (date, sport)."""
    others = tuple(s for s in state.planned_sessions if (s.date, s.sport) != (session.date, session.sport))
    return replace(state, planned_sessions=tuple(sorted(others + (session,), key=lambda s: s.date)))


def remove_planned_session(state: EngineState, session: PlannedSession) -> EngineState:
    return replace(state, planned_sessions=tuple(
        s for s in state.planned_sessions if (s.date, s.sport) != (session.date, session.sport)
    ))

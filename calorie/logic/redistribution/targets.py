"""Redistribution applied to the committed state.

Bridges EngineState to the pure redistribution maths so that the lock, the
record store and the query layer all agree on what a day's target is before
anything has been frozen.
"""
from __future__ import annotations
from datetime import date
from typing import List, Optional

from calorie.domain.DailyRecord import DaySummary
from calorie.domain.EngineState import EngineState
from calorie.logic.history.metabolism import MetabolismProfile, analyze_metabolism
from calorie.logic.progress.weekly import WeeklyProgress, calculate_weekly_progress
from calorie.logic.redistribution.engine import Redistribution, calculate_redistribution


def current_week_progress(state: EngineState, today: date) -> Optional[WeeklyProgress]:
    return calculate_weekly_progress(state.goal, state.records, today)


def history_days(state: EngineState, today: date) -> List[DaySummary]:
    archived = {d.date: d for d in state.history}
    for record in state.records:
        if record.date < today:
            archived[record.date] = DaySummary.from_record(record)
    return [archived[d] for d in sorted(archived)]


def metabolism_profile(state: EngineState, today: date) -> Optional[MetabolismProfile]:
    if state.profile is None:
        return None
    return analyze_metabolism(history_days(state, today), state.profile)


def banked_so_far(state: EngineState, today: date) -> int:
    return sum(r.banking_adjustment or 0 for r in state.week_records() if r.date < today)


def calorie_redistribution(state: EngineState, today: date) -> Optional[Redistribution]:
    progress = current_week_progress(state, today)
    return calculate_redistribution(
        progress, state.goal,
        planned_sessions=state.planned_sessions,
        profile=metabolism_profile(state, today),
        banked_so_far=banked_so_far(state, today),
    )


def recommended_target(state: EngineState, day: date, today: date,
                       redistribution: Optional[Redistribution] = None) -> Optional[int]:
    """Target of a day that has no record yet.

    Today and later days take their redistributed share; past days and days
    outside the current week fall back to the baseline. Pass redistribution
    to reuse one already computed for today.
    """
    if state.goal is None:
        return None
    if day >= today:
        if redistribution is None:
            redistribution = calorie_redistribution(state, today)
        if redistribution is not None:
            target = redistribution.target_for(day)
            if target is not None:
                return target
    return state.goal.daily_baseline

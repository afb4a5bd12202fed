"""Spread what is left of the weekly budget over the days that remain."""
from __future__ import annotations
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional, Tuple, Dict, Any, List
import logging

from calorie.domain.UserProfile import PlannedSession
from calorie.domain.WeeklyGoal import WeeklyGoal
from calorie.logic.history.metabolism import MetabolismProfile, target_scale, activity_fraction
from calorie.logic.progress.weekly import WeeklyProgress
from calorie.utilities.config import MIN_DAILY_CALORIES
from calorie.utilities.constants import (
    DAYS_PER_WEEK, TRAINING_INTENSITIES, PACE_THRESHOLD_FRACTION, SAFE_USAGE_RATIO,
)
from calorie.utilities.dates import round_half_up, format_date

logger = logging.getLogger(__name__)

ON_TRACK = "on-track"
OVER_BUDGET = "over-budget"
UNDER_BUDGET = "under-budget"


@dataclass(frozen=True)
class Redistribution:
    remaining_days: int
    remaining_calories: int
    recommended_daily_targets: Tuple[int, ...]
    adjustment_reason: str
    target_dates: Tuple[date, ...] = ()

    def target_for(self, day: date) -> Optional[int]:
        for d, target in zip(self.target_dates, self.recommended_daily_targets):
            if d == day:
                return target
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "remaining_days": self.remaining_days,
            "remaining_calories": self.remaining_calories,
            "recommended_daily_targets": list(self.recommended_daily_targets),
            "target_dates": [format_date(d) for d in self.target_dates],
            "adjustment_reason": self.adjustment_reason,
        }


def pace_threshold(daily_baseline: int, days_elapsed: int) -> float:
    """Allowed drift from the expected pace; loosest early in the week."""
    factor = min(1.0, 0.5 + days_elapsed / DAYS_PER_WEEK)
    return daily_baseline * PACE_THRESHOLD_FRACTION * factor


def adjustment_reason(progress: WeeklyProgress, goal: WeeklyGoal, banked_so_far: int = 0) -> str:
    """Classify the week's pace.

    banked_so_far is the sum of banking adjustments on elapsed days; a user
    following a banking plan is expected to be under by exactly that much.
    """
    days_elapsed = progress.days_elapsed
    net = progress.projected_outcome
    expected = goal.weekly_allowance / DAYS_PER_WEEK * days_elapsed + banked_so_far
    deviation = net - expected
    threshold = pace_threshold(goal.daily_baseline, days_elapsed)

    if deviation > threshold:
        allowance = progress.current_week_allowance
        if allowance > 0 and net / allowance < SAFE_USAGE_RATIO:
            return ON_TRACK
        return OVER_BUDGET
    if deviation < -threshold:
        return UNDER_BUDGET
    return ON_TRACK


def _training_boosts(dates: List[date], sessions: Iterable[PlannedSession], fraction: float) -> List[int]:
    burn_by_day = {d: 0 for d in dates}
    for session in sessions:
        if session.date in burn_by_day and session.intensity in TRAINING_INTENSITIES:
            burn_by_day[session.date] += session.expected_calories
    return [round_half_up(burn_by_day[d] * fraction) for d in dates]


def calculate_redistribution(progress: Optional[WeeklyProgress], goal: Optional[WeeklyGoal],
                             planned_sessions: Iterable[PlannedSession] = (),
                             profile: Optional[MetabolismProfile] = None,
                             banked_so_far: int = 0,
                             min_daily: int = MIN_DAILY_CALORIES) -> Optional[Redistribution]:
    """Recommended targets for today and every later day of the week.

    Equal split of the remaining budget, optionally scaled by the metabolism
    profile, shifted towards planned high-intensity training days and finally
    floored at the safety minimum.
    """
    if progress is None or goal is None:
        return None
    today_index = max(progress.today_index, 0)
    remaining_days = DAYS_PER_WEEK - today_index
    remaining = progress.remaining_calories
    if remaining_days <= 0:
        return Redistribution(0, remaining, (), ON_TRACK)

    dates = [progress.week_start_date + timedelta(days=i) for i in range(today_index, DAYS_PER_WEEK)]
    base = round_half_up(remaining / remaining_days)
    scale = target_scale(profile)
    if scale != 1.0:
        base = round_half_up(base * scale)
    targets = [base] * remaining_days

    boosts = _training_boosts(dates, planned_sessions, activity_fraction(profile))
    total_boost = sum(boosts)
    if total_boost:
        rest_days = [i for i, b in enumerate(boosts) if b == 0]
        per_day = round_half_up(total_boost / len(rest_days)) if rest_days else 0
        for i, boost in enumerate(boosts):
            if boost:
                targets[i] += boost
            elif per_day:
                targets[i] = max(min_daily, targets[i] - per_day)

    targets = [max(min_daily, t) for t in targets]
    reason = adjustment_reason(progress, goal, banked_so_far)
    logger.debug("Redistributed %s kcal over %s days (%s)", remaining, remaining_days, reason)
    return Redistribution(
        remaining_days=remaining_days,
        remaining_calories=remaining,
        recommended_daily_targets=tuple(targets),
        adjustment_reason=reason,
        target_dates=tuple(dates),
    )

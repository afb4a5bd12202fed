"""Metabolism profile built from logged history.

The profile is only a nudge for the redistribution engine: it scales daily
targets by a few percent and tunes how much of a planned workout's burn is
handed back to that day. With little data it reports low confidence and is
ignored.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple, Dict, Any
import logging

from calorie.domain.DailyRecord import DaySummary
from calorie.domain.UserProfile import UserProfile
from calorie.utilities.constants import (
    ACTIVE_DAY_BURN, SEDENTARY_MULTIPLIER, MODERATE_ACTIVITY_MULTIPLIER,
    PROFILE_CONFIDENCE_MIN, ACTIVITY_BOOST_FRACTION, ACTIVITY_BOOST_RANGE,
    PROFILE_SCALE_UP, PROFILE_SCALE_DOWN,
)

logger = logging.getLogger(__name__)

MIN_COMPLETE_DAYS = 7

# (minimum complete days, quality label, base confidence)
QUALITY_LEVELS = (
    (60, "excellent", 90),
    (30, "good", 75),
    (14, "fair", 60),
)


@dataclass(frozen=True)
class MetabolismProfile:
    estimated_bmr: float
    estimated_tdee: float
    average_daily_burn: float
    average_daily_consumption: float
    active_vs_rest_day_ratio: float
    weekly_activity_pattern: Tuple[float, ...]
    data_quality: str
    confidence_score: int
    total_data_points: int

    @property
    def is_confident(self) -> bool:
        return self.confidence_score > PROFILE_CONFIDENCE_MIN

    @property
    def standard_tdee(self) -> float:
        return self.estimated_bmr * MODERATE_ACTIVITY_MULTIPLIER

    def to_dict(self) -> Dict[str, Any]:
        return {
            "estimated_bmr": round(self.estimated_bmr),
            "estimated_tdee": round(self.estimated_tdee),
            "average_daily_burn": round(self.average_daily_burn, 1),
            "average_daily_consumption": round(self.average_daily_consumption, 1),
            "active_vs_rest_day_ratio": round(self.active_vs_rest_day_ratio, 2),
            "weekly_activity_pattern": [round(v, 1) for v in self.weekly_activity_pattern],
            "data_quality": self.data_quality,
            "confidence_score": self.confidence_score,
            "total_data_points": self.total_data_points,
            "is_confident": self.is_confident,
        }


def _insufficient(bmr: float, points: int) -> MetabolismProfile:
    return MetabolismProfile(
        estimated_bmr=bmr,
        estimated_tdee=bmr * SEDENTARY_MULTIPLIER,
        average_daily_burn=0.0,
        average_daily_consumption=0.0,
        active_vs_rest_day_ratio=1.0,
        weekly_activity_pattern=(0.0,) * 7,
        data_quality="insufficient",
        confidence_score=20,
        total_data_points=points,
    )


def analyze_metabolism(days: Iterable[DaySummary], profile: UserProfile) -> MetabolismProfile:
    """Build a profile from complete days (days with at least one meal logged)."""
    bmr = profile.bmr()
    complete = [d for d in days if d.meal_count > 0 or d.consumed > 0]
    n = len(complete)
    if n < MIN_COMPLETE_DAYS:
        logger.debug("Only %s complete days of history, profile insufficient", n)
        return _insufficient(bmr, n)

    avg_burn = sum(d.burned for d in complete) / n
    avg_consumed = sum(d.consumed for d in complete) / n

    active = sum(1 for d in complete if d.burned > ACTIVE_DAY_BURN)
    rest = n - active
    ratio = active / rest if rest else float(active)

    per_weekday = [[] for _ in range(7)]
    for d in complete:
        per_weekday[d.date.weekday()].append(d.burned)
    pattern = tuple((sum(v) / len(v)) if v else 0.0 for v in per_weekday)

    quality, confidence = "insufficient", 30
    for minimum, label, score in QUALITY_LEVELS:
        if n >= minimum:
            quality, confidence = label, score
            break
    # consistent logging means more than one meal on most days
    consistency = sum(1 for d in complete if d.meal_count >= 2) / n
    confidence = min(100, confidence + round(10 * consistency))

    return MetabolismProfile(
        estimated_bmr=bmr,
        estimated_tdee=bmr * SEDENTARY_MULTIPLIER + avg_burn,
        average_daily_burn=avg_burn,
        average_daily_consumption=avg_consumed,
        active_vs_rest_day_ratio=ratio,
        weekly_activity_pattern=pattern,
        data_quality=quality,
        confidence_score=confidence,
        total_data_points=n,
    )


def target_scale(profile: Optional[MetabolismProfile]) -> float:
    """1.05 when the user burns more than the standard estimate, 0.95 when less."""
    if profile is None or not profile.is_confident or profile.estimated_bmr <= 0:
        return 1.0
    if profile.estimated_tdee > profile.standard_tdee:
        return PROFILE_SCALE_UP
    if profile.estimated_tdee < profile.standard_tdee:
        return PROFILE_SCALE_DOWN
    return 1.0


def activity_fraction(profile: Optional[MetabolismProfile]) -> float:
    """Share of a planned workout's burn given back to the training day."""
    if profile is None or not profile.is_confident:
        return ACTIVITY_BOOST_FRACTION
    low, high = ACTIVITY_BOOST_RANGE
    return min(high, max(low, low + (profile.active_vs_rest_day_ratio - 1) * 0.05))

"""Calorie banking.

The user trims a few upcoming days by a fixed amount and receives the sum on
one target day. The overlay is stored on the affected DailyRecords as
`banking_adjustment`/`adjusted_target`; the locked base target is untouched,
so cancelling restores the original targets exactly.
"""
from __future__ import annotations
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple, Dict, Any
import logging

from calorie.domain.BankingPlan import BankingPlan
from calorie.domain.EngineState import EngineState
from calorie.logic.locking.daily_target import base_target
from calorie.logic.records.store import ensure_record, new_id
from calorie.utilities.config import (
    MIN_DAILY_CALORIES, MAX_DAILY_REDUCTION, LOW_TARGET_WARNING, LARGE_REDUCTION_WARNING,
)
from calorie.utilities.constants import DAYS_PER_WEEK
from calorie.utilities.dates import format_date

logger = logging.getLogger(__name__)

MIN_AVAILABLE_DATES = 2


@dataclass(frozen=True)
class AffectedDay:
    date: date
    original_target: int
    new_target: int


@dataclass(frozen=True)
class BankingImpactPreview:
    affected_days: Tuple[AffectedDay, ...]
    total_banked: int
    target_date_boost: int
    days_affected: int
    min_daily_calories: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "affected_days": [
                {"date": format_date(d.date), "original_target": d.original_target, "new_target": d.new_target}
                for d in self.affected_days
            ],
            "total_banked": self.total_banked,
            "target_date_boost": self.target_date_boost,
            "days_affected": self.days_affected,
            "min_daily_calories": self.min_daily_calories,
        }


@dataclass(frozen=True)
class BankingValidation:
    is_valid: bool
    errors: Tuple[str, ...]
    warnings: Tuple[str, ...]
    impact_preview: Optional[BankingImpactPreview]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "impact_preview": self.impact_preview.to_dict() if self.impact_preview else None,
        }


def available_target_dates(today: date) -> List[date]:
    """The next seven days, tomorrow first."""
    return [today + timedelta(days=i) for i in range(1, DAYS_PER_WEEK + 1)]


def is_banking_available(state: EngineState, today: date) -> bool:
    return state.goal is not None and len(available_target_dates(today)) >= MIN_AVAILABLE_DATES


def preview_impact(state: EngineState, target_date: date, daily_reduction: int,
                   today: date) -> BankingImpactPreview:
    """Targets of the days between tomorrow and target_date (exclusive) after the cut."""
    affected = []
    day = today + timedelta(days=1)
    while day < target_date:
        original = base_target(state, day, today)
        affected.append(AffectedDay(day, original, original - daily_reduction))
        day += timedelta(days=1)
    total = daily_reduction * len(affected)
    minimum = min((d.new_target for d in affected), default=state.goal.daily_baseline if state.goal else 0)
    return BankingImpactPreview(
        affected_days=tuple(affected),
        total_banked=total,
        target_date_boost=total,
        days_affected=len(affected),
        min_daily_calories=minimum,
    )


def validate_banking_plan(state: EngineState, target_date: date, daily_reduction: int,
                          today: date) -> BankingValidation:
    errors: List[str] = []
    warnings: List[str] = []
    if state.goal is None:
        return BankingValidation(False, ("No active weekly goal",), (), None)
    if target_date <= today:
        errors.append("Target date must be in the future")
    elif target_date > today + timedelta(days=DAYS_PER_WEEK):
        errors.append("Target date must be within the next 7 days")
    if daily_reduction <= 0:
        errors.append("Daily reduction must be greater than 0")
    elif daily_reduction > MAX_DAILY_REDUCTION:
        errors.append(f"Daily reduction cannot exceed {MAX_DAILY_REDUCTION} calories")
    if errors:
        return BankingValidation(False, tuple(errors), (), None)

    preview = preview_impact(state, target_date, daily_reduction, today)
    if preview.days_affected == 0:
        errors.append("Target date must leave at least one day to bank from")
    elif preview.min_daily_calories < MIN_DAILY_CALORIES:
        errors.append(
            f"Daily targets would drop to {preview.min_daily_calories} calories, "
            f"below the safe minimum of {MIN_DAILY_CALORIES}"
        )
    elif preview.min_daily_calories < LOW_TARGET_WARNING:
        warnings.append("This plan results in very low daily targets")
    if daily_reduction > LARGE_REDUCTION_WARNING:
        warnings.append("Large daily reductions may be difficult to maintain")
    return BankingValidation(not errors, tuple(errors), tuple(warnings), preview)


def _clear_overlay(state: EngineState) -> EngineState:
    return state.map_records(lambda r: r.without_banking() if r.banking_adjustment is not None else r)


def cancel_banking_plan(state: EngineState) -> EngineState:
    """Clear every overlay and deactivate the plan."""
    goal = state.goal
    if goal is None or goal.banking_plan is None:
        return state
    state = _clear_overlay(state)
    logger.info("Banking plan %s cancelled", goal.banking_plan.id)
    return state.with_goal(replace(goal, banking_plan=replace(goal.banking_plan, is_active=False)))


def create_banking_plan(state: EngineState, target_date: date, daily_reduction: int,
                        now: datetime) -> Tuple[EngineState, BankingValidation, Optional[BankingPlan]]:
    """Validate and apply a plan. An invalid request leaves state untouched."""
    today = now.date()
    if state.goal is not None and state.goal.active_banking_plan is not None:
        # re-validate against the targets the current plan would leave behind
        candidate = cancel_banking_plan(state)
    else:
        candidate = state
    validation = validate_banking_plan(candidate, target_date, daily_reduction, today)
    if not validation.is_valid:
        logger.info("Banking plan rejected: %s", "; ".join(validation.errors))
        return state, validation, None

    preview = validation.impact_preview
    state = candidate
    for day in preview.affected_days:
        state, record = ensure_record(state, day.date, today)
        state = state.with_record(replace(record, banking_adjustment=-daily_reduction,
                                          adjusted_target=day.new_target))
    state, record = ensure_record(state, target_date, today)
    target_base = base_target(state, target_date, today)
    state = state.with_record(replace(record, banking_adjustment=preview.total_banked,
                                      adjusted_target=target_base + preview.total_banked))

    plan = BankingPlan(
        id=new_id(),
        week_start_date=state.goal.week_start_date,
        target_date=target_date,
        daily_reduction=daily_reduction,
        total_banked=preview.total_banked,
        remaining_days_count=preview.days_affected,
        created_at=now,
    )
    logger.info("Banking plan %s: %s kcal/day for %s days onto %s",
                plan.id, daily_reduction, preview.days_affected, target_date)
    return state.with_goal(replace(state.goal, banking_plan=plan)), validation, plan


def update_banking_plan(state: EngineState, target_date: date, daily_reduction: int,
                        now: datetime) -> Tuple[EngineState, BankingValidation, Optional[BankingPlan]]:
    """Cancel-then-create; the old plan survives if the new one is rejected."""
    return create_banking_plan(state, target_date, daily_reduction, now)

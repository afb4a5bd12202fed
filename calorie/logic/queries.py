"""Read-only views over EngineState.

Everything here is a pure function of (state, today). Nothing is committed:
where a value depends on a lock that has not been taken yet, the value the
lock would freeze is used instead.
"""
from __future__ import annotations
from dataclasses import dataclass, asdict
from datetime import date
from typing import Optional, Dict, Any, Tuple

from calorie.domain.BankingPlan import BankingPlan
from calorie.domain.DailyRecord import MealEntry, WorkoutEntry
from calorie.domain.EngineState import EngineState
from calorie.domain.Recovery import OvereatingEvent, RecoverySession
from calorie.logic.locking.daily_target import get_locked, effective_target
from calorie.logic.redistribution.targets import current_week_progress
from calorie.utilities.constants import DAYS_PER_WEEK, QUICK_ADD_MACROS
from calorie.utilities.dates import week_dates, format_date


def _jsonable(value: Any) -> Any:
    if isinstance(value, date):
        return format_date(value)
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


@dataclass(frozen=True)
class MacroProgress:
    consumed: float
    target: float


@dataclass(frozen=True)
class DailyProgress:
    date: date
    target: int
    consumed: int
    burned: int
    remaining: int
    is_locked: bool
    protein: MacroProgress
    carbohydrates: MacroProgress
    fat: MacroProgress
    water_glasses: int
    water_target: int
    meals: Tuple[MealEntry, ...]
    workouts: Tuple[WorkoutEntry, ...]

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["meals"] = [m.to_dict() for m in self.meals]
        data["workouts"] = [w.to_dict() for w in self.workouts]
        return _jsonable(data)


@dataclass(frozen=True)
class BankStatus:
    weekly_allowance: int
    total_used: int
    total_consumed: int
    total_burned: int
    remaining: int
    remaining_for_future_days: int
    days_left: int
    days_left_excluding_today: int
    daily_average: int
    today_target: int
    avg_daily_consumption: int
    avg_daily_burned: int
    projected_outcome: int
    safe_to_eat_today: int
    active_banking_plan: Optional[BankingPlan]
    is_banking_adjusted: bool

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["active_banking_plan"] = self.active_banking_plan.to_dict() if self.active_banking_plan else None
        return data


@dataclass(frozen=True)
class DayOverview:
    date: date
    target: int
    consumed: int
    burned: int
    remaining: int
    locked: bool
    banking_adjustment: int
    is_today: bool


@dataclass(frozen=True)
class WeekOverview:
    week_start_date: date
    current_week_allowance: int
    days: Tuple[DayOverview, ...]

    def to_dict(self) -> Dict[str, Any]:
        return _jsonable(asdict(self))


def locked_daily_target(state: EngineState, day: Optional[date], today: date) -> Optional[int]:
    return get_locked(state, day or today, today)


def remaining_calories_for_today(state: EngineState, today: date) -> int:
    if state.goal is None:
        return 0
    target = effective_target(state, today, today)
    record = state.record_for(today)
    consumed = record.consumed if record else 0
    burned = record.burned if record else 0
    return max(0, target - consumed + burned)


def _macro_targets(state: EngineState, target: int) -> Dict[str, float]:
    weight = state.profile.weight_kg if state.profile else None
    return {
        "protein": round(weight * 2.2) if weight else 150,
        "carbohydrates": round(target * 0.45 / QUICK_ADD_MACROS["carbohydrates"][1]),
        "fat": round(target * 0.25 / QUICK_ADD_MACROS["fat"][1]),
    }


def daily_progress(state: EngineState, today: date) -> Optional[DailyProgress]:
    if state.goal is None:
        return None
    record = state.record_for(today)
    target = effective_target(state, today, today)
    consumed = record.consumed if record else 0
    burned = record.burned if record else 0
    meals = record.meals if record else ()
    totals = {"protein": 0.0, "carbohydrates": 0.0, "fat": 0.0}
    for meal in meals:
        if meal.macros is not None:
            totals["protein"] += meal.macros.protein
            totals["carbohydrates"] += meal.macros.carbohydrates
            totals["fat"] += meal.macros.fat
    macro_targets = _macro_targets(state, target)
    water_target = round(state.profile.weight_kg * 35 / 250) if state.profile else 8
    return DailyProgress(
        date=today,
        target=target,
        consumed=consumed,
        burned=burned,
        remaining=target - consumed + burned,
        is_locked=get_locked(state, today, today) is not None,
        protein=MacroProgress(round(totals["protein"], 1), macro_targets["protein"]),
        carbohydrates=MacroProgress(round(totals["carbohydrates"], 1), macro_targets["carbohydrates"]),
        fat=MacroProgress(round(totals["fat"], 1), macro_targets["fat"]),
        water_glasses=record.water_glasses if record else 0,
        water_target=water_target,
        meals=meals,
        workouts=record.workouts if record else (),
    )


def calorie_bank_status(state: EngineState, today: date) -> Optional[BankStatus]:
    goal = state.goal
    progress = current_week_progress(state, today)
    if goal is None or progress is None:
        return None
    days_left = max(0, DAYS_PER_WEEK - max(progress.today_index, 0))
    days_seen = max(1, min(DAYS_PER_WEEK, progress.days_elapsed + 1))
    safe_today = remaining_calories_for_today(state, today)
    avg_consumed = round(progress.total_consumed / days_seen)
    avg_burned = round(progress.total_burned / days_seen)
    record = state.record_for(today)
    return BankStatus(
        weekly_allowance=progress.current_week_allowance,
        total_used=progress.projected_outcome,
        total_consumed=progress.total_consumed,
        total_burned=progress.total_burned,
        remaining=progress.remaining_calories,
        remaining_for_future_days=progress.remaining_calories - safe_today,
        days_left=days_left,
        days_left_excluding_today=max(0, days_left - 1),
        daily_average=round(progress.remaining_calories / days_left) if days_left else 0,
        today_target=effective_target(state, today, today),
        avg_daily_consumption=avg_consumed,
        avg_daily_burned=avg_burned,
        projected_outcome=progress.current_week_allowance - (avg_consumed - avg_burned) * DAYS_PER_WEEK,
        safe_to_eat_today=safe_today,
        active_banking_plan=goal.active_banking_plan,
        is_banking_adjusted=bool(record and record.banking_adjustment),
    )


def pending_overeating_event(state: EngineState) -> Optional[OvereatingEvent]:
    pending = [e for e in state.recovery.events if not e.user_acknowledged]
    if not pending:
        return None
    return max(pending, key=lambda e: (e.date, e.detected_at))


def active_recovery_session(state: EngineState) -> Optional[RecoverySession]:
    session = state.recovery.active_session
    return session if session is not None and session.is_active else None


def week_overview(state: EngineState, today: date) -> Optional[WeekOverview]:
    goal = state.goal
    if goal is None:
        return None
    days = []
    for day in week_dates(goal.week_start_date):
        record = state.record_for(day)
        target = effective_target(state, day, today)
        consumed = record.consumed if record else 0
        burned = record.burned if record else 0
        days.append(DayOverview(
            date=day,
            target=target,
            consumed=consumed,
            burned=burned,
            remaining=target - consumed + burned,
            locked=get_locked(state, day, today) is not None,
            banking_adjustment=(record.banking_adjustment or 0) if record else 0,
            is_today=day == today,
        ))
    return WeekOverview(goal.week_start_date, goal.operative_allowance, tuple(days))

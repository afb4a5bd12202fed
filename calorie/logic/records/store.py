"""Daily record store: transitions that write meals, workouts, water and burn."""
from __future__ import annotations
from dataclasses import replace
from datetime import date, datetime
from typing import Optional, Tuple
from uuid import uuid4
import logging

from calorie.domain.DailyRecord import DailyRecord, MealEntry, WorkoutEntry, Macros
from calorie.domain.EngineState import EngineState
from calorie.logic.locking.daily_target import lock
from calorie.logic.redistribution.targets import recommended_target
from calorie.utilities.constants import DEFAULT_DAILY_BASELINE, KCAL_PER_KG_FALLBACK, QUICK_ADD_MACROS

logger = logging.getLogger(__name__)


def new_id() -> str:
    return uuid4().hex


def fallback_target(state: EngineState) -> int:
    if state.profile is not None:
        return round(state.profile.weight_kg * KCAL_PER_KG_FALLBACK)
    return DEFAULT_DAILY_BASELINE


def ensure_record(state: EngineState, day: date, today: date) -> Tuple[EngineState, DailyRecord]:
    """Return the record for day, creating it with the currently recommended target."""
    record = state.record_for(day)
    if record is not None:
        return state, record
    target = recommended_target(state, day, today)
    record = DailyRecord(date=day, target=target if target is not None else fallback_target(state))
    logger.debug("Created daily record for %s with target %s", day, record.target)
    return state.with_record(record), record


def _commit_record(state: EngineState, record: DailyRecord, now: datetime) -> EngineState:
    """Store record; a write on today's record also locks today's target."""
    state = state.with_record(record)
    if record.date == now.date():
        state, _ = lock(state, record.date, now)
    return state


def estimate_macros(calories: int) -> Macros:
    share = {k: round(calories * pct / kcal, 1) for k, (pct, kcal) in QUICK_ADD_MACROS.items()}
    return Macros(protein=share["protein"], carbohydrates=share["carbohydrates"], fat=share["fat"])


def log_meal(state: EngineState, name: str, calories: int, category: str, now: datetime,
             macros: Optional[Macros] = None, day: Optional[date] = None) -> Tuple[EngineState, MealEntry]:
    day = day or now.date()
    state, record = ensure_record(state, day, now.date())
    meal = MealEntry(id=new_id(), name=name, calories=calories, category=category,
                     timestamp=now, macros=macros)
    record = replace(record, meals=record.meals + (meal,), consumed=record.consumed + calories)
    return _commit_record(state, record, now), meal


def update_daily_calories(state: EngineState, calories: int, now: datetime) -> Tuple[EngineState, MealEntry]:
    """Quick add: a snack entry with estimated macros."""
    return log_meal(state, "Quick Add", calories, "snack", now, macros=estimate_macros(calories))


def log_workout(state: EngineState, name: str, sport: str, calories_burned: int, duration_minutes: int,
                intensity: str, now: datetime, day: Optional[date] = None) -> Tuple[EngineState, WorkoutEntry]:
    day = day or now.date()
    state, record = ensure_record(state, day, now.date())
    workout = WorkoutEntry(id=new_id(), name=name, sport=sport, calories_burned=calories_burned,
                           duration_minutes=duration_minutes, intensity=intensity, timestamp=now)
    record = replace(record, workouts=record.workouts + (workout,), burned=record.burned + calories_burned)
    return _commit_record(state, record, now), workout


def update_water_intake(state: EngineState, glasses: int, now: datetime, day: Optional[date] = None) -> EngineState:
    state, record = ensure_record(state, day or now.date(), now.date())
    return _commit_record(state, replace(record, water_glasses=max(0, glasses)), now)


def update_burned_calories(state: EngineState, day: date, burned: int, now: datetime) -> EngineState:
    """Overwrite the day's burned calories. Zero is a valid correction."""
    state, record = ensure_record(state, day, now.date())
    if record.burned == burned:
        return state
    return _commit_record(state, replace(record, burned=max(0, burned)), now)


def delete_meal(state: EngineState, day: date, meal_id: str, now: datetime) -> Tuple[EngineState, bool]:
    record = state.record_for(day)
    meal = record.find_meal(meal_id) if record else None
    if meal is None:
        return state, False
    record = replace(
        record,
        meals=tuple(m for m in record.meals if m.id != meal_id),
        consumed=max(0, record.consumed - meal.calories),
    )
    return _commit_record(state, record, now), True


def edit_meal(state: EngineState, day: date, meal_id: str, now: datetime, name: Optional[str] = None,
              calories: Optional[int] = None, category: Optional[str] = None) -> Tuple[EngineState, Optional[MealEntry]]:
    record = state.record_for(day)
    meal = record.find_meal(meal_id) if record else None
    if meal is None:
        return state, None
    edited = replace(
        meal,
        name=name if name is not None else meal.name,
        calories=calories if calories is not None else meal.calories,
        category=category if category is not None else meal.category,
    )
    record = replace(
        record,
        meals=tuple(edited if m.id == meal_id else m for m in record.meals),
        consumed=max(0, record.consumed - meal.calories + edited.calories),
    )
    return _commit_record(state, record, now), edited

from datetime import date
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, HTTPException, Query

from calorie.api.engine_provider import get_engine
from calorie.utilities.validators import (
    MealInput, MealEditInput, QuickAddInput, WorkoutInput, WaterInput, BurnedCaloriesInput,
)

router = APIRouter(prefix="/api")


@router.post("/meals")
def log_meal(payload: MealInput, background_tasks: BackgroundTasks):
    engine = get_engine()
    macros = payload.macros.to_domain() if payload.macros else None
    meal = engine.log_meal(payload.name, payload.calories, payload.category, macros)
    background_tasks.add_task(engine.run_pending_jobs)
    return meal.to_dict()


@router.post("/meals/quick-add")
def quick_add(payload: QuickAddInput, background_tasks: BackgroundTasks):
    engine = get_engine()
    meal = engine.update_daily_calories(payload.calories)
    background_tasks.add_task(engine.run_pending_jobs)
    return meal.to_dict()


@router.put("/meals/{day}/{meal_id}")
def edit_meal(day: date, meal_id: str, payload: MealEditInput, background_tasks: BackgroundTasks):
    engine = get_engine()
    meal = engine.edit_meal(day, meal_id, payload.name, payload.calories, payload.category)
    if meal is None:
        raise HTTPException(status_code=404, detail="Meal not found")
    background_tasks.add_task(engine.run_pending_jobs)
    return meal.to_dict()


@router.delete("/meals/{day}/{meal_id}")
def delete_meal(day: date, meal_id: str, background_tasks: BackgroundTasks):
    engine = get_engine()
    if not engine.delete_meal(day, meal_id):
        raise HTTPException(status_code=404, detail="Meal not found")
    background_tasks.add_task(engine.run_pending_jobs)
    return {"status": "deleted"}


@router.post("/workouts")
def log_workout(payload: WorkoutInput, background_tasks: BackgroundTasks):
    engine = get_engine()
    workout = engine.log_workout(payload.name, payload.sport, payload.calories_burned,
                                 payload.duration_minutes, payload.intensity)
    background_tasks.add_task(engine.run_pending_jobs)
    return workout.to_dict()


@router.post("/water")
def update_water(payload: WaterInput, background_tasks: BackgroundTasks):
    engine = get_engine()
    engine.update_water_intake(payload.glasses)
    background_tasks.add_task(engine.run_pending_jobs)
    return {"glasses": payload.glasses}


@router.post("/burned")
def update_burned(payload: BurnedCaloriesInput, background_tasks: BackgroundTasks):
    engine = get_engine()
    engine.update_burned_calories(payload.date, payload.burned)
    background_tasks.add_task(engine.run_pending_jobs)
    return {"date": payload.date.isoformat(), "burned": payload.burned}


@router.post("/burned/sync")
def sync_burned(background_tasks: BackgroundTasks, day: Optional[date] = Query(default=None, alias="date")):
    engine = get_engine()
    synced = engine.sync_active_calories(day)
    background_tasks.add_task(engine.run_pending_jobs)
    return {"synced": synced}


@router.get("/today/remaining")
def remaining_today():
    return {"remaining": get_engine().get_remaining_calories_for_today()}


@router.get("/today/progress")
def daily_progress():
    progress = get_engine().get_daily_progress()
    if progress is None:
        raise HTTPException(status_code=404, detail="No active weekly goal")
    return progress.to_dict()


@router.get("/lock")
def locked_target(day: Optional[date] = Query(default=None, alias="date")):
    return {"locked_target": get_engine().get_locked_daily_target(day)}


@router.post("/lock")
def lock_target(background_tasks: BackgroundTasks, day: Optional[date] = Query(default=None, alias="date")):
    engine = get_engine()
    value = engine.lock_daily_target(day)
    if value is None:
        raise HTTPException(status_code=404, detail="No active weekly goal")
    background_tasks.add_task(engine.run_pending_jobs)
    return {"locked_target": value}

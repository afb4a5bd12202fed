from datetime import date
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, HTTPException, Query
import logging

from calorie.api.engine_provider import get_engine
from calorie.utilities.constants import RECOVERY_MESSAGES
from calorie.utilities.validators import RecoverySelectionInput, RecoverySettingsInput

router = APIRouter(prefix="/api/recovery")
logger = logging.getLogger(__name__)


@router.get("/pending")
def pending_event():
    event = get_engine().get_pending_overeating_event()
    if event is None:
        return {"event": None}
    return {"event": event.to_dict(), "message": RECOVERY_MESSAGES.get(event.trigger_type)}


@router.post("/check")
def check_overeating(background_tasks: BackgroundTasks, day: Optional[date] = Query(default=None, alias="date")):
    engine = get_engine()
    event = engine.check_for_overeating_event(day)
    background_tasks.add_task(engine.run_pending_jobs)
    return {"event": event.to_dict() if event else None}


@router.post("/events/{event_id}/acknowledge")
def acknowledge(event_id: str, background_tasks: BackgroundTasks):
    engine = get_engine()
    if not engine.acknowledge_overeating_event(event_id):
        raise HTTPException(status_code=404, detail="Overeating event not found")
    background_tasks.add_task(engine.run_pending_jobs)
    return {"status": "acknowledged"}


@router.post("/events/{event_id}/plan")
def create_plan(event_id: str, background_tasks: BackgroundTasks):
    engine = get_engine()
    plan = engine.create_recovery_plan(event_id)
    if plan is None:
        raise HTTPException(status_code=404, detail="Overeating event not found")
    background_tasks.add_task(engine.run_pending_jobs)
    return plan.to_dict()


@router.get("/plans/{plan_id}")
def get_plan(plan_id: str):
    plan = get_engine().get_recovery_plan(plan_id)
    if plan is None:
        raise HTTPException(status_code=404, detail="Recovery plan not found")
    return plan.to_dict()


@router.post("/plans/select")
def select_option(payload: RecoverySelectionInput, background_tasks: BackgroundTasks):
    engine = get_engine()
    if not engine.select_recovery_option(payload.plan_id, payload.option_id):
        raise HTTPException(status_code=404, detail="Recovery plan or option not found")
    background_tasks.add_task(engine.run_pending_jobs)
    return {"status": "selected"}


@router.get("/session")
def active_session():
    session = get_engine().get_active_recovery_session()
    return {"session": session.to_dict() if session else None}


@router.post("/session")
def start_session(payload: RecoverySelectionInput, background_tasks: BackgroundTasks):
    engine = get_engine()
    session = engine.start_recovery_session(payload.plan_id, payload.option_id)
    if session is None:
        if engine.get_active_recovery_session() is not None:
            raise HTTPException(status_code=409, detail="A recovery session is already active")
        raise HTTPException(status_code=404, detail="Recovery plan or option not found")
    background_tasks.add_task(engine.run_pending_jobs)
    return session.to_dict()


@router.delete("/session")
def abandon_session(background_tasks: BackgroundTasks):
    engine = get_engine()
    session = engine.abandon_recovery_session()
    if session is None:
        raise HTTPException(status_code=404, detail="No active recovery session")
    background_tasks.add_task(engine.run_pending_jobs)
    return session.to_dict()


@router.get("/history")
def session_history():
    return [s.to_dict() for s in get_engine().get_recovery_history()]


@router.get("/settings")
def get_settings():
    return get_engine().state.recovery.settings.to_dict()


@router.put("/settings")
def update_settings(payload: RecoverySettingsInput, background_tasks: BackgroundTasks):
    engine = get_engine()
    settings = payload.to_domain()
    engine.update_recovery_settings(settings)
    logger.info("Recovery settings updated: %s", settings.thresholds.to_dict())
    background_tasks.add_task(engine.run_pending_jobs)
    return settings.to_dict()

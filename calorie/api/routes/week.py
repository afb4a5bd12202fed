from fastapi import APIRouter, BackgroundTasks, HTTPException, Response
import logging

from calorie.api.engine_provider import get_engine
from calorie.infra.pdf_utils import generate_pdf_for_week
from calorie.utilities.validators import WeeklyGoalInput, UserProfileInput, PlannedSessionInput

router = APIRouter(prefix="/api")
logger = logging.getLogger(__name__)

NO_GOAL = "No active weekly goal"


def _require(value):
    if value is None:
        raise HTTPException(status_code=404, detail=NO_GOAL)
    return value


@router.get("/goal")
def get_goal():
    goal = _require(get_engine().state.goal)
    return goal.to_dict()


@router.post("/goal")
def set_goal(payload: WeeklyGoalInput, background_tasks: BackgroundTasks):
    engine = get_engine()
    goal = engine.set_weekly_goal(payload.daily_baseline, payload.current_week_allowance)
    background_tasks.add_task(engine.run_pending_jobs)
    return goal.to_dict()


@router.get("/week/progress")
def week_progress():
    return _require(get_engine().get_current_week_progress()).to_dict()


@router.get("/week/redistribution")
def week_redistribution():
    return _require(get_engine().get_calorie_redistribution()).to_dict()


@router.get("/week/bank-status")
def bank_status():
    return _require(get_engine().get_calorie_bank_status()).to_dict()


@router.get("/week/overview")
def week_overview():
    return _require(get_engine().get_week_overview()).to_dict()


@router.get("/week/pdf")
def week_pdf():
    engine = get_engine()
    overview = _require(engine.get_week_overview())
    pdf = generate_pdf_for_week(overview, engine.get_calorie_bank_status())
    filename = f"calorie-week-{overview.week_start_date.isoformat()}.pdf"
    return Response(content=pdf, media_type="application/pdf",
                    headers={"Content-Disposition": f'attachment; filename="{filename}"'})


@router.post("/week/sync")
def sync_week(background_tasks: BackgroundTasks):
    engine = get_engine()
    queued = engine.sync_current_week()
    background_tasks.add_task(engine.run_pending_jobs)
    return {"queued": queued}


@router.post("/refresh")
def refresh():
    summary = get_engine().refresh()
    return {"rolled_over": summary is not None, "summary": summary.to_dict() if summary else None}


@router.get("/metabolism")
def metabolism():
    profile = get_engine().get_metabolism_profile()
    if profile is None:
        raise HTTPException(status_code=404, detail="No user profile set")
    return profile.to_dict()


@router.post("/profile")
def set_profile(payload: UserProfileInput):
    get_engine().set_user_profile(payload.to_domain())
    return {"status": "ok"}


@router.get("/sessions")
def list_sessions():
    return [s.to_dict() for s in get_engine().state.planned_sessions]


@router.post("/sessions")
def add_session(payload: PlannedSessionInput):
    get_engine().plan_session(payload.to_domain())
    return {"status": "ok"}


@router.delete("/sessions")
def delete_session(payload: PlannedSessionInput):
    get_engine().remove_planned_session(payload.to_domain())
    return {"status": "ok"}


@router.post("/backup")
def create_backup():
    name = get_engine().create_backup()
    if name is None:
        raise HTTPException(status_code=500, detail="Backup failed")
    return {"backup": name}


@router.post("/restore")
def restore_backup():
    if not get_engine().restore_from_backup():
        logger.warning("Restore requested but no usable backup exists")
        raise HTTPException(status_code=404, detail="No usable backup found")
    return {"status": "restored"}


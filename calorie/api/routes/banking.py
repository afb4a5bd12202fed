from fastapi import APIRouter, BackgroundTasks, HTTPException
from fastapi.responses import JSONResponse

from calorie.api.engine_provider import get_engine
from calorie.utilities.validators import BankingPlanInput

router = APIRouter(prefix="/api/banking")


@router.get("")
def banking_status():
    engine = get_engine()
    plan = engine.get_banking_plan()
    return {
        "is_available": engine.is_banking_available(),
        "available_dates": [d.isoformat() for d in engine.get_available_banking_dates()],
        "plan": plan.to_dict() if plan else None,
    }


@router.post("/validate")
def validate_plan(payload: BankingPlanInput):
    return get_engine().validate_banking_plan(payload.target_date, payload.daily_reduction).to_dict()


def _apply(payload: BankingPlanInput, background_tasks: BackgroundTasks, update: bool):
    engine = get_engine()
    apply = engine.update_banking_plan if update else engine.create_banking_plan
    validation, plan = apply(payload.target_date, payload.daily_reduction)
    if plan is None:
        return JSONResponse(status_code=400, content=validation.to_dict())
    background_tasks.add_task(engine.run_pending_jobs)
    return {"plan": plan.to_dict(), "validation": validation.to_dict()}


@router.post("")
def create_plan(payload: BankingPlanInput, background_tasks: BackgroundTasks):
    return _apply(payload, background_tasks, update=False)


@router.put("")
def update_plan(payload: BankingPlanInput, background_tasks: BackgroundTasks):
    return _apply(payload, background_tasks, update=True)


@router.delete("")
def cancel_plan(background_tasks: BackgroundTasks):
    engine = get_engine()
    if not engine.cancel_banking_plan():
        raise HTTPException(status_code=404, detail="No active banking plan")
    background_tasks.add_task(engine.run_pending_jobs)
    return {"status": "cancelled"}

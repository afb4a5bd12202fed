from fastapi import FastAPI, Query
from typing import Optional
import logging

from calorie.api.engine_provider import get_engine
from calorie.events.web_observers import start as start_event_observers, get_events as get_web_events

# Routers
from calorie.api.routes import banking, recovery, today, week
from calorie.api.api_ai import router as ai_router
from dotenv import load_dotenv
load_dotenv()

# Logging
logger = logging.getLogger("calorie_app")

# Initialize FastAPI app
app = FastAPI(title="Weekly Calorie Budget API")

# Include routers
app.include_router(week.router)
app.include_router(today.router)
app.include_router(banking.router)
app.include_router(recovery.router)
app.include_router(ai_router)


@app.on_event("startup")
def _startup_web_observers():
    """Register event bus subscribers for web alerts when the app starts."""
    try:
        start_event_observers()
        logger.info("Web observers for budget events started")
    except Exception as e:
        logger.error("Failed to start web observers: %s", e)


@app.on_event("startup")
def _startup_refresh():
    """Roll the stored week forward before the first request is served."""
    try:
        summary = get_engine().refresh()
        if summary is not None:
            logger.info("Startup rollover to week of %s", summary.new_week_start)
    except Exception:
        logger.exception("Startup refresh failed")


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get('/api/alerts')
def api_alerts(since: Optional[int] = Query(default=None), prefix: Optional[str] = Query(default=None)):
    """Poll recent budget alerts. Pass the last next_cursor as ?since=, optionally ?prefix=budget.recovery."""
    return get_web_events(since, prefix)

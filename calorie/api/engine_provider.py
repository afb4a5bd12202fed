"""Process-wide engine instance used by the API routes."""
from threading import Lock
from typing import Optional
import logging

from calorie.api.api_ai import generate_activity_suggestions
from calorie.infra.Activity_Proxy import ActivityProxyClient
from calorie.infra.State_Repository import StateRepository
from calorie.infra.Storage import JsonFileStorage
from calorie.infra.paths import STORE_DIR
from calorie.logic.engine import CalorieBudgetEngine
from calorie.utilities.config import ACTIVITY_PROXY_URL

logger = logging.getLogger(__name__)

_engine: Optional[CalorieBudgetEngine] = None
_lock = Lock()


def _build_default() -> CalorieBudgetEngine:
    repository = StateRepository(JsonFileStorage(STORE_DIR))
    proxy = ActivityProxyClient() if ACTIVITY_PROXY_URL else None
    if proxy is None:
        logger.info("ACTIVITY_PROXY_URL not set; burned calories are manual only")
    return CalorieBudgetEngine(repository, activity_proxy=proxy,
                               suggestion_provider=generate_activity_suggestions)


def get_engine() -> CalorieBudgetEngine:
    """Return the shared engine, building the file-backed default on first use."""
    global _engine
    with _lock:
        if _engine is None:
            _engine = _build_default()
        return _engine


def set_engine(engine: Optional[CalorieBudgetEngine]) -> None:
    """Swap the shared engine (tests install one over in-memory storage)."""
    global _engine
    with _lock:
        _engine = engine

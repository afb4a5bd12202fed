from typing import Final

DATE_FORMAT: Final[str] = "%Y-%m-%d"
DAYS_PER_WEEK: Final[int] = 7
DEFAULT_DAILY_BASELINE: Final[int] = 2000
KCAL_PER_KG_FALLBACK: Final[int] = 24

MEAL_CATEGORIES: Final[tuple[str, ...]] = (
    "breakfast", "lunch", "dinner", "snack", "pre-workout", "post-workout",
)
INTENSITIES: Final[tuple[str, ...]] = ("low", "moderate", "high", "very-high")
TRAINING_INTENSITIES: Final[frozenset[str]] = frozenset({"high", "very-high"})

# Redistribution
ACTIVITY_BOOST_FRACTION: Final[float] = 0.30
ACTIVITY_BOOST_RANGE: Final[tuple[float, float]] = (0.25, 0.40)
PACE_THRESHOLD_FRACTION: Final[float] = 0.30
SAFE_USAGE_RATIO: Final[float] = 0.15
PROFILE_CONFIDENCE_MIN: Final[int] = 70
PROFILE_SCALE_UP: Final[float] = 1.05
PROFILE_SCALE_DOWN: Final[float] = 0.95
MODERATE_ACTIVITY_MULTIPLIER: Final[float] = 1.55
SEDENTARY_MULTIPLIER: Final[float] = 1.2
ACTIVE_DAY_BURN: Final[int] = 200
HISTORY_DAYS_KEPT: Final[int] = 90

# Quick-add macro estimate: share of calories, kcal per gram
QUICK_ADD_MACROS: Final[dict[str, tuple[float, int]]] = {
    "protein": (0.15, 4),
    "carbohydrates": (0.50, 4),
    "fat": (0.35, 9),
}

# Recovery
STALE_EVENT_DELTA: Final[int] = 50
CALORIES_PER_WORKOUT: Final[int] = 350
QUICK_RECOVERY_MAX_EXCESS: Final[int] = 800
MODERATE_CORRECTION_MIN_EXCESS: Final[int] = 700
AI_TARGET_BURN_SHARE: Final[float] = 0.3
AI_TARGET_BURN_CAP: Final[int] = 300

RECOVERY_MESSAGES: Final[dict[str, dict[str, str]]] = {
    "mild": {
        "title": "Minor Overage Detected",
        "reframe": "This is completely normal and easily manageable.",
        "focus": "One high day doesn't change your overall progress.",
    },
    "moderate": {
        "title": "Overage Recovery Options",
        "reframe": "This happens to everyone. Let's rebalance mathematically.",
        "focus": "You have several great options to stay on track.",
    },
    "severe": {
        "title": "Recovery Plan Available",
        "reframe": "Big days happen. The key is having a smart recovery strategy.",
        "focus": "This doesn't undo your progress - let's adapt and continue.",
    },
}

# MET values used to estimate the burn of a suggested activity
MET_VALUES: Final[dict[str, float]] = {
    "walking": 3.5,
    "running": 8.0,
    "cycling": 6.0,
    "swimming": 7.0,
    "strength-training": 6.0,
    "yoga": 3.0,
    "dancing": 5.0,
    "hiking": 6.0,
    "climbing": 8.0,
    "basketball": 8.0,
    "tennis": 7.0,
    "soccer": 8.0,
    "default": 4.0,
}

SUGGESTION_PROMPT_TEMPLATE: Final[str] = (
    """
    I went over my calorie target today and want to burn some of it off with activity.
    Suggest 2-3 activities in JSON format with the following format:

    """
)
SUGGESTION_JSON_FORMAT: Final[str] = (
    """
[
  {
    "title": str,
    "description": str,
    "activity_type": str(walking, running, cycling, swimming, strength-training, yoga, ...),
    "duration_minutes": int,
    "frequency": str,
    "difficulty": str(easy, moderate, challenging),
    "personalized_reason": str
  }
]
    """
)

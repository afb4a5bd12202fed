"""
Input validation schemas using Pydantic for request bodies of the budget API.
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import date

from calorie.domain.DailyRecord import Macros
from calorie.domain.Recovery import OvereatingThresholds, RecoverySettings
from calorie.domain.UserProfile import UserProfile, PlannedSession
from calorie.utilities.config import MAX_DAILY_REDUCTION
from calorie.utilities.constants import MEAL_CATEGORIES, INTENSITIES


def _strip(v):
    if isinstance(v, str):
        return v.strip()
    return v


class MacrosInput(BaseModel):
    protein: float = Field(0, ge=0)
    carbohydrates: float = Field(0, ge=0)
    fat: float = Field(0, ge=0)

    def to_domain(self) -> Macros:
        return Macros(self.protein, self.carbohydrates, self.fat)


class MealInput(BaseModel):
    """Schema for a logged meal."""
    name: str = Field(..., min_length=1, max_length=200)
    calories: int = Field(..., ge=0, le=10000)
    category: str = "snack"
    macros: Optional[MacrosInput] = None

    @field_validator('name')
    @classmethod
    def strip_whitespace(cls, v):
        v = _strip(v)
        if not v:
            raise ValueError('Meal name cannot be empty')
        return v

    @field_validator('category')
    @classmethod
    def validate_category(cls, v):
        v = _strip(v).lower()
        if v not in MEAL_CATEGORIES:
            raise ValueError(f"Category must be one of {', '.join(MEAL_CATEGORIES)}")
        return v


class MealEditInput(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    calories: Optional[int] = Field(None, ge=0, le=10000)
    category: Optional[str] = None

    @field_validator('category')
    @classmethod
    def validate_category(cls, v):
        if v is None:
            return v
        v = _strip(v).lower()
        if v not in MEAL_CATEGORIES:
            raise ValueError(f"Category must be one of {', '.join(MEAL_CATEGORIES)}")
        return v


class QuickAddInput(BaseModel):
    calories: int = Field(..., gt=0, le=10000)


class WorkoutInput(BaseModel):
    """Schema for a logged workout."""
    name: str = Field(..., min_length=1, max_length=200)
    sport: str = Field("other", min_length=1, max_length=100)
    calories_burned: int = Field(..., ge=0, le=10000)
    duration_minutes: int = Field(..., ge=0, le=1440)
    intensity: str = "moderate"

    @field_validator('name', 'sport')
    @classmethod
    def strip_whitespace(cls, v):
        return _strip(v)

    @field_validator('intensity')
    @classmethod
    def validate_intensity(cls, v):
        v = _strip(v).lower()
        if v not in INTENSITIES:
            raise ValueError(f"Intensity must be one of {', '.join(INTENSITIES)}")
        return v


class WaterInput(BaseModel):
    glasses: int = Field(..., ge=0, le=50)


class BurnedCaloriesInput(BaseModel):
    """Manual overwrite of a day's burned calories."""
    date: date
    burned: int = Field(..., ge=0, le=20000)


class WeeklyGoalInput(BaseModel):
    """Schema for setting the weekly goal."""
    daily_baseline: int = Field(..., ge=1000, le=6000)
    current_week_allowance: Optional[int] = Field(None, ge=0, le=60000)


class BankingPlanInput(BaseModel):
    """Range checks live in the banking validator so its messages reach the client."""
    target_date: date
    daily_reduction: int


class RecoverySelectionInput(BaseModel):
    plan_id: str = Field(..., min_length=1)
    option_id: str = Field(..., min_length=1)


class ThresholdsInput(BaseModel):
    mild: int = Field(200, ge=0)
    moderate: int = Field(500, ge=0)
    severe: int = Field(1000, ge=0)

    @field_validator('severe')
    @classmethod
    def validate_order(cls, v, info):
        mild = info.data.get('mild', 0)
        moderate = info.data.get('moderate', 0)
        if not (mild <= moderate <= v):
            raise ValueError('Thresholds must satisfy mild <= moderate <= severe')
        return v


class RecoverySettingsInput(BaseModel):
    enable_recovery_mode: bool = True
    thresholds: ThresholdsInput = Field(default_factory=ThresholdsInput)
    preferred_strategy: Optional[str] = None
    max_daily_reduction: int = Field(MAX_DAILY_REDUCTION, ge=0, le=1000)
    weekly_context_detection: bool = False

    def to_domain(self) -> RecoverySettings:
        t = self.thresholds
        return RecoverySettings(
            enable_recovery_mode=self.enable_recovery_mode,
            thresholds=OvereatingThresholds(t.mild, t.moderate, t.severe),
            preferred_strategy=self.preferred_strategy,
            max_daily_reduction=self.max_daily_reduction,
            weekly_context_detection=self.weekly_context_detection,
        )


class UserProfileInput(BaseModel):
    age: int = Field(..., ge=10, le=120)
    sex: str = Field("female", pattern=r'^(male|female)$')
    height_cm: float = Field(..., gt=50, lt=280)
    weight_kg: float = Field(..., gt=20, lt=500)

    def to_domain(self) -> UserProfile:
        return UserProfile(self.age, self.sex, self.height_cm, self.weight_kg)


class PlannedSessionInput(BaseModel):
    date: date
    sport: str = Field(..., min_length=1, max_length=100)
    intensity: str = "moderate"
    expected_calories: int = Field(0, ge=0, le=5000)

    @field_validator('intensity')
    @classmethod
    def validate_intensity(cls, v):
        v = _strip(v).lower()
        if v not in INTENSITIES:
            raise ValueError(f"Intensity must be one of {', '.join(INTENSITIES)}")
        return v

    def to_domain(self) -> PlannedSession:
        return PlannedSession(self.date, _strip(self.sport), self.intensity, self.expected_calories)

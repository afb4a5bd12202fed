"""Daily record entity: meals, workouts, water and the day's calorie target."""
from __future__ import annotations
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Optional, Tuple, Dict, Any

from calorie.utilities.dates import parse_date, format_date, parse_timestamp, format_timestamp


@dataclass(frozen=True)
class Macros:
    protein: float = 0
    carbohydrates: float = 0
    fat: float = 0

    @staticmethod
    def from_dict(data: Optional[Dict[str, Any]]) -> Optional["Macros"]:
        if not data:
            return None
        return Macros(
            protein=data.get("protein", 0),
            carbohydrates=data.get("carbohydrates", data.get("carbs", 0)),
            fat=data.get("fat", data.get("fats", 0)),
        )

    def to_dict(self) -> Dict[str, float]:
        return {"protein": self.protein, "carbohydrates": self.carbohydrates, "fat": self.fat}


@dataclass(frozen=True)
class MealEntry:
    id: str
    name: str
    calories: int
    category: str
    timestamp: datetime
    macros: Optional[Macros] = None

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "MealEntry":
        return MealEntry(
            id=data["id"],
            name=data.get("name", ""),
            calories=int(data.get("calories", 0)),
            category=data.get("category", "snack"),
            timestamp=parse_timestamp(data.get("timestamp")),
            macros=Macros.from_dict(data.get("macros")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "calories": self.calories,
            "category": self.category,
            "timestamp": format_timestamp(self.timestamp),
            "macros": self.macros.to_dict() if self.macros else None,
        }


@dataclass(frozen=True)
class WorkoutEntry:
    id: str
    name: str
    sport: str
    calories_burned: int
    duration_minutes: int
    intensity: str
    timestamp: datetime

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "WorkoutEntry":
        return WorkoutEntry(
            id=data["id"],
            name=data.get("name", ""),
            sport=data.get("sport", ""),
            calories_burned=int(data.get("calories_burned", 0)),
            duration_minutes=int(data.get("duration_minutes", 0)),
            intensity=data.get("intensity", "moderate"),
            timestamp=parse_timestamp(data.get("timestamp")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "sport": self.sport,
            "calories_burned": self.calories_burned,
            "duration_minutes": self.duration_minutes,
            "intensity": self.intensity,
            "timestamp": format_timestamp(self.timestamp),
        }


@dataclass(frozen=True)
class DailyRecord:
    """One calendar day of tracking.

    `target` is the planned target assigned when the record was created.
    `locked_daily_target` freezes it for the rest of the day; the banking
    overlay lives in `banking_adjustment`/`adjusted_target` and never touches
    the lock.
    """
    date: date
    consumed: int = 0
    burned: int = 0
    target: int = 0
    meals: Tuple[MealEntry, ...] = ()
    workouts: Tuple[WorkoutEntry, ...] = ()
    water_glasses: int = 0
    locked_daily_target: Optional[int] = None
    target_locked_at: Optional[datetime] = None
    banking_adjustment: Optional[int] = None
    adjusted_target: Optional[int] = None

    @property
    def net(self) -> int:
        return self.consumed - self.burned

    def find_meal(self, meal_id: str) -> Optional[MealEntry]:
        for meal in self.meals:
            if meal.id == meal_id:
                return meal
        return None

    def without_banking(self) -> "DailyRecord":
        return replace(self, banking_adjustment=None, adjusted_target=None)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "DailyRecord":
        return DailyRecord(
            date=parse_date(data["date"]),
            consumed=int(data.get("consumed", 0)),
            burned=int(data.get("burned", 0)),
            target=int(data.get("target", 0)),
            meals=tuple(MealEntry.from_dict(m) for m in data.get("meals", [])),
            workouts=tuple(WorkoutEntry.from_dict(w) for w in data.get("workouts", [])),
            water_glasses=int(data.get("water_glasses", 0)),
            locked_daily_target=data.get("locked_daily_target"),
            target_locked_at=parse_timestamp(data.get("target_locked_at")),
            banking_adjustment=data.get("banking_adjustment"),
            adjusted_target=data.get("adjusted_target"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": format_date(self.date),
            "consumed": self.consumed,
            "burned": self.burned,
            "target": self.target,
            "meals": [m.to_dict() for m in self.meals],
            "workouts": [w.to_dict() for w in self.workouts],
            "water_glasses": self.water_glasses,
            "locked_daily_target": self.locked_daily_target,
            "target_locked_at": format_timestamp(self.target_locked_at),
            "banking_adjustment": self.banking_adjustment,
            "adjusted_target": self.adjusted_target,
        }


@dataclass(frozen=True)
class DaySummary:
    """Compact archive of a pruned DailyRecord, kept for history analysis."""
    date: date
    consumed: int
    burned: int
    meal_count: int

    @staticmethod
    def from_record(record: DailyRecord) -> "DaySummary":
        return DaySummary(record.date, record.consumed, record.burned, len(record.meals))

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "DaySummary":
        return DaySummary(
            date=parse_date(data["date"]),
            consumed=int(data.get("consumed", 0)),
            burned=int(data.get("burned", 0)),
            meal_count=int(data.get("meal_count", 0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": format_date(self.date),
            "consumed": self.consumed,
            "burned": self.burned,
            "meal_count": self.meal_count,
        }

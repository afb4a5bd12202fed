"""User body stats and planned training sessions."""
from __future__ import annotations
from dataclasses import dataclass
from datetime import date
from typing import Optional, Dict, Any

from calorie.utilities.dates import parse_date, format_date


@dataclass(frozen=True)
class UserProfile:
    age: int
    sex: str
    height_cm: float
    weight_kg: float

    def bmr(self) -> float:
        """Mifflin-St Jeor resting energy expenditure."""
        base = 10 * self.weight_kg + 6.25 * self.height_cm - 5 * self.age
        return base + 5 if self.sex == "male" else base - 161

    @staticmethod
    def from_dict(data: Optional[Dict[str, Any]]) -> Optional["UserProfile"]:
        if not data:
            return None
        return UserProfile(
            age=int(data["age"]),
            sex=data.get("sex", "female"),
            height_cm=float(data["height_cm"]),
            weight_kg=float(data["weight_kg"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"age": self.age, "sex": self.sex, "height_cm": self.height_cm, "weight_kg": self.weight_kg}


@dataclass(frozen=True)
class PlannedSession:
    date: date
    sport: str
    intensity: str
    expected_calories: int

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "PlannedSession":
        return PlannedSession(
            date=parse_date(data["date"]),
            sport=data.get("sport", ""),
            intensity=data.get("intensity", "moderate"),
            expected_calories=int(data.get("expected_calories", 0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": format_date(self.date),
            "sport": self.sport,
            "intensity": self.intensity,
            "expected_calories": self.expected_calories,
        }

"""Banking plan: trade a few days of smaller targets for one bigger day."""
from __future__ import annotations
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, Any

from calorie.utilities.dates import parse_date, format_date, parse_timestamp, format_timestamp


@dataclass(frozen=True)
class BankingPlan:
    id: str
    week_start_date: date
    target_date: date
    daily_reduction: int
    total_banked: int
    remaining_days_count: int
    created_at: datetime
    is_active: bool = True

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "BankingPlan":
        return BankingPlan(
            id=data["id"],
            week_start_date=parse_date(data["week_start_date"]),
            target_date=parse_date(data["target_date"]),
            daily_reduction=int(data["daily_reduction"]),
            total_banked=int(data["total_banked"]),
            remaining_days_count=int(data.get("remaining_days_count", 0)),
            created_at=parse_timestamp(data.get("created_at")),
            is_active=bool(data.get("is_active", True)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "week_start_date": format_date(self.week_start_date),
            "target_date": format_date(self.target_date),
            "daily_reduction": self.daily_reduction,
            "total_banked": self.total_banked,
            "remaining_days_count": self.remaining_days_count,
            "created_at": format_timestamp(self.created_at),
            "is_active": self.is_active,
        }

"""Weekly goal entity: the budget the whole engine is measured against."""
from __future__ import annotations
from dataclasses import dataclass
from datetime import date
from typing import Optional, Dict, Any

from calorie.domain.BankingPlan import BankingPlan
from calorie.utilities.constants import DAYS_PER_WEEK
from calorie.utilities.dates import parse_date, format_date


@dataclass(frozen=True)
class WeeklyGoal:
    week_start_date: date
    daily_baseline: int
    weekly_allowance: int
    current_week_allowance: Optional[int] = None
    banking_plan: Optional[BankingPlan] = None

    @property
    def operative_allowance(self) -> int:
        """Budget for this week instance; legacy goals fall back to the full week."""
        if self.current_week_allowance is None:
            return self.weekly_allowance
        return self.current_week_allowance

    @property
    def active_banking_plan(self) -> Optional[BankingPlan]:
        if self.banking_plan is not None and self.banking_plan.is_active:
            return self.banking_plan
        return None

    @staticmethod
    def create(week_start_date: date, daily_baseline: int,
               current_week_allowance: Optional[int] = None) -> "WeeklyGoal":
        weekly = daily_baseline * DAYS_PER_WEEK
        return WeeklyGoal(
            week_start_date=week_start_date,
            daily_baseline=daily_baseline,
            weekly_allowance=weekly,
            current_week_allowance=weekly if current_week_allowance is None else current_week_allowance,
        )

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "WeeklyGoal":
        plan = data.get("banking_plan")
        baseline = int(data["daily_baseline"])
        return WeeklyGoal(
            week_start_date=parse_date(data["week_start_date"]),
            daily_baseline=baseline,
            weekly_allowance=int(data.get("weekly_allowance", baseline * DAYS_PER_WEEK)),
            current_week_allowance=data.get("current_week_allowance"),
            banking_plan=BankingPlan.from_dict(plan) if plan else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "week_start_date": format_date(self.week_start_date),
            "daily_baseline": self.daily_baseline,
            "weekly_allowance": self.weekly_allowance,
            "current_week_allowance": self.current_week_allowance,
            "banking_plan": self.banking_plan.to_dict() if self.banking_plan else None,
        }

"""Weekly progress: where the week's budget stands right now."""
from __future__ import annotations
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional, Dict, Any

from calorie.domain.DailyRecord import DailyRecord
from calorie.domain.WeeklyGoal import WeeklyGoal
from calorie.utilities.constants import DAYS_PER_WEEK
from calorie.utilities.dates import day_index, in_week, format_date


@dataclass(frozen=True)
class WeeklyProgress:
    week_start_date: date
    current_week_allowance: int
    total_consumed: int
    total_burned: int
    remaining_calories: int
    projected_outcome: int
    today_index: int
    days_elapsed: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "week_start_date": format_date(self.week_start_date),
            "current_week_allowance": self.current_week_allowance,
            "total_consumed": self.total_consumed,
            "total_burned": self.total_burned,
            "remaining_calories": self.remaining_calories,
            "projected_outcome": self.projected_outcome,
            "today_index": self.today_index,
            "days_elapsed": self.days_elapsed,
        }


def calculate_weekly_progress(goal: Optional[WeeklyGoal], records: Iterable[DailyRecord],
                              today: date) -> Optional[WeeklyProgress]:
    """Aggregate the goal's week. Burned calories add back to the budget."""
    if goal is None:
        return None
    week = [r for r in records if in_week(goal.week_start_date, r.date)]
    consumed = sum(r.consumed for r in week)
    burned = sum(r.burned for r in week)
    allowance = goal.operative_allowance
    index = day_index(goal.week_start_date, today)
    return WeeklyProgress(
        week_start_date=goal.week_start_date,
        current_week_allowance=allowance,
        total_consumed=consumed,
        total_burned=burned,
        remaining_calories=allowance - consumed + burned,
        projected_outcome=consumed - burned,
        today_index=index,
        days_elapsed=min(max(index, 0), DAYS_PER_WEEK),
    )

"""Week rollover and legacy-state migration."""
from __future__ import annotations
from dataclasses import dataclass, replace
from datetime import date
from typing import Optional, Tuple, Dict, Any
import logging

from calorie.domain.DailyRecord import DaySummary
from calorie.domain.EngineState import EngineState
from calorie.domain.WeeklyGoal import WeeklyGoal
from calorie.utilities.config import CARRYOVER_POLICY
from calorie.utilities.constants import HISTORY_DAYS_KEPT
from calorie.utilities.dates import monday_of, in_week, days_until_next_monday, format_date

logger = logging.getLogger(__name__)

LITERAL = "literal"
INVERTED = "inverted"


@dataclass(frozen=True)
class RolloverSummary:
    previous_week_start: date
    new_week_start: date
    balance: int
    new_allowance: int
    pruned_records: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "previous_week_start": format_date(self.previous_week_start),
            "new_week_start": format_date(self.new_week_start),
            "balance": self.balance,
            "new_allowance": self.new_allowance,
            "pruned_records": self.pruned_records,
        }


def needs_rollover(goal: Optional[WeeklyGoal], today: date) -> bool:
    return goal is not None and monday_of(today) > goal.week_start_date


def week_balance(state: EngineState) -> int:
    """Net usage of the goal's week minus its operative allowance (negative = unused)."""
    week = state.week_records()
    net = sum(r.consumed for r in week) - sum(r.burned for r in week)
    return net - state.goal.operative_allowance


def next_week_allowance(goal: WeeklyGoal, balance: int, policy: str = CARRYOVER_POLICY) -> int:
    carryover = -balance if policy == INVERTED else balance
    return max(0, goal.weekly_allowance + carryover)


def migrate_legacy_goal(state: EngineState, today: date) -> EngineState:
    """Back-fill a missing current-week allowance from the days left this week."""
    goal = state.goal
    if goal is None or goal.current_week_allowance is not None:
        return state
    allowance = goal.daily_baseline * days_until_next_monday(today)
    logger.info("Migrated legacy goal: current week allowance set to %s", allowance)
    return state.with_goal(replace(goal, current_week_allowance=allowance))


def _archive(history: Tuple[DaySummary, ...], pruned) -> Tuple[DaySummary, ...]:
    by_date = {d.date: d for d in history}
    for record in pruned:
        by_date[record.date] = DaySummary.from_record(record)
    return tuple(by_date[d] for d in sorted(by_date))[-HISTORY_DAYS_KEPT:]


def roll_over(state: EngineState, today: date,
              policy: str = CARRYOVER_POLICY) -> Tuple[EngineState, Optional[RolloverSummary]]:
    """Close the goal's week and open the one containing today."""
    goal = state.goal
    if not needs_rollover(goal, today):
        return state, None
    balance = week_balance(state)
    new_start = monday_of(today)
    allowance = next_week_allowance(goal, balance, policy)

    kept = tuple(r for r in state.records if in_week(new_start, r.date))
    pruned = [r for r in state.records if not in_week(new_start, r.date)]

    plan = goal.banking_plan
    if plan is not None and plan.target_date < new_start:
        plan = None
    new_goal = replace(goal, week_start_date=new_start, current_week_allowance=allowance, banking_plan=plan)

    state = replace(
        state,
        goal=new_goal,
        records=kept,
        history=_archive(state.history, pruned),
        planned_sessions=tuple(s for s in state.planned_sessions if s.date >= new_start),
    )
    summary = RolloverSummary(goal.week_start_date, new_start, balance, allowance, len(pruned))
    logger.info("Week rolled over to %s: balance %s, allowance %s, pruned %s records",
                new_start, balance, allowance, len(pruned))
    return state, summary


def refresh(state: EngineState, today: date,
            policy: str = CARRYOVER_POLICY) -> Tuple[EngineState, Optional[RolloverSummary]]:
    state = migrate_legacy_goal(state, today)
    return roll_over(state, today, policy)

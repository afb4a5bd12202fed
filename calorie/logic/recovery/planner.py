"""Recovery plans and sessions.

A plan offers a few ways to absorb an overeating event: spread the excess
over a week, five days or three days, or simply hold maintenance. Shorter
spreads cut harder per day, so they rate higher on effort and risk. A
session tracks whichever option the user starts; while active, its daily
adjustment is added to the effective target of every day it covers.
"""
from __future__ import annotations
from dataclasses import replace
from datetime import date, datetime, timedelta
from math import ceil
from typing import Iterable, List, Optional, Tuple, Dict, Any
import logging

from calorie.domain.EngineState import EngineState
from calorie.domain.Recovery import (
    ActivitySuggestion, ImpactAnalysis, OptionImpact, OvereatingEvent, RebalancingOption,
    RecoveryPlan, RecoverySession, RecoverySettings,
    MILD, MODERATE, SEVERE, SESSION_ACTIVE, SESSION_ABANDONED, SESSION_COMPLETED,
)
from calorie.domain.WeeklyGoal import WeeklyGoal
from calorie.logic.locking.daily_target import effective_target
from calorie.logic.records.store import new_id
from calorie.utilities.config import MIN_DAILY_CALORIES
from calorie.utilities.constants import (
    RECOVERY_MESSAGES, CALORIES_PER_WORKOUT, QUICK_RECOVERY_MAX_EXCESS, MODERATE_CORRECTION_MIN_EXCESS,
    AI_TARGET_BURN_SHARE, AI_TARGET_BURN_CAP,
)
from calorie.utilities.dates import days_until_next_monday

logger = logging.getLogger(__name__)

GENTLE = "gentle-rebalancing"
MODERATE_CORRECTION = "moderate-correction"
QUICK = "quick-recovery"
MAINTENANCE = "maintenance-week"

RECOMMENDED = "recommended"
ADVANCED = "advanced"
NOT_RECOMMENDED = "not-recommended"

MAX_PLANS_KEPT = 20


def determine_strategy(event: OvereatingEvent) -> str:
    if event.trigger_type == SEVERE:
        return MAINTENANCE
    if event.trigger_type == MODERATE and event.excess_calories > MODERATE_CORRECTION_MIN_EXCESS:
        return MODERATE_CORRECTION
    return GENTLE


def _spread(option_id: str, name: str, description: str, days: int, excess: int,
            baseline: int, effort: str, risk: str, pros, cons) -> RebalancingOption:
    reduction = ceil(excess / days)
    return RebalancingOption(
        id=option_id,
        name=name,
        description=description,
        duration_days=days,
        daily_adjustment=-reduction,
        min_safety_calories=MIN_DAILY_CALORIES,
        impact=OptionImpact(baseline - reduction, effort, risk, days),
        pros=tuple(pros),
        cons=tuple(cons),
    )


def generate_rebalancing_options(event: OvereatingEvent, daily_baseline: int, today: date,
                                 settings: RecoverySettings,
                                 min_daily: int = MIN_DAILY_CALORIES) -> Tuple[RebalancingOption, ...]:
    """Options that keep every day at or above min_daily, one marked recommended."""
    excess = event.excess_calories
    options: List[RebalancingOption] = []

    r7 = ceil(excess / 7)
    options.append(_spread(
        "gentle_7day", "Gentle 7-day rebalance",
        f"Eat {r7} fewer calories per day for the next week.", 7, excess, daily_baseline,
        "minimal" if r7 <= 100 else "moderate", "safe",
        ["Barely noticeable day to day", "Easy to sustain"],
        ["Takes a full week to balance out"],
    ))

    r5 = ceil(excess / 5)
    options.append(_spread(
        "moderate_5day", "Moderate 5-day correction",
        f"Eat {r5} fewer calories per day for five days.", 5, excess, daily_baseline,
        "moderate" if r5 <= 150 else "challenging", "safe" if r5 <= 200 else "moderate",
        ["Balanced within the work week", "Steady, visible progress"],
        ["Noticeably smaller portions"] if r5 > 150 else [],
    ))

    r3 = ceil(excess / 3)
    if excess <= QUICK_RECOVERY_MAX_EXCESS and r3 <= settings.max_daily_reduction:
        options.append(_spread(
            "quick_3day", "Quick 3-day recovery",
            f"Eat {r3} fewer calories per day for three days.", 3, excess, daily_baseline,
            "challenging", "moderate" if r3 <= 250 else "aggressive",
            ["Back on track fastest"],
            ["Hunger is more likely", "Harder to keep up with training"],
        ))

    spreading = [
        o for o in options
        if o.impact.new_daily_target >= min_daily and -o.daily_adjustment <= settings.max_daily_reduction
    ]
    maintenance = RebalancingOption(
        id="maintenance_week",
        name="Maintenance week",
        description="Keep eating at your baseline and let the week absorb the extra.",
        duration_days=7,
        daily_adjustment=0,
        min_safety_calories=min_daily,
        impact=OptionImpact(daily_baseline, "minimal", "safe", 7),
        pros=("No extra restriction", "Lowest stress"),
        cons=("The week's total ends higher",),
    )

    fits = days_until_next_monday(today)
    ordered = sorted(spreading, key=lambda o: o.duration_days, reverse=True)
    recommended = next((o for o in ordered if o.duration_days <= fits), ordered[0] if ordered else None)

    result = []
    for option in ordered:
        if option is recommended:
            label = RECOMMENDED
        elif option.id == "quick_3day":
            label = ADVANCED if event.trigger_type == MILD else NOT_RECOMMENDED
        else:
            label = None
        result.append(replace(option, recommendation=label))
    result.append(replace(maintenance, recommendation=RECOMMENDED if recommended is None else None))
    return tuple(result)


def analyze_impact(event: OvereatingEvent, goal: WeeklyGoal) -> ImpactAnalysis:
    messages = RECOVERY_MESSAGES[event.trigger_type]
    allowance = goal.weekly_allowance or 1
    return ImpactAnalysis(
        weekly_impact_percent=round(event.excess_calories / allowance * 100, 1),
        equivalent_workouts=round(event.excess_calories / CALORIES_PER_WORKOUT, 1),
        days_to_rebalance=7,
        title=messages["title"],
        reframe=messages["reframe"],
        focus=messages["focus"],
    )


def suggestion_context(state: EngineState, event: OvereatingEvent) -> Dict[str, Any]:
    """What the activity suggestion collaborator gets to see."""
    profile = state.profile
    return {
        "date": event.date.isoformat(),
        "excess_calories": event.excess_calories,
        "trigger_type": event.trigger_type,
        "target_burn": round(min(event.excess_calories * AI_TARGET_BURN_SHARE, AI_TARGET_BURN_CAP)),
        "weight_kg": profile.weight_kg if profile else None,
        "age": profile.age if profile else None,
        "recent_sports": sorted({s.sport for s in state.planned_sessions if s.sport}),
    }


def create_recovery_plan(state: EngineState, event_id: str, now: datetime,
                         suggestions: Iterable[ActivitySuggestion] = ()) -> Tuple[EngineState, Optional[RecoveryPlan]]:
    event = state.recovery.find_event(event_id)
    if event is None or state.goal is None:
        return state, None
    plan = RecoveryPlan(
        id=new_id(),
        overeating_event_id=event.id,
        strategy=determine_strategy(event),
        impact_analysis=analyze_impact(event, state.goal),
        rebalancing_options=generate_rebalancing_options(
            event, state.goal.daily_baseline, now.date(), state.recovery.settings),
        created_at=now,
        ai_activity_suggestions=tuple(suggestions),
    )
    plans = (state.recovery.plans + (plan,))[-MAX_PLANS_KEPT:]
    logger.info("Recovery plan %s (%s) for event %s", plan.id, plan.strategy, event.id)
    return state.with_recovery(plans=plans), plan


def select_recovery_option(state: EngineState, plan_id: str, option_id: str) -> Tuple[EngineState, bool]:
    plan = state.recovery.find_plan(plan_id)
    if plan is None or plan.find_option(option_id) is None:
        return state, False
    plans = tuple(replace(p, selected_option=option_id) if p.id == plan_id else p for p in state.recovery.plans)
    return state.with_recovery(plans=plans), True


def start_recovery_session(state: EngineState, plan_id: str, option_id: str,
                           now: datetime) -> Tuple[EngineState, Optional[RecoverySession]]:
    """Start tracking an option. Refused while another session is active."""
    active = state.recovery.active_session
    if active is not None and active.is_active:
        logger.warning("Recovery session %s still active; abandon it first", active.id)
        return state, None
    plan = state.recovery.find_plan(plan_id)
    option = plan.find_option(option_id) if plan else None
    if option is None:
        return state, None
    today = now.date()
    session = RecoverySession(
        id=new_id(),
        plan_id=plan.id,
        option_id=option.id,
        start_date=today,
        end_date=today + timedelta(days=option.duration_days),
        adjusted_target=option.impact.new_daily_target,
        daily_adjustment=option.daily_adjustment,
        days_completed=0,
        days_remaining=option.duration_days,
        adherence_rate=100.0,
        status=SESSION_ACTIVE,
    )
    state, _ = select_recovery_option(state, plan_id, option_id)
    events = tuple(
        replace(e, user_acknowledged=True) if e.id == plan.overeating_event_id else e
        for e in state.recovery.events
    )
    logger.info("Recovery session %s started: %s for %s days", session.id, option.id, option.duration_days)
    return state.with_recovery(active_session=session, events=events), session


def _close_session(state: EngineState, status: str) -> Tuple[EngineState, Optional[RecoverySession]]:
    session = state.recovery.active_session
    if session is None:
        return state, None
    closed = replace(session, status=status)
    return state.with_recovery(active_session=None,
                               session_history=state.recovery.session_history + (closed,)), closed


def abandon_recovery_session(state: EngineState) -> Tuple[EngineState, Optional[RecoverySession]]:
    state, closed = _close_session(state, SESSION_ABANDONED)
    if closed is not None:
        logger.info("Recovery session %s abandoned", closed.id)
    return state, closed


def refresh_session_progress(state: EngineState, today: date) -> Tuple[EngineState, Optional[RecoverySession]]:
    """Recount completed days and adherence; close the session after its last day.

    Returns the session if it was completed by this refresh.
    """
    session = state.recovery.active_session
    if session is None or not session.is_active:
        return state, None
    duration = (session.end_date - session.start_date).days
    completed = min(max((today - session.start_date).days, 0), duration)
    on_target = 0
    for offset in range(completed):
        day = session.start_date + timedelta(days=offset)
        record = state.record_for(day)
        target = effective_target(state, day, today)
        if record is None or record.consumed <= target:
            on_target += 1
    adherence = round(on_target / completed * 100, 1) if completed else 100.0
    updated = replace(session, days_completed=completed, days_remaining=duration - completed,
                      adherence_rate=adherence)
    if updated == session and completed < duration:
        return state, None
    state = state.with_recovery(active_session=updated)
    if completed >= duration:
        state, closed = _close_session(state, SESSION_COMPLETED)
        logger.info("Recovery session %s completed with %.1f%% adherence", closed.id, closed.adherence_rate)
        return state, closed
    return state, None

"""Overeating recovery entities: events, plans, options, sessions and settings."""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, Tuple, Dict, Any

from calorie.utilities.config import OVEREATING_THRESHOLDS, MAX_DAILY_REDUCTION
from calorie.utilities.dates import parse_date, format_date, parse_timestamp, format_timestamp

MILD = "mild"
MODERATE = "moderate"
SEVERE = "severe"

SESSION_ACTIVE = "active"
SESSION_COMPLETED = "completed"
SESSION_ABANDONED = "abandoned"


@dataclass(frozen=True)
class OvereatingThresholds:
    mild: int = OVEREATING_THRESHOLDS["mild"]
    moderate: int = OVEREATING_THRESHOLDS["moderate"]
    severe: int = OVEREATING_THRESHOLDS["severe"]

    def classify(self, excess: int) -> Optional[str]:
        """Severity for an excess, or None when it stays within the mild margin."""
        if excess <= self.mild:
            return None
        if excess >= self.severe:
            return SEVERE
        if excess >= self.moderate:
            return MODERATE
        return MILD

    @staticmethod
    def from_dict(data: Optional[Dict[str, Any]]) -> "OvereatingThresholds":
        data = data or {}
        defaults = OvereatingThresholds()
        return OvereatingThresholds(
            mild=int(data.get("mild", defaults.mild)),
            moderate=int(data.get("moderate", defaults.moderate)),
            severe=int(data.get("severe", defaults.severe)),
        )

    def to_dict(self) -> Dict[str, int]:
        return {"mild": self.mild, "moderate": self.moderate, "severe": self.severe}


@dataclass(frozen=True)
class RecoverySettings:
    enable_recovery_mode: bool = True
    thresholds: OvereatingThresholds = field(default_factory=OvereatingThresholds)
    preferred_strategy: Optional[str] = None
    max_daily_reduction: int = MAX_DAILY_REDUCTION
    weekly_context_detection: bool = False

    @staticmethod
    def from_dict(data: Optional[Dict[str, Any]]) -> "RecoverySettings":
        data = data or {}
        return RecoverySettings(
            enable_recovery_mode=bool(data.get("enable_recovery_mode", True)),
            thresholds=OvereatingThresholds.from_dict(data.get("thresholds")),
            preferred_strategy=data.get("preferred_strategy"),
            max_daily_reduction=int(data.get("max_daily_reduction", MAX_DAILY_REDUCTION)),
            weekly_context_detection=bool(data.get("weekly_context_detection", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enable_recovery_mode": self.enable_recovery_mode,
            "thresholds": self.thresholds.to_dict(),
            "preferred_strategy": self.preferred_strategy,
            "max_daily_reduction": self.max_daily_reduction,
            "weekly_context_detection": self.weekly_context_detection,
        }


@dataclass(frozen=True)
class OvereatingEvent:
    id: str
    date: date
    excess_calories: int
    trigger_type: str
    detected_at: datetime
    user_acknowledged: bool = False

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "OvereatingEvent":
        return OvereatingEvent(
            id=data["id"],
            date=parse_date(data["date"]),
            excess_calories=int(data["excess_calories"]),
            trigger_type=data["trigger_type"],
            detected_at=parse_timestamp(data.get("detected_at")),
            user_acknowledged=bool(data.get("user_acknowledged", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "date": format_date(self.date),
            "excess_calories": self.excess_calories,
            "trigger_type": self.trigger_type,
            "detected_at": format_timestamp(self.detected_at),
            "user_acknowledged": self.user_acknowledged,
        }


@dataclass(frozen=True)
class OptionImpact:
    new_daily_target: int
    effort_level: str
    risk_level: str
    duration_days: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "new_daily_target": self.new_daily_target,
            "effort_level": self.effort_level,
            "risk_level": self.risk_level,
            "duration_days": self.duration_days,
        }


@dataclass(frozen=True)
class RebalancingOption:
    id: str
    name: str
    description: str
    duration_days: int
    daily_adjustment: int
    min_safety_calories: int
    impact: OptionImpact
    pros: Tuple[str, ...] = ()
    cons: Tuple[str, ...] = ()
    recommendation: Optional[str] = None

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "RebalancingOption":
        impact = data["impact"]
        return RebalancingOption(
            id=data["id"],
            name=data["name"],
            description=data.get("description", ""),
            duration_days=int(data["duration_days"]),
            daily_adjustment=int(data["daily_adjustment"]),
            min_safety_calories=int(data.get("min_safety_calories", 0)),
            impact=OptionImpact(
                new_daily_target=int(impact["new_daily_target"]),
                effort_level=impact["effort_level"],
                risk_level=impact["risk_level"],
                duration_days=int(impact["duration_days"]),
            ),
            pros=tuple(data.get("pros", [])),
            cons=tuple(data.get("cons", [])),
            recommendation=data.get("recommendation"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "duration_days": self.duration_days,
            "daily_adjustment": self.daily_adjustment,
            "min_safety_calories": self.min_safety_calories,
            "impact": self.impact.to_dict(),
            "pros": list(self.pros),
            "cons": list(self.cons),
            "recommendation": self.recommendation,
        }


@dataclass(frozen=True)
class ImpactAnalysis:
    weekly_impact_percent: float
    equivalent_workouts: float
    days_to_rebalance: int
    title: str
    reframe: str
    focus: str

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "ImpactAnalysis":
        return ImpactAnalysis(
            weekly_impact_percent=float(data.get("weekly_impact_percent", 0)),
            equivalent_workouts=float(data.get("equivalent_workouts", 0)),
            days_to_rebalance=int(data.get("days_to_rebalance", 0)),
            title=data.get("title", ""),
            reframe=data.get("reframe", ""),
            focus=data.get("focus", ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "weekly_impact_percent": self.weekly_impact_percent,
            "equivalent_workouts": self.equivalent_workouts,
            "days_to_rebalance": self.days_to_rebalance,
            "title": self.title,
            "reframe": self.reframe,
            "focus": self.focus,
        }


@dataclass(frozen=True)
class ActivitySuggestion:
    title: str
    description: str
    activity_type: str
    duration_minutes: int
    estimated_calories: int
    frequency: str = ""
    difficulty: str = "moderate"
    personalized_reason: str = ""

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "ActivitySuggestion":
        return ActivitySuggestion(
            title=str(data.get("title", "")),
            description=str(data.get("description", "")),
            activity_type=str(data.get("activity_type", "walking")),
            duration_minutes=int(data.get("duration_minutes", 0) or 0),
            estimated_calories=int(data.get("estimated_calories", 0) or 0),
            frequency=str(data.get("frequency", "")),
            difficulty=str(data.get("difficulty", "moderate")),
            personalized_reason=str(data.get("personalized_reason", "")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "activity_type": self.activity_type,
            "duration_minutes": self.duration_minutes,
            "estimated_calories": self.estimated_calories,
            "frequency": self.frequency,
            "difficulty": self.difficulty,
            "personalized_reason": self.personalized_reason,
        }


@dataclass(frozen=True)
class RecoveryPlan:
    id: str
    overeating_event_id: str
    strategy: str
    impact_analysis: ImpactAnalysis
    rebalancing_options: Tuple[RebalancingOption, ...]
    created_at: datetime
    selected_option: Optional[str] = None
    ai_activity_suggestions: Tuple[ActivitySuggestion, ...] = ()

    def find_option(self, option_id: str) -> Optional[RebalancingOption]:
        for option in self.rebalancing_options:
            if option.id == option_id:
                return option
        return None

    @property
    def recommended_option(self) -> Optional[RebalancingOption]:
        for option in self.rebalancing_options:
            if option.recommendation == "recommended":
                return option
        return None

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "RecoveryPlan":
        return RecoveryPlan(
            id=data["id"],
            overeating_event_id=data["overeating_event_id"],
            strategy=data["strategy"],
            impact_analysis=ImpactAnalysis.from_dict(data.get("impact_analysis") or {}),
            rebalancing_options=tuple(RebalancingOption.from_dict(o) for o in data.get("rebalancing_options", [])),
            created_at=parse_timestamp(data.get("created_at")),
            selected_option=data.get("selected_option"),
            ai_activity_suggestions=tuple(
                ActivitySuggestion.from_dict(s) for s in data.get("ai_activity_suggestions", [])
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "overeating_event_id": self.overeating_event_id,
            "strategy": self.strategy,
            "impact_analysis": self.impact_analysis.to_dict(),
            "rebalancing_options": [o.to_dict() for o in self.rebalancing_options],
            "created_at": format_timestamp(self.created_at),
            "selected_option": self.selected_option,
            "ai_activity_suggestions": [s.to_dict() for s in self.ai_activity_suggestions],
        }


@dataclass(frozen=True)
class RecoverySession:
    id: str
    plan_id: str
    option_id: str
    start_date: date
    end_date: date
    adjusted_target: int
    daily_adjustment: int
    days_completed: int
    days_remaining: int
    adherence_rate: float
    status: str = SESSION_ACTIVE

    @property
    def is_active(self) -> bool:
        return self.status == SESSION_ACTIVE

    def covers(self, day: date) -> bool:
        return self.start_date <= day < self.end_date

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "RecoverySession":
        return RecoverySession(
            id=data["id"],
            plan_id=data["plan_id"],
            option_id=data["option_id"],
            start_date=parse_date(data["start_date"]),
            end_date=parse_date(data["end_date"]),
            adjusted_target=int(data["adjusted_target"]),
            daily_adjustment=int(data.get("daily_adjustment", 0)),
            days_completed=int(data.get("days_completed", 0)),
            days_remaining=int(data.get("days_remaining", 0)),
            adherence_rate=float(data.get("adherence_rate", 100.0)),
            status=data.get("status", SESSION_ACTIVE),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "plan_id": self.plan_id,
            "option_id": self.option_id,
            "start_date": format_date(self.start_date),
            "end_date": format_date(self.end_date),
            "adjusted_target": self.adjusted_target,
            "daily_adjustment": self.daily_adjustment,
            "days_completed": self.days_completed,
            "days_remaining": self.days_remaining,
            "adherence_rate": self.adherence_rate,
            "status": self.status,
        }


@dataclass(frozen=True)
class RecoveryState:
    events: Tuple[OvereatingEvent, ...] = ()
    plans: Tuple[RecoveryPlan, ...] = ()
    active_session: Optional[RecoverySession] = None
    session_history: Tuple[RecoverySession, ...] = ()
    settings: RecoverySettings = field(default_factory=RecoverySettings)

    def find_event(self, event_id: str) -> Optional[OvereatingEvent]:
        for event in self.events:
            if event.id == event_id:
                return event
        return None

    def find_plan(self, plan_id: str) -> Optional[RecoveryPlan]:
        for plan in self.plans:
            if plan.id == plan_id:
                return plan
        return None

    @staticmethod
    def from_dict(data: Optional[Dict[str, Any]]) -> "RecoveryState":
        data = data or {}
        session = data.get("active_session")
        return RecoveryState(
            events=tuple(OvereatingEvent.from_dict(e) for e in data.get("events", [])),
            plans=tuple(RecoveryPlan.from_dict(p) for p in data.get("plans", [])),
            active_session=RecoverySession.from_dict(session) if session else None,
            session_history=tuple(RecoverySession.from_dict(s) for s in data.get("session_history", [])),
            settings=RecoverySettings.from_dict(data.get("settings")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "events": [e.to_dict() for e in self.events],
            "plans": [p.to_dict() for p in self.plans],
            "active_session": self.active_session.to_dict() if self.active_session else None,
            "session_history": [s.to_dict() for s in self.session_history],
            "settings": self.settings.to_dict(),
        }

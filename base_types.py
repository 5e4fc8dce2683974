from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union
from enum import Enum


class TriggerType(Enum):
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"


class EffortLevel(Enum):
    MINIMAL = "minimal"
    MODERATE = "moderate"
    CHALLENGING = "challenging"


class RiskLevel(Enum):
    SAFE = "safe"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"


class Recommendation(Enum):
    RECOMMENDED = "recommended"
    NEUTRAL = "neutral"
    NOT_RECOMMENDED = "not-recommended"


class RecoveryStrategy(Enum):
    GENTLE_REBALANCING = "gentle-rebalancing"
    MODERATE_CORRECTION = "moderate-correction"
    MAINTENANCE_WEEK = "maintenance-week"


class EventTransition(Enum):
    """Outcome of reconciling one calendar day"""
    UNCHANGED = "unchanged"
    CREATED = "created"
    AMENDED = "amended"
    RESOLVED = "resolved"


class SessionStatus(Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


DateLike = Union[date, datetime, str]


def to_date(value: DateLike) -> date:
    """Normalize a date, datetime or YYYY-MM-DD string to a calendar day"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


@dataclass(frozen=True)
class OvereatingEvent:
    """A single day's intake that exceeded target by more than the tolerance band"""
    id: str
    date: date
    excess_calories: int  # consumed - target
    trigger_type: TriggerType
    consumed_calories: int
    target_calories: int
    acknowledged: bool = False

    @staticmethod
    def id_for(day: date) -> str:
        return f"overeating_{day.isoformat()}"


@dataclass
class MealEntry:
    """A single logged meal"""
    meal_id: int
    date: date
    calories: float  # kcal
    name: Optional[str] = None


@dataclass(frozen=True)
class DailyTotals:
    """Consumed and target calories for one day, as reported by the calorie log"""
    consumed: float  # kcal
    target: float  # kcal


@dataclass(frozen=True)
class GoalContext:
    """Snapshot of program-level targets used for all impact math"""
    weekly_deficit_target: float  # kcal per week
    total_program_weeks: float
    days_elapsed: int
    workout_equivalent_calories: float  # kcal burned by an average session
    safe_minimum_calories: float  # daily floor, see recovery_configs.safe_minimum_for
    recent_on_target_streak: int = 0  # consecutive on-target days before the event

    @property
    def total_program_days(self) -> float:
        return self.total_program_weeks * 7

    @property
    def remaining_program_days(self) -> float:
        return max(0.0, self.total_program_days - self.days_elapsed)

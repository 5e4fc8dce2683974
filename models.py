from dataclasses import dataclass
from datetime import date
from typing import Optional, Tuple
from base_types import (EffortLevel, RiskLevel, Recommendation, RecoveryStrategy,
                        SessionStatus)


@dataclass(frozen=True)
class Reframe:
    message: str
    focus_point: str
    success_reminder: Optional[str] = None


@dataclass(frozen=True)
class RealImpact:
    timeline_delay_days: int
    weekly_goal_impact: int  # percent of the weekly deficit, not clamped


@dataclass(frozen=True)
class Perspective:
    equivalent_workouts: int
    percent_of_total_journey: int
    days_to_nullify: int
    exceeds_remaining_program: bool = False


@dataclass(frozen=True)
class ImpactAnalysis:
    reframe: Reframe
    real_impact: RealImpact
    perspective: Perspective


@dataclass(frozen=True)
class OptionImpact:
    new_daily_target: int  # kcal
    effort_level: EffortLevel
    risk_level: RiskLevel


@dataclass(frozen=True)
class RebalancingOption:
    id: str
    name: str
    description: str
    impact: OptionImpact
    pros: Tuple[str, ...]
    cons: Optional[Tuple[str, ...]] = None
    recommendation: Recommendation = Recommendation.NEUTRAL
    duration_days: int = 0
    daily_adjustment: int = 0  # kcal per day, negative for a reduction
    timeline_extension_days: int = 0


@dataclass(frozen=True)
class RecoveryPlan:
    id: str
    event_id: str
    strategy: RecoveryStrategy
    impact_analysis: ImpactAnalysis
    rebalancing_options: Tuple[RebalancingOption, ...]

    def get_option(self, option_id: str) -> Optional[RebalancingOption]:
        return next((o for o in self.rebalancing_options if o.id == option_id), None)

    @property
    def recommended_option(self) -> RebalancingOption:
        return next(o for o in self.rebalancing_options
                    if o.recommendation == Recommendation.RECOMMENDED)


@dataclass(frozen=True)
class AppliedTargetMutation:
    """Concrete change a caller should apply after the user picks an option"""
    event_id: str
    option_id: str
    new_daily_target: int
    daily_adjustment: int
    applies_from: date
    duration_days: int
    timeline_extension_days: int


@dataclass
class RecoverySession:
    id: str
    event_id: str
    option_id: str
    start_date: date
    end_date: date
    adjusted_target: int
    status: SessionStatus = SessionStatus.ACTIVE


@dataclass(frozen=True)
class SessionProgress:
    days_completed: int
    days_remaining: int
    adherence_rate: float  # percent of logged days at or under the adjusted target
    adjusted_target: int
    status: SessionStatus

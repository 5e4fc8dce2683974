import json
import logging
from dataclasses import dataclass, field, asdict, replace
from pathlib import Path
from typing import Dict, Tuple, Union
from base_types import TriggerType, EffortLevel, RiskLevel, RecoveryStrategy
from errors import ValidationError

logger = logging.getLogger(__name__)

# Daily calorie floors below which no rebalancing target is offered
SAFE_MINIMUM_CALORIES = {
    'female': 1200,
    'male': 1500,
}

REDISTRIBUTE_OPTION = "redistribute_week"
EXTEND_TIMELINE_OPTION = "extend_timeline"
ACCEPT_OPTION = "accept_continue"


def safe_minimum_for(sex: str) -> int:
    """Daily calorie floor for a female- or male-equivalent profile"""
    try:
        return SAFE_MINIMUM_CALORIES[sex.lower()]
    except (KeyError, AttributeError):
        raise ValidationError(f"Unknown profile sex: {sex!r}") from None


@dataclass(frozen=True)
class SeverityThresholds:
    """Excess-calorie breakpoints for the trigger classifier"""
    min_excess: float = 200  # tolerance band, no event at or below this
    moderate: float = 500  # moderate at or above
    severe: float = 1000  # severe at or above
    reference_target: float = 2000  # target the breakpoints were tuned for

    def __post_init__(self):
        if self.min_excess < 0:
            raise ValidationError("min_excess cannot be negative")
        if self.min_excess > self.moderate:
            raise ValidationError("min_excess must not exceed the moderate breakpoint")
        if not self.moderate <= self.severe:
            raise ValidationError("moderate breakpoint must not exceed severe breakpoint")
        if self.reference_target <= 0:
            raise ValidationError("reference_target must be positive")

    def scaled_to(self, target_calories: float) -> 'SeverityThresholds':
        """Scale all breakpoints proportionally to a user's daily target"""
        if target_calories <= 0:
            raise ValidationError("target calories must be positive")
        ratio = target_calories / self.reference_target
        return SeverityThresholds(
            min_excess=round(self.min_excess * ratio),
            moderate=round(self.moderate * ratio),
            severe=round(self.severe * ratio),
            reference_target=target_calories
        )


@dataclass(frozen=True)
class EffortThresholds:
    """Per-day reduction, as a fraction of the daily target, mapped to effort"""
    minimal_fraction: float = 0.05  # minimal below this
    challenging_fraction: float = 0.15  # challenging above this

    def effort_for(self, reduction: float, target: float) -> EffortLevel:
        if reduction < target * self.minimal_fraction:
            return EffortLevel.MINIMAL
        if reduction > target * self.challenging_fraction:
            return EffortLevel.CHALLENGING
        return EffortLevel.MODERATE


@dataclass(frozen=True)
class RecommendationPolicy:
    """Which option is recommended, in order of preference"""
    preference_order: Tuple[str, ...] = (REDISTRIBUTE_OPTION, EXTEND_TIMELINE_OPTION)
    allowed_efforts: Dict[str, Tuple[EffortLevel, ...]] = field(default_factory=lambda: {
        REDISTRIBUTE_OPTION: (EffortLevel.MINIMAL, EffortLevel.MODERATE),
    })
    not_recommended_risks: Tuple[RiskLevel, ...] = (RiskLevel.AGGRESSIVE,)


@dataclass(frozen=True)
class ReframeTemplate:
    title: str
    message: str
    focus_point: str
    success_reminder: str  # formatted with {streak}


REFRAME_MESSAGES: Dict[TriggerType, ReframeTemplate] = {
    TriggerType.MILD: ReframeTemplate(
        title="Minor Overage Detected",
        message="This is completely normal and easily manageable.",
        focus_point="One high day doesn't change your overall progress.",
        success_reminder="You've hit your target {streak} days in a row. You can handle this easily."
    ),
    TriggerType.MODERATE: ReframeTemplate(
        title="Overage Recovery Options",
        message="This happens to everyone. Let's rebalance mathematically.",
        focus_point="You have several good options to stay on track.",
        success_reminder="{streak} on-target days in a row. Every successful journey has days like this."
    ),
    TriggerType.SEVERE: ReframeTemplate(
        title="Recovery Plan Available",
        message="Big days happen. The key is having a smart recovery strategy.",
        focus_point="This doesn't undo your progress. Adapt and continue.",
        success_reminder="{streak} consistent days before this one. Consistency beats perfection."
    ),
}

# Fixed copy per option type
OPTION_PROS: Dict[str, Tuple[str, ...]] = {
    REDISTRIBUTE_OPTION: (
        "Keeps your original end date",
        "Small, spread-out daily reduction",
        "Back on track by the end of the week",
    ),
    EXTEND_TIMELINE_OPTION: (
        "No change to daily targets",
        "Zero additional stress",
        "Prevents a restrict-binge cycle",
    ),
    ACCEPT_OPTION: (
        "Nothing to change",
        "Keeps focus on long-term consistency",
    ),
}

OPTION_CONS: Dict[str, Tuple[str, ...]] = {
    REDISTRIBUTE_OPTION: (
        "Slightly lower targets for the rest of the week",
    ),
    EXTEND_TIMELINE_OPTION: (
        "Goal date moves later",
    ),
    ACCEPT_OPTION: (
        "Excess is not offset",
        "Progress this week will be slower",
    ),
}


@dataclass(frozen=True)
class RecoverySettings:
    """User-tunable configuration for detection and recovery planning"""
    enable_recovery_mode: bool = True
    severity: SeverityThresholds = field(default_factory=SeverityThresholds)
    effort: EffortThresholds = field(default_factory=EffortThresholds)
    recommendation: RecommendationPolicy = field(default_factory=RecommendationPolicy)
    accept_risk_by_tier: Dict[TriggerType, RiskLevel] = field(default_factory=lambda: {
        TriggerType.MILD: RiskLevel.SAFE,
        TriggerType.MODERATE: RiskLevel.SAFE,
        TriggerType.SEVERE: RiskLevel.MODERATE,
    })
    success_streak_minimum: int = 3  # on-target days before a success reminder is shown
    moderate_correction_excess: int = 700  # moderate events above this get a faster strategy
    week_starts_on: int = 0  # Monday
    scale_to_target: bool = False  # scale severity breakpoints to each day's target


class RecoveryConfigs:
    """Default configurations for overeating detection and recovery"""

    @staticmethod
    def get_default_settings() -> RecoverySettings:
        return RecoverySettings()

    @staticmethod
    def thresholds_for_target(settings: RecoverySettings, target_calories: float) -> SeverityThresholds:
        """Severity breakpoints for a given daily target"""
        if settings.scale_to_target:
            return settings.severity.scaled_to(target_calories)
        return settings.severity

    @staticmethod
    def strategy_for(settings: RecoverySettings, trigger_type: TriggerType,
                     excess_calories: float) -> RecoveryStrategy:
        """Recommend an overall recovery strategy based on severity"""
        if trigger_type == TriggerType.SEVERE:
            return RecoveryStrategy.MAINTENANCE_WEEK
        if trigger_type == TriggerType.MODERATE and excess_calories > settings.moderate_correction_excess:
            return RecoveryStrategy.MODERATE_CORRECTION
        return RecoveryStrategy.GENTLE_REBALANCING


def _settings_to_preferences(settings: RecoverySettings) -> dict:
    return {
        "enable_recovery_mode": settings.enable_recovery_mode,
        "severity": asdict(settings.severity),
        "effort": asdict(settings.effort),
        "success_streak_minimum": settings.success_streak_minimum,
        "moderate_correction_excess": settings.moderate_correction_excess,
        "week_starts_on": settings.week_starts_on,
        "scale_to_target": settings.scale_to_target,
    }


def save_settings(settings: RecoverySettings, path: Union[str, Path]) -> None:
    """Save recovery preferences to a JSON file"""
    Path(path).write_text(json.dumps(_settings_to_preferences(settings), indent=2))


def load_settings(path: Union[str, Path]) -> RecoverySettings:
    """Load recovery preferences, merged over the defaults"""
    defaults = RecoveryConfigs.get_default_settings()
    prefs_file = Path(path)
    if not prefs_file.exists():
        return defaults

    try:
        saved = json.loads(prefs_file.read_text())
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Could not read recovery preferences from %s: %s", prefs_file, e)
        return defaults

    if not isinstance(saved, dict):
        logger.warning("Ignoring recovery preferences in %s: expected an object", prefs_file)
        return defaults

    # Merge with defaults in case new preferences were added
    prefs = {**_settings_to_preferences(defaults), **saved}
    try:
        return replace(
            defaults,
            enable_recovery_mode=bool(prefs["enable_recovery_mode"]),
            severity=SeverityThresholds(**{**asdict(defaults.severity), **prefs["severity"]}),
            effort=EffortThresholds(**{**asdict(defaults.effort), **prefs["effort"]}),
            success_streak_minimum=int(prefs["success_streak_minimum"]),
            moderate_correction_excess=int(prefs["moderate_correction_excess"]),
            week_starts_on=int(prefs["week_starts_on"]) % 7,
            scale_to_target=bool(prefs["scale_to_target"]),
        )
    except (TypeError, ValueError) as e:
        logger.warning("Ignoring invalid recovery preferences in %s: %s", prefs_file, e)
        return defaults

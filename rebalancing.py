import logging
import math
import warnings
from dataclasses import replace
from typing import List, Tuple
from base_types import (OvereatingEvent, GoalContext, EffortLevel, RiskLevel,
                        Recommendation)
from errors import (EmptyOptionsWarning, InvariantViolation, ValidationError,
                    validate_goal_context)
from impact_analyzer import calculate_timeline_delay
from models import RebalancingOption, OptionImpact
from recovery_configs import (RecoverySettings, RecoveryConfigs, OPTION_PROS, OPTION_CONS,
                              REDISTRIBUTE_OPTION, EXTEND_TIMELINE_OPTION, ACCEPT_OPTION)

logger = logging.getLogger(__name__)


class RebalancingOptionGenerator:
    def __init__(self, settings: RecoverySettings = None):
        self.settings = settings or RecoveryConfigs.get_default_settings()

    def generate(self, event: OvereatingEvent, context: GoalContext,
                 remaining_days_in_week: int) -> Tuple[RebalancingOption, ...]:
        """Generate the canonical rebalancing options, in insertion order"""
        validate_goal_context(context)
        if isinstance(remaining_days_in_week, bool) or not isinstance(remaining_days_in_week, int):
            raise ValidationError(f"remaining days must be an integer, got {remaining_days_in_week!r}")
        if remaining_days_in_week < 0:
            raise ValidationError(f"remaining days cannot be negative, got {remaining_days_in_week}")

        options: List[RebalancingOption] = []

        self._handle_redistribution(options, event, context, remaining_days_in_week)
        self._handle_extend_timeline(options, event, context)
        self._handle_accept_and_continue(options, event)

        if not options:
            raise InvariantViolation(f"No rebalancing options generated for {event.id}")

        return tuple(self._tag_recommendations(options))

    def _handle_redistribution(
            self, options: List[RebalancingOption], event: OvereatingEvent,
            context: GoalContext, remaining_days: int
    ) -> None:
        """Spread the excess as an even reduction over the rest of the week"""
        if remaining_days < 1:
            warnings.warn(
                f"No days left in the week to redistribute {event.excess_calories} kcal",
                EmptyOptionsWarning
            )
            return

        target = event.target_calories
        reduction = math.ceil(event.excess_calories / remaining_days)
        new_target = target - reduction

        if new_target < context.safe_minimum_calories:
            logger.info(
                "Redistribution for %s excluded: %s kcal is below the %s kcal floor",
                event.id, new_target, context.safe_minimum_calories
            )
            warnings.warn(
                f"Redistributed target {new_target} kcal is below the safe minimum "
                f"of {context.safe_minimum_calories} kcal",
                EmptyOptionsWarning
            )
            return

        options.append(RebalancingOption(
            id=REDISTRIBUTE_OPTION,
            name=f"Rebalance Over {remaining_days} Day{'s' if remaining_days != 1 else ''}",
            description=f"Reduce by {reduction} calories/day for the remaining {remaining_days} "
                        f"day{'s' if remaining_days != 1 else ''} of the week",
            impact=OptionImpact(
                new_daily_target=new_target,
                effort_level=self.settings.effort.effort_for(reduction, target),
                risk_level=RiskLevel.SAFE
            ),
            pros=OPTION_PROS[REDISTRIBUTE_OPTION],
            cons=OPTION_CONS[REDISTRIBUTE_OPTION],
            duration_days=remaining_days,
            daily_adjustment=-reduction
        ))

    def _handle_extend_timeline(
            self, options: List[RebalancingOption], event: OvereatingEvent,
            context: GoalContext
    ) -> None:
        """Keep daily targets and move the program end date"""
        delay = calculate_timeline_delay(event.excess_calories, context.weekly_deficit_target)
        options.append(RebalancingOption(
            id=EXTEND_TIMELINE_OPTION,
            name="Extend Timeline",
            description=f"Keep your daily target and add {delay} day{'s' if delay != 1 else ''} "
                        f"to your goal date",
            impact=OptionImpact(
                new_daily_target=event.target_calories,
                effort_level=EffortLevel.MINIMAL,
                risk_level=RiskLevel.SAFE
            ),
            pros=OPTION_PROS[EXTEND_TIMELINE_OPTION],
            cons=OPTION_CONS[EXTEND_TIMELINE_OPTION],
            duration_days=delay,
            timeline_extension_days=delay
        ))

    def _handle_accept_and_continue(
            self, options: List[RebalancingOption], event: OvereatingEvent
    ) -> None:
        """Change nothing and carry on with the plan"""
        options.append(RebalancingOption(
            id=ACCEPT_OPTION,
            name="Accept and Continue",
            description="Keep your current plan and move on",
            impact=OptionImpact(
                new_daily_target=event.target_calories,
                effort_level=EffortLevel.MINIMAL,
                risk_level=self.settings.accept_risk_by_tier[event.trigger_type]
            ),
            pros=OPTION_PROS[ACCEPT_OPTION],
            cons=OPTION_CONS[ACCEPT_OPTION]
        ))

    def _tag_recommendations(self, options: List[RebalancingOption]) -> List[RebalancingOption]:
        """Mark exactly one option as recommended"""
        policy = self.settings.recommendation
        tagged = []
        for option in options:
            if option.impact.risk_level in policy.not_recommended_risks:
                tagged.append(replace(option, recommendation=Recommendation.NOT_RECOMMENDED))
            else:
                tagged.append(replace(option, recommendation=Recommendation.NEUTRAL))

        by_id = {option.id: index for index, option in enumerate(tagged)}
        for option_id in policy.preference_order:
            index = by_id.get(option_id)
            if index is None:
                continue
            candidate = tagged[index]
            if candidate.recommendation == Recommendation.NOT_RECOMMENDED:
                continue
            allowed = policy.allowed_efforts.get(option_id)
            if allowed is not None and candidate.impact.effort_level not in allowed:
                continue
            tagged[index] = replace(candidate, recommendation=Recommendation.RECOMMENDED)
            return tagged

        raise InvariantViolation("No option qualifies for the recommended tag")


def generate(event: OvereatingEvent, context: GoalContext, remaining_days_in_week: int,
             settings: RecoverySettings = None) -> Tuple[RebalancingOption, ...]:
    return RebalancingOptionGenerator(settings).generate(event, context, remaining_days_in_week)

"""
Impact analysis for overeating events.

Turns an event's excess calories into numbers that put it in perspective:
how many days it delays the goal, what share of the weekly deficit it uses,
how many workouts it equals and how many on-target days offset it. Values are
informational and are not clamped; a separate flag marks events
that would take longer to nullify than the program has left.
"""

import logging
import math
from base_types import OvereatingEvent, GoalContext
from errors import validate_goal_context
from models import ImpactAnalysis, Reframe, RealImpact, Perspective
from recovery_configs import RecoverySettings, RecoveryConfigs, REFRAME_MESSAGES

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (2.5 -> 3, -2.5 -> -2)"""
    return math.floor(value + 0.5)


def calculate_timeline_delay(excess_calories: float, weekly_deficit_target: float) -> int:
    """Days added to the program end date by an excess"""
    return max(0, round_half_up(excess_calories * 7 / weekly_deficit_target))


def calculate_days_to_nullify(excess_calories: float, weekly_deficit_target: float) -> int:
    """On-target days needed to fully offset an excess"""
    return math.ceil(excess_calories * 7 / weekly_deficit_target)


def build_reframe(event: OvereatingEvent, context: GoalContext,
                  settings: RecoverySettings) -> Reframe:
    template = REFRAME_MESSAGES[event.trigger_type]
    reminder = None
    if context.recent_on_target_streak >= settings.success_streak_minimum:
        reminder = template.success_reminder.format(streak=context.recent_on_target_streak)

    return Reframe(
        message=template.message,
        focus_point=template.focus_point,
        success_reminder=reminder
    )


def analyze(event: OvereatingEvent, context: GoalContext,
            settings: RecoverySettings = None) -> ImpactAnalysis:
    """Calculate the real impact of an overeating event and a reframed perspective"""
    settings = settings or RecoveryConfigs.get_default_settings()
    validate_goal_context(context)

    excess = event.excess_calories
    weekly_deficit = context.weekly_deficit_target

    timeline_delay = calculate_timeline_delay(excess, weekly_deficit)
    weekly_impact = round_half_up(excess * 100 / weekly_deficit)
    equivalent_workouts = max(0, round_half_up(excess / context.workout_equivalent_calories))
    journey_percent = round_half_up(
        excess * 100 / (weekly_deficit * context.total_program_weeks)
    )
    days_to_nullify = calculate_days_to_nullify(excess, weekly_deficit)

    logger.debug(
        "Impact for %s: delay=%sd weekly=%s%% journey=%s%% nullify=%sd",
        event.id, timeline_delay, weekly_impact, journey_percent, days_to_nullify
    )

    return ImpactAnalysis(
        reframe=build_reframe(event, context, settings),
        real_impact=RealImpact(
            timeline_delay_days=timeline_delay,
            weekly_goal_impact=weekly_impact
        ),
        perspective=Perspective(
            equivalent_workouts=equivalent_workouts,
            percent_of_total_journey=journey_percent,
            days_to_nullify=days_to_nullify,
            exceeds_remaining_program=days_to_nullify > context.remaining_program_days
        )
    )

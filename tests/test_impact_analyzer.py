"""Tests for impact analysis of overeating events."""

from dataclasses import replace

import pytest

from base_types import OvereatingEvent, TriggerType
from errors import ValidationError
from impact_analyzer import analyze, round_half_up
from recovery_configs import REFRAME_MESSAGES

from conftest import MONDAY


def make_event(excess, trigger_type=TriggerType.MODERATE, target=2000):
    return OvereatingEvent(
        id=OvereatingEvent.id_for(MONDAY),
        date=MONDAY,
        excess_calories=excess,
        trigger_type=trigger_type,
        consumed_calories=target + excess,
        target_calories=target
    )


def test_worked_example(goal_context):
    analysis = analyze(make_event(600), goal_context)

    # 600 / 3500 * 7 = 1.2 days, 600 / 3500 = 17.1% of the weekly deficit
    assert analysis.real_impact.timeline_delay_days == 1
    assert analysis.real_impact.weekly_goal_impact == 17
    assert analysis.perspective.days_to_nullify == 2
    assert analysis.perspective.equivalent_workouts == 2
    assert analysis.perspective.percent_of_total_journey == 1
    assert analysis.perspective.exceeds_remaining_program is False


def test_analysis_is_deterministic(goal_context):
    event = make_event(850, TriggerType.SEVERE)
    assert analyze(event, goal_context) == analyze(event, goal_context)


def test_half_values_round_up(goal_context):
    # 250 / 3500 * 7 = 0.5 exactly
    analysis = analyze(make_event(250, TriggerType.MILD), goal_context)
    assert analysis.real_impact.timeline_delay_days == 1
    assert round_half_up(2.5) == 3
    assert round_half_up(-2.5) == -2


def test_large_excess_is_not_clamped(goal_context):
    context = replace(goal_context, total_program_weeks=1, days_elapsed=0)
    analysis = analyze(make_event(5000, TriggerType.SEVERE), context)

    assert analysis.real_impact.weekly_goal_impact == 143
    assert analysis.perspective.percent_of_total_journey == 143
    assert analysis.perspective.days_to_nullify == 10
    assert analysis.perspective.exceeds_remaining_program is True


@pytest.mark.parametrize("trigger_type", list(TriggerType))
def test_reframe_comes_from_tier_table(goal_context, trigger_type):
    reframe = analyze(make_event(600, trigger_type), goal_context).reframe
    assert reframe.message == REFRAME_MESSAGES[trigger_type].message
    assert reframe.focus_point == REFRAME_MESSAGES[trigger_type].focus_point


def test_success_reminder_needs_a_streak(goal_context):
    short = analyze(make_event(600), replace(goal_context, recent_on_target_streak=2))
    long = analyze(make_event(600), replace(goal_context, recent_on_target_streak=3))

    assert short.reframe.success_reminder is None
    assert "3" in long.reframe.success_reminder


@pytest.mark.parametrize("field,value", [
    ("weekly_deficit_target", 0),
    ("total_program_weeks", -1),
    ("workout_equivalent_calories", float("nan")),
    ("days_elapsed", -3),
])
def test_invalid_goal_context_is_rejected(goal_context, field, value):
    with pytest.raises(ValidationError):
        analyze(make_event(600), replace(goal_context, **{field: value}))


def test_missing_goal_context_is_rejected():
    with pytest.raises(ValidationError):
        analyze(make_event(600), None)

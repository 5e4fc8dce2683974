"""Tests for rebalancing option generation."""

import warnings
from dataclasses import replace

import pytest

from base_types import OvereatingEvent, TriggerType, EffortLevel, RiskLevel, Recommendation
from errors import EmptyOptionsWarning, ValidationError
from impact_analyzer import analyze
from rebalancing import generate
from recovery_configs import (RecoverySettings, REDISTRIBUTE_OPTION, EXTEND_TIMELINE_OPTION,
                              ACCEPT_OPTION)

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


def recommended(options):
    return [o.id for o in options if o.recommendation == Recommendation.RECOMMENDED]


def test_redistribution_over_three_days(goal_context):
    options = generate(make_event(600), goal_context, remaining_days_in_week=3)

    assert [o.id for o in options] == [REDISTRIBUTE_OPTION, EXTEND_TIMELINE_OPTION, ACCEPT_OPTION]
    redistribute = options[0]
    assert redistribute.impact.new_daily_target == 1800
    assert redistribute.daily_adjustment == -200
    assert redistribute.duration_days == 3
    assert redistribute.impact.effort_level == EffortLevel.MODERATE
    assert redistribute.impact.risk_level == RiskLevel.SAFE
    assert recommended(options) == [REDISTRIBUTE_OPTION]


def test_unsafe_redistribution_is_excluded(goal_context):
    context = replace(goal_context, safe_minimum_calories=1850)
    with pytest.warns(EmptyOptionsWarning):
        options = generate(make_event(600), context, remaining_days_in_week=3)

    assert [o.id for o in options] == [EXTEND_TIMELINE_OPTION, ACCEPT_OPTION]
    assert recommended(options) == [EXTEND_TIMELINE_OPTION]


def test_no_remaining_days_skips_redistribution(goal_context):
    with pytest.warns(EmptyOptionsWarning):
        options = generate(make_event(600), goal_context, remaining_days_in_week=0)

    assert [o.id for o in options] == [EXTEND_TIMELINE_OPTION, ACCEPT_OPTION]


def test_small_reduction_is_minimal_effort(goal_context):
    options = generate(make_event(300, TriggerType.MILD), goal_context, remaining_days_in_week=6)
    assert options[0].impact.effort_level == EffortLevel.MINIMAL
    assert options[0].impact.new_daily_target == 1950
    assert recommended(options) == [REDISTRIBUTE_OPTION]


def test_challenging_redistribution_is_not_recommended(goal_context):
    context = replace(goal_context, safe_minimum_calories=1200)
    options = generate(make_event(1000, TriggerType.SEVERE), context, remaining_days_in_week=2)

    assert options[0].id == REDISTRIBUTE_OPTION
    assert options[0].impact.effort_level == EffortLevel.CHALLENGING
    assert options[0].recommendation == Recommendation.NEUTRAL
    assert recommended(options) == [EXTEND_TIMELINE_OPTION]


def test_extend_timeline_uses_impact_delay(goal_context):
    event = make_event(1400)
    options = generate(event, goal_context, remaining_days_in_week=4)
    extend = next(o for o in options if o.id == EXTEND_TIMELINE_OPTION)

    assert extend.timeline_extension_days == analyze(event, goal_context).real_impact.timeline_delay_days
    assert extend.impact.new_daily_target == 2000
    assert extend.impact.effort_level == EffortLevel.MINIMAL


@pytest.mark.parametrize("trigger_type,risk", [
    (TriggerType.MILD, RiskLevel.SAFE),
    (TriggerType.MODERATE, RiskLevel.SAFE),
    (TriggerType.SEVERE, RiskLevel.MODERATE),
])
def test_accept_risk_depends_on_tier(goal_context, trigger_type, risk):
    options = generate(make_event(600, trigger_type), goal_context, remaining_days_in_week=3)
    accept = next(o for o in options if o.id == ACCEPT_OPTION)
    assert accept.impact.risk_level == risk
    assert accept.impact.new_daily_target == 2000


def test_aggressive_options_are_not_recommended(goal_context):
    settings = RecoverySettings(accept_risk_by_tier={
        TriggerType.MILD: RiskLevel.SAFE,
        TriggerType.MODERATE: RiskLevel.SAFE,
        TriggerType.SEVERE: RiskLevel.AGGRESSIVE,
    })
    options = generate(make_event(1200, TriggerType.SEVERE), goal_context, 3, settings)
    accept = next(o for o in options if o.id == ACCEPT_OPTION)

    assert accept.recommendation == Recommendation.NOT_RECOMMENDED
    assert len(recommended(options)) == 1


def test_exactly_one_recommendation_across_inputs(goal_context):
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", EmptyOptionsWarning)
        for excess in (201, 450, 600, 999, 1500, 4000):
            for days in range(0, 7):
                options = generate(make_event(excess), goal_context, days)
                ids = [o.id for o in options]
                assert EXTEND_TIMELINE_OPTION in ids
                assert ACCEPT_OPTION in ids
                assert len(recommended(options)) == 1

                new_target = 2000 - -(-excess // days) if days else None
                expected = days >= 1 and new_target >= goal_context.safe_minimum_calories
                assert (REDISTRIBUTE_OPTION in ids) == expected


def test_negative_remaining_days_is_rejected(goal_context):
    with pytest.raises(ValidationError):
        generate(make_event(600), goal_context, remaining_days_in_week=-1)

"""
Shared fixtures for the recovery engine tests.

Dates are chosen so weekdays are known: 2025-08-11 is a Monday,
2025-08-13 a Wednesday and 2025-08-17 a Sunday.
"""

from datetime import date

import pytest

from base_types import GoalContext, DailyTotals
from recovery_configs import RecoverySettings, SeverityThresholds

MONDAY = date(2025, 8, 11)
WEDNESDAY = date(2025, 8, 13)
SUNDAY = date(2025, 8, 17)


class FakeCalorieLog:
    """Minimal getDailyTotals collaborator backed by a dict"""

    def __init__(self, default_target=2000):
        self.default_target = default_target
        self.consumed = {}
        self.targets = {}

    def set(self, day, consumed, target=None):
        self.consumed[day] = consumed
        if target is not None:
            self.targets[day] = target

    def get_daily_totals(self, day):
        return DailyTotals(
            consumed=self.consumed.get(day, 0),
            target=self.targets.get(day, self.default_target)
        )


class EventRecorder:
    """Collects on_event_changed callbacks"""

    def __init__(self):
        self.calls = []

    def __call__(self, event, day):
        self.calls.append((event, day))

    @property
    def resolutions(self):
        return [call for call in self.calls if call[0] is None]


@pytest.fixture
def goal_context():
    return GoalContext(
        weekly_deficit_target=3500,
        total_program_weeks=12,
        days_elapsed=14,
        workout_equivalent_calories=350,
        safe_minimum_calories=1500
    )


@pytest.fixture
def narrow_settings():
    """Breakpoints of mild < 300, moderate 300-800, severe > 800"""
    return RecoverySettings(severity=SeverityThresholds(min_excess=200, moderate=300, severe=800))


@pytest.fixture
def calorie_log():
    return FakeCalorieLog()


@pytest.fixture
def recorder():
    return EventRecorder()

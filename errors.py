"""
Error taxonomy for the recovery engine and the input guards that raise it.

ValidationError is raised for bad caller input before any state changes.
InvariantViolation signals a bug on the calling side and must never be
swallowed. EmptyOptionsWarning is issued (not raised) when the redistribution
option has to be dropped from a plan.
"""

from typing import Any, Iterable, Optional

import numpy as np


class ValidationError(ValueError):
    """Malformed calorie values or goal configuration"""


class InvariantViolation(RuntimeError):
    """Internal guard tripped, e.g. a second active event for one day"""


class EmptyOptionsWarning(UserWarning):
    """The redistribution option was excluded from a recovery plan"""


def require_finite(name: str, value: Any) -> float:
    """Return value as float, rejecting None, non-numbers, NaN and infinities"""
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{name} is required")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a number, got {value!r}") from None
    if not np.isfinite(number):
        raise ValidationError(f"{name} must be finite, got {value!r}")
    return number


def require_non_negative(name: str, value: Any) -> float:
    number = require_finite(name, value)
    if number < 0:
        raise ValidationError(f"{name} cannot be negative, got {value!r}")
    return number


def require_positive(name: str, value: Any) -> float:
    number = require_finite(name, value)
    if number <= 0:
        raise ValidationError(f"{name} must be positive, got {value!r}")
    return number


def validate_calories(consumed: Any, target: Any) -> tuple:
    """Validate a day's totals, returning (consumed, target) as floats"""
    return (
        require_non_negative("consumed calories", consumed),
        require_positive("target calories", target),
    )


def validate_goal_context(context: Optional[Any], fields: Iterable[str] = ()) -> None:
    """Check that a goal context exists and that its numeric fields are usable"""
    if context is None:
        raise ValidationError("goal context is required")

    positive = ("weekly_deficit_target", "total_program_weeks",
                "workout_equivalent_calories", "safe_minimum_calories")
    non_negative = ("days_elapsed", "recent_on_target_streak")
    for field in fields or positive + non_negative:
        if not hasattr(context, field):
            raise ValidationError(f"goal context is missing {field}")
        value = getattr(context, field)
        if field in positive:
            require_positive(field, value)
        else:
            require_non_negative(field, value)

import logging
from typing import Optional
from base_types import OvereatingEvent, TriggerType, DateLike, to_date
from errors import validate_calories
from impact_analyzer import round_half_up
from recovery_configs import SeverityThresholds

logger = logging.getLogger(__name__)


def severity_for(excess: float, thresholds: SeverityThresholds) -> TriggerType:
    """Map an excess above the tolerance band to exactly one severity tier"""
    if excess >= thresholds.severe:
        return TriggerType.SEVERE
    if excess >= thresholds.moderate:
        return TriggerType.MODERATE
    return TriggerType.MILD


def classify(day: DateLike, consumed_calories: float, target_calories: float,
             thresholds: SeverityThresholds) -> Optional[OvereatingEvent]:
    """
    Decide whether a day's intake is an overeating event.

    Returns None when the excess is within the tolerance band. The band is
    checked on the unrounded excess; the stored calorie values are rounded
    half-up. The returned event is never persisted here; the reconciler owns
    event storage.
    """
    consumed, target = validate_calories(consumed_calories, target_calories)

    if consumed - target <= thresholds.min_excess:
        return None

    excess = round_half_up(consumed - target)

    day = to_date(day)
    trigger_type = severity_for(excess, thresholds)
    logger.debug("Classified %s: excess=%s tier=%s", day, excess, trigger_type.value)

    return OvereatingEvent(
        id=OvereatingEvent.id_for(day),
        date=day,
        excess_calories=excess,
        trigger_type=trigger_type,
        consumed_calories=round_half_up(consumed),
        target_calories=round_half_up(target),
    )

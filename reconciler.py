"""
Keeps the per-day overeating events in step with the calorie log.

Every meal create, update or delete that touches a day's total must be
followed by on_meal_log_changed(date) before control returns to the caller.
The reconciler is the only writer of the EventStore; everything else reads it.
"""

import logging
from dataclasses import replace
from datetime import date
from typing import Callable, Dict, List, Optional
from base_types import OvereatingEvent, DailyTotals, EventTransition, DateLike, to_date
from errors import InvariantViolation, validate_calories
from impact_analyzer import round_half_up
from recovery_configs import RecoverySettings, RecoveryConfigs
from trigger_classifier import classify

logger = logging.getLogger(__name__)

DailyTotalsProvider = Callable[[date], DailyTotals]
EventChangedCallback = Callable[[Optional[OvereatingEvent], date], None]


class EventStore:
    """At most one active overeating event per calendar day"""

    def __init__(self):
        self._events: Dict[date, OvereatingEvent] = {}

    def get(self, day: DateLike) -> Optional[OvereatingEvent]:
        return self._events.get(to_date(day))

    def events(self) -> List[OvereatingEvent]:
        """All active events, oldest day first"""
        return [self._events[day] for day in sorted(self._events)]

    def pending(self) -> Optional[OvereatingEvent]:
        """Oldest event the user has not yet acknowledged"""
        return next((e for e in self.events() if not e.acknowledged), None)

    def __contains__(self, day) -> bool:
        return to_date(day) in self._events

    def __len__(self) -> int:
        return len(self._events)

    def _create(self, event: OvereatingEvent) -> None:
        if event.date in self._events:
            raise InvariantViolation(f"An active event already exists for {event.date}")
        self._events[event.date] = event

    def _replace(self, event: OvereatingEvent) -> None:
        if event.date not in self._events:
            raise InvariantViolation(f"No active event to replace for {event.date}")
        self._events[event.date] = event

    def _remove(self, day: date) -> OvereatingEvent:
        return self._events.pop(day)


class RecoveryReconciler:
    def __init__(self, get_daily_totals: DailyTotalsProvider,
                 on_event_changed: Optional[EventChangedCallback] = None,
                 settings: RecoverySettings = None,
                 store: Optional[EventStore] = None):
        self.get_daily_totals = get_daily_totals
        self.on_event_changed = on_event_changed
        self.settings = settings or RecoveryConfigs.get_default_settings()
        self.store = store if store is not None else EventStore()

    def on_meal_log_changed(self, day: DateLike) -> EventTransition:
        """Re-derive the event for one day from the current calorie log"""
        day = to_date(day)
        totals = self.get_daily_totals(day)
        consumed, target = validate_calories(totals.consumed, totals.target)

        thresholds = RecoveryConfigs.thresholds_for_target(self.settings, target)
        candidate = classify(day, consumed, target, thresholds)
        existing = self.store.get(day)

        if candidate is None:
            if existing is None:
                return EventTransition.UNCHANGED
            self.store._remove(day)
            logger.info("Resolved overeating event for %s (excess now %s)",
                        day, round_half_up(consumed - target))
            self._notify(None, day)
            return EventTransition.RESOLVED

        if existing is None:
            if not self.settings.enable_recovery_mode:
                logger.debug("Recovery mode disabled, not creating event for %s", day)
                return EventTransition.UNCHANGED
            self.store._create(candidate)
            logger.info("Overeating event detected for %s: excess=%s trigger=%s",
                        day, candidate.excess_calories, candidate.trigger_type.value)
            self._notify(candidate, day)
            return EventTransition.CREATED

        if (candidate.excess_calories == existing.excess_calories
                and candidate.trigger_type == existing.trigger_type
                and candidate.target_calories == existing.target_calories):
            return EventTransition.UNCHANGED

        tier_changed = candidate.trigger_type != existing.trigger_type
        amended = replace(
            candidate,
            acknowledged=False if tier_changed else existing.acknowledged
        )
        self.store._replace(amended)
        logger.info("Amended overeating event for %s: excess %s -> %s, trigger %s -> %s",
                    day, existing.excess_calories, amended.excess_calories,
                    existing.trigger_type.value, amended.trigger_type.value)
        self._notify(amended, day)
        return EventTransition.AMENDED

    def acknowledge(self, event: OvereatingEvent) -> OvereatingEvent:
        """Mark an active event as seen without touching its numbers"""
        current = self.store.get(event.date)
        if current is None or current.id != event.id:
            raise InvariantViolation(f"Cannot acknowledge inactive event {event.id}")
        if current.acknowledged:
            return current

        acknowledged = replace(current, acknowledged=True)
        self.store._replace(acknowledged)
        self._notify(acknowledged, acknowledged.date)
        return acknowledged

    def _notify(self, event: Optional[OvereatingEvent], day: date) -> None:
        if self.on_event_changed is not None:
            self.on_event_changed(event, day)

import logging
from dataclasses import asdict, replace
from datetime import date, timedelta
from io import BytesIO, StringIO
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union
import pandas as pd
from base_types import (OvereatingEvent, GoalContext, EventTransition, SessionStatus,
                        MealEntry, DateLike, to_date)
from errors import InvariantViolation, ValidationError
from impact_analyzer import analyze
from meal_log import MealLog
from models import RecoveryPlan, AppliedTargetMutation, RecoverySession, SessionProgress
from progress_tracker import ProgressTracker
from rebalancing import RebalancingOptionGenerator
from reconciler import RecoveryReconciler, EventStore, EventChangedCallback
from recovery_configs import RecoverySettings, RecoveryConfigs

logger = logging.getLogger(__name__)


class RecoveryTracker:
    def __init__(self, get_goal_context: Callable[[], GoalContext],
                 meal_log: Optional[MealLog] = None,
                 settings: Optional[RecoverySettings] = None,
                 on_event_changed: Optional[EventChangedCallback] = None):
        """
        Initialize the recovery tracking system

        Args:
            get_goal_context: Accessor for the current goal configuration snapshot
            meal_log: Calorie log to track (a new empty log if omitted)
            settings: Detection and planning configuration
            on_event_changed: Called with (event or None, date) whenever an event
                is created, amended, acknowledged or resolved
        """
        self.get_goal_context = get_goal_context
        self.meal_log = meal_log if meal_log is not None else MealLog()
        self.settings = settings or RecoveryConfigs.get_default_settings()
        self.on_event_changed = on_event_changed
        self.history: List[AppliedTargetMutation] = []
        self.active_session: Optional[RecoverySession] = None
        self._update_components()

    @property
    def events(self) -> EventStore:
        return self.reconciler.store

    # Calorie log mutations, each followed by reconciliation of the affected days

    def log_meal(self, day: DateLike, calories: float, name: Optional[str] = None) -> MealEntry:
        meal = self.meal_log.add_meal(day, calories, name)
        self.reconciler.on_meal_log_changed(meal.date)
        return meal

    def edit_meal(self, meal_id: int, calories: Optional[float] = None,
                  day: Optional[DateLike] = None, name: Optional[str] = None) -> Dict[date, EventTransition]:
        affected = self.meal_log.edit_meal(meal_id, calories=calories, day=day, name=name)
        return self._reconcile(affected)

    def delete_meal(self, meal_id: int) -> EventTransition:
        day = self.meal_log.delete_meal(meal_id)
        return self.reconciler.on_meal_log_changed(day)

    def set_daily_target(self, day: DateLike, target: float) -> EventTransition:
        day = self.meal_log.set_daily_target(day, target)
        return self.reconciler.on_meal_log_changed(day)

    def load_data(self, file: Union[str, Path, BytesIO, StringIO]) -> Dict[date, EventTransition]:
        """Import meals from CSV and reconcile every day they touch"""
        return self._reconcile(self.meal_log.import_csv(file))

    def update_settings(self, settings: RecoverySettings) -> Dict[date, EventTransition]:
        """Swap settings and re-derive events for every logged day"""
        self.settings = settings
        self._update_components()
        days = set(self.meal_log.logged_days()) | {e.date for e in self.events.events()}
        return self._reconcile(sorted(days))

    # Read side for the presentation layer

    def get_active_event(self, day: DateLike) -> Optional[OvereatingEvent]:
        return self.events.get(day)

    def get_pending_event(self) -> Optional[OvereatingEvent]:
        return self.events.pending()

    def remaining_days_in_week(self, day: DateLike) -> int:
        """Days after `day` up to the end of its week"""
        index = (to_date(day).weekday() - self.settings.week_starts_on) % 7
        return 6 - index

    def get_recovery_plan(self, event: OvereatingEvent) -> RecoveryPlan:
        """Build the impact analysis and rebalancing options for an active event"""
        event = self._require_active(event)
        context = self._goal_context_for(event)

        return RecoveryPlan(
            id=f"recovery_{event.id}",
            event_id=event.id,
            strategy=RecoveryConfigs.strategy_for(
                self.settings, event.trigger_type, event.excess_calories
            ),
            impact_analysis=analyze(event, context, self.settings),
            rebalancing_options=self.generator.generate(
                event, context, self.remaining_days_in_week(event.date)
            )
        )

    def select_option(self, event: OvereatingEvent, option_id: str) -> AppliedTargetMutation:
        """
        Resolve a chosen option into the target/timeline change to apply.
        The goal configuration itself is left untouched.
        """
        plan = self.get_recovery_plan(event)
        option = plan.get_option(option_id)
        if option is None:
            raise ValidationError(f"Option {option_id!r} is not available for {event.id}")

        mutation = AppliedTargetMutation(
            event_id=plan.event_id,
            option_id=option.id,
            new_daily_target=option.impact.new_daily_target,
            daily_adjustment=option.daily_adjustment,
            applies_from=event.date + timedelta(days=1),
            duration_days=option.duration_days,
            timeline_extension_days=option.timeline_extension_days
        )
        self.history.append(mutation)
        self.reconciler.acknowledge(self.events.get(event.date))
        logger.info("Selected %s for %s: target=%s, timeline +%sd",
                    option.id, event.id, mutation.new_daily_target,
                    mutation.timeline_extension_days)
        return mutation

    def acknowledge(self, event: OvereatingEvent) -> OvereatingEvent:
        return self.reconciler.acknowledge(self._require_active(event))

    # Recovery sessions

    def start_recovery_session(self, event: OvereatingEvent, option_id: str,
                               start_date: Optional[DateLike] = None) -> RecoverySession:
        """Select an option and start tracking adherence to it"""
        mutation = self.select_option(event, option_id)
        start = to_date(start_date) if start_date is not None else mutation.applies_from
        duration = max(1, mutation.duration_days)

        if self.active_session is not None:
            self.abandon_recovery_session()

        self.active_session = RecoverySession(
            id=f"session_{mutation.event_id}_{mutation.option_id}",
            event_id=mutation.event_id,
            option_id=mutation.option_id,
            start_date=start,
            end_date=start + timedelta(days=duration - 1),
            adjusted_target=mutation.new_daily_target
        )
        logger.info("Recovery session started: %s (%s to %s, target %s)",
                    self.active_session.id, self.active_session.start_date,
                    self.active_session.end_date, self.active_session.adjusted_target)
        return self.active_session

    def abandon_recovery_session(self) -> Optional[RecoverySession]:
        session = self.active_session
        if session is None:
            return None
        session.status = SessionStatus.ABANDONED
        self.active_session = None
        logger.info("Recovery session abandoned: %s", session.id)
        return session

    def get_session_progress(self, as_of: DateLike) -> Optional[SessionProgress]:
        if self.active_session is None:
            return None
        return self.progress.session_progress(self.active_session, as_of)

    def history_dataframe(self) -> pd.DataFrame:
        """Selected recovery options as a DataFrame"""
        columns = list(AppliedTargetMutation.__dataclass_fields__)
        return pd.DataFrame([asdict(m) for m in self.history], columns=columns)

    def _goal_context_for(self, event: OvereatingEvent) -> GoalContext:
        context = self.get_goal_context()
        if context is None:
            raise ValidationError("goal context is required")
        streak = self.progress.on_target_streak(event.date)
        if streak > context.recent_on_target_streak:
            context = replace(context, recent_on_target_streak=streak)
        return context

    def _require_active(self, event: OvereatingEvent) -> OvereatingEvent:
        current = self.events.get(event.date)
        if current is None or current.id != event.id:
            raise InvariantViolation(f"Event {event.id} is no longer active")
        return current

    def _reconcile(self, days: List[date]) -> Dict[date, EventTransition]:
        return {day: self.reconciler.on_meal_log_changed(day) for day in days}

    def _handle_event_changed(self, event: Optional[OvereatingEvent], day: date) -> None:
        session = self.active_session
        if event is None and session is not None and session.event_id == OvereatingEvent.id_for(day):
            self.abandon_recovery_session()
        if self.on_event_changed is not None:
            self.on_event_changed(event, day)

    def _update_components(self) -> None:
        """Update all components with current settings, keeping active events"""
        store = self.reconciler.store if hasattr(self, 'reconciler') else EventStore()
        self.reconciler = RecoveryReconciler(
            self.meal_log.get_daily_totals,
            on_event_changed=self._handle_event_changed,
            settings=self.settings,
            store=store
        )
        self.generator = RebalancingOptionGenerator(self.settings)
        self.progress = ProgressTracker(self.meal_log)

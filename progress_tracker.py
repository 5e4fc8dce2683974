from datetime import date, timedelta
import numpy as np
from base_types import SessionStatus, DateLike, to_date
from meal_log import MealLog
from models import RecoverySession, SessionProgress


class ProgressTracker:
    def __init__(self, meal_log: MealLog):
        self.meal_log = meal_log

    def on_target_streak(self, before: DateLike, max_days: int = 28) -> int:
        """
        Count consecutive logged days ending the day before `before`
        where intake stayed at or under target
        """
        day = to_date(before) - timedelta(days=1)
        logged = set(self.meal_log.logged_days())
        streak = 0

        while streak < max_days and day in logged:
            totals = self.meal_log.get_daily_totals(day)
            if totals.consumed > totals.target:
                break
            streak += 1
            day -= timedelta(days=1)

        return streak

    def session_progress(self, session: RecoverySession, as_of: DateLike) -> SessionProgress:
        """Calculate days completed and adherence to a recovery session's target"""
        as_of = to_date(as_of)
        total_days = (session.end_date - session.start_date).days + 1
        last_day = min(as_of, session.end_date)
        days_completed = max(0, (last_day - session.start_date).days + 1)

        logged = set(self.meal_log.logged_days())
        consumed = np.array([
            self.meal_log.get_daily_totals(day).consumed
            for day in _date_range(session.start_date, days_completed)
            if day in logged
        ], dtype=float)

        # Start at 100% until there is something to measure
        adherence = float(np.mean(consumed <= session.adjusted_target) * 100) if consumed.size else 100.0

        status = session.status
        if status == SessionStatus.ACTIVE and as_of > session.end_date:
            status = SessionStatus.COMPLETED

        return SessionProgress(
            days_completed=days_completed,
            days_remaining=total_days - days_completed,
            adherence_rate=round(adherence, 1),
            adjusted_target=session.adjusted_target,
            status=status
        )


def _date_range(start: date, days: int):
    return [start + timedelta(days=i) for i in range(days)]

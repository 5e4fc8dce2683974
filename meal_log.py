import logging
from dataclasses import replace
from datetime import date
from io import BytesIO, StringIO
from pathlib import Path
from typing import Dict, List, Optional, Union
import pandas as pd
from base_types import MealEntry, DailyTotals, DateLike, to_date
from errors import ValidationError, require_non_negative, require_positive

logger = logging.getLogger(__name__)

SUMMARY_COLUMNS = ['date', 'consumed', 'target', 'excess', 'meals']


class MealLog:
    """In-memory calorie log: meals plus per-day calorie targets"""

    def __init__(self, default_target: float = 2000):
        self.default_target = require_positive("default target", default_target)
        self.meals: Dict[int, MealEntry] = {}
        self.targets: Dict[date, float] = {}
        self._next_id = 1

    def add_meal(self, day: DateLike, calories: float, name: Optional[str] = None) -> MealEntry:
        """Log a meal and return the stored entry"""
        calories = require_non_negative("meal calories", calories)
        meal = MealEntry(meal_id=self._next_id, date=to_date(day), calories=calories, name=name)
        self.meals[meal.meal_id] = meal
        self._next_id += 1
        return meal

    def edit_meal(self, meal_id: int, calories: Optional[float] = None,
                  day: Optional[DateLike] = None, name: Optional[str] = None) -> List[date]:
        """Update a meal in place; returns every day whose total may have changed"""
        meal = self._get_meal(meal_id)
        updated = replace(
            meal,
            calories=require_non_negative("meal calories", calories) if calories is not None else meal.calories,
            date=to_date(day) if day is not None else meal.date,
            name=name if name is not None else meal.name
        )
        self.meals[meal_id] = updated
        return sorted({meal.date, updated.date})

    def delete_meal(self, meal_id: int) -> date:
        """Remove a meal; returns the day it was logged on"""
        meal = self._get_meal(meal_id)
        del self.meals[meal_id]
        return meal.date

    def set_daily_target(self, day: DateLike, target: float) -> date:
        day = to_date(day)
        self.targets[day] = require_positive("target calories", target)
        return day

    def get_target(self, day: DateLike) -> float:
        return self.targets.get(to_date(day), self.default_target)

    def get_meals(self, day: DateLike) -> List[MealEntry]:
        day = to_date(day)
        return [m for m in self.meals.values() if m.date == day]

    def get_daily_totals(self, day: DateLike) -> DailyTotals:
        """Consumed and target calories for a day"""
        day = to_date(day)
        consumed = sum(m.calories for m in self.get_meals(day))
        return DailyTotals(consumed=consumed, target=self.get_target(day))

    def logged_days(self) -> List[date]:
        return sorted({m.date for m in self.meals.values()})

    def to_dataframe(self) -> pd.DataFrame:
        """Daily summary with consumed, target and excess calories"""
        if not self.meals:
            return pd.DataFrame(columns=SUMMARY_COLUMNS)

        meals = pd.DataFrame([
            {'date': m.date, 'calories': m.calories} for m in self.meals.values()
        ])
        df = (meals.groupby('date')
              .agg(consumed=('calories', 'sum'), meals=('calories', 'count'))
              .reset_index()
              .sort_values('date')
              .reset_index(drop=True))
        df['target'] = df['date'].map(self.get_target).astype('float64')
        df['excess'] = df['consumed'] - df['target']
        return df[SUMMARY_COLUMNS]

    def meals_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(
            [{'meal_id': m.meal_id, 'date': m.date, 'name': m.name, 'calories': m.calories}
             for m in sorted(self.meals.values(), key=lambda x: (x.date, x.meal_id))],
            columns=['meal_id', 'date', 'name', 'calories']
        )

    def export_csv(self, filename: Union[str, Path]) -> str:
        """Export meals with each day's target to CSV"""
        df = self.meals_dataframe()
        df['target'] = df['date'].map(self.get_target)
        df['date'] = df['date'].map(lambda d: d.isoformat())
        df.to_csv(filename, index=False)
        return str(filename)

    def import_csv(self, file: Union[str, Path, BytesIO, StringIO]) -> List[date]:
        """Import meals from CSV; returns the days that received meals or targets"""
        df = pd.read_csv(file)
        df.columns = [col.lower().strip() for col in df.columns]

        required_columns = ['date', 'calories']
        missing_columns = [col for col in required_columns if col not in df.columns]
        if missing_columns:
            raise ValidationError(f"Missing required columns: {missing_columns}")

        dates = pd.to_datetime(df['date'], errors='coerce')

        affected = set()
        for (_, row), parsed in zip(df.iterrows(), dates):
            try:
                if pd.isna(parsed):
                    raise ValidationError(f"Invalid date: {row['date']!r}")
                calories = require_non_negative("meal calories", row['calories'])
                target = None
                if 'target' in row and pd.notna(row['target']):
                    target = require_positive("target calories", row['target'])
            except ValidationError as e:
                logger.warning("Skipping row due to error: %s", e)
                continue

            name = row['name'] if 'name' in row and pd.notna(row['name']) else None
            meal = self.add_meal(parsed.date(), calories, name=name)
            affected.add(meal.date)
            if target is not None:
                affected.add(self.set_daily_target(meal.date, target))

        return sorted(affected)

    def _get_meal(self, meal_id: int) -> MealEntry:
        try:
            return self.meals[meal_id]
        except KeyError:
            raise ValidationError(f"Unknown meal id: {meal_id}") from None

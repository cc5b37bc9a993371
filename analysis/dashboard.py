"""
Dashboard views over training plans.

Tabular exports (pandas) of a plan's days and weeks, the upcoming-workouts
list and the headline stats shown on a user's dashboard.
"""

from datetime import date, timedelta
from typing import List, Dict, Any, Iterable
import numpy as np
import pandas as pd

from planner.plan_generator import PEAK_WEEK
from planner.plan_model import TrainingPlan


DAY_COLUMNS = [
    'week_number', 'day_of_week', 'date', 'weekday', 'description',
    'miles', 'is_workout', 'completed',
]

WEEK_COLUMNS = [
    'week_number', 'start_date', 'end_date', 'phase', 'target_mileage',
    'planned_miles', 'long_run', 'workout_miles', 'long_run_share',
]

UPCOMING_COLUMNS = [
    'id', 'date', 'day_of_week', 'miles', 'description', 'is_workout',
    'plan_name', 'plan_id', 'week_number',
]


def plan_phase(week_number: int) -> str:
    """Periodization phase of a week: build, peak or taper."""
    if week_number < PEAK_WEEK:
        return "build"
    if week_number == PEAK_WEEK:
        return "peak"
    return "taper"


def plan_to_dataframe(plan: TrainingPlan) -> pd.DataFrame:
    """
    One row per planned day.

    Returns:
        DataFrame with columns: week_number, day_of_week, date, weekday,
        description, miles, is_workout, completed
    """
    rows = [
        {
            'week_number': week.week_number,
            'day_of_week': day.day_of_week,
            'date': day.date,
            'weekday': day.weekday_name,
            'description': day.description,
            'miles': day.miles,
            'is_workout': day.is_workout,
            'completed': day.completed,
        }
        for week, day in plan.iter_days()
    ]
    return pd.DataFrame(rows, columns=DAY_COLUMNS)


def weekly_summary(plan: TrainingPlan) -> pd.DataFrame:
    """
    One row per week with target vs planned totals.

    long_run_share is the long run as a fraction of the planned week
    (0 for an empty week).
    """
    rows = []
    for week in plan.weeks:
        planned = week.total_miles
        rows.append({
            'week_number': week.week_number,
            'start_date': week.start_date,
            'end_date': week.end_date,
            'phase': plan_phase(week.week_number),
            'target_mileage': week.target_mileage,
            'planned_miles': planned,
            'long_run': week.long_run,
            'workout_miles': week.workout_miles,
            'long_run_share': week.long_run / planned if planned else 0.0,
        })
    return pd.DataFrame(rows, columns=WEEK_COLUMNS)


def mileage_trend(plan: TrainingPlan) -> Dict[str, Any]:
    """
    Build-up statistics of a plan.

    Returns:
        Dictionary with mean mileage of the first and second half of the
        build (weeks 1-8 and 9-16), long-run increases over weeks 1-15 and
        the step-back reductions (week number -> fraction).
    """
    targets = np.array([w.target_mileage for w in plan.weeks], dtype=float)
    long_runs = np.array([w.long_run for w in plan.weeks], dtype=float)

    build = long_runs[:PEAK_WEEK - 1]
    changes = np.diff(build)

    step_backs = {}
    for week_number in range(4, PEAK_WEEK, 4):
        previous = long_runs[week_number - 2]
        if previous > 0:
            step_backs[week_number] = float(1 - long_runs[week_number - 1] / previous)

    return {
        'early_mean_mileage': float(np.mean(targets[:8])),
        'late_mean_mileage': float(np.mean(targets[8:PEAK_WEEK])),
        'long_run_increases': int(np.sum(changes > 0)),
        'step_back_reductions': step_backs,
        'peak_long_run': float(long_runs[PEAK_WEEK - 1]),
    }


def upcoming_workouts(
    plans: Iterable[TrainingPlan],
    today: date,
    limit: int = 7
) -> pd.DataFrame:
    """
    Next planned days across all plans, earliest first.

    Args:
        plans: Plans of one user
        today: Days on or after this date are upcoming
        limit: Maximum rows

    Returns:
        DataFrame with columns: id, date, day_of_week, miles, description,
        is_workout, plan_name, plan_id, week_number
    """
    rows = [
        {
            'id': day.id,
            'date': day.date,
            'day_of_week': day.day_of_week,
            'miles': day.miles,
            'description': day.description,
            'is_workout': day.is_workout,
            'plan_name': plan.name,
            'plan_id': plan.id,
            'week_number': week.week_number,
        }
        for plan in plans
        for week, day in plan.iter_days()
        if day.date >= today
    ]
    df = pd.DataFrame(rows, columns=UPCOMING_COLUMNS)
    if df.empty:
        return df
    df = df.sort_values(['date', 'plan_name'], kind='mergesort')
    return df.head(limit).reset_index(drop=True)


def _current_streak(plans: List[TrainingPlan], today: date) -> int:
    completed = {
        day.date
        for plan in plans
        for _, day in plan.iter_days()
        if day.completed
    }
    cursor = today if today in completed else today - timedelta(days=1)
    streak = 0
    while cursor in completed:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def dashboard_stats(plans: Iterable[TrainingPlan], today: date) -> Dict[str, Any]:
    """
    Headline numbers for a user's dashboard.

    Returns:
        active_plans: plans whose marathon is after today
        weekly_miles: planned miles of the current week across active plans
        current_streak: consecutive completed days ending today (or
            yesterday if today is not done yet)
    """
    plans = list(plans)
    active = [p for p in plans if p.marathon_date > today]

    weekly_miles = 0.0
    for plan in active:
        for week in plan.weeks:
            if week.start_date <= today <= week.end_date:
                weekly_miles += week.total_miles

    return {
        'active_plans': len(active),
        'weekly_miles': weekly_miles,
        'current_streak': _current_streak(plans, today),
    }

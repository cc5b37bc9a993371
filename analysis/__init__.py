"""Plan tables, dashboard stats and text reports."""

from .dashboard import (
    plan_phase,
    plan_to_dataframe,
    weekly_summary,
    mileage_trend,
    upcoming_workouts,
    dashboard_stats,
)
from .reports import generate_plan_report

__all__ = [
    'plan_phase',
    'plan_to_dataframe',
    'weekly_summary',
    'mileage_trend',
    'upcoming_workouts',
    'dashboard_stats',
    'generate_plan_report',
]

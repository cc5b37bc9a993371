"""
Marathon plan generation.

This package provides:
- The immutable plan -> week -> day model
- The 18-week periodized plan generator
- Plan duplication onto a new race date
- Request validation and the plan error hierarchy
"""

# Data model
from .plan_model import (
    WorkoutKind,
    TrainingDay,
    TrainingWeek,
    TrainingPlan,
    DAY_KINDS,
    WEEKDAY_NAMES,
)

# Generator
from .plan_generator import (
    PlanParams,
    PlanGenerator,
    TOTAL_WEEKS,
    PEAK_WEEK,
    round_half_up,
    calculate_weekly_mileage,
    weekly_mileage_curve,
    peak_long_run_miles,
    apply_long_run_progression,
    calculate_long_run_miles,
    allocate_daily_mileage,
    plan_start_date,
    create_marathon_plan,
)

# Duplication
from .duplication import duplicate_plan

# Validation and errors
from .validation import (
    PlanRequest,
    validate_peak_mileage,
    parse_marathon_date,
    validate_plan_name,
    validate_plan_request,
)
from .errors import (
    PlanError,
    PlanValidationError,
    PlanNotFoundError,
    PlanPermissionError,
    PlanStorageError,
)

__all__ = [
    # Model
    'WorkoutKind',
    'TrainingDay',
    'TrainingWeek',
    'TrainingPlan',
    'DAY_KINDS',
    'WEEKDAY_NAMES',
    # Generator
    'PlanParams',
    'PlanGenerator',
    'TOTAL_WEEKS',
    'PEAK_WEEK',
    'round_half_up',
    'calculate_weekly_mileage',
    'weekly_mileage_curve',
    'peak_long_run_miles',
    'apply_long_run_progression',
    'calculate_long_run_miles',
    'allocate_daily_mileage',
    'plan_start_date',
    'create_marathon_plan',
    # Duplication
    'duplicate_plan',
    # Validation
    'PlanRequest',
    'validate_peak_mileage',
    'parse_marathon_date',
    'validate_plan_name',
    'validate_plan_request',
    # Errors
    'PlanError',
    'PlanValidationError',
    'PlanNotFoundError',
    'PlanPermissionError',
    'PlanStorageError',
]

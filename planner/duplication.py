"""
Plan duplication: copy an existing plan onto a new marathon date.

Every week start and day date moves by the difference between the old and
new marathon dates. The copy gets fresh ids, belongs to the duplicating
user and starts with no progress: tracking fields are cleared and workout
links dropped so the store creates new workout rows from miles/description.
"""

from dataclasses import replace
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Callable
import uuid

from .plan_model import TrainingPlan, TrainingWeek, TrainingDay
from .validation import parse_marathon_date, validate_plan_name, validate_user_id


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def duplicate_plan(
    source: TrainingPlan,
    user_id: str,
    marathon_date: date,
    name: str,
    description: Optional[str] = None,
    goal_time: Optional[str] = None,
    id_factory: Optional[Callable[[], str]] = None,
    clock: Optional[Callable[[], datetime]] = None
) -> TrainingPlan:
    """
    Build an unsaved copy of source anchored to marathon_date.

    Args:
        source: Plan to copy (need not belong to user_id)
        user_id: Owner of the copy
        marathon_date: New race day (date, datetime or ISO string)
        name: Name of the copy, required
        description: Optional description; blank becomes None
        goal_time: Optional goal time; blank becomes None
        id_factory: Fresh id source (uuid4 if None)
        clock: Timestamp source (UTC now if None)

    Returns:
        New TrainingPlan

    Raises:
        PlanValidationError: for a blank name or user id, or a bad date
    """
    name = validate_plan_name(name)
    user_id = validate_user_id(user_id)
    marathon_date = parse_marathon_date(marathon_date)

    new_id = id_factory or (lambda: str(uuid.uuid4()))
    now = (clock or (lambda: datetime.now(timezone.utc)))()

    shift = marathon_date - source.marathon_date
    plan_id = new_id()

    weeks = tuple(
        _duplicate_week(week, plan_id, shift, new_id, now)
        for week in source.weeks
    )

    return replace(
        source,
        id=plan_id,
        user_id=user_id,
        name=name,
        description=_clean(description),
        marathon_date=marathon_date,
        goal_time=_clean(goal_time),
        weeks=weeks,
        created_at=now,
        updated_at=now,
    )


def _duplicate_week(
    week: TrainingWeek,
    plan_id: str,
    shift: timedelta,
    new_id: Callable[[], str],
    now: datetime
) -> TrainingWeek:
    week_id = new_id()
    days = tuple(
        _duplicate_day(day, week_id, shift, new_id, now)
        for day in week.training_days
    )
    return replace(
        week,
        id=week_id,
        plan_id=plan_id,
        start_date=week.start_date + shift,
        actual_mileage=None,
        notes=None,
        training_days=days,
        created_at=now,
        updated_at=now,
    )


def _duplicate_day(
    day: TrainingDay,
    week_id: str,
    shift: timedelta,
    new_id: Callable[[], str],
    now: datetime
) -> TrainingDay:
    return replace(
        day,
        id=new_id(),
        week_id=week_id,
        date=day.date + shift,
        workout_id=None,
        actual_miles=None,
        actual_notes=None,
        completed=False,
        completed_at=None,
        created_at=now,
        updated_at=now,
    )

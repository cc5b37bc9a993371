"""
Request validation for plan creation and duplication.

The generator accepts anything; these checks belong to the calling layer
(CLI, web handlers) and run before a plan is generated or saved.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union
import math

from .errors import PlanValidationError


MIN_PEAK_MILEAGE = 20
MAX_PEAK_MILEAGE = 100


@dataclass(frozen=True)
class PlanRequest:
    """Validated inputs for one plan generation."""
    marathon_date: date
    peak_weekly_mileage: float
    user_id: str


def validate_peak_mileage(value: Union[int, float, str]) -> float:
    """
    Parse and range-check a peak weekly mileage.

    Accepts numbers and numeric strings; the result must lie within
    [20, 100] miles.
    """
    if isinstance(value, bool):
        raise PlanValidationError("Peak weekly mileage must be a number", field="peak_weekly_mileage")

    try:
        mileage = float(value)
    except (TypeError, ValueError):
        raise PlanValidationError(
            f"Peak weekly mileage must be a number, got {value!r}",
            field="peak_weekly_mileage",
        ) from None

    if not math.isfinite(mileage):
        raise PlanValidationError("Peak weekly mileage must be finite", field="peak_weekly_mileage")

    if not (MIN_PEAK_MILEAGE <= mileage <= MAX_PEAK_MILEAGE):
        raise PlanValidationError(
            f"Peak weekly mileage must be between {MIN_PEAK_MILEAGE} and "
            f"{MAX_PEAK_MILEAGE}, got {mileage:g}",
            field="peak_weekly_mileage",
        )
    return mileage


def parse_marathon_date(value: Union[date, datetime, str]) -> date:
    """Accept a date, a datetime or an ISO YYYY-MM-DD string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            raise PlanValidationError(
                f"Valid marathon date is required (YYYY-MM-DD), got {value!r}",
                field="marathon_date",
            ) from None
    raise PlanValidationError("Valid marathon date is required", field="marathon_date")


def validate_plan_name(value: Optional[str]) -> str:
    """Plan names must be non-empty after stripping whitespace."""
    if not isinstance(value, str) or not value.strip():
        raise PlanValidationError("Plan name is required", field="name")
    return value.strip()


def validate_user_id(value: Optional[str]) -> str:
    if not isinstance(value, str) or not value.strip():
        raise PlanValidationError("User id is required", field="user_id")
    return value


def validate_plan_request(
    marathon_date: Union[date, datetime, str],
    peak_weekly_mileage: Union[int, float, str],
    user_id: str
) -> PlanRequest:
    """
    Validate all inputs of a plan creation request.

    Raises:
        PlanValidationError: on the first invalid field
    """
    return PlanRequest(
        marathon_date=parse_marathon_date(marathon_date),
        peak_weekly_mileage=validate_peak_mileage(peak_weekly_mileage),
        user_id=validate_user_id(user_id),
    )

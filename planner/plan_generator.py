"""
Plan Generator: 18-week periodized marathon schedule.

Given a marathon date and a target peak weekly mileage, synthesizes a
complete plan top-down (plan -> week -> day):

- Weekly mileage: linear build from 50% to 95% of peak over weeks 1-15 with
  a 3-week oscillation (rebound / hold / recovery dip), peak in week 16,
  two taper weeks (75%, 40%).
- Long run: iterative build from 40% of the peak long run, +2 mi/week early,
  +1 mi/week late, 25% step-back every 4th week, fixed 20/22 mi in week 16,
  capped taper long run.
- Daily split: 3 easy days, 2 workout days at 1.4x easy, Saturday long run,
  Sunday rest; rounding residual pushed onto the easy days.

The generator does no validation, I/O or printing. Identifiers and
timestamps come from the injected id_factory and clock so that the output
is a pure function of (marathon_date, peak_weekly_mileage, user_id).
"""

from dataclasses import dataclass, asdict
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Dict, Any, Tuple, Callable
import math
import uuid

import numpy as np

from .plan_model import (
    DAY_KINDS,
    TrainingDay,
    TrainingPlan,
    TrainingWeek,
    WorkoutKind,
)


TOTAL_WEEKS = 18
PEAK_WEEK = 16
BUILD_WEEKS = 15
PLAN_NAME = "Marathon Training Plan"


@dataclass
class PlanParams:
    """
    Tunable numeric policy of the generator.

    All fractions are expressed as decimals of the peak weekly mileage
    unless noted otherwise. The defaults reproduce the standard plan.
    """

    # ═══════════════════════════════════════════════════════════════════════════
    # WEEKLY MILEAGE BUILD (weeks 1-15)
    # ═══════════════════════════════════════════════════════════════════════════
    # base = start + ((week - 1) / 15) * range, then oscillation, then clamp

    build_start_fraction: float = 0.50     # Week 1 base
    build_range: float = 0.45              # Added linearly by week 16
    rebound_boost: float = 0.05            # Cycle position 1 (weeks 2, 5, 8, ...)
    recovery_dip: float = -0.10            # Cycle position 2 (weeks 3, 6, 9, ...)
    oscillation_cycle: int = 3
    min_build_fraction: float = 0.50
    max_build_fraction: float = 0.95

    # ═══════════════════════════════════════════════════════════════════════════
    # TAPER (weeks 17-18)
    # ═══════════════════════════════════════════════════════════════════════════

    taper_fraction: float = 0.75           # Week 17
    race_week_fraction: float = 0.40       # Week 18

    # ═══════════════════════════════════════════════════════════════════════════
    # LONG RUN
    # ═══════════════════════════════════════════════════════════════════════════

    high_mileage_threshold: float = 60     # Peak mileage at/above which the long run peaks high
    peak_long_run_high: int = 22           # Miles, week 16, peak >= threshold
    peak_long_run_low: int = 20            # Miles, week 16, peak < threshold
    starting_long_run_fraction: float = 0.40   # Of the peak long run, week 1
    early_increase: int = 2                # Miles added per week through early_build_last_week
    late_increase: int = 1                 # Miles added per week afterwards
    early_build_last_week: int = 8
    step_back_interval: int = 4            # Every 4th week steps back
    step_back_factor: float = 0.75         # 25% reduction from the previous week
    taper_long_run_fraction: float = 0.35  # Of week 17 mileage
    taper_long_run_cap: int = 14           # Hard cap in miles
    race_week_long_run_fraction: float = 0.25  # Of week 18 mileage

    # ═══════════════════════════════════════════════════════════════════════════
    # DAILY SPLIT
    # ═══════════════════════════════════════════════════════════════════════════

    workout_easy_ratio: float = 1.4        # Workout day = 1.4x easy day
    easy_days: int = 3
    workout_days: int = 2

    def to_dict(self) -> Dict[str, Any]:
        """Convert parameters to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'PlanParams':
        """Create parameters from dictionary."""
        return cls(**d)

    def validate(self) -> Tuple[bool, str]:
        """Validate parameter constraints."""
        issues = []

        if not (0 < self.min_build_fraction <= self.max_build_fraction <= 1.0):
            issues.append("Build fractions: 0 < min <= max <= 1.0")

        if not (0 < self.race_week_fraction < self.taper_fraction < 1.0):
            issues.append("Taper: 0 < race week < taper week < 1.0")

        if not (0 < self.peak_long_run_low <= self.peak_long_run_high):
            issues.append("Peak long run: 0 < low <= high")

        if not (0 < self.step_back_factor < 1.0):
            issues.append("Step-back factor must be in (0, 1)")

        if self.step_back_interval < 2:
            issues.append("Step-back interval must be at least 2")

        if self.oscillation_cycle < 1:
            issues.append("Oscillation cycle must be at least 1")

        if self.workout_easy_ratio <= 0:
            issues.append("Workout/easy ratio must be positive")

        if issues:
            return False, "; ".join(issues)
        return True, "Valid"


def round_half_up(value: float) -> int:
    """
    Round to the nearest whole number, ties toward +infinity.

    round() rounds ties to even (round(10.5) == 10); plan mileages need
    10.5 -> 11 and -0.5 -> 0.
    """
    floor = math.floor(value)
    if value - floor >= 0.5:
        return int(floor) + 1
    return int(floor)


def calculate_weekly_mileage(
    week_number: int,
    peak_weekly_mileage: float,
    params: Optional[PlanParams] = None
) -> float:
    """
    Target mileage for one week.

    Weeks 1-15 are rounded to whole miles; weeks 16-18 are returned
    unrounded (peak and taper fractions) and rounded by the caller.

    Args:
        week_number: 1-based week of the plan
        peak_weekly_mileage: Week 16 mileage
        params: PlanParams (uses defaults if None)

    Returns:
        Weekly mileage
    """
    if params is None:
        params = PlanParams()

    if week_number == PEAK_WEEK:
        return peak_weekly_mileage

    if week_number == PEAK_WEEK + 1:
        return peak_weekly_mileage * params.taper_fraction

    if week_number == PEAK_WEEK + 2:
        return peak_weekly_mileage * params.race_week_fraction

    progress = (week_number - 1) / BUILD_WEEKS
    base_progress = params.build_start_fraction + progress * params.build_range

    # Cycle closes on a recovery dip, opens with a rebound; a 1-week cycle is flat
    oscillation = 0.0
    cycle = params.oscillation_cycle
    cycle_position = (week_number - 1) % cycle
    if cycle > 1 and cycle_position == cycle - 1:
        oscillation = params.recovery_dip
    elif cycle_position == 1:
        oscillation = params.rebound_boost

    final_progress = max(
        params.min_build_fraction,
        min(params.max_build_fraction, base_progress + oscillation)
    )
    return round_half_up(peak_weekly_mileage * final_progress)


def weekly_mileage_curve(
    peak_weekly_mileage: float,
    params: Optional[PlanParams] = None
) -> np.ndarray:
    """Unrounded weekly mileage for weeks 1-18 as an array."""
    return np.array([
        calculate_weekly_mileage(week, peak_weekly_mileage, params)
        for week in range(1, TOTAL_WEEKS + 1)
    ], dtype=float)


def peak_long_run_miles(
    peak_weekly_mileage: float,
    params: Optional[PlanParams] = None
) -> int:
    """Week 16 long run: 22 mi at 60+ mi/week, 20 mi below."""
    if params is None:
        params = PlanParams()
    if peak_weekly_mileage >= params.high_mileage_threshold:
        return params.peak_long_run_high
    return params.peak_long_run_low


def apply_long_run_progression(
    week_number: int,
    peak_weekly_mileage: float,
    params: Optional[PlanParams] = None
) -> int:
    """
    Long run for a build week (1-15).

    Walks the progression from week 2 up to week_number every call:
    step back 25% on every 4th week, otherwise add 2 mi (through week 8)
    or 1 mi (afterwards) without exceeding the peak long run.
    """
    if params is None:
        params = PlanParams()

    peak_long_run = peak_long_run_miles(peak_weekly_mileage, params)
    current = round_half_up(peak_long_run * params.starting_long_run_fraction)

    for week in range(2, week_number + 1):
        if week % params.step_back_interval == 0:
            current = round_half_up(current * params.step_back_factor)
        else:
            if week <= params.early_build_last_week:
                increase = params.early_increase
            else:
                increase = params.late_increase
            current = min(current + increase, peak_long_run)

    return current


def calculate_long_run_miles(
    week_number: int,
    peak_weekly_mileage: float,
    params: Optional[PlanParams] = None
) -> float:
    """
    Saturday long run for any week of the plan.

    Args:
        week_number: 1-based week of the plan
        peak_weekly_mileage: Week 16 mileage
        params: PlanParams (uses defaults if None)

    Returns:
        Long run distance in miles
    """
    if params is None:
        params = PlanParams()

    if week_number == PEAK_WEEK:
        return peak_long_run_miles(peak_weekly_mileage, params)

    weekly_mileage = calculate_weekly_mileage(week_number, peak_weekly_mileage, params)

    if week_number == PEAK_WEEK + 1:
        taper_long_run = round_half_up(weekly_mileage * params.taper_long_run_fraction)
        return min(taper_long_run, params.taper_long_run_cap)

    if week_number == PEAK_WEEK + 2:
        return round_half_up(weekly_mileage * params.race_week_long_run_fraction)

    return apply_long_run_progression(week_number, peak_weekly_mileage, params)


def allocate_daily_mileage(
    weekly_mileage: float,
    long_run_miles: float,
    params: Optional[PlanParams] = None
) -> Dict[int, int]:
    """
    Split a week's mileage across the seven days.

    Pattern: Easy, Workout, Easy, Workout, Easy, Long, Rest. Solves
    3E + 2(1.4E) = weekly - long for E, rounds, then moves the rounding
    residual onto the easy days so workout days keep their intensity.

    Args:
        weekly_mileage: Unrounded weekly target
        long_run_miles: Saturday distance

    Returns:
        Mapping of day_of_week (1 = Monday) to whole miles
    """
    if params is None:
        params = PlanParams()

    remaining = weekly_mileage - long_run_miles
    divisor = params.easy_days + params.workout_days * params.workout_easy_ratio

    easy_raw = remaining / divisor
    workout_raw = params.workout_easy_ratio * easy_raw

    easy = round_half_up(easy_raw)
    workout = round_half_up(workout_raw)
    long_run = round_half_up(long_run_miles)

    calculated_total = params.easy_days * easy + params.workout_days * workout + long_run
    difference = round_half_up(weekly_mileage) - calculated_total

    if difference != 0:
        easy += round_half_up(difference / params.easy_days)

    miles = {}
    for day_of_week, kind in DAY_KINDS.items():
        if kind is WorkoutKind.EASY:
            miles[day_of_week] = easy
        elif kind is WorkoutKind.WORKOUT:
            miles[day_of_week] = workout
        elif kind is WorkoutKind.LONG:
            miles[day_of_week] = long_run
        else:
            miles[day_of_week] = 0
    return miles


def plan_start_date(marathon_date: date) -> date:
    """First Monday-slot of the plan; race day closes week 18."""
    return marathon_date - timedelta(days=TOTAL_WEEKS * 7 - 1)


def _new_id() -> str:
    return str(uuid.uuid4())


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PlanGenerator:
    """
    Builds complete marathon plans.

    The id factory and clock are the only sources of non-determinism;
    pass fixed ones to get reproducible output in tests.
    """

    def __init__(
        self,
        params: Optional[PlanParams] = None,
        id_factory: Optional[Callable[[], str]] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize the generator.

        Args:
            params: Numeric policy (uses defaults if None)
            id_factory: Returns a fresh unique id per call (uuid4 if None)
            clock: Returns the creation timestamp (UTC now if None)
        """
        self.params = params or PlanParams()
        self.id_factory = id_factory or _new_id
        self.clock = clock or _utc_now

    def create_marathon_plan(
        self,
        marathon_date: date,
        peak_weekly_mileage: float,
        user_id: str
    ) -> TrainingPlan:
        """
        Generate the full 18-week plan ending on marathon_date.

        No input checks are made: callers validate mileage and dates first.

        Args:
            marathon_date: Race day (a datetime is reduced to its date)
            peak_weekly_mileage: Week 16 mileage
            user_id: Owner of the plan, stored as given

        Returns:
            TrainingPlan with 18 weeks of 7 days
        """
        if isinstance(marathon_date, datetime):
            marathon_date = marathon_date.date()

        now = self.clock()
        plan_id = self.id_factory()
        start = plan_start_date(marathon_date)

        weeks = tuple(
            self._generate_week(
                week_number,
                start + timedelta(days=(week_number - 1) * 7),
                peak_weekly_mileage,
                plan_id,
                now,
            )
            for week_number in range(1, TOTAL_WEEKS + 1)
        )

        return TrainingPlan(
            id=plan_id,
            user_id=user_id,
            name=PLAN_NAME,
            description=(
                f"{TOTAL_WEEKS}-week marathon training plan ending on "
                f"{marathon_date:%a %b %d %Y}"
            ),
            marathon_date=marathon_date,
            goal_time=None,
            total_weeks=TOTAL_WEEKS,
            weeks=weeks,
            created_at=now,
            updated_at=now,
        )

    def _generate_week(
        self,
        week_number: int,
        start_date: date,
        peak_weekly_mileage: float,
        plan_id: str,
        now: datetime
    ) -> TrainingWeek:
        weekly_mileage = calculate_weekly_mileage(week_number, peak_weekly_mileage, self.params)
        long_run = calculate_long_run_miles(week_number, peak_weekly_mileage, self.params)
        day_miles = allocate_daily_mileage(weekly_mileage, long_run, self.params)

        week_id = self.id_factory()
        days = tuple(
            TrainingDay(
                id=self.id_factory(),
                week_id=week_id,
                day_of_week=day_of_week,
                date=start_date + timedelta(days=day_of_week - 1),
                miles=day_miles[day_of_week],
                description=kind.value,
                created_at=now,
                updated_at=now,
            )
            for day_of_week, kind in DAY_KINDS.items()
        )

        return TrainingWeek(
            id=week_id,
            plan_id=plan_id,
            week_number=week_number,
            start_date=start_date,
            target_mileage=round_half_up(weekly_mileage),
            training_days=days,
            created_at=now,
            updated_at=now,
        )


def create_marathon_plan(
    marathon_date: date,
    peak_weekly_mileage: float,
    user_id: str,
    params: Optional[PlanParams] = None
) -> TrainingPlan:
    """Generate a plan with fresh uuid4 ids and the current UTC time."""
    return PlanGenerator(params).create_marathon_plan(
        marathon_date, peak_weekly_mileage, user_id
    )

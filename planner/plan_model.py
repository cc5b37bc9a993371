"""
Plan Model: Immutable plan -> week -> day tree.

A marathon plan is produced in one pass by the generator and handed to a
plan store as a whole. Nothing here is mutated after creation; derived
copies (duplication, saved copies with workout links) are built with
dataclasses.replace().

Serialized form (to_dict) uses the camelCase keys of the web API:
    plan  -> id, userId, name, description, marathonDate, goalTime,
             totalWeeks, createdAt, updatedAt, weeks
    week  -> id, planId, weekNumber, startDate, targetMileage,
             actualMileage, notes, createdAt, updatedAt, trainingDays
    day   -> id, weekId, dayOfWeek, date, miles, description, workoutId,
             actualMiles, actualNotes, completed, completedAt,
             createdAt, updatedAt
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Optional, Dict, Any, Tuple


class WorkoutKind(Enum):
    """Fixed workout labels assigned to the days of every week."""
    EASY = "Easy Run"
    WORKOUT = "Workout"
    LONG = "Long Run"
    REST = "Rest"


WEEKDAY_NAMES = (
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday",
)

# day_of_week (1 = Monday) -> label
DAY_KINDS: Dict[int, WorkoutKind] = {
    1: WorkoutKind.EASY,
    2: WorkoutKind.WORKOUT,
    3: WorkoutKind.EASY,
    4: WorkoutKind.WORKOUT,
    5: WorkoutKind.EASY,
    6: WorkoutKind.LONG,
    7: WorkoutKind.REST,
}


def _iso(value):
    if value is None:
        return None
    return value.isoformat()


@dataclass(frozen=True)
class TrainingDay:
    """One planned day of a training week."""
    id: str
    week_id: str
    day_of_week: int              # 1 = Monday .. 7 = Sunday
    date: date
    miles: float
    description: str

    # Tracking fields, only populated by logging features
    workout_id: Optional[str] = None
    actual_miles: Optional[float] = None
    actual_notes: Optional[str] = None
    completed: bool = False
    completed_at: Optional[datetime] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def weekday_name(self) -> str:
        return WEEKDAY_NAMES[self.day_of_week - 1]

    @property
    def is_workout(self) -> bool:
        """True for the quality days (Tuesday/Thursday)."""
        return self.description == WorkoutKind.WORKOUT.value

    @property
    def is_rest(self) -> bool:
        return self.description == WorkoutKind.REST.value

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'id': self.id,
            'weekId': self.week_id,
            'dayOfWeek': self.day_of_week,
            'date': _iso(self.date),
            'miles': self.miles,
            'description': self.description,
            'workoutId': self.workout_id,
            'actualMiles': self.actual_miles,
            'actualNotes': self.actual_notes,
            'completed': self.completed,
            'completedAt': _iso(self.completed_at),
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at),
        }


@dataclass(frozen=True)
class TrainingWeek:
    """
    One week of the plan.

    target_mileage is the rounded weekly target; the days sum to it within
    the rounding tolerance of the daily allocation (normally +/- 1 mile).
    """
    id: str
    plan_id: str
    week_number: int
    start_date: date
    target_mileage: float
    training_days: Tuple[TrainingDay, ...] = ()

    actual_mileage: Optional[float] = None
    notes: Optional[str] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def end_date(self) -> date:
        return self.start_date + timedelta(days=6)

    @property
    def total_miles(self) -> float:
        """Planned miles summed over the seven days."""
        return sum(d.miles for d in self.training_days)

    @property
    def long_run(self) -> float:
        """Saturday long run distance."""
        return self.day(6).miles

    @property
    def workout_miles(self) -> float:
        return sum(d.miles for d in self.training_days if d.is_workout)

    def day(self, day_of_week: int) -> TrainingDay:
        """Get the training day for day_of_week (1 = Monday)."""
        for training_day in self.training_days:
            if training_day.day_of_week == day_of_week:
                return training_day
        raise KeyError(f"Week {self.week_number} has no day {day_of_week}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'id': self.id,
            'planId': self.plan_id,
            'weekNumber': self.week_number,
            'startDate': _iso(self.start_date),
            'targetMileage': self.target_mileage,
            'actualMileage': self.actual_mileage,
            'notes': self.notes,
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at),
            'trainingDays': [d.to_dict() for d in self.training_days],
        }


@dataclass(frozen=True)
class TrainingPlan:
    """
    Complete marathon plan.

    Owns its weeks, which own their days. The last day of the last week is
    race day: weeks[-1].start_date + 6 days == marathon_date.
    """
    id: str
    user_id: str
    name: str
    description: Optional[str]
    marathon_date: date
    total_weeks: int
    weeks: Tuple[TrainingWeek, ...] = ()
    goal_time: Optional[str] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def start_date(self) -> date:
        return self.weeks[0].start_date

    @property
    def total_miles(self) -> float:
        return sum(w.total_miles for w in self.weeks)

    def week(self, week_number: int) -> TrainingWeek:
        """Get a week by its 1-based number."""
        for training_week in self.weeks:
            if training_week.week_number == week_number:
                return training_week
        raise KeyError(f"Plan has no week {week_number}")

    def iter_days(self):
        """Yield (week, day) pairs in calendar order."""
        for training_week in self.weeks:
            for training_day in training_week.training_days:
                yield training_week, training_day

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'id': self.id,
            'userId': self.user_id,
            'name': self.name,
            'description': self.description,
            'marathonDate': _iso(self.marathon_date),
            'goalTime': self.goal_time,
            'totalWeeks': self.total_weeks,
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at),
            'weeks': [w.to_dict() for w in self.weeks],
        }

"""
Plan store interface.

A store accepts a complete generated plan and writes the whole tree
(plan, weeks, days, workouts) atomically: either everything is saved or
nothing is. Workout rows are shared: one per distinct
(miles, description, is_workout) among days with non-zero miles.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Dict, Any, List, Tuple

from planner.errors import PlanNotFoundError, PlanPermissionError
from planner.plan_model import TrainingDay, TrainingPlan


@dataclass(frozen=True)
class Workout:
    """Reusable workout definition linked from training days."""
    id: str
    miles: float
    description: str
    is_workout: bool
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'id': self.id,
            'miles': self.miles,
            'description': self.description,
            'isWorkout': self.is_workout,
        }


@dataclass(frozen=True)
class SavedPlanSummary:
    """Plan row as returned by save_plan and list_plans."""
    id: str
    user_id: str
    name: str
    description: Optional[str]
    marathon_date: date
    goal_time: Optional[str]
    total_weeks: int
    created_at: Optional[datetime] = None

    @classmethod
    def from_plan(cls, plan: TrainingPlan) -> 'SavedPlanSummary':
        return cls(
            id=plan.id,
            user_id=plan.user_id,
            name=plan.name,
            description=plan.description,
            marathon_date=plan.marathon_date,
            goal_time=plan.goal_time,
            total_weeks=plan.total_weeks,
            created_at=plan.created_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'id': self.id,
            'userId': self.user_id,
            'name': self.name,
            'description': self.description,
            'marathonDate': self.marathon_date.isoformat(),
            'goalTime': self.goal_time,
            'totalWeeks': self.total_weeks,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }


def workout_key(day: TrainingDay) -> Optional[Tuple[float, str, bool]]:
    """Workout identity for a day, or None when the day has no mileage."""
    if not day.miles:
        return None
    return (float(day.miles), day.description, day.is_workout)


class PlanStore(ABC):
    """Persistence and retrieval of complete plans."""

    @abstractmethod
    def save_plan(self, plan: TrainingPlan) -> SavedPlanSummary:
        """Write the whole plan tree in one atomic operation."""

    @abstractmethod
    def get_full_plan(self, plan_id: str) -> Optional[TrainingPlan]:
        """Read a plan with weeks and days in order, or None."""

    @abstractmethod
    def list_plans(self, user_id: str) -> List[SavedPlanSummary]:
        """Plans owned by user_id, newest first."""

    @abstractmethod
    def delete_plan(self, plan_id: str, user_id: str) -> None:
        """Delete a plan owned by user_id with its weeks and days."""

    @abstractmethod
    def get_workout(self, workout_id: str) -> Optional[Workout]:
        """Read one workout row."""

    def get_owned_plan(self, plan_id: str, user_id: str) -> TrainingPlan:
        """
        Read a plan and check ownership.

        Raises:
            PlanNotFoundError: no such plan
            PlanPermissionError: plan belongs to someone else
        """
        plan = self.get_full_plan(plan_id)
        if plan is None:
            raise PlanNotFoundError(plan_id)
        if plan.user_id != user_id:
            raise PlanPermissionError(plan_id, user_id)
        return plan

    def list_full_plans(self, user_id: str) -> List[TrainingPlan]:
        """Full plan trees owned by user_id, newest first."""
        plans = []
        for summary in self.list_plans(user_id):
            plan = self.get_full_plan(summary.id)
            if plan is not None:
                plans.append(plan)
        return plans

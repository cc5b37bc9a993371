"""
In-memory plan store.

Keeps saved plans, with their workout links filled in, in dictionaries.
A save is staged completely before anything is committed. Reads and commits
share one re-entrant lock, so a failed save leaves the store unchanged and a
delete sees the same plan it checked ownership on.
"""

from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional, Dict, List, Tuple, Callable
import itertools
import threading
import uuid

from planner.errors import PlanStorageError
from planner.plan_model import TrainingPlan

from .base import PlanStore, SavedPlanSummary, Workout, workout_key


class InMemoryPlanStore(PlanStore):
    """Dictionary-backed PlanStore for tests, scripts and the CLI."""

    def __init__(
        self,
        id_factory: Optional[Callable[[], str]] = None,
        verbose: bool = False
    ):
        """
        Initialize an empty store.

        Args:
            id_factory: Id source for workout rows (uuid4 if None)
            verbose: Print a line for every save and delete
        """
        self.id_factory = id_factory or (lambda: str(uuid.uuid4()))
        self.verbose = verbose

        self._lock = threading.RLock()
        self._plans: Dict[str, TrainingPlan] = {}
        self._order: Dict[str, int] = {}
        self._workouts: Dict[str, Workout] = {}
        self._workout_index: Dict[Tuple[float, str, bool], str] = {}
        self._row_ids: set = set()
        self._sequence = itertools.count()

    def save_plan(self, plan: TrainingPlan) -> SavedPlanSummary:
        with self._lock:
            row_ids = self._collect_row_ids(plan)
            new_workouts: Dict[Tuple[float, str, bool], Workout] = {}

            weeks = []
            for week in plan.weeks:
                days = []
                for day in week.training_days:
                    key = workout_key(day)
                    if key is None:
                        days.append(replace(day, workout_id=None))
                        continue
                    workout_id = self._workout_index.get(key)
                    if workout_id is None:
                        if key not in new_workouts:
                            new_workouts[key] = Workout(
                                id=self.id_factory(),
                                miles=key[0],
                                description=key[1],
                                is_workout=key[2],
                                created_at=datetime.now(timezone.utc),
                            )
                        workout_id = new_workouts[key].id
                    days.append(replace(day, workout_id=workout_id))
                weeks.append(replace(week, training_days=tuple(days)))

            saved = replace(plan, weeks=tuple(weeks))

            # Commit
            self._plans[plan.id] = saved
            self._order[plan.id] = next(self._sequence)
            self._row_ids.update(row_ids)
            for key, workout in new_workouts.items():
                self._workouts[workout.id] = workout
                self._workout_index[key] = workout.id

        if self.verbose:
            print(f"Saved plan {plan.id} for {plan.user_id}: "
                  f"{len(plan.weeks)} weeks, {len(new_workouts)} new workouts")

        return SavedPlanSummary.from_plan(saved)

    def _collect_row_ids(self, plan: TrainingPlan) -> set:
        """All ids the plan would insert; fails on any collision."""
        ids = [plan.id]
        for week in plan.weeks:
            ids.append(week.id)
            ids.extend(day.id for day in week.training_days)

        unique = set(ids)
        if len(unique) != len(ids):
            raise PlanStorageError(f"Plan {plan.id} contains duplicate row ids")

        if plan.id in self._plans:
            raise PlanStorageError(f"Plan {plan.id} already exists")

        clashes = unique & self._row_ids
        if clashes:
            raise PlanStorageError(
                f"Plan {plan.id} reuses {len(clashes)} existing row id(s)"
            )
        return unique

    def get_full_plan(self, plan_id: str) -> Optional[TrainingPlan]:
        with self._lock:
            plan = self._plans.get(plan_id)
        if plan is None:
            return None
        weeks = sorted(plan.weeks, key=lambda w: w.week_number)
        return replace(plan, weeks=tuple(
            replace(w, training_days=tuple(
                sorted(w.training_days, key=lambda d: d.day_of_week)
            ))
            for w in weeks
        ))

    def list_plans(self, user_id: str) -> List[SavedPlanSummary]:
        with self._lock:
            owned = [p for p in self._plans.values() if p.user_id == user_id]
            owned.sort(key=lambda p: self._order[p.id], reverse=True)
        return [SavedPlanSummary.from_plan(p) for p in owned]

    def delete_plan(self, plan_id: str, user_id: str) -> None:
        with self._lock:
            # Re-entrant: the ownership check reads through get_full_plan
            plan = self.get_owned_plan(plan_id, user_id)
            self._row_ids.discard(plan.id)
            for week in plan.weeks:
                self._row_ids.discard(week.id)
                for day in week.training_days:
                    self._row_ids.discard(day.id)
            del self._plans[plan_id]
            del self._order[plan_id]

        if self.verbose:
            print(f"Deleted plan {plan_id}")

    def get_workout(self, workout_id: str) -> Optional[Workout]:
        with self._lock:
            return self._workouts.get(workout_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._plans)

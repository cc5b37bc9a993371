"""Plan persistence: store interface, in-memory and SQLAlchemy stores."""

from .base import PlanStore, SavedPlanSummary, Workout, workout_key
from .memory import InMemoryPlanStore
from .sql import SqlPlanStore

__all__ = [
    'PlanStore',
    'SavedPlanSummary',
    'Workout',
    'workout_key',
    'InMemoryPlanStore',
    'SqlPlanStore',
]

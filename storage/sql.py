"""
Relational plan store built on SQLAlchemy.

Tables:
    training_plan  -> one row per plan
    training_week  -> 18 rows per plan, cascade-deleted with the plan
    training_day   -> 7 rows per week, cascade-deleted with the week
    workout        -> shared (miles, description, is_workout) definitions

Each save runs in a single transaction; any failure rolls the whole plan
back and surfaces as PlanStorageError.
"""

from datetime import datetime, timezone
from typing import Optional, Dict, List, Tuple, Callable
import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    create_engine,
    select,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, relationship, sessionmaker
from sqlalchemy.pool import StaticPool

from planner.errors import PlanStorageError
from planner.plan_model import TrainingDay, TrainingPlan, TrainingWeek

from .base import PlanStore, SavedPlanSummary, Workout, workout_key


Base = declarative_base()


class TrainingPlanRow(Base):
    __tablename__ = "training_plan"
    __table_args__ = (
        CheckConstraint("total_weeks > 0 AND total_weeks <= 52", name="total_weeks_check"),
    )

    id = Column(String(36), primary_key=True)
    user_id = Column(String(255), nullable=False, index=True)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    marathon_date = Column(Date, nullable=False)
    goal_time = Column(Text, nullable=True)
    total_weeks = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    weeks = relationship(
        "TrainingWeekRow",
        back_populates="plan",
        cascade="all, delete-orphan",
        order_by="TrainingWeekRow.week_number",
        lazy="selectin",
    )


class TrainingWeekRow(Base):
    __tablename__ = "training_week"
    __table_args__ = (
        CheckConstraint("week_number > 0", name="week_number_check"),
        CheckConstraint("target_mileage >= 0", name="target_mileage_check"),
        UniqueConstraint("plan_id", "week_number", name="uq_week_per_plan"),
    )

    id = Column(String(36), primary_key=True)
    plan_id = Column(String(36), ForeignKey("training_plan.id", ondelete="CASCADE"), nullable=False, index=True)
    week_number = Column(Integer, nullable=False)
    start_date = Column(Date, nullable=False)
    target_mileage = Column(Float, nullable=False)
    actual_mileage = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    plan = relationship("TrainingPlanRow", back_populates="weeks")
    days = relationship(
        "TrainingDayRow",
        back_populates="week",
        cascade="all, delete-orphan",
        order_by="TrainingDayRow.day_of_week",
        lazy="selectin",
    )


class WorkoutRow(Base):
    __tablename__ = "workout"
    __table_args__ = (
        UniqueConstraint("miles", "description", "is_workout", name="uq_workout_definition"),
    )

    id = Column(String(36), primary_key=True)
    miles = Column(Float, nullable=False)
    description = Column(Text, nullable=False)
    is_workout = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=True)


class TrainingDayRow(Base):
    __tablename__ = "training_day"
    __table_args__ = (
        CheckConstraint("day_of_week >= 1 AND day_of_week <= 7", name="day_of_week_check"),
        UniqueConstraint("week_id", "day_of_week", name="uq_day_per_week"),
    )

    id = Column(String(36), primary_key=True)
    week_id = Column(String(36), ForeignKey("training_week.id", ondelete="CASCADE"), nullable=False, index=True)
    day_of_week = Column(Integer, nullable=False)
    date = Column(Date, nullable=False)
    # Planned values are kept on the day as well as on the linked workout
    miles = Column(Float, nullable=False)
    description = Column(Text, nullable=False)
    workout_id = Column(String(36), ForeignKey("workout.id"), nullable=True)
    actual_miles = Column(Float, nullable=True)
    actual_notes = Column(Text, nullable=True)
    completed = Column(Boolean, default=False, nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    week = relationship("TrainingWeekRow", back_populates="days")
    workout = relationship("WorkoutRow")


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; timestamps are always stored in UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc)
    return value


def _plan_from_row(row: TrainingPlanRow) -> TrainingPlan:
    weeks = tuple(
        TrainingWeek(
            id=w.id,
            plan_id=w.plan_id,
            week_number=w.week_number,
            start_date=w.start_date,
            target_mileage=w.target_mileage,
            actual_mileage=w.actual_mileage,
            notes=w.notes,
            created_at=_as_utc(w.created_at),
            updated_at=_as_utc(w.updated_at),
            training_days=tuple(
                TrainingDay(
                    id=d.id,
                    week_id=d.week_id,
                    day_of_week=d.day_of_week,
                    date=d.date,
                    miles=d.miles,
                    description=d.description,
                    workout_id=d.workout_id,
                    actual_miles=d.actual_miles,
                    actual_notes=d.actual_notes,
                    completed=d.completed,
                    completed_at=_as_utc(d.completed_at),
                    created_at=_as_utc(d.created_at),
                    updated_at=_as_utc(d.updated_at),
                )
                for d in w.days
            ),
        )
        for w in row.weeks
    )
    return TrainingPlan(
        id=row.id,
        user_id=row.user_id,
        name=row.name,
        description=row.description,
        marathon_date=row.marathon_date,
        goal_time=row.goal_time,
        total_weeks=row.total_weeks,
        weeks=weeks,
        created_at=_as_utc(row.created_at),
        updated_at=_as_utc(row.updated_at),
    )


def _summary_from_row(row: TrainingPlanRow) -> SavedPlanSummary:
    return SavedPlanSummary(
        id=row.id,
        user_id=row.user_id,
        name=row.name,
        description=row.description,
        marathon_date=row.marathon_date,
        goal_time=row.goal_time,
        total_weeks=row.total_weeks,
        created_at=_as_utc(row.created_at),
    )


class SqlPlanStore(PlanStore):
    """
    PlanStore backed by any SQLAlchemy database.

    The default URL is a private in-memory SQLite database shared by all
    sessions of this store.
    """

    def __init__(
        self,
        url: str = "sqlite://",
        echo: bool = False,
        id_factory: Optional[Callable[[], str]] = None,
        verbose: bool = False
    ):
        """
        Connect and create the tables if needed.

        Args:
            url: SQLAlchemy database URL
            echo: Log SQL statements
            id_factory: Id source for workout rows (uuid4 if None)
            verbose: Print a line for every save and delete
        """
        engine_kwargs = {'echo': echo}
        if url in ("sqlite://", "sqlite:///:memory:"):
            engine_kwargs['poolclass'] = StaticPool
            engine_kwargs['connect_args'] = {'check_same_thread': False}

        self.engine = create_engine(url, **engine_kwargs)
        self.SessionLocal = sessionmaker(
            bind=self.engine,
            autoflush=False,
            expire_on_commit=False,
        )
        self.id_factory = id_factory or (lambda: str(uuid.uuid4()))
        self.verbose = verbose

        Base.metadata.create_all(self.engine)

    def save_plan(self, plan: TrainingPlan) -> SavedPlanSummary:
        new_workouts = 0
        try:
            with self.SessionLocal.begin() as session:
                workouts: Dict[Tuple[float, str, bool], WorkoutRow] = {}

                plan_row = TrainingPlanRow(
                    id=plan.id,
                    user_id=plan.user_id,
                    name=plan.name,
                    description=plan.description,
                    marathon_date=plan.marathon_date,
                    goal_time=plan.goal_time,
                    total_weeks=plan.total_weeks,
                    created_at=_to_utc(plan.created_at),
                    updated_at=_to_utc(plan.updated_at),
                )

                for week in plan.weeks:
                    week_row = TrainingWeekRow(
                        id=week.id,
                        week_number=week.week_number,
                        start_date=week.start_date,
                        target_mileage=week.target_mileage,
                        actual_mileage=week.actual_mileage,
                        notes=week.notes,
                        created_at=_to_utc(week.created_at),
                        updated_at=_to_utc(week.updated_at),
                    )
                    for day in week.training_days:
                        workout_row = None
                        key = workout_key(day)
                        if key is not None:
                            workout_row = workouts.get(key)
                            if workout_row is None:
                                workout_row = session.execute(
                                    select(WorkoutRow).where(
                                        WorkoutRow.miles == key[0],
                                        WorkoutRow.description == key[1],
                                        WorkoutRow.is_workout == key[2],
                                    )
                                ).scalar_one_or_none()
                            if workout_row is None:
                                workout_row = WorkoutRow(
                                    id=self.id_factory(),
                                    miles=key[0],
                                    description=key[1],
                                    is_workout=key[2],
                                    created_at=datetime.now(timezone.utc),
                                )
                                session.add(workout_row)
                                new_workouts += 1
                            workouts[key] = workout_row

                        week_row.days.append(TrainingDayRow(
                            id=day.id,
                            day_of_week=day.day_of_week,
                            date=day.date,
                            miles=day.miles,
                            description=day.description,
                            workout=workout_row,
                            actual_miles=day.actual_miles,
                            actual_notes=day.actual_notes,
                            completed=day.completed,
                            completed_at=_to_utc(day.completed_at),
                            created_at=_to_utc(day.created_at),
                            updated_at=_to_utc(day.updated_at),
                        ))
                    plan_row.weeks.append(week_row)

                session.add(plan_row)
                session.flush()
                summary = _summary_from_row(plan_row)
        except SQLAlchemyError as exc:
            raise PlanStorageError(f"Failed to save training plan {plan.id}: {exc}") from exc

        if self.verbose:
            print(f"Saved plan {plan.id} for {plan.user_id}: "
                  f"{len(plan.weeks)} weeks, {new_workouts} new workouts")

        return summary

    def get_full_plan(self, plan_id: str) -> Optional[TrainingPlan]:
        try:
            with self.SessionLocal() as session:
                row = session.get(TrainingPlanRow, plan_id)
                if row is None:
                    return None
                return _plan_from_row(row)
        except SQLAlchemyError as exc:
            raise PlanStorageError(f"Failed to fetch training plan {plan_id}: {exc}") from exc

    def list_plans(self, user_id: str) -> List[SavedPlanSummary]:
        try:
            with self.SessionLocal() as session:
                rows = session.execute(
                    select(TrainingPlanRow)
                    .where(TrainingPlanRow.user_id == user_id)
                    .order_by(TrainingPlanRow.created_at.desc())
                ).scalars().all()
                return [_summary_from_row(r) for r in rows]
        except SQLAlchemyError as exc:
            raise PlanStorageError(f"Failed to list training plans: {exc}") from exc

    def delete_plan(self, plan_id: str, user_id: str) -> None:
        self.get_owned_plan(plan_id, user_id)
        try:
            with self.SessionLocal.begin() as session:
                row = session.get(TrainingPlanRow, plan_id)
                if row is not None:
                    session.delete(row)
        except SQLAlchemyError as exc:
            raise PlanStorageError(f"Failed to delete training plan {plan_id}: {exc}") from exc

        if self.verbose:
            print(f"Deleted plan {plan_id}")

    def get_workout(self, workout_id: str) -> Optional[Workout]:
        try:
            with self.SessionLocal() as session:
                row = session.get(WorkoutRow, workout_id)
                if row is None:
                    return None
                return Workout(
                    id=row.id,
                    miles=row.miles,
                    description=row.description,
                    is_workout=row.is_workout,
                    created_at=_as_utc(row.created_at),
                )
        except SQLAlchemyError as exc:
            raise PlanStorageError(f"Failed to fetch workout {workout_id}: {exc}") from exc

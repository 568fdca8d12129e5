"""
Local exercise store used by catalog sync: upsert keyed by catalog id, never touching custom rows.
Each upsert runs in its own transaction so UI reads never see a half-written row.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gym_companion.models.exercise import Exercise
from gym_companion.schemas.exercise import LocalExercise

logger = logging.getLogger(__name__)

# Columns refreshed when a catalog row is synced again; id, remote_id and created_at stay put
_SYNCED_COLUMNS = (
    "name",
    "description",
    "muscle_group",
    "target_muscles",
    "difficulty",
    "equipment_needed",
    "exercise_type",
    "instructions_steps",
    "common_mistakes",
    "safety_tips",
    "illustration_path",
    "illustration_path2",
    "video_path",
    "beginner_variation",
    "advanced_variation",
)


class ExerciseStoreError(Exception):
    """Store could not complete a read or write."""


class UpsertOutcome(str, Enum):
    INSERTED = "inserted"
    UPDATED = "updated"
    SKIPPED_CUSTOM = "skipped_custom"


@dataclass(frozen=True)
class UpsertResult:
    local_id: int
    outcome: UpsertOutcome


@runtime_checkable
class ExerciseStore(Protocol):
    """Capabilities the sync pipeline needs from local storage."""

    async def upsert_by_remote_id(self, record: LocalExercise) -> UpsertResult:
        ...

    async def exists_by_remote_id(self, remote_id: str) -> bool:
        ...

    async def is_custom(self, local_id: int) -> bool:
        ...

    async def count(self) -> int:
        ...


def _column_values(record: LocalExercise) -> dict:
    values = record.model_dump(include=set(_SYNCED_COLUMNS))
    for key in ("muscle_group", "difficulty", "exercise_type"):
        values[key] = getattr(record, key).value
    return values


def to_local(row: Exercise) -> LocalExercise:
    return LocalExercise(
        id=row.id,
        remote_id=row.remote_id,
        name=row.name,
        description=row.description,
        muscle_group=row.muscle_group,
        target_muscles=row.target_muscles,
        difficulty=row.difficulty,
        equipment_needed=row.equipment_needed,
        exercise_type=row.exercise_type,
        instructions_steps=row.instructions_steps,
        common_mistakes=row.common_mistakes,
        safety_tips=row.safety_tips,
        illustration_path=row.illustration_path,
        illustration_path2=row.illustration_path2,
        video_path=row.video_path,
        beginner_variation=row.beginner_variation,
        advanced_variation=row.advanced_variation,
        is_custom=row.is_custom,
        created_at=row.created_at,
    )


class SqlAlchemyExerciseStore:
    """ExerciseStore over the exercises table."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession] | None = None):
        if session_maker is None:
            from gym_companion.db.session import async_session_maker

            session_maker = async_session_maker
        self._session_maker = session_maker

    async def upsert_by_remote_id(self, record: LocalExercise) -> UpsertResult:
        if not record.remote_id:
            raise ValueError("Catalog upsert requires remote_id")
        try:
            async with self._session_maker() as session:
                r = await session.execute(select(Exercise).where(Exercise.remote_id == record.remote_id))
                row = r.scalar_one_or_none()
                if row is not None and row.is_custom:
                    logger.debug("Skip custom exercise id=%s remote_id=%s", row.id, record.remote_id)
                    return UpsertResult(row.id, UpsertOutcome.SKIPPED_CUSTOM)
                values = _column_values(record)
                if row is not None:
                    for key, value in values.items():
                        setattr(row, key, value)
                    outcome = UpsertOutcome.UPDATED
                else:
                    row = Exercise(
                        remote_id=record.remote_id,
                        is_custom=False,
                        created_at=record.created_at,
                        **values,
                    )
                    session.add(row)
                    outcome = UpsertOutcome.INSERTED
                await session.commit()
                return UpsertResult(row.id, outcome)
        except SQLAlchemyError as e:
            raise ExerciseStoreError(f"Upsert failed for remote_id={record.remote_id}: {e.__class__.__name__}") from e

    async def exists_by_remote_id(self, remote_id: str) -> bool:
        try:
            async with self._session_maker() as session:
                r = await session.execute(select(Exercise.id).where(Exercise.remote_id == remote_id))
                return r.scalar_one_or_none() is not None
        except SQLAlchemyError as e:
            raise ExerciseStoreError("exists_by_remote_id failed") from e

    async def is_custom(self, local_id: int) -> bool:
        try:
            async with self._session_maker() as session:
                r = await session.execute(select(Exercise.is_custom).where(Exercise.id == local_id))
                return bool(r.scalar_one_or_none())
        except SQLAlchemyError as e:
            raise ExerciseStoreError("is_custom failed") from e

    async def count(self) -> int:
        try:
            async with self._session_maker() as session:
                r = await session.execute(select(func.count()).select_from(Exercise))
                return int(r.scalar_one())
        except SQLAlchemyError as e:
            raise ExerciseStoreError("count failed") from e

    async def get_by_remote_id(self, remote_id: str) -> LocalExercise | None:
        try:
            async with self._session_maker() as session:
                r = await session.execute(select(Exercise).where(Exercise.remote_id == remote_id))
                row = r.scalar_one_or_none()
                return to_local(row) if row is not None else None
        except SQLAlchemyError as e:
            raise ExerciseStoreError("get_by_remote_id failed") from e

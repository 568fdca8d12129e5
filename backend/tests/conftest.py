"""Shared fixtures: in-memory SQLite store, fake catalog, manual background executor."""

import asyncio

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import gym_companion.models  # noqa: F401  register tables
from gym_companion.db.base import Base
from gym_companion.schemas.exercise_db import CatalogPage, RemoteExercise
from gym_companion.services.background import WorkContext, WorkInfo, WorkState
from gym_companion.services.exercise_store import SqlAlchemyExerciseStore


def make_remote(n: int, **overrides) -> RemoteExercise:
    """Catalog record with id "%04d" % n; keyword overrides use wire (camelCase) names."""
    data = {
        "exerciseId": f"{n:04d}",
        "name": f"Exercise {n}",
        "imageUrl": f"https://cdn.test/{n}.gif",
        "equipments": ["dumbbell"],
        "bodyParts": ["chest"],
        "targetMuscles": ["pectorals"],
        "overview": f"Overview {n}",
        "instructions": ["Step 1", "Step 2"],
    }
    data.update(overrides)
    return RemoteExercise.model_validate(data)


class FakeCatalogClient:
    """In-memory catalog. failures maps offset -> exceptions raised (in order) before succeeding."""

    def __init__(self, records=None, failures=None, gate: asyncio.Event | None = None):
        self.records = list(records or [])
        self.failures = {k: list(v) for k, v in (failures or {}).items()}
        self.gate = gate  # when set, fetches past offset 0 wait for it
        self.calls: list[tuple[int, int]] = []

    async def fetch_page(self, limit: int, offset: int) -> CatalogPage:
        self.calls.append((limit, offset))
        if self.gate is not None and offset > 0:
            await self.gate.wait()
        pending = self.failures.get(offset)
        if pending:
            raise pending.pop(0)
        chunk = self.records[offset : offset + limit]
        return CatalogPage(
            records=chunk,
            has_more=offset + limit < len(self.records),
            total=len(self.records),
        )


class ManualExecutor:
    """BackgroundExecutor double: records submissions and lets the test drive state updates."""

    def __init__(self):
        self.submitted: list[tuple[str, object, object]] = []
        self.cancelled: list[str] = []
        self._callbacks: dict[str, object] = {}

    def submit(self, name, work, on_update) -> str:
        work_id = f"work-{len(self.submitted) + 1}"
        self.submitted.append((name, work, on_update))
        self._callbacks[work_id] = on_update
        on_update(WorkInfo(work_id, WorkState.ENQUEUED))
        return work_id

    def cancel(self, work_id: str) -> bool:
        self.cancelled.append(work_id)
        self.push(work_id, WorkState.CANCELLED)
        return True

    def push(self, work_id: str, state: WorkState, progress=None, output=None) -> None:
        self._callbacks[work_id](WorkInfo(work_id, state, progress=progress or {}, output=output or {}))

    async def run(self, work_id: str) -> None:
        """Run a submitted unit inline, forwarding its updates like a real executor."""
        index = int(work_id.split("-")[1]) - 1
        _, work, on_update = self.submitted[index]
        ctx = WorkContext(work_id, on_update)
        on_update(WorkInfo(work_id, WorkState.RUNNING))
        result = await work(ctx)
        on_update(WorkInfo(work_id, result.state, output=result.output))


async def no_sleep(_seconds: float) -> None:
    return None


@pytest_asyncio.fixture
async def session_maker():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def store(session_maker):
    return SqlAlchemyExerciseStore(session_maker)

"""
Background execution of sync work.

The coordinator only needs "submit one unit, hear about its state, cancel it". Updates are
delivered through the on_update callback registered at submit time. TaskExecutor runs units as
asyncio tasks in this process; SchedulerExecutor hands them to the APScheduler instance that also
runs the periodic catalog sync.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol
from uuid import uuid4

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler

logger = logging.getLogger(__name__)

PERIODIC_SYNC_JOB_ID = "periodic_exercise_sync"


class WorkState(str, Enum):
    ENQUEUED = "enqueued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_finished(self) -> bool:
        return self in (WorkState.SUCCEEDED, WorkState.FAILED, WorkState.CANCELLED)


@dataclass(frozen=True)
class WorkInfo:
    """Snapshot of a unit of work as reported to the submitter."""

    work_id: str
    state: WorkState
    progress: dict[str, Any] = field(default_factory=dict)
    output: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class WorkResult:
    state: WorkState  # SUCCEEDED, FAILED or CANCELLED
    output: dict[str, Any] = field(default_factory=dict)


class WorkContext:
    """Handed to a running unit: its id, cancellation flag and a progress channel."""

    def __init__(self, work_id: str, on_update: Callable[[WorkInfo], None]):
        self.work_id = work_id
        self.cancel_event = asyncio.Event()
        self._on_update = on_update

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def set_progress(self, progress: dict[str, Any]) -> None:
        self._on_update(WorkInfo(self.work_id, WorkState.RUNNING, progress=dict(progress)))


Work = Callable[[WorkContext], Awaitable[WorkResult]]
UpdateCallback = Callable[[WorkInfo], None]


class BackgroundExecutor(Protocol):
    def submit(self, name: str, work: Work, on_update: UpdateCallback) -> str:
        """Accept one unit of work; on_update receives ENQUEUED immediately."""
        ...

    def cancel(self, work_id: str) -> bool:
        """Cancel a pending or running unit. Returns False if it is unknown or already finished."""
        ...


@dataclass
class _Unit:
    work_id: str
    name: str
    work: Work
    context: WorkContext
    on_update: UpdateCallback
    started: bool = False
    finished: bool = False


class _ExecutorBase:
    def __init__(self):
        self._units: dict[str, _Unit] = {}

    def _register(self, name: str, work: Work, on_update: UpdateCallback) -> _Unit:
        work_id = str(uuid4())
        unit = _Unit(work_id, name, work, WorkContext(work_id, on_update), on_update)
        self._units[work_id] = unit
        on_update(WorkInfo(work_id, WorkState.ENQUEUED))
        return unit

    def _finish(self, unit: _Unit, state: WorkState, output: dict[str, Any]) -> None:
        if unit.finished:
            return
        unit.finished = True
        self._units.pop(unit.work_id, None)
        unit.on_update(WorkInfo(unit.work_id, state, output=output))

    async def _execute(self, work_id: str) -> None:
        unit = self._units.get(work_id)
        if unit is None or unit.finished:
            return
        if unit.context.cancelled:
            self._finish(unit, WorkState.CANCELLED, {})
            return
        unit.started = True
        unit.on_update(WorkInfo(work_id, WorkState.RUNNING))
        try:
            result = await unit.work(unit.context)
        except asyncio.CancelledError:
            self._finish(unit, WorkState.CANCELLED, {})
            raise
        except Exception as e:
            logger.exception("Background work %s (%s) failed", unit.name, work_id)
            self._finish(unit, WorkState.FAILED, {"message": str(e) or e.__class__.__name__})
            return
        if not result.state.is_finished:
            logger.error("Background work %s returned non-terminal state %s", unit.name, result.state)
            self._finish(unit, WorkState.FAILED, {"message": f"Work ended in state {result.state.value}"})
            return
        self._finish(unit, result.state, result.output)

    def cancel(self, work_id: str) -> bool:
        unit = self._units.get(work_id)
        if unit is None or unit.finished:
            return False
        unit.context.cancel_event.set()
        if not unit.started:
            self._drop_pending(unit)
            self._finish(unit, WorkState.CANCELLED, {})
        return True

    def _drop_pending(self, unit: _Unit) -> None:
        pass


class TaskExecutor(_ExecutorBase):
    """Runs units as asyncio tasks, at most max_concurrent at a time."""

    def __init__(self, max_concurrent: int = 1):
        super().__init__()
        self._sem = asyncio.Semaphore(max_concurrent)
        self._tasks: set[asyncio.Task] = set()

    def submit(self, name: str, work: Work, on_update: UpdateCallback) -> str:
        unit = self._register(name, work, on_update)
        task = asyncio.create_task(self._run(unit.work_id), name=f"{name}:{unit.work_id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return unit.work_id

    async def _run(self, work_id: str) -> None:
        async with self._sem:
            await self._execute(work_id)

    async def aclose(self) -> None:
        """Cancel every unit and wait for running tasks to unwind."""
        for work_id in list(self._units):
            self.cancel(work_id)
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)


class SchedulerExecutor(_ExecutorBase):
    """Runs units as one-off APScheduler jobs (date trigger, run as soon as possible)."""

    def __init__(self, scheduler: AsyncIOScheduler):
        super().__init__()
        self.scheduler = scheduler

    def submit(self, name: str, work: Work, on_update: UpdateCallback) -> str:
        unit = self._register(name, work, on_update)
        self.scheduler.add_job(
            self._execute,
            "date",
            args=[unit.work_id],
            id=unit.work_id,
            name=name,
            misfire_grace_time=None,
        )
        return unit.work_id

    def _drop_pending(self, unit: _Unit) -> None:
        try:
            self.scheduler.remove_job(unit.work_id)
        except JobLookupError:
            pass


def schedule_periodic_sync(scheduler: AsyncIOScheduler, coordinator, interval_days: int = 7) -> None:
    """Run a catalog sync every interval_days. An existing periodic job is kept as is."""
    if scheduler.get_job(PERIODIC_SYNC_JOB_ID) is not None:
        return
    scheduler.add_job(
        _periodic_sync,
        "interval",
        days=interval_days,
        args=[coordinator],
        id=PERIODIC_SYNC_JOB_ID,
        name="periodic exercise catalog sync",
        coalesce=True,
        max_instances=1,
    )
    logger.info("Periodic exercise sync scheduled every %s days", interval_days)


def cancel_periodic_sync(scheduler: AsyncIOScheduler) -> bool:
    try:
        scheduler.remove_job(PERIODIC_SYNC_JOB_ID)
    except JobLookupError:
        return False
    logger.info("Periodic exercise sync cancelled")
    return True


async def _periodic_sync(coordinator) -> None:
    session = coordinator.sync_now()
    if session.attached:
        logger.info("Periodic exercise sync: session %s already running", session.id)

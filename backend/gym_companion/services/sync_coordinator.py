"""
Single entry point for exercise catalog sync.

Guarantees at most one sync session at a time: sync_now() while a session is active returns
that session (attached=True) instead of starting another. Work runs on a BackgroundExecutor;
its state updates are translated into SyncStatus and republished to observers.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from uuid import uuid4

from gym_companion.schemas.sync import (
    Cancelled,
    Error,
    Idle,
    InProgress,
    Queued,
    Starting,
    Success,
    SyncStatus,
    is_regression,
    is_terminal,
)
from gym_companion.services.background import BackgroundExecutor, WorkInfo, WorkState
from gym_companion.services.exercise_sync import SyncCancelledError, SyncError
from gym_companion.services.exercise_sync_worker import (
    MESSAGE_KEY,
    STATUS_IN_PROGRESS,
    STATUS_KEY,
    STATUS_STARTING,
    TOTAL_KEY,
    WORK_NAME,
    ExerciseSyncWorker,
)
from gym_companion.services.status_feed import StatusFeed

logger = logging.getLogger(__name__)


def status_from_work_info(info: WorkInfo) -> SyncStatus:
    """Translate a background work snapshot into the sync status the UI sees."""
    state = info.state
    if state == WorkState.ENQUEUED:
        return Queued()
    if state == WorkState.RUNNING:
        progress = info.progress
        status = progress.get(STATUS_KEY)
        if status == STATUS_IN_PROGRESS:
            total = int(progress.get(TOTAL_KEY, 0))
            return InProgress(synced=total, message=progress.get(MESSAGE_KEY) or f"Synced {total} exercises")
        if status == STATUS_STARTING:
            return Starting(message=progress.get(MESSAGE_KEY) or Starting().message)
        return Starting()
    if state == WorkState.SUCCEEDED:
        total = int(info.output.get(TOTAL_KEY, 0))
        return Success(total_exercises=total, message=info.output.get(MESSAGE_KEY) or f"Synced {total} exercises")
    if state == WorkState.FAILED:
        return Error(message=info.output.get(MESSAGE_KEY) or "Exercise sync failed")
    if state == WorkState.CANCELLED:
        return Cancelled()
    raise TypeError(f"Unknown work state: {state!r}")


class SyncSession:
    """One sync run as seen by callers: its status stream and terminal outcome."""

    def __init__(self, session_id: str, attached: bool = False, feed: StatusFeed[SyncStatus] | None = None):
        self.id = session_id
        self.attached = attached
        self.work_id: str | None = None
        self._feed: StatusFeed[SyncStatus] = feed or StatusFeed(Queued())
        self._done = asyncio.Event()

    @property
    def status(self) -> SyncStatus:
        return self._feed.value

    @property
    def done(self) -> bool:
        return self._done.is_set()

    def statuses(self) -> AsyncIterator[SyncStatus]:
        """Latest status, then every later one, ending with the terminal status."""
        return self._feed.subscribe()

    async def wait(self) -> SyncStatus:
        await self._done.wait()
        return self._feed.value

    def attach(self) -> SyncSession:
        """View of this session for a caller that asked for a sync while it was running."""
        view = SyncSession(self.id, attached=True, feed=self._feed)
        view.work_id = self.work_id
        view._done = self._done
        return view

    def _advance(self, status: SyncStatus) -> bool:
        """Apply status if it moves the session forward. Returns False for dropped updates."""
        if is_regression(self._feed.value, status):
            return False
        self._feed.publish(status)
        if is_terminal(status):
            self._feed.close()
            self._done.set()
        return True


class SyncCoordinator:
    def __init__(
        self,
        executor: BackgroundExecutor,
        worker_factory: Callable[[int | None], ExerciseSyncWorker],
    ):
        self._executor = executor
        self._worker_factory = worker_factory
        self._feed: StatusFeed[SyncStatus] = StatusFeed(Idle())
        self._active: SyncSession | None = None

    @property
    def current_status(self) -> SyncStatus:
        return self._feed.value

    @property
    def active_session(self) -> SyncSession | None:
        return self._active

    def sync_now(self, limit: int | None = None) -> SyncSession:
        """Start a sync session, or attach to the one already running."""
        if self._active is not None:
            logger.info("Exercise sync: session %s already active; attaching", self._active.id)
            return self._active.attach()
        session = SyncSession(str(uuid4())[:8])
        self._active = session
        worker = self._worker_factory(limit)
        logger.info("Exercise sync: session %s requested (limit=%s)", session.id, limit)
        session.work_id = self._executor.submit(WORK_NAME, worker, lambda info: self._on_update(session, info))
        return session

    async def sync_and_wait(self, limit: int | None = None) -> int:
        """Run (or join) a sync and return the synced count; raises SyncError / SyncCancelledError."""
        final = await self.sync_now(limit).wait()
        if isinstance(final, Success):
            return final.total_exercises
        if isinstance(final, Cancelled):
            raise SyncCancelledError("Exercise sync cancelled")
        if isinstance(final, Error):
            raise SyncError(final.message)
        raise SyncError(f"Exercise sync ended in unexpected status {final!r}")

    def cancel_all_sync(self) -> bool:
        """Cancel the active session, queued or running. Returns False when nothing was active."""
        session = self._active
        if session is None or session.work_id is None:
            return False
        logger.info("Exercise sync: cancelling session %s", session.id)
        return self._executor.cancel(session.work_id)

    def observe_status(self) -> AsyncIterator[SyncStatus]:
        """Current status across sessions, then every change. Never ends on its own."""
        return self._feed.subscribe()

    def reset(self) -> SyncStatus:
        """Go back to Idle after a finished session. Ignored while a session is active."""
        if self._active is None and not isinstance(self._feed.value, Idle):
            self._feed.publish(Idle())
        return self._feed.value

    def _on_update(self, session: SyncSession, info: WorkInfo) -> None:
        status = status_from_work_info(info)
        if not session._advance(status):
            logger.debug("Exercise sync: session %s dropped out-of-order %s", session.id, status.kind)
            return
        if self._active is session:
            self._feed.publish(status)
        if is_terminal(status):
            logger.info("Exercise sync: session %s finished with %s", session.id, status.kind)
            if self._active is session:
                self._active = None

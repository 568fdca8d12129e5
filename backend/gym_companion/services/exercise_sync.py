"""
Catalog sync engine: page through ExerciseDB, map each record, upsert into the local store.

One call to run() is one session. It yields Starting, an InProgress after every applied
page, and ends with exactly one of Success, Error or Cancelled. Pages already applied stay
applied when a later page fails or the session is cancelled, so a new session simply picks
up the same records again (upserts are idempotent).
"""
import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable

from gym_companion.config import settings
from gym_companion.core.metrics import SYNC_FETCH_FAILURES, SYNC_PAGES, SYNC_SESSIONS, SYNC_UPSERTS
from gym_companion.schemas.exercise_db import CatalogPage
from gym_companion.schemas.sync import Cancelled, Error, InProgress, Starting, Success, SyncStatus
from gym_companion.services.exercise_db_client import (
    CatalogDecodeError,
    CatalogError,
    CatalogHttpError,
    CatalogNetworkError,
    ExerciseDbClient,
)
from gym_companion.services.exercise_mapper import to_local_exercise
from gym_companion.services.exercise_store import ExerciseStore, ExerciseStoreError

logger = logging.getLogger(__name__)


class SyncError(Exception):
    """Session ended with an Error status."""


class SyncCancelledError(SyncError):
    """Session was cancelled before finishing."""


def _failure_reason(exc: CatalogError) -> str:
    if isinstance(exc, CatalogNetworkError):
        return "network"
    if isinstance(exc, CatalogHttpError):
        return "http"
    if isinstance(exc, CatalogDecodeError):
        return "decode"
    return "other"


class ExerciseSyncEngine:
    def __init__(
        self,
        client: ExerciseDbClient,
        store: ExerciseStore,
        page_size: int | None = None,
        max_attempts: int | None = None,
        backoff_seconds: float | None = None,
        backoff_max_seconds: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.client = client
        self.store = store
        self.page_size = page_size or settings.sync_page_size
        self.max_attempts = max(1, max_attempts or settings.sync_max_attempts)
        self.backoff_seconds = settings.sync_backoff_seconds if backoff_seconds is None else backoff_seconds
        self.backoff_max_seconds = (
            settings.sync_backoff_max_seconds if backoff_max_seconds is None else backoff_max_seconds
        )
        self._sleep = sleep

    def backoff_delay(self, attempt: int) -> float:
        """Delay after the given failed attempt (1-based): base, 2*base, 4*base ... capped."""
        return min(self.backoff_seconds * (2 ** (attempt - 1)), self.backoff_max_seconds)

    async def run(
        self,
        page_size: int | None = None,
        limit: int | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> AsyncIterator[SyncStatus]:
        """Run one sync session, yielding status after each step. limit=None syncs the whole catalog."""
        if page_size is None:
            page_size = self.page_size
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        if limit is not None and limit < 0:
            raise ValueError("limit must not be negative")
        cancel_event = cancel_event or asyncio.Event()

        logger.info("Exercise sync: starting page_size=%s limit=%s", page_size, limit)
        yield Starting()

        total = 0
        offset = 0
        while limit is None or total < limit:
            if cancel_event.is_set():
                logger.info("Exercise sync: cancelled after %s exercises", total)
                SYNC_SESSIONS.labels(result="cancelled").inc()
                yield Cancelled()
                return
            request_size = page_size if limit is None else min(page_size, limit - total)
            try:
                page = await self._fetch_with_retry(request_size, offset, cancel_event)
            except CatalogError as e:
                logger.error("Exercise sync: page at offset=%s failed after retries: %s", offset, e)
                SYNC_SESSIONS.labels(result="error").inc()
                yield Error(message=f"Failed to fetch exercises: {e}")
                return
            if page is None:
                logger.info("Exercise sync: cancelled during retry after %s exercises", total)
                SYNC_SESSIONS.labels(result="cancelled").inc()
                yield Cancelled()
                return
            records = page.records if limit is None else page.records[: limit - total]
            try:
                await self._apply(records)
            except (ExerciseStoreError, ValueError) as e:
                logger.exception("Exercise sync: store failure at offset=%s", offset)
                SYNC_SESSIONS.labels(result="error").inc()
                yield Error(message=f"Failed to save exercises: {e}")
                return
            SYNC_PAGES.inc()
            total += len(records)
            offset += len(page.records)
            logger.debug("Exercise sync: applied %s records (total=%s)", len(records), total)
            yield InProgress(synced=total, message=f"Synced {total} exercises")
            if not page.has_more or not page.records:
                break

        logger.info("Exercise sync: finished, total=%s", total)
        SYNC_SESSIONS.labels(result="success").inc()
        yield Success(total_exercises=total, message=f"Synced {total} exercises")

    async def sync_once(self, limit: int | None = None, cancel_event: asyncio.Event | None = None) -> int:
        """Blocking one-shot sync. Returns the number of synced exercises."""
        final: SyncStatus | None = None
        async for status in self.run(limit=limit, cancel_event=cancel_event):
            final = status
        if isinstance(final, Success):
            return final.total_exercises
        if isinstance(final, Cancelled):
            raise SyncCancelledError("Exercise sync cancelled")
        if isinstance(final, Error):
            raise SyncError(final.message)
        raise SyncError(f"Exercise sync ended without a result: {final!r}")

    async def _fetch_with_retry(
        self, limit: int, offset: int, cancel_event: asyncio.Event
    ) -> CatalogPage | None:
        """Fetch one page, retrying with backoff. None means cancelled between attempts."""
        attempt = 1
        while True:
            try:
                return await self.client.fetch_page(limit=limit, offset=offset)
            except CatalogError as e:
                SYNC_FETCH_FAILURES.labels(reason=_failure_reason(e)).inc()
                if attempt >= self.max_attempts:
                    raise
                delay = self.backoff_delay(attempt)
                logger.warning(
                    "Exercise sync: fetch offset=%s attempt %s/%s failed (%s); retrying in %.1fs",
                    offset,
                    attempt,
                    self.max_attempts,
                    e,
                    delay,
                )
                await self._sleep(delay)
                if cancel_event.is_set():
                    return None
                attempt += 1

    async def _apply(self, records) -> None:
        for remote in records:
            result = await self.store.upsert_by_remote_id(to_local_exercise(remote))
            SYNC_UPSERTS.labels(outcome=result.outcome.value).inc()

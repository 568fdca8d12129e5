"""Exercise catalog: trigger/cancel/observe sync into the local library, and on-demand catalog lookups."""

import logging
from collections.abc import AsyncGenerator
from typing import Annotated

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from gym_companion.api.deps import get_catalog_client, get_scheduler, get_sync_coordinator
from gym_companion.config import settings
from gym_companion.schemas.exercise_db import RemoteExercise
from gym_companion.schemas.sync import SyncStatus, sync_status_adapter
from gym_companion.services.background import PERIODIC_SYNC_JOB_ID, cancel_periodic_sync, schedule_periodic_sync
from gym_companion.services.exercise_db_client import (
    CatalogDecodeError,
    CatalogError,
    CatalogHttpError,
    ExerciseDbClient,
)
from gym_companion.services.sync_coordinator import SyncCoordinator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/exercises", tags=["exercises"])


class SyncRequestBody(BaseModel):
    limit: int | None = Field(None, ge=1, description="Max exercises to sync; omit for the full catalog")


class SyncSessionOut(BaseModel):
    session_id: str
    attached: bool
    status: SyncStatus


def _status_json(status: SyncStatus) -> str:
    return sync_status_adapter.dump_json(status).decode()


def _catalog_http_error(e: CatalogError) -> HTTPException:
    if isinstance(e, CatalogHttpError) and e.status_code == 404:
        return HTTPException(status_code=404, detail="Exercise not found in catalog")
    if isinstance(e, CatalogDecodeError):
        return HTTPException(status_code=502, detail="Exercise catalog returned an invalid response")
    return HTTPException(status_code=503, detail="Exercise catalog unavailable. Try again later.")


@router.post("/sync", status_code=202)
async def start_sync(
    coordinator: Annotated[SyncCoordinator, Depends(get_sync_coordinator)],
    body: SyncRequestBody | None = None,
) -> SyncSessionOut:
    """Start a catalog sync, or join the one already running."""
    session = coordinator.sync_now(limit=body.limit if body else None)
    return SyncSessionOut(session_id=session.id, attached=session.attached, status=session.status)


@router.get("/sync/status")
async def get_sync_status(
    coordinator: Annotated[SyncCoordinator, Depends(get_sync_coordinator)],
) -> dict:
    return sync_status_adapter.dump_python(coordinator.current_status, mode="json")


@router.post("/sync/cancel")
async def cancel_sync(
    coordinator: Annotated[SyncCoordinator, Depends(get_sync_coordinator)],
) -> dict:
    return {"cancelled": coordinator.cancel_all_sync()}


@router.post("/sync/reset")
async def reset_sync_status(
    coordinator: Annotated[SyncCoordinator, Depends(get_sync_coordinator)],
) -> dict:
    if coordinator.active_session is not None:
        raise HTTPException(status_code=409, detail="A sync session is still running")
    return sync_status_adapter.dump_python(coordinator.reset(), mode="json")


@router.post("/sync/periodic")
async def enable_periodic_sync(
    coordinator: Annotated[SyncCoordinator, Depends(get_sync_coordinator)],
    scheduler: Annotated[AsyncIOScheduler, Depends(get_scheduler)],
) -> dict:
    """Schedule the recurring catalog sync; an existing schedule is kept."""
    schedule_periodic_sync(scheduler, coordinator, interval_days=settings.periodic_sync_interval_days)
    job = scheduler.get_job(PERIODIC_SYNC_JOB_ID)
    return {"scheduled": job is not None, "job_id": PERIODIC_SYNC_JOB_ID}


@router.delete("/sync/periodic")
async def disable_periodic_sync(
    scheduler: Annotated[AsyncIOScheduler, Depends(get_scheduler)],
) -> dict:
    return {"cancelled": cancel_periodic_sync(scheduler)}


@router.get("/sync/events")
async def stream_sync_events(
    coordinator: Annotated[SyncCoordinator, Depends(get_sync_coordinator)],
) -> StreamingResponse:
    """Server-sent events for the active session until it finishes; just the current status otherwise."""
    session = coordinator.active_session

    async def event_stream() -> AsyncGenerator[str, None]:
        if session is None:
            yield f"data: {_status_json(coordinator.current_status)}\n\n"
            return
        async for status in session.statuses():
            yield f"data: {_status_json(status)}\n\n"

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


@router.get("/catalog/search")
async def search_catalog(
    client: Annotated[ExerciseDbClient, Depends(get_catalog_client)],
    q: Annotated[str, Query(min_length=1)],
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 50,
) -> list[RemoteExercise]:
    """Search the remote catalog by name. Results are not stored locally."""
    try:
        return await client.search(q, page=page, page_size=page_size)
    except CatalogError as e:
        logger.warning("Catalog search q=%r failed: %s", q, e)
        raise _catalog_http_error(e) from e


@router.get("/catalog/{exercise_id}")
async def get_catalog_exercise(
    client: Annotated[ExerciseDbClient, Depends(get_catalog_client)],
    exercise_id: str,
) -> RemoteExercise:
    try:
        return await client.get_exercise(exercise_id)
    except CatalogError as e:
        logger.warning("Catalog lookup id=%s failed: %s", exercise_id, e)
        raise _catalog_http_error(e) from e

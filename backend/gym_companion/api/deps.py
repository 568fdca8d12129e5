"""FastAPI dependencies: sync coordinator and catalog client built in the app lifespan."""

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import HTTPException, Request

from gym_companion.services.exercise_db_client import ExerciseDbClient
from gym_companion.services.sync_coordinator import SyncCoordinator


def get_sync_coordinator(request: Request) -> SyncCoordinator:
    coordinator = getattr(request.app.state, "sync_coordinator", None)
    if coordinator is None:
        raise HTTPException(status_code=503, detail="Exercise sync is not available")
    return coordinator


def get_catalog_client(request: Request) -> ExerciseDbClient:
    client = getattr(request.app.state, "catalog_client", None)
    if client is None:
        raise HTTPException(status_code=503, detail="Exercise catalog is not available")
    return client


def get_scheduler(request: Request) -> AsyncIOScheduler:
    scheduler = getattr(request.app.state, "scheduler", None)
    if scheduler is None:
        raise HTTPException(status_code=503, detail="Scheduler is not available")
    return scheduler

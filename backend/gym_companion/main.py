import logging
import sys
from contextlib import asynccontextmanager

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from gym_companion.api.v1 import exercises

# Ensure package loggers (catalog client, sync engine, coordinator) print to stdout
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stdout,
)
logging.getLogger("gym_companion").setLevel(logging.DEBUG)
from gym_companion.config import settings
from gym_companion.db.session import init_db
from gym_companion.services.background import SchedulerExecutor, schedule_periodic_sync
from gym_companion.services.exercise_db_client import ExerciseDbClient
from gym_companion.services.exercise_store import SqlAlchemyExerciseStore
from gym_companion.services.exercise_sync import ExerciseSyncEngine
from gym_companion.services.exercise_sync_worker import ExerciseSyncWorker
from gym_companion.services.http_client import close_http_client, init_http_client
from gym_companion.services.sync_coordinator import SyncCoordinator
from prometheus_client import make_asgi_app

scheduler = AsyncIOScheduler()


def build_sync_coordinator(engine: ExerciseSyncEngine, executor) -> SyncCoordinator:
    return SyncCoordinator(executor, lambda limit: ExerciseSyncWorker(engine, limit=limit))


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    http_client = init_http_client(timeout=settings.http_timeout_seconds)
    catalog_client = ExerciseDbClient(http_client)
    engine = ExerciseSyncEngine(catalog_client, SqlAlchemyExerciseStore())
    coordinator = build_sync_coordinator(engine, SchedulerExecutor(scheduler))
    app.state.catalog_client = catalog_client
    app.state.sync_coordinator = coordinator
    app.state.scheduler = scheduler

    if settings.periodic_sync_enabled:
        schedule_periodic_sync(scheduler, coordinator, interval_days=settings.periodic_sync_interval_days)

    scheduler.start()
    yield
    coordinator.cancel_all_sync()
    scheduler.shutdown(wait=False)
    await close_http_client()


app = FastAPI(
    title="Gym Companion API",
    description="Exercise library backend: ExerciseDB catalog sync and lookups",
    version="0.1.0",
    lifespan=lifespan,
)
app.add_middleware(GZipMiddleware, minimum_size=500)

_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()] if settings.cors_origins else ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(exercises.router, prefix="/api/v1")

metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)


@app.get("/health")
def health():
    return {"status": "ok"}

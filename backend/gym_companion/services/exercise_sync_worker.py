"""Unit of background work that runs one catalog sync and reports it as work progress/output."""
import logging

from gym_companion.schemas.sync import Cancelled, Error, Idle, InProgress, Queued, Starting, Success
from gym_companion.services.background import WorkContext, WorkResult, WorkState
from gym_companion.services.exercise_sync import ExerciseSyncEngine

logger = logging.getLogger(__name__)

WORK_NAME = "exercise_sync_work"

STATUS_KEY = "status"
MESSAGE_KEY = "message"
TOTAL_KEY = "total"

STATUS_STARTING = "starting"
STATUS_IN_PROGRESS = "in_progress"


class ExerciseSyncWorker:
    def __init__(self, engine: ExerciseSyncEngine, page_size: int | None = None, limit: int | None = None):
        self.engine = engine
        self.page_size = page_size
        self.limit = limit

    async def __call__(self, ctx: WorkContext) -> WorkResult:
        total = 0
        async for status in self.engine.run(
            page_size=self.page_size, limit=self.limit, cancel_event=ctx.cancel_event
        ):
            if isinstance(status, Starting):
                ctx.set_progress({STATUS_KEY: STATUS_STARTING, MESSAGE_KEY: status.message})
            elif isinstance(status, InProgress):
                total = status.synced
                ctx.set_progress(
                    {STATUS_KEY: STATUS_IN_PROGRESS, MESSAGE_KEY: status.message, TOTAL_KEY: status.synced}
                )
            elif isinstance(status, Success):
                return WorkResult(
                    WorkState.SUCCEEDED, {TOTAL_KEY: status.total_exercises, MESSAGE_KEY: status.message}
                )
            elif isinstance(status, Error):
                return WorkResult(WorkState.FAILED, {MESSAGE_KEY: status.message, TOTAL_KEY: total})
            elif isinstance(status, Cancelled):
                return WorkResult(WorkState.CANCELLED, {TOTAL_KEY: total})
            elif isinstance(status, (Idle, Queued)):
                raise RuntimeError(f"Sync engine emitted coordinator-only status {status.kind}")
            else:
                raise TypeError(f"Unknown sync status: {status!r}")
        logger.error("Exercise sync engine stopped without a terminal status")
        return WorkResult(WorkState.FAILED, {MESSAGE_KEY: "Sync ended unexpectedly", TOTAL_KEY: total})

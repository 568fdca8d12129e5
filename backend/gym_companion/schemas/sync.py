"""
Catalog sync status: a closed set of variants discriminated by "kind".
Idle -> Queued -> Starting -> InProgress* -> Success | Error | Cancelled.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class _Status(BaseModel):
    model_config = ConfigDict(frozen=True)


class Idle(_Status):
    kind: Literal["idle"] = "idle"


class Queued(_Status):
    kind: Literal["queued"] = "queued"


class Starting(_Status):
    kind: Literal["starting"] = "starting"
    message: str = "Starting exercise sync..."


class InProgress(_Status):
    kind: Literal["in_progress"] = "in_progress"
    synced: int = Field(0, ge=0)
    message: str = "Syncing exercises..."


class Success(_Status):
    kind: Literal["success"] = "success"
    total_exercises: int = Field(0, ge=0)
    message: str = ""


class Error(_Status):
    kind: Literal["error"] = "error"
    message: str


class Cancelled(_Status):
    kind: Literal["cancelled"] = "cancelled"


SyncStatus = Annotated[
    Union[Idle, Queued, Starting, InProgress, Success, Error, Cancelled],
    Field(discriminator="kind"),
]

sync_status_adapter: TypeAdapter[SyncStatus] = TypeAdapter(SyncStatus)

TERMINAL_STATUSES = (Success, Error, Cancelled)


def is_terminal(status: SyncStatus) -> bool:
    return isinstance(status, TERMINAL_STATUSES)


def status_rank(status: SyncStatus) -> int:
    """Position in the session lifecycle; a session never moves to a lower rank."""
    if isinstance(status, Idle):
        return 0
    if isinstance(status, Queued):
        return 1
    if isinstance(status, Starting):
        return 2
    if isinstance(status, InProgress):
        return 3
    if isinstance(status, (Success, Error, Cancelled)):
        return 4
    raise TypeError(f"Unknown sync status: {status!r}")


def is_regression(current: SyncStatus, new: SyncStatus) -> bool:
    """True if moving from current to new would break session ordering."""
    if is_terminal(current):
        return True
    current_rank, new_rank = status_rank(current), status_rank(new)
    if new_rank < current_rank:
        return True
    if isinstance(current, InProgress) and isinstance(new, InProgress):
        return new.synced < current.synced
    return False

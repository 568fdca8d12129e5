"""Pydantic schemas for the ExerciseDB catalog API (only the fields the sync consumes)."""

from pydantic import BaseModel, ConfigDict, Field


class RemoteExercise(BaseModel):
    """Single exercise definition from the remote catalog."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    exercise_id: str = Field(alias="exerciseId", min_length=1)
    name: str
    image_url: str | None = Field(None, alias="imageUrl")
    video_url: str | None = Field(None, alias="videoUrl")
    equipments: list[str] = Field(default_factory=list)
    body_parts: list[str] = Field(default_factory=list, alias="bodyParts")
    target_muscles: list[str] = Field(default_factory=list, alias="targetMuscles")
    secondary_muscles: list[str] | None = Field(None, alias="secondaryMuscles")
    overview: str | None = None
    instructions: list[str] | None = None
    exercise_tips: list[str] | None = Field(None, alias="exerciseTips")
    variations: list[str] | None = None
    exercise_type: str | None = Field(None, alias="exerciseType")  # "weight_reps", "time_based", ...
    keywords: list[str] | None = None
    related_exercise_ids: list[str] | None = Field(None, alias="relatedExerciseIds")


class CatalogMeta(BaseModel):
    """Pagination metadata of the /exercises envelope."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    total: int | None = None
    has_next_page: bool = Field(False, alias="hasNextPage")
    has_previous_page: bool = Field(False, alias="hasPreviousPage")
    next_cursor: str | None = Field(None, alias="nextCursor")


class CatalogEnvelope(BaseModel):
    """Wire envelope: {"success": ..., "meta": {...}, "data": [...]}."""

    model_config = ConfigDict(extra="ignore")

    success: bool = True
    meta: CatalogMeta = Field(default_factory=CatalogMeta)
    data: list[RemoteExercise] = Field(default_factory=list)


class CatalogPage(BaseModel):
    """One page of catalog records as seen by the sync engine."""

    records: list[RemoteExercise]
    has_more: bool
    total: int | None = None

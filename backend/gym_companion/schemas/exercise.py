"""Local exercise record as proposed by the catalog mapper."""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


class MuscleGroup(str, Enum):
    CHEST = "Chest"
    BACK = "Back"
    LEGS = "Legs"
    SHOULDERS = "Shoulders"
    ARMS = "Arms"
    CORE = "Core"
    FULL_BODY = "Full Body"


class Difficulty(str, Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


class ExerciseType(str, Enum):
    COMPOUND = "Compound"
    ISOLATION = "Isolation"


class LocalExercise(BaseModel):
    """Exercise as stored locally. id stays 0 until the store has inserted it."""

    id: int = 0
    remote_id: str | None = None
    name: str
    description: str
    muscle_group: MuscleGroup
    target_muscles: str = ""  # comma-separated, catalog order
    difficulty: Difficulty
    equipment_needed: str
    exercise_type: ExerciseType
    instructions_steps: str = "[]"  # JSON array of strings
    common_mistakes: str = "[]"
    safety_tips: str = "[]"
    illustration_path: str | None = None
    illustration_path2: str | None = None
    video_path: str | None = None
    beginner_variation: str | None = None
    advanced_variation: str | None = None
    is_custom: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

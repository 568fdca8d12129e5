"""Local exercise library row. Catalog rows carry remote_id (ExerciseDB exerciseId); custom rows do not."""

from datetime import datetime, timezone
from sqlalchemy import Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from gym_companion.db.base import Base


class Exercise(Base):
    __tablename__ = "exercises"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    remote_id: Mapped[str | None] = mapped_column(String(64), nullable=True, unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    muscle_group: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    target_muscles: Mapped[str] = mapped_column(Text, nullable=False, default="")  # comma-separated
    difficulty: Mapped[str] = mapped_column(String(16), nullable=False)
    equipment_needed: Mapped[str] = mapped_column(String(64), nullable=False)
    exercise_type: Mapped[str] = mapped_column(String(16), nullable=False)
    instructions_steps: Mapped[str] = mapped_column(Text, nullable=False, default="[]")  # JSON array
    common_mistakes: Mapped[str] = mapped_column(Text, nullable=False, default="[]")  # JSON array
    safety_tips: Mapped[str] = mapped_column(Text, nullable=False, default="[]")  # JSON array
    illustration_path: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    illustration_path2: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    video_path: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    beginner_variation: Mapped[str | None] = mapped_column(Text, nullable=True)
    advanced_variation: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_custom: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

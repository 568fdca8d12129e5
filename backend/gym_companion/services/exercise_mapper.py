"""
Map ExerciseDB records to local exercises.

Classification is keyword based and order sensitive: each table is scanned top to
bottom and the first rule whose keyword appears in the (lower-cased) input wins.
The tables are plain data so they can be inspected and tested on their own.
"""
import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable

from gym_companion.schemas.exercise import Difficulty, ExerciseType, LocalExercise, MuscleGroup
from gym_companion.schemas.exercise_db import RemoteExercise

NO_DESCRIPTION = "No description available"
DEFAULT_EQUIPMENT = "Bodyweight"
COMMON_MISTAKES_COUNT = 3


@dataclass(frozen=True)
class KeywordRule:
    """Matches when any keyword is a substring of the input, or the input equals one of `exact`."""

    value: object
    keywords: tuple[str, ...] = ()
    exact: tuple[str, ...] = ()

    def matches(self, text: str) -> bool:
        return text in self.exact or any(k in text for k in self.keywords)


MUSCLE_GROUP_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(MuscleGroup.CHEST, ("chest", "pec")),
    KeywordRule(MuscleGroup.BACK, ("back", "lat")),
    KeywordRule(MuscleGroup.LEGS, ("leg", "quad", "hamstring", "calf")),
    KeywordRule(MuscleGroup.SHOULDERS, ("shoulder", "delt")),
    KeywordRule(MuscleGroup.ARMS, ("arm", "bicep", "tricep", "forearm")),
    KeywordRule(MuscleGroup.CORE, ("core", "ab", "oblique")),
)

EQUIPMENT_RULES: tuple[KeywordRule, ...] = (
    KeywordRule("Barbell", ("barbell",)),
    KeywordRule("Dumbbell", ("dumbbell",)),
    KeywordRule("Machine", ("machine", "cable")),
    KeywordRule("Kettlebell", ("kettlebell",)),
    KeywordRule("Band", ("band",)),
    KeywordRule("Bodyweight", ("bodyweight",), exact=("none",)),
)

ADVANCED_NAME_MARKERS: tuple[str, ...] = ("olympic", "snatch", "clean", "pistol")

# Checked against the first equipment only, after the name markers
DIFFICULTY_EQUIPMENT_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(Difficulty.INTERMEDIATE, ("barbell", "cable")),
    KeywordRule(Difficulty.BEGINNER, ("machine", "bodyweight")),
)

# Any equipment containing one of these makes the movement compound
COMPOUND_EQUIPMENT: tuple[str, ...] = ("barbell", "machine")


def _first_match(rules: Iterable[KeywordRule], text: str, default):
    for rule in rules:
        if rule.matches(text):
            return rule.value
    return default


def map_muscle_group(body_parts: list[str]) -> MuscleGroup:
    if not body_parts:
        return MuscleGroup.FULL_BODY
    return _first_match(MUSCLE_GROUP_RULES, body_parts[0].lower(), MuscleGroup.FULL_BODY)


def map_equipment(equipments: list[str]) -> str:
    """Normalized equipment category; unknown equipment passes through unchanged."""
    if not equipments:
        return DEFAULT_EQUIPMENT
    first = equipments[0]
    return _first_match(EQUIPMENT_RULES, first.lower(), first)


def map_exercise_type(equipments: list[str], body_parts: list[str]) -> ExerciseType:
    if len(body_parts) > 1:
        return ExerciseType.COMPOUND
    for equipment in equipments:
        lowered = equipment.lower()
        if any(k in lowered for k in COMPOUND_EQUIPMENT):
            return ExerciseType.COMPOUND
    return ExerciseType.ISOLATION


def infer_difficulty(name: str, equipments: list[str]) -> Difficulty:
    lowered_name = name.lower()
    if any(marker in lowered_name for marker in ADVANCED_NAME_MARKERS):
        return Difficulty.ADVANCED
    equipment = equipments[0].lower() if equipments else ""
    return _first_match(DIFFICULTY_EQUIPMENT_RULES, equipment, Difficulty.INTERMEDIATE)


def _json_list(items: list[str] | None) -> str:
    return json.dumps(list(items or []), ensure_ascii=False, separators=(",", ":"))


def to_local_exercise(remote: RemoteExercise, now: datetime | None = None) -> LocalExercise:
    """Build the local record for a catalog exercise. Never fails; missing optionals fall back to defaults."""
    tips = remote.exercise_tips or []
    variations = remote.variations or []
    overview = (remote.overview or "").strip()
    return LocalExercise(
        remote_id=remote.exercise_id,
        name=remote.name,
        description=remote.overview if overview else NO_DESCRIPTION,
        muscle_group=map_muscle_group(remote.body_parts),
        target_muscles=",".join(remote.target_muscles),
        difficulty=infer_difficulty(remote.name, remote.equipments),
        equipment_needed=map_equipment(remote.equipments),
        exercise_type=map_exercise_type(remote.equipments, remote.body_parts),
        instructions_steps=_json_list(remote.instructions),
        common_mistakes=_json_list(tips[:COMMON_MISTAKES_COUNT]),
        safety_tips=_json_list(tips[COMMON_MISTAKES_COUNT:]),
        illustration_path=remote.image_url,
        illustration_path2=None,
        video_path=remote.video_url,
        beginner_variation=variations[0] if variations else None,
        advanced_variation=variations[-1] if variations else None,
        is_custom=False,
        created_at=now or datetime.now(timezone.utc),
    )


def to_local_exercises(records: Iterable[RemoteExercise], now: datetime | None = None) -> list[LocalExercise]:
    return [to_local_exercise(r, now) for r in records]

"""Tests for ExerciseDB -> local exercise mapping rules."""

import json
from datetime import datetime, timezone

import pytest

from gym_companion.schemas.exercise import Difficulty, ExerciseType, MuscleGroup
from gym_companion.services.exercise_mapper import (
    EQUIPMENT_RULES,
    MUSCLE_GROUP_RULES,
    NO_DESCRIPTION,
    infer_difficulty,
    map_equipment,
    map_exercise_type,
    map_muscle_group,
    to_local_exercise,
    to_local_exercises,
)
from tests.conftest import make_remote


def test_barbell_bench_press():
    """Chest + barbell: Chest, Compound (barbell present), Intermediate."""
    remote = make_remote(1, name="Barbell Bench Press", bodyParts=["Chest"], equipments=["Barbell"])
    local = to_local_exercise(remote)
    assert local.muscle_group == MuscleGroup.CHEST
    assert local.exercise_type == ExerciseType.COMPOUND
    assert local.difficulty == Difficulty.INTERMEDIATE
    assert local.equipment_needed == "Barbell"


def test_empty_record_falls_back_to_defaults():
    remote = make_remote(2, name="Mystery Move", bodyParts=[], equipments=[], overview=None)
    local = to_local_exercise(remote)
    assert local.muscle_group == MuscleGroup.FULL_BODY
    assert local.equipment_needed == "Bodyweight"
    assert local.description == NO_DESCRIPTION
    assert local.exercise_type == ExerciseType.ISOLATION
    assert local.difficulty == Difficulty.INTERMEDIATE


def test_push_up_fields():
    remote = make_remote(
        1,
        name="Push-up",
        bodyParts=["chest"],
        equipments=["body weight"],
        imageUrl="https://example.com/pushup.gif",
        targetMuscles=["pectorals"],
        secondaryMuscles=["triceps", "shoulders"],
        instructions=["Get in plank position", "Lower your body", "Push back up"],
        overview=None,
    )
    local = to_local_exercise(remote)
    assert local.name == "Push-up"
    assert local.remote_id == "0001"
    assert local.muscle_group == MuscleGroup.CHEST
    assert local.target_muscles == "pectorals"
    # "body weight" (with a space) is not a known category and passes through
    assert local.equipment_needed == "body weight"
    assert local.illustration_path == "https://example.com/pushup.gif"
    assert local.instructions_steps == '["Get in plank position","Lower your body","Push back up"]'
    assert local.is_custom is False
    assert local.id == 0


def test_tips_and_variations_split():
    remote = make_remote(
        3,
        exerciseTips=["t1", "t2", "t3", "t4", "t5"],
        variations=["easy", "medium", "hard"],
    )
    local = to_local_exercise(remote)
    assert json.loads(local.common_mistakes) == ["t1", "t2", "t3"]
    assert json.loads(local.safety_tips) == ["t4", "t5"]
    assert local.beginner_variation == "easy"
    assert local.advanced_variation == "hard"


def test_missing_optionals_serialize_as_empty_lists():
    remote = make_remote(4, instructions=None, exerciseTips=None, variations=None, videoUrl=None)
    local = to_local_exercise(remote)
    assert local.instructions_steps == "[]"
    assert local.common_mistakes == "[]"
    assert local.safety_tips == "[]"
    assert local.beginner_variation is None
    assert local.advanced_variation is None
    assert local.video_path is None


def test_blank_overview_uses_placeholder():
    local = to_local_exercise(make_remote(5, overview="   "))
    assert local.description == NO_DESCRIPTION


def test_target_muscles_keep_order():
    local = to_local_exercise(make_remote(6, targetMuscles=["glutes", "quads", "hamstrings"]))
    assert local.target_muscles == "glutes,quads,hamstrings"


def test_created_at_uses_given_clock():
    now = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
    assert to_local_exercise(make_remote(7), now=now).created_at == now


@pytest.mark.parametrize("body_parts,expected", [
    (["Chest"], MuscleGroup.CHEST),
    (["pectorals"], MuscleGroup.CHEST),
    (["back"], MuscleGroup.BACK),
    (["lats"], MuscleGroup.BACK),
    (["upper legs"], MuscleGroup.LEGS),
    (["quads"], MuscleGroup.LEGS),
    (["hamstrings"], MuscleGroup.LEGS),
    (["calf"], MuscleGroup.LEGS),
    (["shoulders"], MuscleGroup.SHOULDERS),
    (["delts"], MuscleGroup.SHOULDERS),
    (["upper arms"], MuscleGroup.ARMS),
    (["biceps"], MuscleGroup.ARMS),
    (["forearms"], MuscleGroup.ARMS),
    (["core"], MuscleGroup.CORE),
    (["abs"], MuscleGroup.CORE),
    (["obliques"], MuscleGroup.CORE),
    (["waist"], MuscleGroup.FULL_BODY),
    ([], MuscleGroup.FULL_BODY),
    (["cardio", "chest"], MuscleGroup.FULL_BODY),  # only the first body part counts
])
def test_map_muscle_group(body_parts, expected):
    assert map_muscle_group(body_parts) == expected


def test_muscle_group_rules_first_match_wins():
    """"back" rule comes before "core"/"ab"; "lower back" is Back even though nothing else matches."""
    assert map_muscle_group(["lower back"]) == MuscleGroup.BACK
    # "lat" is checked before "arm": "lateral arm" hits Back first
    assert map_muscle_group(["lateral arm"]) == MuscleGroup.BACK
    order = [rule.value for rule in MUSCLE_GROUP_RULES]
    assert order == [
        MuscleGroup.CHEST,
        MuscleGroup.BACK,
        MuscleGroup.LEGS,
        MuscleGroup.SHOULDERS,
        MuscleGroup.ARMS,
        MuscleGroup.CORE,
    ]


@pytest.mark.parametrize("equipments,expected", [
    (["Barbell"], "Barbell"),
    (["olympic barbell"], "Barbell"),
    (["dumbbell"], "Dumbbell"),
    (["leverage machine"], "Machine"),
    (["cable"], "Machine"),
    (["kettlebell"], "Kettlebell"),
    (["resistance band"], "Band"),
    (["bodyweight"], "Bodyweight"),
    (["none"], "Bodyweight"),
    (["None"], "Bodyweight"),
    (["none needed"], "none needed"),
    (["Stability Ball"], "Stability Ball"),
    ([], "Bodyweight"),
    (["rope", "barbell"], "rope"),
])
def test_map_equipment(equipments, expected):
    assert map_equipment(equipments) == expected


def test_equipment_rule_table_order():
    assert [rule.value for rule in EQUIPMENT_RULES] == [
        "Barbell",
        "Dumbbell",
        "Machine",
        "Kettlebell",
        "Band",
        "Bodyweight",
    ]


@pytest.mark.parametrize("equipments,body_parts,expected", [
    (["dumbbell"], ["chest"], ExerciseType.ISOLATION),
    (["dumbbell"], ["chest", "shoulders"], ExerciseType.COMPOUND),
    (["dumbbell", "Barbell"], ["chest"], ExerciseType.COMPOUND),
    (["Smith MACHINE"], ["legs"], ExerciseType.COMPOUND),
    (["cable"], ["back"], ExerciseType.ISOLATION),
    ([], [], ExerciseType.ISOLATION),
])
def test_map_exercise_type(equipments, body_parts, expected):
    assert map_exercise_type(equipments, body_parts) == expected


@pytest.mark.parametrize("name,equipments,expected", [
    ("Power Clean", ["barbell"], Difficulty.ADVANCED),
    ("Dumbbell Snatch", ["dumbbell"], Difficulty.ADVANCED),
    ("Pistol Squat", ["body weight"], Difficulty.ADVANCED),
    ("Olympic Lift Drill", [], Difficulty.ADVANCED),
    ("Squat", ["barbell"], Difficulty.INTERMEDIATE),
    ("Cable Fly", ["cable"], Difficulty.INTERMEDIATE),
    ("Leg Press", ["leverage machine"], Difficulty.BEGINNER),
    ("Crunch", ["bodyweight"], Difficulty.BEGINNER),
    ("Curl", ["dumbbell"], Difficulty.INTERMEDIATE),
    ("Curl", [], Difficulty.INTERMEDIATE),
    ("Row", ["dumbbell", "machine"], Difficulty.INTERMEDIATE),  # only the first equipment counts
])
def test_infer_difficulty(name, equipments, expected):
    assert infer_difficulty(name, equipments) == expected


def test_to_local_exercises_maps_each_record():
    locals_ = to_local_exercises([make_remote(1), make_remote(2), make_remote(3)])
    assert [e.remote_id for e in locals_] == ["0001", "0002", "0003"]

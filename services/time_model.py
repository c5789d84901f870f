"""
Time estimation for session blueprints.

Converts a reps prescription plus rest parameters into estimated seconds.

Defaults (see TimeModelConfig):
- Work time: 30 seconds per 10 reps (=> 3s/rep)
- Rest BETWEEN sets: 90 seconds (not after last set)
- Rest/transition BETWEEN exercises: 120 seconds (not after last exercise)

Every function here is total: unparseable input falls back to the configured
per-10-reps work time rather than raising.
"""

import re

from models.blueprint import BlockType, ExercisePrescription, SessionBlueprint, TimeModelConfig

_MINUTES_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*min")
_SECONDS_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*(s|sec|secs|seconds)\b")
_RANGE_PATTERN = re.compile(r"(\d+)\s*-\s*(\d+)")
_COUNT_PATTERN = re.compile(r"(\d+)")


def _seconds_for_reps(reps: int, config: TimeModelConfig) -> float:
    return (config.work_seconds_per_10_reps / 10) * reps


def estimate_work_seconds_per_set(reps: str, config: TimeModelConfig) -> float:
    """
    Estimate WORK seconds for ONE set from a reps string.

    - "6 min" => minutes
    - "30-45s" or "45s" => seconds (the value next to the unit)
    - "8-12" => upper bound (12) for conservative timing
    - "10" => single count
    - anything else => config.work_seconds_per_10_reps
    """
    text = (reps or "").strip().lower()
    if not text:
        return config.work_seconds_per_10_reps

    match = _MINUTES_PATTERN.search(text)
    if match:
        return float(match.group(1)) * 60

    match = _SECONDS_PATTERN.search(text)
    if match:
        return float(match.group(1))

    match = _RANGE_PATTERN.search(text)
    if match:
        return _seconds_for_reps(int(match.group(2)), config)

    match = _COUNT_PATTERN.search(text)
    if match:
        return _seconds_for_reps(int(match.group(1)), config)

    return config.work_seconds_per_10_reps


def estimate_exercise_seconds(exercise: ExercisePrescription, config: TimeModelConfig) -> float:
    """
    Estimate total seconds for one exercise across all of its sets.

    Between-exercise transitions are not included. Rest between sets uses the
    exercise's rest_seconds when present and non-negative, else the config.
    """
    sets = max(0, exercise.sets or 0)
    if sets == 0:
        return 0.0

    work_per_set = estimate_work_seconds_per_set(exercise.reps, config)
    if exercise.rest_seconds is not None and exercise.rest_seconds >= 0:
        rest_between_sets = exercise.rest_seconds
    else:
        rest_between_sets = config.rest_between_sets_seconds

    # No rest after the last set
    return sets * work_per_set + max(0, sets - 1) * rest_between_sets


def estimate_session_seconds(session: SessionBlueprint, config: TimeModelConfig) -> float:
    """Estimate session seconds including between-exercise transitions."""
    exercises = [exercise for _, exercise in session.iter_exercises()]

    total = 0.0
    for index, exercise in enumerate(exercises):
        total += estimate_exercise_seconds(exercise, config)
        if index != len(exercises) - 1:
            total += config.rest_between_exercises_seconds

    # An explicit warmup or cooldown block replaces its allowance
    block_types = {block.type for block in session.blocks}
    if BlockType.WARMUP not in block_types and config.warmup_minutes_default:
        total += config.warmup_minutes_default * 60
    if BlockType.COOLDOWN not in block_types and config.cooldown_minutes_default:
        total += config.cooldown_minutes_default * 60

    return total


def estimate_session_minutes(session: SessionBlueprint, config: TimeModelConfig) -> float:
    return estimate_session_seconds(session, config) / 60

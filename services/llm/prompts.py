"""
LLM prompt templates for the analysis and blueprint steps.

The analysis step turns a user profile into a focus distribution and volume
recommendations. The blueprint step turns that analysis plus the schedule,
the time model and the candidate exercise pools into session skeletons that
reference exercises by id only.
"""

import json
from typing import Any, Dict, List, Optional

from core.constants import LOW_FREQUENCY_SESSIONS_PER_WEEK
from core.sanitization import sanitize_user_input
from models.blueprint import TimeModelConfig
from models.generation import AnalysisInput, ScheduleInput

ANALYSIS_SYSTEM_PROMPT = """You are an expert strength and conditioning coach analysing a client before program design.

Based on the client's profile, decide how their training should be distributed
between strength, hypertrophy, endurance and cardio, and how much weekly volume
they can recover from.

Rules:
- focus_distribution values are percentages and MUST sum to 100
- Recommendations are working sets (warmup sets excluded)
- Beginners get conservative volume; advanced lifters may get more
- A sport, when given, shifts the distribution toward its demands

Return ONLY a JSON object with this exact structure:
{
  "analysis_summary": "Two or three sentences about the client",
  "focus_distribution": {"strength": 40, "hypertrophy": 40, "endurance": 10, "cardio": 10},
  "recommendations": {
    "sets_per_session_min": 12,
    "sets_per_session_max": 20,
    "weekly_volume_sets_min": 40,
    "weekly_volume_sets_max": 60
  }
}
"""

ANALYSIS_USER_PROMPT = """Analyse this client:

- Age: {age}
- Sex: {sex}
- Weight: {weight}
- Height: {height}
- Training level: {training_level}
- Primary goal: {primary_goal}
- Sport: {sport}
"""

_BLUEPRINT_RULES = """Rules:
1. IDS ONLY: reference exercises by exercise_id taken from candidate_pools. Never invent ids and never output exercise names.
2. Every session has blocks of type warmup, main, accessory, cardio or cooldown.
3. Each exercise has sets, reps (e.g. "8-12", "10", "30-45s", "6 min"), rest_seconds, load_type (percentage_1rm, rpe, bodyweight, fixed), optional load_value and priority.
4. PRIORITY: 1 = essential (never changed), 2 = adjustable, 3 = optional (first to be cut).
5. TIME: each session must land between the schedule's min_minutes and max_minutes when estimated with time_model (work seconds per 10 reps, rest between sets, rest between exercises).
6. Respect focus_distribution when choosing exercises and rep ranges.
7. Output ONLY the JSON object described by output_schema."""

BLUEPRINT_SYSTEM_PROMPT = f"""You are an expert strength and conditioning coach building weekly session blueprints.

You receive a JSON payload with the schedule, the client's focus distribution,
the time model and the candidate exercise pools. Produce one session per
scheduled weekday.

{_BLUEPRINT_RULES}
"""

BLUEPRINT_MESOCYCLE_SYSTEM_PROMPT = f"""You are an expert strength and conditioning coach building a mesocycle for a low-frequency schedule.

The client trains only a few days per week, so every session must be a
full-body session that covers the main movement patterns (squat, hinge, push,
pull, carry/core). Rotate exercise variations across sessions instead of
repeating identical days, and keep main lifts at priority 1.

{_BLUEPRINT_RULES}
"""

BLUEPRINT_OUTPUT_SCHEMA: Dict[str, Any] = {
    "program_name": "string",
    "duration_weeks": "integer",
    "sessions": [
        {
            "session_index": "integer, 0-based",
            "weekday": "string",
            "name": "string",
            "blocks": [
                {
                    "type": "warmup | main | accessory | cardio | cooldown",
                    "exercises": [
                        {
                            "exercise_id": "string from candidate_pools",
                            "sets": "integer",
                            "reps": "string",
                            "rest_seconds": "integer",
                            "load_type": "percentage_1rm | rpe | bodyweight | fixed",
                            "load_value": "number or null",
                            "priority": "1 | 2 | 3",
                            "notes": "string or null",
                        }
                    ],
                }
            ],
        }
    ],
}


def _or_unknown(value: Any, suffix: str = "") -> str:
    if value is None or value == "":
        return "not specified"
    return f"{value}{suffix}"


def build_analysis_prompt(profile: AnalysisInput) -> str:
    """
    Build the user prompt for the analysis step.

    Args:
        profile: Sanitized client profile

    Returns:
        Formatted user prompt string
    """
    return ANALYSIS_USER_PROMPT.format(
        age=_or_unknown(profile.age),
        sex=_or_unknown(profile.sex),
        weight=_or_unknown(profile.weight_kg, " kg"),
        height=_or_unknown(profile.height_cm, " cm"),
        training_level=_or_unknown(profile.training_level),
        primary_goal=profile.primary_goal,
        sport=_or_unknown(profile.sport),
    )


def use_mesocycle_prompt(schedule: ScheduleInput) -> bool:
    return schedule.sessions_per_week <= LOW_FREQUENCY_SESSIONS_PER_WEEK


def blueprint_system_prompt(schedule: ScheduleInput) -> str:
    """Pick the system prompt variant for a schedule."""
    if use_mesocycle_prompt(schedule):
        return BLUEPRINT_MESOCYCLE_SYSTEM_PROMPT
    return BLUEPRINT_SYSTEM_PROMPT


def build_blueprint_prompt(
    schedule: ScheduleInput,
    focus_distribution: Dict[str, float],
    time_model: TimeModelConfig,
    candidate_pools: Dict[str, List[str]],
    tolerance_minutes: float,
    sport: Optional[str] = None,
) -> str:
    """
    Build the JSON user prompt for the blueprint step.

    The prompt window (target +/- tolerance_minutes) is deliberately wider
    than the window used for fitting afterwards.
    """
    target = schedule.target_minutes
    payload = {
        "schedule": {
            "sessions_per_week": schedule.sessions_per_week,
            "weekdays": [sanitize_user_input(day) for day in schedule.weekdays],
            "target_minutes": target,
            "min_minutes": max(0, target - tolerance_minutes),
            "max_minutes": target + tolerance_minutes,
        },
        "focus_distribution": focus_distribution,
        "sport": sport,
        "time_model": time_model.model_dump(),
        "candidate_pools": candidate_pools,
        "output_schema": BLUEPRINT_OUTPUT_SCHEMA,
        "constraints": {
            "ids_only": True,
            "must_use_candidate_pool_only": bool(candidate_pools),
        },
    }
    return json.dumps(payload, indent=2)

"""
Canned analysis and blueprint outputs, shaped like real generator answers.
"""

import json
from typing import Any, Dict, List, Optional


def analysis_payload(focus: Optional[Dict[str, float]] = None, as_json: bool = True):
    """Analysis step answer; focus defaults to a 40/40/10/10 split."""
    data: Dict[str, Any] = {
        "analysis_summary": "Intermediate lifter aiming for strength with some conditioning.",
        "focus_distribution": focus
        or {"strength": 40, "hypertrophy": 40, "endurance": 10, "cardio": 10},
        "recommendations": {
            "sets_per_session_min": 12,
            "sets_per_session_max": 20,
            "weekly_volume_sets_min": 36,
            "weekly_volume_sets_max": 60,
        },
    }
    return json.dumps(data) if as_json else data


def _session(index: int, weekday: str, main_id: str, accessory_ids: List[str]) -> Dict[str, Any]:
    return {
        "session_index": index,
        "weekday": weekday,
        "name": f"Full Body {index + 1}",
        "blocks": [
            {
                "type": "main",
                "exercises": [
                    {
                        "exercise_id": main_id,
                        "sets": 4,
                        "reps": "8-12",
                        "rest_seconds": 90,
                        "load_type": "rpe",
                        "load_value": 8,
                        "priority": 1,
                    }
                ],
            },
            {
                "type": "accessory",
                "exercises": [
                    {
                        "exercise_id": ex_id,
                        "sets": 3,
                        "reps": "12",
                        "rest_seconds": 90,
                        "load_type": "fixed",
                        "priority": 3,
                        "notes": None,
                    }
                    for ex_id in accessory_ids
                ],
            },
        ],
    }


def blueprint_payload(
    main_ids: Optional[List[str]] = None,
    accessory_ids: Optional[List[str]] = None,
    weekdays: Optional[List[str]] = None,
    as_json: bool = True,
):
    """
    Blueprint step answer: one session per weekday, a priority 1 main lift and
    priority 3 accessories. Each session estimates to 13.7 minutes with one
    accessory and the default time model.
    """
    weekdays = weekdays or ["Monday", "Wednesday", "Friday"]
    main_ids = main_ids or ["back-squat", "bench-press", "deadlift"]
    accessory_ids = accessory_ids or ["db-row"]
    data = {
        "program_name": "Strength Base",
        "duration_weeks": 4,
        "sessions": [
            _session(i, day, main_ids[i % len(main_ids)], accessory_ids)
            for i, day in enumerate(weekdays)
        ],
    }
    return json.dumps(data) if as_json else data

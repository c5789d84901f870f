"""
Services package.

Contains the business logic for:
- Time estimation of session blueprints
- Deterministic time fitting of sessions and programs
- The analysis -> blueprint -> fitting generation pipeline
"""

from services.time_fitting import fit_program_sessions, fit_session_to_duration
from services.time_model import (
    estimate_exercise_seconds,
    estimate_session_minutes,
    estimate_session_seconds,
    estimate_work_seconds_per_set,
)

__all__ = [
    # Time estimation
    "estimate_exercise_seconds",
    "estimate_session_minutes",
    "estimate_session_seconds",
    "estimate_work_seconds_per_set",
    # Fitting
    "fit_program_sessions",
    "fit_session_to_duration",
]

"""
Pytest fixtures shared across the test suite.
"""

import sys
from pathlib import Path

import pytest

# Ensure the repository root is on sys.path
ROOT = Path(__file__).resolve().parents[1]
root_str = str(ROOT)
if root_str not in sys.path:
    sys.path.insert(0, root_str)

from backend.settings import Settings
from models.blueprint import (
    Block,
    BlockType,
    ExercisePrescription,
    SessionBlueprint,
    TimeModelConfig,
)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with zero fallback delays and no .env file."""
    return Settings(
        environment="test",
        fallback_delay_seconds=0,
        error_delay_seconds=0,
        _env_file=None,
    )


# ---------------------------------------------------------------------------
# Time Model and Sessions
# ---------------------------------------------------------------------------


@pytest.fixture
def time_model() -> TimeModelConfig:
    """30s/10 reps, 90s between sets, 120s between exercises, no warmup/cooldown allowance."""
    return TimeModelConfig()


@pytest.fixture
def sample_session() -> SessionBlueprint:
    """
    Main A (p1, 4x8-12) + Accessory B (p3, 3x12), both 90s between sets.

    Estimates to 822 seconds (13.7 minutes) with the default time model.
    """
    return SessionBlueprint(
        session_index=0,
        weekday="Monday",
        blocks=[
            Block(
                type=BlockType.MAIN,
                exercises=[
                    ExercisePrescription(
                        exercise_id="A", sets=4, reps="8-12", rest_seconds=90, priority=1
                    ),
                ],
            ),
            Block(
                type=BlockType.ACCESSORY,
                exercises=[
                    ExercisePrescription(
                        exercise_id="B", sets=3, reps="12", rest_seconds=90, priority=3
                    ),
                ],
            ),
        ],
    )

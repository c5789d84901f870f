"""
LLM response schemas for the analysis and blueprint steps.

Pydantic models for structured LLM responses. Blueprint output reuses the
domain ProgramBlueprint model directly.
"""

import logging
from typing import Iterable, List, Optional

from pydantic import BaseModel, Field, model_validator

from models.blueprint import ProgramBlueprint

logger = logging.getLogger(__name__)

# Allowed slack around 100% before a focus distribution is rescaled
FOCUS_SUM_TOLERANCE = 1.0


class FocusDistribution(BaseModel):
    """Percentage split of training emphasis."""

    strength: float = Field(default=0, ge=0)
    hypertrophy: float = Field(default=0, ge=0)
    endurance: float = Field(default=0, ge=0)
    cardio: float = Field(default=0, ge=0)

    @property
    def total(self) -> float:
        return self.strength + self.hypertrophy + self.endurance + self.cardio

    @model_validator(mode="after")
    def normalize_to_100(self) -> "FocusDistribution":
        """Rescale proportionally when the values do not sum to ~100."""
        total = self.total
        if total <= 0:
            raise ValueError("focus_distribution must contain at least one positive value")
        if abs(total - 100) <= FOCUS_SUM_TOLERANCE:
            return self

        logger.warning(f"focus_distribution sums to {total:g}, normalizing to 100")
        factor = 100 / total
        self.strength = round(self.strength * factor, 1)
        self.hypertrophy = round(self.hypertrophy * factor, 1)
        self.endurance = round(self.endurance * factor, 1)
        self.cardio = round(self.cardio * factor, 1)
        return self


class VolumeRecommendations(BaseModel):
    """Working-set volume ranges recommended by the analysis step."""

    sets_per_session_min: Optional[int] = Field(None, ge=0)
    sets_per_session_max: Optional[int] = Field(None, ge=0)
    weekly_volume_sets_min: Optional[int] = Field(None, ge=0)
    weekly_volume_sets_max: Optional[int] = Field(None, ge=0)


class AnalysisResult(BaseModel):
    """Validated output of the analysis step."""

    analysis_summary: str = Field(default="", description="Short profile summary")
    focus_distribution: FocusDistribution
    recommendations: VolumeRecommendations = Field(default_factory=VolumeRecommendations)


def unknown_exercise_ids(blueprint: ProgramBlueprint, allowed: Iterable[str]) -> List[str]:
    """Exercise ids referenced by the blueprint that are not in allowed."""
    allowed_ids = set(allowed)
    return [ex_id for ex_id in blueprint.exercise_ids if ex_id not in allowed_ids]

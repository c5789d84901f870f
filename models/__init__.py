"""Models package for the blueprint fitting and generation core."""

from models.blueprint import (
    Block,
    BlockType,
    ExerciseCaps,
    ExercisePrescription,
    FitAction,
    FitActionType,
    FitReport,
    FitResult,
    FitStatus,
    LoadType,
    ProgramBlueprint,
    ProgramFitResult,
    SessionBlueprint,
    TimeModelConfig,
)
from models.generation import (
    AnalysisInput,
    BackendName,
    GenerationRequest,
    GenerationResponse,
    PipelineRequest,
    ResponseFormat,
    ScheduleInput,
)

__all__ = [
    "Block",
    "BlockType",
    "ExerciseCaps",
    "ExercisePrescription",
    "FitAction",
    "FitActionType",
    "FitReport",
    "FitResult",
    "FitStatus",
    "LoadType",
    "ProgramBlueprint",
    "ProgramFitResult",
    "SessionBlueprint",
    "TimeModelConfig",
    "AnalysisInput",
    "BackendName",
    "GenerationRequest",
    "GenerationResponse",
    "PipelineRequest",
    "ResponseFormat",
    "ScheduleInput",
]

"""
Domain models for workout session blueprints and time fitting.

A blueprint is the not-yet-hydrated skeleton of a training session: opaque
exercise identifiers grouped into ordered blocks, with sets/reps/rest and a
priority telling the fitting engine how protected each prescription is.
"""

from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BlockType(str, Enum):
    """Session phases a block can represent."""

    WARMUP = "warmup"
    MAIN = "main"
    ACCESSORY = "accessory"
    CARDIO = "cardio"
    COOLDOWN = "cooldown"


# Block labels some generators emit that map onto a canonical phase
BLOCK_TYPE_ALIASES = {
    "core": BlockType.ACCESSORY,
    "endurance": BlockType.CARDIO,
}


class LoadType(str, Enum):
    """How the load of a prescription is expressed."""

    PERCENTAGE_1RM = "percentage_1rm"
    RPE = "rpe"
    BODYWEIGHT = "bodyweight"
    FIXED = "fixed"


class FitActionType(str, Enum):
    """Atomic adjustments the fitting engine can apply."""

    REDUCE_SETS = "reduce_sets"
    ADD_SETS = "add_sets"
    REMOVE_EXERCISE = "remove_exercise"


class FitStatus(str, Enum):
    """Terminal status of a fitting call."""

    OK = "ok"
    NEEDS_REVIEW = "needs_review"


class TimeModelConfig(BaseModel):
    """
    Numeric model used to convert a prescription into seconds.

    Warmup/cooldown allowances are only added when set; use defaults() for
    the documented fallback values when a user has no configuration at all.
    """

    work_seconds_per_10_reps: float = Field(default=30, ge=0)
    rest_between_sets_seconds: float = Field(default=90, ge=0)
    rest_between_exercises_seconds: float = Field(default=120, ge=0)
    warmup_minutes_default: Optional[float] = Field(default=None, ge=0)
    cooldown_minutes_default: Optional[float] = Field(default=None, ge=0)

    @classmethod
    def defaults(cls) -> "TimeModelConfig":
        """Documented defaults: 30s/10 reps, 90s, 120s, 8 min warmup, 5 min cooldown."""
        return cls(warmup_minutes_default=8, cooldown_minutes_default=5)


class ExerciseCaps(BaseModel):
    """Per-exercise set bounds honoured by the fitting engine."""

    min_sets: int = Field(default=1, ge=0)
    max_sets: int = Field(default=6, ge=0)


class ExercisePrescription(BaseModel):
    """One exercise's prescription within a block."""

    exercise_id: str = Field(min_length=1, description="Opaque catalog identifier")
    exercise_name: Optional[str] = None
    sets: int = Field(ge=0)
    reps: str = Field(default="10", description="e.g. '8-12', '10', '30-45s', '6 min'")
    rest_seconds: Optional[float] = Field(
        None, description="Override for rest between sets of this exercise"
    )
    load_type: LoadType = LoadType.FIXED
    load_value: Optional[float] = None
    priority: int = Field(ge=1, le=3, description="1=protect, 2=adjustable, 3=adjust/remove first")
    notes: Optional[str] = None

    @field_validator("reps", mode="before")
    @classmethod
    def coerce_reps(cls, v: Any) -> str:
        """Generators sometimes emit a bare number for reps."""
        if v is None:
            return ""
        return str(v)


class Block(BaseModel):
    """A named session phase holding ordered prescriptions."""

    type: BlockType
    exercises: List[ExercisePrescription] = Field(default_factory=list)

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v: Any) -> Any:
        if isinstance(v, str):
            key = v.strip().lower()
            return BLOCK_TYPE_ALIASES.get(key, key)
        return v


class SessionBlueprint(BaseModel):
    """A single session skeleton."""

    session_index: int = Field(ge=0)
    weekday: str
    name: Optional[str] = None
    blocks: List[Block] = Field(default_factory=list)

    def iter_exercises(self):
        """Yield (block, exercise) pairs in execution order."""
        for block in self.blocks:
            for exercise in block.exercises:
                yield block, exercise

    @property
    def exercise_count(self) -> int:
        return sum(len(block.exercises) for block in self.blocks)


class ProgramBlueprint(BaseModel):
    """A generated program: an ordered list of session skeletons."""

    program_name: str
    duration_weeks: int = Field(default=1, ge=1, le=52)
    sessions: List[SessionBlueprint] = Field(default_factory=list)

    @property
    def exercise_ids(self) -> List[str]:
        """All exercise ids referenced by the program, in order of appearance."""
        seen: List[str] = []
        for session in self.sessions:
            for _, exercise in session.iter_exercises():
                if exercise.exercise_id not in seen:
                    seen.append(exercise.exercise_id)
        return seen


class FitAction(BaseModel):
    """One atomic adjustment applied during fitting."""

    model_config = ConfigDict(frozen=True)

    action: FitActionType
    exercise_id: str
    block_type: BlockType
    from_sets: Optional[int] = None
    to_sets: Optional[int] = None
    delta_sets: Optional[int] = None


class FitReport(BaseModel):
    """Outcome of fitting one session to a duration window."""

    model_config = ConfigDict(frozen=True)

    before_minutes: float
    after_minutes: float
    target_minutes: float
    allowed_min: float
    allowed_max: float
    actions: List[FitAction] = Field(default_factory=list)
    status: FitStatus
    note: Optional[str] = None

    @property
    def is_ok(self) -> bool:
        return self.status == FitStatus.OK


class FitResult(BaseModel):
    """Fitted copy of a session together with its report."""

    session: SessionBlueprint
    report: FitReport


class ProgramFitResult(BaseModel):
    """Fitted sessions and their reports, index-aligned with the input."""

    sessions: List[SessionBlueprint] = Field(default_factory=list)
    reports: List[FitReport] = Field(default_factory=list)

    @property
    def needs_review(self) -> bool:
        """True when any session could not be fitted."""
        return any(not report.is_ok for report in self.reports)

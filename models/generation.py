"""
Request/response models for text/JSON generation and the program pipeline.

These models define the contract between callers and the generation
orchestrator. A request carries exactly one canonical prompt shape: the few
alternative envelopes callers have been seen to pass are unwrapped once, at
validation time, and anything else is rejected.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from core.constants import MAX_POOL_BUCKET_SIZE
from core.sanitization import sanitize_optional
from models.blueprint import ExerciseCaps, TimeModelConfig


class BackendName(str, Enum):
    """Generation backends the orchestrator knows how to call."""

    GEMINI = "gemini"
    DEEPSEEK = "deepseek"
    OPENAI = "openai"
    PERPLEXITY = "perplexity"
    ANTHROPIC = "anthropic"


class ResponseFormat(str, Enum):
    """Desired response shape."""

    TEXT = "text"
    JSON = "json"


# Finish reasons meaning the backend stopped at its token limit
TRUNCATION_FINISH_REASONS = {"length", "max_tokens"}


def _unwrap_prompt(value: Any) -> Any:
    """Unwrap {"content": str} and {"parts": [{"text": str}]} envelopes."""
    if isinstance(value, dict):
        content = value.get("content")
        if isinstance(content, str):
            return content
        parts = value.get("parts")
        if isinstance(parts, list) and parts:
            first = parts[0]
            if isinstance(first, dict) and isinstance(first.get("text"), str):
                return first["text"]
        raise ValueError(
            "Unsupported prompt envelope; expected a string, "
            "{'content': str} or {'parts': [{'text': str}]}"
        )
    return value


class GenerationRequest(BaseModel):
    """A single structured generation request."""

    system_prompt: str = ""
    user_prompt: str = Field(description="User instruction (canonical string form)")
    response_format: ResponseFormat = ResponseFormat.TEXT
    max_tokens: int = Field(default=16000, ge=1)
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    backend: Optional[BackendName] = Field(
        default=None, description="Explicit primary backend; default ordering otherwise"
    )
    model: Optional[str] = Field(
        default=None, description="Model override passed to whichever backend serves the call"
    )

    @field_validator("user_prompt", mode="before")
    @classmethod
    def canonical_user_prompt(cls, v: Any) -> Any:
        v = _unwrap_prompt(v)
        if isinstance(v, str) and not v.strip():
            raise ValueError("user_prompt must not be empty")
        return v

    @property
    def wants_json(self) -> bool:
        return self.response_format == ResponseFormat.JSON


class GenerationResponse(BaseModel):
    """Normalized result of a generation call."""

    content: str
    backend: BackendName
    finish_reason: Optional[str] = None
    attempts: int = Field(default=1, ge=1)

    @property
    def truncated(self) -> bool:
        """True when the backend stopped because it hit its token limit."""
        if not self.finish_reason:
            return False
        return self.finish_reason.lower() in TRUNCATION_FINISH_REASONS


class AnalysisInput(BaseModel):
    """User profile fields sent to the analysis step."""

    age: Optional[int] = Field(None, ge=10, le=100)
    sex: Optional[str] = None
    weight_kg: Optional[float] = Field(None, gt=0)
    height_cm: Optional[float] = Field(None, gt=0)
    training_level: Optional[str] = None
    primary_goal: str = Field(min_length=1)
    sport: Optional[str] = None

    @field_validator("sex", "training_level", "primary_goal", "sport", mode="before")
    @classmethod
    def sanitize_text(cls, v: Any) -> Any:
        """Strip control characters from free-text fields before prompting."""
        if v is None or not isinstance(v, str):
            return v
        return sanitize_optional(v)


class ScheduleInput(BaseModel):
    """Weekly schedule constraints for the blueprint step."""

    sessions_per_week: int = Field(default=3, ge=1, le=7)
    target_minutes: float = Field(default=60, gt=0, le=240)
    weekdays: List[str] = Field(default_factory=lambda: ["Monday", "Wednesday", "Friday"])


class PipelineRequest(BaseModel):
    """Everything the pipeline needs to analyse, generate and fit a program."""

    profile: AnalysisInput
    schedule: ScheduleInput = Field(default_factory=ScheduleInput)
    time_model: Optional[TimeModelConfig] = Field(
        None, description="User time model; documented defaults when omitted"
    )
    candidate_pools: Dict[str, List[str]] = Field(
        default_factory=dict, description="Bucket name -> allowed exercise ids"
    )
    caps: Dict[str, ExerciseCaps] = Field(default_factory=dict)
    allow_remove_from_main: bool = False
    backend: Optional[BackendName] = None

    @field_validator("candidate_pools")
    @classmethod
    def limit_pool_size(cls, v: Dict[str, List[str]]) -> Dict[str, List[str]]:
        for bucket, ids in v.items():
            if len(ids) > MAX_POOL_BUCKET_SIZE:
                raise ValueError(
                    f"Candidate pool '{bucket}' has {len(ids)} ids. "
                    f"Maximum allowed: {MAX_POOL_BUCKET_SIZE}"
                )
        return v

    @property
    def allowed_exercise_ids(self) -> set:
        return {ex_id for ids in self.candidate_pools.values() for ex_id in ids}

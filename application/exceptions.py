"""
Application-layer exceptions.

These exceptions are used across the generation orchestrator, the backend
adapters and the pipeline coordinator. Time estimation and fitting never
raise; an unreachable duration window is a needs_review status instead.
"""

from typing import List, Optional, Tuple


class GenerationError(Exception):
    """Base class for every failure surfaced by generation code."""

    pass


class BackendError(GenerationError):
    """A single backend attempt failed."""

    def __init__(self, backend: str, message: str):
        self.backend = backend
        super().__init__(f"{backend}: {message}")


class BackendTimeoutError(BackendError):
    """A backend attempt exceeded its per-attempt timeout."""

    def __init__(self, backend: str, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(backend, f"timed out after {timeout_seconds:g}s")


class BackendResponseError(BackendError):
    """A backend answered, but with an empty or unusable payload."""

    pass


class BackendExhaustedError(GenerationError):
    """Every backend in the fallback chain failed.

    Carries the ordered (backend, category, message) failures and the last
    underlying error, which is also chained as __cause__.
    """

    def __init__(
        self,
        message: str,
        failures: Optional[List[Tuple[str, str, str]]] = None,
        last_error: Optional[BaseException] = None,
    ):
        self.failures = failures or []
        self.last_error = last_error
        super().__init__(message)


class ResponseParseError(GenerationError):
    """Generated content could not be parsed as JSON, even after repair."""

    def __init__(self, message: str, content: str):
        self.content = content
        super().__init__(message)


class PipelineValidationError(GenerationError):
    """A pipeline stage produced output that failed schema validation."""

    def __init__(self, stage: str, detail: str):
        self.stage = stage
        self.detail = detail
        super().__init__(f"{stage} output failed validation: {detail}")

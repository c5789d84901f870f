"""
Generation request orchestrator.

Sends a GenerationRequest through an ordered fallback chain of backends:

1. Primary backend = explicit request.backend, else first configured default
2. Then the remaining default backends, deduplicated
3. Each attempt runs under its own timeout (cancelled when it fires)
4. First success wins; failures are logged and the next backend is tried
   after a short fixed delay
5. When the last backend fails, BackendExhaustedError is raised, chained to
   that backend's error

Attempts are strictly sequential; there is never more than one outstanding
call per generate().
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import List, Mapping, Optional, Tuple

from application.exceptions import BackendExhaustedError, BackendTimeoutError
from backend.ai.failures import FailureCategory, classify_failure, is_transient
from models.generation import BackendName, GenerationRequest, GenerationResponse
from services.llm.backends import GenerationBackend

logger = logging.getLogger(__name__)

DEFAULT_BACKEND_ORDER: Tuple[BackendName, ...] = (
    BackendName.GEMINI,
    BackendName.DEEPSEEK,
    BackendName.OPENAI,
)


@dataclass(frozen=True)
class OrchestratorConfig:
    """Read-only configuration for the fallback chain."""

    default_order: Tuple[BackendName, ...] = DEFAULT_BACKEND_ORDER
    attempt_timeout_seconds: float = 60.0
    # Delay before the next backend after a timeout, connection or rate-limit failure
    fallback_delay_seconds: float = 1.0
    # Delay before the next backend after any other failure
    error_delay_seconds: float = 0.5

    @classmethod
    def from_settings(cls, settings) -> "OrchestratorConfig":
        return cls(
            default_order=tuple(settings.provider_priority),
            attempt_timeout_seconds=settings.provider_timeout_seconds,
            fallback_delay_seconds=settings.fallback_delay_seconds,
            error_delay_seconds=settings.error_delay_seconds,
        )


class GenerationOrchestrator:
    """
    Calls generation backends in a fixed fallback order.

    Args:
        backends: Configured adapters keyed by backend name
        config: Fallback ordering, timeout and delays
    """

    def __init__(
        self,
        backends: Mapping[BackendName, GenerationBackend],
        config: Optional[OrchestratorConfig] = None,
    ):
        self._backends = dict(backends)
        self._config = config or OrchestratorConfig()

    @property
    def config(self) -> OrchestratorConfig:
        return self._config

    def attempt_sequence(self, hint: Optional[BackendName] = None) -> List[BackendName]:
        """
        Ordered, deduplicated backends to try for a request.

        Backends without a configured adapter are skipped.
        """
        primary = hint or (self._config.default_order[0] if self._config.default_order else None)
        ordered: List[BackendName] = []
        for name in ([primary] if primary else []) + list(self._config.default_order):
            if name in ordered:
                continue
            if name not in self._backends:
                logger.debug(f"Backend {name.value} not configured, skipping")
                continue
            ordered.append(name)
        if hint and hint not in self._backends:
            logger.warning(f"Requested backend {hint.value} is not configured")
        return ordered

    async def _attempt(self, name: BackendName, request: GenerationRequest) -> GenerationResponse:
        timeout = self._config.attempt_timeout_seconds
        try:
            return await asyncio.wait_for(self._backends[name].generate(request), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise BackendTimeoutError(name.value, timeout) from e

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        """
        Produce a generation result, falling back across backends.

        Args:
            request: The generation request

        Returns:
            GenerationResponse attributed to the backend that satisfied it

        Raises:
            BackendExhaustedError: If every backend in the chain failed
        """
        sequence = self.attempt_sequence(request.backend)
        if not sequence:
            raise BackendExhaustedError("No generation backends configured")

        logger.info(
            f"Generation request: chain={' -> '.join(n.value for n in sequence)}, "
            f"format={request.response_format.value}, max_tokens={request.max_tokens}"
        )

        failures: List[Tuple[str, str, str]] = []
        started = time.monotonic()

        for index, name in enumerate(sequence):
            attempt_started = time.monotonic()
            role = "primary" if index == 0 else "fallback"
            logger.info(f"Attempt {index + 1}/{len(sequence)}: {name.value} ({role})")

            try:
                response = await self._attempt(name, request)
            except Exception as e:
                category = classify_failure(e)
                failures.append((name.value, category.value, str(e)))
                logger.warning(
                    f"{name.value} failed after {time.monotonic() - attempt_started:.2f}s "
                    f"({category.value}): {type(e).__name__}: {e}"
                )

                if index == len(sequence) - 1:
                    logger.error(
                        f"All {len(sequence)} backends failed in "
                        f"{time.monotonic() - started:.2f}s"
                    )
                    raise BackendExhaustedError(
                        f"All generation backends failed; last error from {name.value}: {e}",
                        failures=failures,
                        last_error=e,
                    ) from e

                await asyncio.sleep(self._delay_for(category))
                continue

            logger.info(
                f"{name.value} succeeded in {time.monotonic() - attempt_started:.2f}s "
                f"({len(response.content)} chars)"
            )
            if response.truncated:
                logger.warning(f"{name.value} response truncated (finish_reason={response.finish_reason})")
            return response.model_copy(update={"backend": name, "attempts": index + 1})

        # Unreachable: the loop either returns or raises on the last backend
        raise BackendExhaustedError("All generation backends failed", failures=failures)

    def _delay_for(self, category: FailureCategory) -> float:
        if is_transient(category):
            return self._config.fallback_delay_seconds
        return self._config.error_delay_seconds

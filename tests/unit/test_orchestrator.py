"""
Unit tests for services/llm/orchestrator.py

Tests verify that:
- Backends are tried in hint-then-default order, deduplicated
- Each attempt is bounded by its own timeout and the timed-out call is cancelled
- The first success wins and is attributed to its backend
- Exhaustion raises BackendExhaustedError chained to the last failure
"""

import dataclasses
from unittest.mock import AsyncMock, patch

import pytest

from application.exceptions import BackendExhaustedError, BackendTimeoutError
from backend.ai.failures import FailureCategory
from models.generation import BackendName, GenerationRequest, ResponseFormat
from services.llm.orchestrator import (
    DEFAULT_BACKEND_ORDER,
    GenerationOrchestrator,
    OrchestratorConfig,
)
from tests.fakes import FailingBackend, FakeBackend, SlowBackend

GEMINI = BackendName.GEMINI
DEEPSEEK = BackendName.DEEPSEEK
OPENAI = BackendName.OPENAI


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fast_config() -> OrchestratorConfig:
    """Short timeout, no delays between attempts."""
    return OrchestratorConfig(
        default_order=(GEMINI, DEEPSEEK, OPENAI),
        attempt_timeout_seconds=0.05,
        fallback_delay_seconds=0,
        error_delay_seconds=0,
    )


@pytest.fixture
def request_json() -> GenerationRequest:
    return GenerationRequest(
        system_prompt="You are a coach.",
        user_prompt="Build a session.",
        response_format=ResponseFormat.JSON,
    )


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestOrchestratorConfig:
    """Tests for the immutable configuration."""

    def test_defaults(self):
        config = OrchestratorConfig()
        assert config.default_order == DEFAULT_BACKEND_ORDER
        assert config.default_order == (GEMINI, DEEPSEEK, OPENAI)
        assert config.attempt_timeout_seconds == 60.0
        assert config.fallback_delay_seconds == 1.0
        assert config.error_delay_seconds == 0.5

    def test_frozen(self):
        config = OrchestratorConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.attempt_timeout_seconds = 1

    def test_from_settings(self, test_settings):
        settings = test_settings.model_copy(
            update={"ai_provider_priority": "openai,gemini", "provider_timeout_seconds": 30}
        )
        config = OrchestratorConfig.from_settings(settings)
        assert config.default_order == (OPENAI, GEMINI)
        assert config.attempt_timeout_seconds == 30
        assert config.fallback_delay_seconds == 0


# ---------------------------------------------------------------------------
# Attempt Sequence
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestAttemptSequence:
    """Tests for ordering and deduplication."""

    def test_default_order(self, fast_config):
        backends = {name: FakeBackend(name) for name in (GEMINI, DEEPSEEK, OPENAI)}
        orchestrator = GenerationOrchestrator(backends, fast_config)
        assert orchestrator.attempt_sequence() == [GEMINI, DEEPSEEK, OPENAI]

    def test_hint_first_then_rest_without_duplicates(self, fast_config):
        backends = {name: FakeBackend(name) for name in (GEMINI, DEEPSEEK, OPENAI)}
        orchestrator = GenerationOrchestrator(backends, fast_config)
        assert orchestrator.attempt_sequence(OPENAI) == [OPENAI, GEMINI, DEEPSEEK]

    def test_hint_outside_default_order(self, fast_config):
        backends = {
            name: FakeBackend(name) for name in (GEMINI, DEEPSEEK, OPENAI, BackendName.ANTHROPIC)
        }
        orchestrator = GenerationOrchestrator(backends, fast_config)
        assert orchestrator.attempt_sequence(BackendName.ANTHROPIC) == [
            BackendName.ANTHROPIC, GEMINI, DEEPSEEK, OPENAI,
        ]

    def test_unconfigured_backends_skipped(self, fast_config):
        orchestrator = GenerationOrchestrator({OPENAI: FakeBackend(OPENAI)}, fast_config)
        assert orchestrator.attempt_sequence() == [OPENAI]
        assert orchestrator.attempt_sequence(BackendName.PERPLEXITY) == [OPENAI]


# ---------------------------------------------------------------------------
# Generate
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestGenerate:
    """Tests for the fallback protocol."""

    @pytest.mark.asyncio
    async def test_primary_success(self, fast_config, request_json):
        gemini = FakeBackend(GEMINI, script=['{"ok": true}'])
        deepseek = FakeBackend(DEEPSEEK)
        orchestrator = GenerationOrchestrator({GEMINI: gemini, DEEPSEEK: deepseek}, fast_config)

        response = await orchestrator.generate(request_json)

        assert response.content == '{"ok": true}'
        assert response.backend == GEMINI
        assert response.attempts == 1
        assert gemini.last_request is request_json
        assert deepseek.call_count == 0

    @pytest.mark.asyncio
    async def test_two_timeouts_then_success(self, fast_config, request_json):
        """First two backends stall past the timeout; the third answers."""
        gemini = SlowBackend(GEMINI)
        deepseek = SlowBackend(DEEPSEEK)
        openai_backend = FakeBackend(OPENAI, script=['{"plan": 1}'])
        orchestrator = GenerationOrchestrator(
            {GEMINI: gemini, DEEPSEEK: deepseek, OPENAI: openai_backend}, fast_config
        )

        response = await orchestrator.generate(request_json)

        assert response.backend == OPENAI
        assert response.content == '{"plan": 1}'
        assert response.attempts == 3
        assert gemini.call_count == 1
        assert deepseek.call_count == 1
        assert openai_backend.call_count == 1

    @pytest.mark.asyncio
    async def test_timed_out_call_is_cancelled(self, fast_config, request_json):
        slow = SlowBackend(GEMINI)
        orchestrator = GenerationOrchestrator(
            {GEMINI: slow, DEEPSEEK: FakeBackend(DEEPSEEK)}, fast_config
        )

        await orchestrator.generate(request_json)

        assert slow.cancelled is True

    @pytest.mark.asyncio
    async def test_hint_used_as_primary(self, fast_config):
        gemini = FakeBackend(GEMINI)
        deepseek = FakeBackend(DEEPSEEK, script=["deepseek answer"])
        orchestrator = GenerationOrchestrator({GEMINI: gemini, DEEPSEEK: deepseek}, fast_config)

        response = await orchestrator.generate(
            GenerationRequest(user_prompt="hi", backend=DEEPSEEK)
        )

        assert response.backend == DEEPSEEK
        assert gemini.call_count == 0

    @pytest.mark.asyncio
    async def test_failing_hint_falls_back_to_default_order(self, fast_config):
        gemini = FakeBackend(GEMINI, script=["gemini answer"])
        openai_backend = FailingBackend(OPENAI)
        orchestrator = GenerationOrchestrator({GEMINI: gemini, OPENAI: openai_backend}, fast_config)

        response = await orchestrator.generate(GenerationRequest(user_prompt="hi", backend=OPENAI))

        assert response.backend == GEMINI
        assert response.attempts == 2
        # Hinted backend is not retried when it reappears in the default order
        assert openai_backend.call_count == 1

    @pytest.mark.asyncio
    async def test_all_fail_raises_with_last_reason(self, fast_config, request_json):
        orchestrator = GenerationOrchestrator(
            {
                GEMINI: FailingBackend(GEMINI, RuntimeError("gemini quota")),
                DEEPSEEK: SlowBackend(DEEPSEEK),
                OPENAI: FailingBackend(OPENAI, RuntimeError("openai invalid key")),
            },
            fast_config,
        )

        with pytest.raises(BackendExhaustedError) as exc_info:
            await orchestrator.generate(request_json)

        error = exc_info.value
        assert "openai invalid key" in str(error)
        assert isinstance(error.__cause__, RuntimeError)
        assert error.last_error is error.__cause__
        assert [f[0] for f in error.failures] == ["gemini", "deepseek", "openai"]
        assert error.failures[1][1] == FailureCategory.TIMEOUT.value

    @pytest.mark.asyncio
    async def test_last_backend_timeout_is_wrapped(self, fast_config, request_json):
        orchestrator = GenerationOrchestrator(
            {OPENAI: SlowBackend(OPENAI)}, fast_config
        )

        with pytest.raises(BackendExhaustedError) as exc_info:
            await orchestrator.generate(request_json)

        assert isinstance(exc_info.value.__cause__, BackendTimeoutError)
        assert "timed out" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_no_backends_configured(self, fast_config, request_json):
        orchestrator = GenerationOrchestrator({}, fast_config)
        with pytest.raises(BackendExhaustedError, match="No generation backends configured"):
            await orchestrator.generate(request_json)

    @pytest.mark.asyncio
    async def test_delay_depends_on_failure_category(self, request_json):
        """Timeouts wait fallback_delay_seconds, other errors error_delay_seconds."""
        config = OrchestratorConfig(
            default_order=(GEMINI, DEEPSEEK, OPENAI),
            attempt_timeout_seconds=0.05,
            fallback_delay_seconds=1.0,
            error_delay_seconds=0.5,
        )
        orchestrator = GenerationOrchestrator(
            {
                GEMINI: SlowBackend(GEMINI),
                DEEPSEEK: FailingBackend(DEEPSEEK, ValueError("bad payload")),
                OPENAI: FakeBackend(OPENAI, script=["ok"]),
            },
            config,
        )

        with patch("services.llm.orchestrator.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            response = await orchestrator.generate(request_json)

        assert response.backend == OPENAI
        delays = [call.args[0] for call in mock_sleep.await_args_list]
        assert delays == [1.0, 0.5]

    @pytest.mark.asyncio
    async def test_no_delay_after_success(self, fast_config, request_json):
        orchestrator = GenerationOrchestrator({GEMINI: FakeBackend(GEMINI)}, fast_config)
        with patch("services.llm.orchestrator.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            await orchestrator.generate(request_json)
        mock_sleep.assert_not_awaited()

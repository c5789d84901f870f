"""
Pipeline factory.

This module wires settings, logging, Sentry, the configured generation
backends and the orchestrator into a ready-to-run ProgramPipeline.
The factory pattern allows for:
- Easy testing with custom settings or injected backends
- Clear separation of construction from the pipeline logic

Usage:
    from backend.main import create_pipeline
    from backend.settings import Settings

    # Default pipeline (uses get_settings())
    pipeline = create_pipeline()

    # Test pipeline with custom settings and fake backends
    test_settings = Settings(environment="test", _env_file=None)
    pipeline = create_pipeline(settings=test_settings, backends={...})
"""

import logging
from typing import Mapping, Optional

import sentry_sdk

from backend.ai.client_factory import build_backends
from backend.settings import Settings, get_settings
from models.generation import BackendName
from services.llm.backends import GenerationBackend
from services.llm.orchestrator import GenerationOrchestrator, OrchestratorConfig
from services.program_pipeline import ProgramPipeline

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(settings: Settings) -> None:
    """Configure the root logger from settings.log_level."""
    logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO), format=LOG_FORMAT)
    # SDK HTTP debug logs carry request headers
    logging.getLogger("httpx").setLevel(logging.WARNING)


def create_orchestrator(
    settings: Optional[Settings] = None,
    backends: Optional[Mapping[BackendName, GenerationBackend]] = None,
) -> GenerationOrchestrator:
    """
    Create a GenerationOrchestrator from settings.

    Args:
        settings: Optional Settings instance. If not provided, uses get_settings()
        backends: Optional adapters; built from settings API keys when omitted
    """
    if settings is None:
        settings = get_settings()
    if backends is None:
        backends = build_backends(settings)
    return GenerationOrchestrator(backends, OrchestratorConfig.from_settings(settings))


def create_pipeline(
    settings: Optional[Settings] = None,
    backends: Optional[Mapping[BackendName, GenerationBackend]] = None,
) -> ProgramPipeline:
    """
    Create and configure a ProgramPipeline instance.

    Args:
        settings: Optional Settings instance. If not provided, uses get_settings()
                  which loads from environment variables.
        backends: Optional adapters, mainly for tests.

    Returns:
        Configured ProgramPipeline instance.
    """
    if settings is None:
        settings = get_settings()

    _init_sentry(settings)

    pipeline = ProgramPipeline(
        create_orchestrator(settings, backends),
        fit_tolerance_minutes=settings.fit_tolerance_minutes,
        prompt_tolerance_minutes=settings.prompt_tolerance_minutes,
        default_time_model=settings.time_model(),
        analysis_temperature=settings.analysis_temperature,
        analysis_max_tokens=settings.analysis_max_tokens,
        blueprint_temperature=settings.blueprint_temperature,
        blueprint_max_tokens=settings.blueprint_max_tokens,
    )

    logger.info(
        f"Pipeline ready (environment={settings.environment}, "
        f"priority={settings.ai_provider_priority}, "
        f"timeout={settings.provider_timeout_seconds:g}s)"
    )
    return pipeline


def _init_sentry(settings: Settings) -> None:
    """Initialize Sentry SDK if DSN is configured."""
    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.environment,
            traces_sample_rate=0.1,  # 10% of transactions for performance monitoring
            profiles_sample_rate=0.1,
            enable_tracing=True,
        )
        logger.info("Sentry initialized for program pipeline")

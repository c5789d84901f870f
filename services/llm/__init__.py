"""
LLM integration module.

Backend adapters, the fallback orchestrator, prompt templates, response
parsing and the schemas that validate each generation step.
"""

from services.llm.backends import (
    AnthropicBackend,
    GenerationBackend,
    OpenAICompatibleBackend,
    PerplexityBackend,
)
from services.llm.orchestrator import GenerationOrchestrator, OrchestratorConfig
from services.llm.response_parser import parse_json_response
from services.llm.schemas import AnalysisResult, FocusDistribution, VolumeRecommendations

__all__ = [
    "AnthropicBackend",
    "GenerationBackend",
    "OpenAICompatibleBackend",
    "PerplexityBackend",
    "GenerationOrchestrator",
    "OrchestratorConfig",
    "parse_json_response",
    "AnalysisResult",
    "FocusDistribution",
    "VolumeRecommendations",
]

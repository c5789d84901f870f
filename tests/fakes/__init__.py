"""
Fake generation backends and canned LLM payloads for testing.

Usage:
    from tests.fakes import FakeBackend, SlowBackend

    backend = FakeBackend(BackendName.OPENAI, script=['{"ok": true}'])
    orchestrator = GenerationOrchestrator({BackendName.OPENAI: backend}, config)
"""
from tests.fakes.llm_backend import FailingBackend, FakeBackend, SlowBackend
from tests.fakes.payloads import analysis_payload, blueprint_payload

__all__ = [
    "FakeBackend",
    "FailingBackend",
    "SlowBackend",
    "analysis_payload",
    "blueprint_payload",
]

"""
Program generation pipeline.

This service runs the three-step generation flow:
1. Analysis - profile -> focus distribution and volume recommendations
2. Blueprint - schedule + analysis + candidate pools -> session skeletons
3. Fitting - deterministic adjustment of every session to the duration window

Both LLM steps go through the GenerationOrchestrator, so any configured
backend can serve them. Parse and schema failures surface as
PipelineValidationError; backend exhaustion propagates unchanged.
"""

import logging
from typing import Callable, List, Optional

from pydantic import BaseModel, Field, ValidationError

from application.exceptions import PipelineValidationError, ResponseParseError
from models.blueprint import FitReport, ProgramBlueprint, TimeModelConfig
from models.generation import (
    BackendName,
    GenerationRequest,
    GenerationResponse,
    PipelineRequest,
    ResponseFormat,
)
from services.llm.orchestrator import GenerationOrchestrator
from services.llm.prompts import (
    ANALYSIS_SYSTEM_PROMPT,
    blueprint_system_prompt,
    build_analysis_prompt,
    build_blueprint_prompt,
)
from services.llm.response_parser import parse_json_response
from services.llm.schemas import AnalysisResult, unknown_exercise_ids
from services.time_fitting import fit_program_sessions

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]

# Progress reported after each step
ANALYSIS_PROGRESS = 30
BLUEPRINT_PROGRESS = 60
FITTING_PROGRESS = 100


class PipelineResult(BaseModel):
    """Analysis, fitted blueprint and per-session fit reports."""

    analysis: AnalysisResult
    blueprint: ProgramBlueprint = Field(description="Blueprint after time fitting")
    reports: List[FitReport] = Field(default_factory=list)
    analysis_backend: BackendName
    blueprint_backend: BackendName

    @property
    def needs_review(self) -> bool:
        return any(not report.is_ok for report in self.reports)


class ProgramPipeline:
    """
    Coordinates analysis, blueprint generation and time fitting.

    Args:
        orchestrator: Generation orchestrator used for both LLM steps
        fit_tolerance_minutes: Fitting window half-width around the target
        prompt_tolerance_minutes: Window half-width quoted to the generator
        default_time_model: Time model used when the request carries none
    """

    def __init__(
        self,
        orchestrator: GenerationOrchestrator,
        fit_tolerance_minutes: float = 5,
        prompt_tolerance_minutes: float = 10,
        default_time_model: Optional[TimeModelConfig] = None,
        analysis_temperature: float = 0.3,
        analysis_max_tokens: int = 2000,
        blueprint_temperature: float = 0.7,
        blueprint_max_tokens: int = 16000,
    ):
        self._orchestrator = orchestrator
        self._fit_tolerance = fit_tolerance_minutes
        self._prompt_tolerance = prompt_tolerance_minutes
        self._default_time_model = default_time_model or TimeModelConfig.defaults()
        self._analysis_temperature = analysis_temperature
        self._analysis_max_tokens = analysis_max_tokens
        self._blueprint_temperature = blueprint_temperature
        self._blueprint_max_tokens = blueprint_max_tokens

    async def run(
        self,
        request: PipelineRequest,
        on_progress: Optional[ProgressCallback] = None,
    ) -> PipelineResult:
        """
        Run analysis, blueprint generation and fitting.

        Args:
            request: Profile, schedule, time model and candidate pools
            on_progress: Called with 30, 60 and 100 as the steps complete

        Returns:
            PipelineResult with the fitted blueprint

        Raises:
            PipelineValidationError: If a step's output cannot be parsed or validated
            BackendExhaustedError: If no backend could serve a step
        """
        time_model = request.time_model or self._default_time_model

        analysis, analysis_response = await self._analyse(request)
        self._report(on_progress, ANALYSIS_PROGRESS)

        blueprint, blueprint_response = await self._generate_blueprint(
            request, analysis, time_model
        )
        self._report(on_progress, BLUEPRINT_PROGRESS)

        target = request.schedule.target_minutes
        fitted = fit_program_sessions(
            blueprint.sessions,
            time_model,
            target_minutes=target,
            allowed_min_minutes=max(0, target - self._fit_tolerance),
            allowed_max_minutes=target + self._fit_tolerance,
            caps=request.caps,
            allow_remove_from_main=request.allow_remove_from_main,
        )
        self._report(on_progress, FITTING_PROGRESS)

        if fitted.needs_review:
            flagged = sum(1 for r in fitted.reports if not r.is_ok)
            logger.warning(f"{flagged}/{len(fitted.reports)} sessions need review")

        return PipelineResult(
            analysis=analysis,
            blueprint=blueprint.model_copy(update={"sessions": fitted.sessions}),
            reports=fitted.reports,
            analysis_backend=analysis_response.backend,
            blueprint_backend=blueprint_response.backend,
        )

    async def _analyse(self, request: PipelineRequest):
        response = await self._orchestrator.generate(
            GenerationRequest(
                system_prompt=ANALYSIS_SYSTEM_PROMPT,
                user_prompt=build_analysis_prompt(request.profile),
                response_format=ResponseFormat.JSON,
                max_tokens=self._analysis_max_tokens,
                temperature=self._analysis_temperature,
                backend=request.backend,
            )
        )
        data = self._parse("analysis", response)
        try:
            analysis = AnalysisResult.model_validate(data)
        except ValidationError as e:
            raise PipelineValidationError("analysis", str(e)) from e

        logger.info(
            f"Analysis via {response.backend.value}: "
            f"focus={analysis.focus_distribution.model_dump()}"
        )
        return analysis, response

    async def _generate_blueprint(
        self,
        request: PipelineRequest,
        analysis: AnalysisResult,
        time_model: TimeModelConfig,
    ):
        schedule = request.schedule
        response = await self._orchestrator.generate(
            GenerationRequest(
                system_prompt=blueprint_system_prompt(schedule),
                user_prompt=build_blueprint_prompt(
                    schedule,
                    focus_distribution=analysis.focus_distribution.model_dump(),
                    time_model=time_model,
                    candidate_pools=request.candidate_pools,
                    tolerance_minutes=self._prompt_tolerance,
                    sport=request.profile.sport,
                ),
                response_format=ResponseFormat.JSON,
                max_tokens=self._blueprint_max_tokens,
                temperature=self._blueprint_temperature,
                backend=request.backend,
            )
        )
        data = self._parse("blueprint", response)
        try:
            blueprint = ProgramBlueprint.model_validate(data)
        except ValidationError as e:
            raise PipelineValidationError("blueprint", str(e)) from e

        if not blueprint.sessions:
            raise PipelineValidationError("blueprint", "no sessions generated")

        allowed = request.allowed_exercise_ids
        if allowed:
            unknown = unknown_exercise_ids(blueprint, allowed)
            if unknown:
                raise PipelineValidationError(
                    "blueprint",
                    f"exercise ids not in candidate pools: {', '.join(unknown)}",
                )

        logger.info(
            f"Blueprint via {response.backend.value}: {len(blueprint.sessions)} sessions, "
            f"{len(blueprint.exercise_ids)} distinct exercises"
        )
        return blueprint, response

    @staticmethod
    def _parse(stage: str, response: GenerationResponse):
        if response.truncated:
            logger.warning(
                f"{stage} response from {response.backend.value} was truncated "
                f"(finish_reason={response.finish_reason})"
            )
        try:
            return parse_json_response(response.content)
        except ResponseParseError as e:
            raise PipelineValidationError(stage, str(e)) from e

    @staticmethod
    def _report(on_progress: Optional[ProgressCallback], percent: int) -> None:
        if on_progress is not None:
            on_progress(percent)

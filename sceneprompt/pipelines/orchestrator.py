"""
ScenePrompt Batch Orchestrator

Runs each scene through extraction, synthesis, templating, validation and
strategy resolution with bounded concurrency.

Guarantees:
- one ``PromptResult`` per input scene, in input order
- a failing scene (transport error, timeout, ``fail`` strategy) never aborts
  its siblings
- the batch itself is rejected only for malformed input, before any model
  call is issued

Usage:
    pipeline = ScenePromptPipeline(GeminiClient())
    results = await pipeline.generate_scene_prompts(scenes, config)
"""

import asyncio
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from sceneprompt.core.config import ProjectConfig, ServiceSettings
from sceneprompt.core.constants import DEFAULT_SUGGESTION_COUNT, ErrorCode, SafetyStatus, SceneStage
from sceneprompt.core.exceptions import (
    InvalidBatchError,
    InvalidConfigError,
    PipelineStageError,
    SafetyViolationError,
    SceneTimeoutError,
)
from sceneprompt.core.logging_config import get_logger
from sceneprompt.core.metrics import PipelineMetrics, get_metrics
from sceneprompt.core.retry import LLM_RETRY_CONFIG, RetryConfig
from sceneprompt.llm.client import BaseModelClient
from sceneprompt.safety.resolver import is_valid_for_edit, resolve
from sceneprompt.safety.validator import evaluate
from sceneprompt.utils.text_utils import generate_prompt_preview

from .alternatives import AlternativeGenerator
from .concurrency import BatchLimiter, derive_worker_count
from .extractor import VisualElementExtractor
from .models import PromptResult, SceneInput, ValidationResult, VisualElements
from .synthesizer import PromptSynthesizer
from .templates import apply_template

logger = get_logger("pipelines.orchestrator")

ProgressCallback = Callable[[Dict[str, Any]], None]


class ScenePromptPipeline:
    """
    Scene prompt generation and safety pipeline.

    Features:
    - Rate-limit aware worker pool
    - Per-scene deadline and retries
    - Per-scene failure isolation
    - Cooperative batch cancellation
    - Progress callback per stage transition
    - Optional advisory rewrites for scenes with violations
    """

    def __init__(
        self,
        client: BaseModelClient,
        metrics: Optional[PipelineMetrics] = None,
        settings: Optional[ServiceSettings] = None,
        retry_config: RetryConfig = LLM_RETRY_CONFIG,
        progress_callback: Optional[ProgressCallback] = None,
        suggest_alternatives: bool = False,
        alternative_count: int = DEFAULT_SUGGESTION_COUNT
    ):
        """
        Initialize the pipeline.

        Args:
            client: Model client shared by every scene
            metrics: Metrics sink (defaults to the process-wide instance)
            settings: Worker bounds (defaults to ``ServiceSettings()``)
            retry_config: Backoff settings for model calls
            progress_callback: Called with ``{scene_id, index, stage}`` dicts
            suggest_alternatives: Attach model rewrites to scenes with violations
                (one extra model call per violating scene)
            alternative_count: Rewrites requested per violating scene
        """
        self.client = client
        self.metrics = metrics if metrics is not None else get_metrics()
        self.settings = settings or ServiceSettings()
        self._progress_callback = progress_callback
        self.suggest_alternatives = suggest_alternatives
        self.alternative_count = alternative_count

        self.extractor = VisualElementExtractor(client, self.metrics, retry_config)
        self.synthesizer = PromptSynthesizer(client, self.metrics, retry_config)
        self.alternatives = AlternativeGenerator(client, self.metrics, retry_config)

    def set_progress_callback(self, callback: Optional[ProgressCallback]) -> None:
        """Set a callback for progress updates."""
        self._progress_callback = callback

    def _report_progress(self, scene: SceneInput, stage: SceneStage) -> None:
        if self._progress_callback:
            self._progress_callback({
                'scene_id': scene.id,
                'index': scene.index,
                'stage': stage.value,
            })

    # =========================================================================
    # BATCH GENERATION
    # =========================================================================

    @staticmethod
    def _validate_batch(scenes: Sequence[SceneInput], config: ProjectConfig) -> None:
        if not isinstance(config, ProjectConfig):
            raise InvalidConfigError(f"config must be a ProjectConfig, got {type(config).__name__}")
        if isinstance(scenes, (str, bytes)) or not isinstance(scenes, Sequence):
            raise InvalidBatchError("scenes must be a list of SceneInput")
        if not scenes:
            raise InvalidBatchError("scenes must not be empty")

        seen_ids = set()
        for position, scene in enumerate(scenes):
            if not isinstance(scene, SceneInput):
                raise InvalidBatchError(
                    f"scene at position {position} is not a SceneInput",
                    {"position": position, "type": type(scene).__name__},
                )
            if not isinstance(scene.text, str):
                raise InvalidBatchError(f"scene '{scene.id}' text must be a string", {"scene_id": scene.id})
            if not isinstance(scene.index, int) or isinstance(scene.index, bool):
                raise InvalidBatchError(
                    f"scene '{scene.id}' index must be an integer",
                    {"scene_id": scene.id, "type": type(scene.index).__name__},
                )
            if scene.index < 0:
                raise InvalidBatchError(f"scene '{scene.id}' has a negative index", {"scene_id": scene.id})
            if scene.id in seen_ids:
                raise InvalidBatchError(f"duplicate scene id '{scene.id}'", {"scene_id": scene.id})
            seen_ids.add(scene.id)

    async def generate_scene_prompts(
        self,
        scenes: Sequence[SceneInput],
        config: ProjectConfig,
        cancel_event: Optional[asyncio.Event] = None
    ) -> List[PromptResult]:
        """
        Generate visual prompts for a batch of scenes.

        Args:
            scenes: Scenes in display order
            config: Project configuration snapshot
            cancel_event: When set, unstarted and in-flight scenes are
                reported as cancelled; finished results are kept

        Returns:
            One PromptResult per scene, in input order

        Raises:
            InvalidBatchError: malformed batch (nothing is processed)
        """
        self._validate_batch(scenes, config)
        self.metrics.record_batch()

        workers = derive_worker_count(
            self.client.get_rate_limit_status(),
            len(scenes),
            floor=self.settings.min_workers,
            ceiling=self.settings.max_workers,
        )
        limiter = BatchLimiter(workers)
        logger.info(f"Processing {len(scenes)} scenes with {workers} workers")

        tasks = [
            asyncio.ensure_future(self._run_scene(scene, config, limiter, cancel_event))
            for scene in scenes
        ]
        watcher = None
        if cancel_event is not None:
            watcher = asyncio.ensure_future(self._watch_cancel(cancel_event, tasks))

        try:
            outcomes = await asyncio.gather(*tasks, return_exceptions=True)
        except asyncio.CancelledError:
            for task in tasks:
                task.cancel()
            raise
        finally:
            if watcher is not None:
                watcher.cancel()

        results = []
        for scene, outcome in zip(scenes, outcomes):
            if isinstance(outcome, PromptResult):
                results.append(outcome)
            elif isinstance(outcome, asyncio.CancelledError):
                results.append(self._record(self._cancelled_result(scene)))
            else:
                logger.error(f"Scene '{scene.id}' raised unexpectedly: {outcome!r}", exc_info=outcome)
                results.append(self._record(self._failed_result(scene, None, str(outcome))))

        succeeded = sum(1 for r in results if r.success)
        logger.info(f"Batch complete: {succeeded}/{len(results)} scenes succeeded ({limiter.get_stats()})")
        return results

    @staticmethod
    async def _watch_cancel(cancel_event: asyncio.Event, tasks: List[asyncio.Future]) -> None:
        await cancel_event.wait()
        pending = [task for task in tasks if not task.done()]
        if pending:
            logger.warning(f"Batch cancelled, stopping {len(pending)} unfinished scenes")
        for task in pending:
            task.cancel()

    async def _run_scene(
        self,
        scene: SceneInput,
        config: ProjectConfig,
        limiter: BatchLimiter,
        cancel_event: Optional[asyncio.Event]
    ) -> PromptResult:
        """Run one scene under a worker slot and its deadline."""
        if cancel_event is not None and cancel_event.is_set():
            return self._record(self._cancelled_result(scene))

        if not scene.text.strip():
            self._report_progress(scene, SceneStage.RESOLVED)
            return self._record(self._failed_result(
                scene,
                ErrorCode.EXTRACTION_FAILED,
                "scene text is empty",
            ))

        async with limiter.acquire():
            if cancel_event is not None and cancel_event.is_set():
                return self._record(self._cancelled_result(scene))

            timeout = config.generation.timeout_seconds
            try:
                result = await asyncio.wait_for(self._process_scene(scene, config), timeout=timeout)
            except asyncio.TimeoutError:
                error = SceneTimeoutError(scene.id, timeout)
                logger.warning(error.message)
                result = self._failed_result(scene, ErrorCode.TIMEOUT, error.message)

        self._report_progress(scene, SceneStage.RESOLVED)
        return self._record(result)

    async def _process_scene(self, scene: SceneInput, config: ProjectConfig) -> PromptResult:
        """Extraction through strategy resolution for one scene."""
        self._report_progress(scene, SceneStage.EXTRACTING)
        try:
            outcome = await self.extractor.extract(scene.text, config)
        except PipelineStageError as e:
            logger.error(f"Scene '{scene.id}': {e.message}")
            return self._failed_result(scene, e.code, e.message)

        elements = outcome.elements
        degraded = outcome.degraded

        self._report_progress(scene, SceneStage.SYNTHESIZING)
        try:
            base_prompt = await self.synthesizer.synthesize(scene.text, elements, config)
        except PipelineStageError as e:
            logger.error(f"Scene '{scene.id}': {e.message}")
            return self._failed_result(scene, e.code, e.message, elements, degraded)

        self._report_progress(scene, SceneStage.TEMPLATING)
        styled = apply_template(base_prompt, config.template.name, config.aspect_ratio)

        self._report_progress(scene, SceneStage.VALIDATING)
        evaluation = evaluate(styled, config.safety)

        alternatives: Tuple[str, ...] = ()
        if self.suggest_alternatives and not evaluation.is_safe:
            self._report_progress(scene, SceneStage.SUGGESTING)
            alternatives = await self.alternatives.generate(
                styled,
                styled,
                config,
                evaluation=evaluation,
                count=self.alternative_count,
            )

        try:
            resolution = resolve(styled, evaluation, config.safety.error_strategy)
        except SafetyViolationError as e:
            logger.warning(f"Scene '{scene.id}': {e.message}")
            return replace(
                self._failed_result(scene, e.code, e.message, elements, degraded),
                alternatives=alternatives,
            )

        if not evaluation.is_safe:
            logger.info(
                f"Scene '{scene.id}' {resolution.status.value}: {', '.join(evaluation.violations)}"
            )

        return PromptResult(
            scene_id=scene.id,
            index=scene.index,
            original_text=scene.text,
            visual_elements=elements,
            visual_prompt=resolution.visual_prompt,
            safety_status=resolution.status,
            success=resolution.success,
            error_message=resolution.error_message,
            error_code=resolution.error_code,
            degraded=degraded,
            alternatives=alternatives,
        )

    def _record(self, result: PromptResult) -> PromptResult:
        self.metrics.record_scene(result.safety_status, result.error_code, result.degraded)
        return result

    @staticmethod
    def _failed_result(
        scene: SceneInput,
        code: Optional[ErrorCode],
        message: str,
        elements: Optional[VisualElements] = None,
        degraded: bool = False
    ) -> PromptResult:
        return PromptResult(
            scene_id=scene.id,
            index=scene.index,
            original_text=scene.text,
            visual_elements=elements or VisualElements.empty(),
            visual_prompt="",
            safety_status=SafetyStatus.FAILED,
            success=False,
            error_message=message,
            error_code=code,
            degraded=degraded,
        )

    @classmethod
    def _cancelled_result(cls, scene: SceneInput) -> PromptResult:
        return cls._failed_result(scene, ErrorCode.CANCELLED, "scene cancelled before completion")

    # =========================================================================
    # PREVIEW AND EDIT VALIDATION
    # =========================================================================

    @staticmethod
    def generate_prompt_preview(prompt: str) -> str:
        """Single-line, bounded preview of a prompt for list display."""
        return generate_prompt_preview(prompt)

    async def validate_and_edit_prompt(
        self,
        original_prompt: str,
        edited_prompt: str,
        config: ProjectConfig,
        suggestion_count: int = DEFAULT_SUGGESTION_COUNT
    ) -> ValidationResult:
        """
        Validate a user-edited prompt and suggest safe rewrites when it fails.

        Validity ignores ``error_strategy``. Suggestions are advisory and are
        not re-validated; when the model yields none, the masked edit is
        offered instead.
        """
        evaluation = evaluate(edited_prompt, config.safety)
        if is_valid_for_edit(evaluation):
            return ValidationResult(is_valid=True, safety_result=evaluation)

        logger.info(f"Edited prompt rejected: {', '.join(evaluation.violations)}")
        suggestions = await self.alternatives.generate(
            original_prompt,
            edited_prompt,
            config,
            evaluation=evaluation,
            count=suggestion_count,
        )
        if not suggestions and evaluation.filtered_prompt:
            suggestions = (evaluation.filtered_prompt,)

        return ValidationResult(
            is_valid=False,
            safety_result=evaluation,
            suggestions=suggestions,
        )

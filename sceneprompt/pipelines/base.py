"""
ScenePrompt Base Stage

Shared plumbing for pipeline stages that call the model: retries with
backoff, metrics and stage timing.
"""

import time
from contextlib import contextmanager
from typing import Optional

from sceneprompt.core.config import ProjectConfig
from sceneprompt.core.logging_config import get_logger
from sceneprompt.core.metrics import PipelineMetrics, get_metrics
from sceneprompt.core.retry import LLM_RETRY_CONFIG, RetryConfig, retry_async_call
from sceneprompt.llm.client import BaseModelClient

logger = get_logger("pipelines.base")


class ModelStage:
    """
    Base class for model-backed stages.

    Features:
    - Retry budget taken from ``generation.retry_attempts``
    - Model call and retry counting
    - Stage timing
    """

    stage_name = "model"
    temperature = 0.7
    max_tokens = 1024

    def __init__(
        self,
        client: BaseModelClient,
        metrics: Optional[PipelineMetrics] = None,
        retry_config: RetryConfig = LLM_RETRY_CONFIG
    ):
        """
        Initialize the stage.

        Args:
            client: Shared model client
            metrics: Metrics sink (defaults to the process-wide instance)
            retry_config: Backoff settings; the retry count comes from the project config
        """
        self.client = client
        self.metrics = metrics if metrics is not None else get_metrics()
        self.retry_config = retry_config

    async def _generate(self, prompt: str) -> str:
        self.metrics.record_model_call()
        return await self.client.generate_text(
            prompt,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )

    async def _call_model(self, prompt: str, config: ProjectConfig) -> str:
        """Call the model, retrying transient failures up to ``retry_attempts`` times."""
        retry_config = self.retry_config.with_retries(config.generation.retry_attempts)
        with self._timed():
            return await retry_async_call(
                self._generate,
                prompt,
                config=retry_config,
                on_retry=self.metrics.record_retry,
            )

    @contextmanager
    def _timed(self):
        start = time.perf_counter()
        try:
            yield
        finally:
            self.metrics.record_stage(self.stage_name, time.perf_counter() - start)

"""
Pytest Configuration and Fixtures

Shared fixtures for all tests.
"""

import asyncio
import json
import re
import shutil
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Tuple

import pytest

from sceneprompt.core.config import GenerationConfig, ProjectConfig, SafetyConfig
from sceneprompt.core.constants import ErrorStrategy
from sceneprompt.core.metrics import PipelineMetrics
from sceneprompt.core.prompt_loader import PromptLoader
from sceneprompt.core.retry import RetryConfig
from sceneprompt.llm.client import BaseModelClient, RateLimitStatus
from sceneprompt.pipelines.models import SceneInput
from sceneprompt.pipelines.orchestrator import ScenePromptPipeline

DEFAULT_EXTRACTION = json.dumps({
    "subject": ["young woman"],
    "environment": ["city park", "outdoor"],
    "camera": ["medium shot"],
    "lighting": ["golden hour"],
    "mood": ["peaceful"],
})

DEFAULT_ALTERNATIVES = "1. a calm street at dusk\n2. a quiet street with soft light\n3. a peaceful evening street"

_SCENE_PATTERN = re.compile(r'Scene: "(.*)"', re.DOTALL)


def _default_synthesis(prompt: str) -> str:
    match = _SCENE_PATTERN.search(prompt)
    scene = match.group(1) if match else "a scene"
    return f"A cinematic photo of {scene}"


class FakeModelClient(BaseModelClient):
    """
    Scripted model client.

    The stage is detected from the prompt text. Responses may be a string,
    a callable taking the prompt, an exception instance (raised), or a list
    consumed one item per call. ``script(marker, ...)`` overrides a stage
    for prompts containing ``marker``; ``delay(marker, seconds)`` slows them.
    """

    provider_name = "fake"

    def __init__(
        self,
        extraction: Any = DEFAULT_EXTRACTION,
        synthesis: Any = _default_synthesis,
        alternatives: Any = DEFAULT_ALTERNATIVES,
        remaining: int = 100
    ):
        self.responses: Dict[str, Any] = {
            "extraction": extraction,
            "synthesis": synthesis,
            "alternatives": alternatives,
        }
        self.overrides: List[Tuple[str, str, Any]] = []
        self.delays: Dict[str, float] = {}
        self.calls: List[Tuple[str, str]] = []
        self.remaining = remaining
        self.active = 0
        self.peak_active = 0
        self.cancelled = 0

    def script(self, marker: str, stage: str, response: Any) -> None:
        self.overrides.append((marker, stage, response))

    def delay(self, marker: str, seconds: float) -> None:
        self.delays[marker] = seconds

    @staticmethod
    def _stage_of(prompt: str) -> str:
        if "visual element analyst" in prompt:
            return "extraction"
        if "content safety editor" in prompt:
            return "alternatives"
        return "synthesis"

    def calls_for(self, stage: str) -> List[str]:
        return [prompt for s, prompt in self.calls if s == stage]

    async def generate_text(self, prompt: str, temperature: float = 0.7, max_tokens: int = 1024) -> str:
        stage = self._stage_of(prompt)
        self.calls.append((stage, prompt))
        self.active += 1
        self.peak_active = max(self.peak_active, self.active)
        try:
            for marker, seconds in self.delays.items():
                if marker in prompt:
                    await asyncio.sleep(seconds)

            response = self.responses[stage]
            for marker, scripted_stage, scripted in self.overrides:
                if scripted_stage == stage and marker in prompt:
                    response = scripted

            if isinstance(response, list):
                response = response.pop(0)
            if isinstance(response, BaseException):
                raise response
            if callable(response):
                return response(prompt)
            return response
        except asyncio.CancelledError:
            self.cancelled += 1
            raise
        finally:
            self.active -= 1

    async def check_availability(self) -> bool:
        return True

    def get_rate_limit_status(self) -> RateLimitStatus:
        return RateLimitStatus(remaining=self.remaining, reset_time=0.0)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture(autouse=True)
def fresh_prompt_loader():
    """Each test starts from the packaged prompts with an empty cache."""
    PromptLoader.set_base_path(None)
    yield
    PromptLoader.set_base_path(None)


@pytest.fixture
def fake_client() -> FakeModelClient:
    return FakeModelClient()


@pytest.fixture
def metrics() -> PipelineMetrics:
    return PipelineMetrics()


@pytest.fixture
def fast_retry() -> RetryConfig:
    """Retry settings without backoff sleeps."""
    return RetryConfig(base_delay=0.0, max_delay=0.0, jitter=False)


@pytest.fixture
def pipeline(fake_client, metrics, fast_retry) -> ScenePromptPipeline:
    return ScenePromptPipeline(fake_client, metrics=metrics, retry_config=fast_retry)


def make_config(
    strategy: ErrorStrategy = ErrorStrategy.SKIP,
    blocked_words=(),
    timeout_seconds: float = 5.0,
    retry_attempts: int = 0,
    **safety_kwargs
) -> ProjectConfig:
    return ProjectConfig(
        generation=GenerationConfig(timeout_seconds=timeout_seconds, retry_attempts=retry_attempts),
        safety=SafetyConfig(blocked_words=tuple(blocked_words), error_strategy=strategy, **safety_kwargs),
    )


@pytest.fixture
def project_config() -> ProjectConfig:
    return make_config()


@pytest.fixture
def sample_project_dict() -> Dict[str, Any]:
    """Project configuration as stored on disk."""
    return {
        "aspect_ratio": "16:9",
        "template": {"name": "dark", "transitions": "zoom"},
        "voice": {"type": "female", "speed": 1.2, "language": "zh-TW", "accent": "taiwan"},
        "generation": {"images_per_scene": 2, "retry_attempts": 1, "timeout_seconds": 60},
        "safety": {
            "content_policy": "strict",
            "blocked_words": ["Dragon", " ", "dragon", "castle"],
            "error_strategy": "mask",
            "adult_content": "warn",
            "violence_filter": False,
        },
    }


@pytest.fixture
def sample_scenes() -> List[SceneInput]:
    return [
        SceneInput(id="s1", index=0, text="a girl walks in a park"),
        SceneInput(id="s2", index=1, text="an old man feeds pigeons by the lake"),
        SceneInput(id="s3", index=2, text="children fly kites on a hill"),
    ]


@pytest.fixture
def config_factory():
    """Build a ProjectConfig with the given safety strategy and limits."""
    return make_config


@pytest.fixture
def client_factory():
    """The FakeModelClient class, for tests that script their own responses."""
    return FakeModelClient

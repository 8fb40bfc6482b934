"""
Base prompt synthesis.

Turns a scene and its visual elements into one English image prompt.
"""

import re

from sceneprompt.core.config import ProjectConfig
from sceneprompt.core.constants import BASE_PROMPT_MAX_LENGTH, ErrorCode
from sceneprompt.core.exceptions import LLMError, RateLimitError, SynthesisFailedError
from sceneprompt.core.logging_config import get_logger
from sceneprompt.core.prompt_loader import PromptLoader
from sceneprompt.utils.text_utils import (
    clean_unicode,
    normalize_whitespace,
    strip_wrapping_quotes,
    truncate_at_word,
)

from .base import ModelStage
from .models import VisualElements

logger = get_logger("pipelines.synthesizer")

_LABEL_PATTERN = re.compile(
    r'^\s*(?:\*\*)?(?:english\s+)?(?:visual\s+)?prompt(?:\*\*)?\s*:\s*(?:\*\*)?\s*',
    re.IGNORECASE,
)


def clean_prompt_output(text: str, max_length: int = BASE_PROMPT_MAX_LENGTH) -> str:
    """Normalise model output to a single unlabeled, unquoted line."""
    text = clean_unicode(text or "")
    text = re.sub(r'```[^\n]*\n?', '', text)
    text = normalize_whitespace(text)
    text = _LABEL_PATTERN.sub('', text)
    text = strip_wrapping_quotes(text)
    return truncate_at_word(text, max_length).rstrip(" ,;")


def _describe(values) -> str:
    return ", ".join(values) if values else "none"


class PromptSynthesizer(ModelStage):
    """Produces the base visual prompt for a scene."""

    stage_name = "synthesis"
    temperature = 0.7
    max_tokens = 512

    async def synthesize(self, text: str, elements: VisualElements, config: ProjectConfig) -> str:
        """
        Synthesize a base prompt.

        Raises:
            SynthesisFailedError: model unavailable or empty output
        """
        prompt = PromptLoader.load_and_render(
            "prompt_synthesis",
            scene_text=text,
            subject=_describe(elements.subject),
            environment=_describe(elements.environment),
            camera=_describe(elements.camera),
            lighting=_describe(elements.lighting),
            mood=_describe(elements.mood),
            aspect_ratio=config.aspect_ratio.value,
            template=config.template.name.value,
            max_length=BASE_PROMPT_MAX_LENGTH,
        )

        try:
            response = await self._call_model(prompt, config)
        except RateLimitError as e:
            raise SynthesisFailedError(str(e), code=ErrorCode.RATE_LIMITED)
        except LLMError as e:
            raise SynthesisFailedError(str(e))

        base_prompt = clean_prompt_output(response)
        if not base_prompt:
            raise SynthesisFailedError("model returned an empty prompt")

        logger.debug(f"Synthesized base prompt ({len(base_prompt)} chars)")
        return base_prompt

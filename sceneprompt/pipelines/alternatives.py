"""
Safe alternative suggestions for rejected prompt edits.

Suggestions are advisory: they are not re-validated, so callers must not
assume they pass the safety policy.
"""

import re
from typing import List, Optional, Tuple

from sceneprompt.core.config import ProjectConfig
from sceneprompt.core.constants import DEFAULT_SUGGESTION_COUNT
from sceneprompt.core.exceptions import LLMError
from sceneprompt.core.logging_config import get_logger
from sceneprompt.core.prompt_loader import PromptLoader
from sceneprompt.safety.validator import SafetyEvaluation, evaluate
from sceneprompt.utils.text_utils import clean_unicode, normalize_whitespace, strip_wrapping_quotes

from .base import ModelStage

logger = get_logger("pipelines.alternatives")

_LIST_MARKER = re.compile(r'^\s*(?:[-*•]+|\(?\d+[.):]|\[\d+\])\s*')


def parse_suggestions(text: str, count: int) -> Tuple[str, ...]:
    """Split a model response into at most ``count`` distinct suggestions."""
    suggestions: List[str] = []
    seen = set()
    for line in clean_unicode(text or "").splitlines():
        line = line.strip()
        if not line or line.startswith("```"):
            continue
        line = strip_wrapping_quotes(normalize_whitespace(_LIST_MARKER.sub('', line)))
        key = line.lower()
        if not line or key in seen:
            continue
        seen.add(key)
        suggestions.append(line)
        if len(suggestions) >= count:
            break
    return tuple(suggestions)


class AlternativeGenerator(ModelStage):
    """Suggests rewrites of an edited prompt that failed validation."""

    stage_name = "alternatives"
    temperature = 0.8
    max_tokens = 512

    async def generate(
        self,
        original_prompt: str,
        edited_prompt: str,
        config: ProjectConfig,
        evaluation: Optional[SafetyEvaluation] = None,
        count: int = DEFAULT_SUGGESTION_COUNT
    ) -> Tuple[str, ...]:
        """
        Request up to ``count`` rewrites.

        Returns:
            Suggestions in model order; empty when the model call fails
        """
        if count < 1:
            return ()
        if evaluation is None:
            evaluation = evaluate(edited_prompt, config.safety)

        prompt = PromptLoader.load_and_render(
            "safe_alternatives",
            original_prompt=original_prompt,
            edited_prompt=edited_prompt,
            violations=", ".join(evaluation.violations) or "none",
            count=count,
        )

        try:
            response = await self._call_model(prompt, config)
        except LLMError as e:
            logger.error(f"Alternative generation failed: {e}")
            return ()

        return parse_suggestions(response, count)

"""
Visual element extraction.

Asks the model for the subject, environment, camera, lighting and mood of a
scene and parses the answer leniently. An unparseable answer degrades to
empty elements instead of failing the scene; only transport or availability
failures are fatal.
"""

import json
import re
from typing import Any, Dict, Optional

from sceneprompt.core.config import ProjectConfig
from sceneprompt.core.constants import ErrorCode, VISUAL_CATEGORIES
from sceneprompt.core.exceptions import ExtractionFailedError, LLMError, LLMResponseError, RateLimitError
from sceneprompt.core.logging_config import get_logger
from sceneprompt.core.prompt_loader import PromptLoader

from .base import ModelStage
from .models import ExtractionOutcome, VisualElements

logger = get_logger("pipelines.extractor")

# Common alternative key names returned by the model
CATEGORY_ALIASES = {
    "subjects": "subject",
    "characters": "subject",
    "setting": "environment",
    "location": "environment",
    "camera_angle": "camera",
    "shot": "camera",
    "light": "lighting",
    "atmosphere": "mood",
}


def _strip_code_fence(text: str) -> str:
    text = text.strip()
    match = re.search(r'```(?:json)?\s*\n?(.*?)```', text, re.DOTALL | re.IGNORECASE)
    if match:
        return match.group(1).strip()
    return text


def _first_json_object(text: str) -> Optional[str]:
    """Return the first balanced ``{...}`` block, ignoring braces inside strings."""
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            char = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
            elif char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return text[start:i + 1]
        start = text.find("{", start + 1)
    return None


def parse_visual_elements(text: str) -> Optional[VisualElements]:
    """
    Parse a model response into VisualElements.

    Tolerates markdown fences and prose around the object. Returns None when
    no JSON object with at least one known category can be recovered.
    """
    if not text:
        return None

    body = _strip_code_fence(text)
    data: Any = None
    try:
        data = json.loads(body)
    except json.JSONDecodeError:
        candidate = _first_json_object(body)
        if candidate is not None:
            try:
                data = json.loads(candidate)
            except json.JSONDecodeError:
                data = None

    if not isinstance(data, dict):
        return None

    normalized: Dict[str, Any] = {}
    for key, value in data.items():
        name = str(key).strip().lower()
        name = CATEGORY_ALIASES.get(name, name)
        if name in VISUAL_CATEGORIES and name not in normalized:
            normalized[name] = value

    if not normalized:
        return None
    return VisualElements.from_dict(normalized)


class VisualElementExtractor(ModelStage):
    """Extracts structured visual elements from scene text."""

    stage_name = "extraction"
    temperature = 0.3

    async def extract(self, text: str, config: ProjectConfig) -> ExtractionOutcome:
        """
        Extract visual elements for one scene.

        Raises:
            ExtractionFailedError: model unavailable after retries
        """
        prompt = PromptLoader.load_and_render(
            "visual_extraction",
            scene_text=text,
            language=config.voice.language,
        )

        try:
            response = await self._call_model(prompt, config)
        except LLMResponseError as e:
            logger.warning(f"Empty extraction response, continuing with no elements: {e}")
            return ExtractionOutcome(VisualElements.empty(), degraded=True)
        except RateLimitError as e:
            raise ExtractionFailedError(str(e), code=ErrorCode.RATE_LIMITED)
        except LLMError as e:
            raise ExtractionFailedError(str(e))

        elements = parse_visual_elements(response)
        if elements is None:
            logger.warning(
                f"{ErrorCode.MALFORMED_RESPONSE.value}: could not parse visual elements "
                f"from response: {response[:120]!r}"
            )
            return ExtractionOutcome(VisualElements.empty(), degraded=True)

        return ExtractionOutcome(elements)

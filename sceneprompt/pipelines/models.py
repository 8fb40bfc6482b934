"""
ScenePrompt Pipeline Records

Input, intermediate and output records for the scene prompt pipeline.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Tuple

from sceneprompt.core.constants import ErrorCode, SafetyStatus, VISUAL_CATEGORIES
from sceneprompt.safety.validator import SafetyEvaluation


def _as_descriptors(value: Any) -> Tuple[str, ...]:
    """Coerce a category value into a tuple of non-empty strings."""
    if value is None:
        return ()
    if isinstance(value, str):
        value = [value]
    elif not isinstance(value, (list, tuple)):
        return ()
    return tuple(item.strip() for item in value if isinstance(item, str) and item.strip())


@dataclass(frozen=True)
class SceneInput:
    """One narrative unit submitted to the pipeline."""
    id: str
    index: int
    text: str

    @classmethod
    def from_dict(cls, data: dict) -> 'SceneInput':
        return cls(
            id=str(data['id']),
            index=int(data.get('index', 0)),
            text=str(data.get('text', '')),
        )

    def to_dict(self) -> dict:
        return {'id': self.id, 'index': self.index, 'text': self.text}


@dataclass(frozen=True)
class VisualElements:
    """Structured visual descriptors extracted from a scene."""
    subject: Tuple[str, ...] = ()
    environment: Tuple[str, ...] = ()
    camera: Tuple[str, ...] = ()
    lighting: Tuple[str, ...] = ()
    mood: Tuple[str, ...] = ()

    @classmethod
    def empty(cls) -> 'VisualElements':
        return cls()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'VisualElements':
        """Build from a loosely shaped mapping; unknown keys are ignored."""
        return cls(**{name: _as_descriptors(data.get(name)) for name in VISUAL_CATEGORIES})

    @property
    def is_empty(self) -> bool:
        return not any(getattr(self, name) for name in VISUAL_CATEGORIES)

    def items(self) -> Iterable[Tuple[str, Tuple[str, ...]]]:
        return ((name, getattr(self, name)) for name in VISUAL_CATEGORIES)

    def to_dict(self) -> Dict[str, list]:
        return {name: list(values) for name, values in self.items()}


@dataclass(frozen=True)
class ExtractionOutcome:
    """Extractor result; ``degraded`` marks an unparseable model response."""
    elements: VisualElements
    degraded: bool = False


@dataclass(frozen=True)
class PromptResult:
    """Final per-scene result. One per input scene, in input order."""
    scene_id: str
    index: int
    original_text: str
    visual_elements: VisualElements = field(default_factory=VisualElements)
    visual_prompt: str = ""
    safety_status: SafetyStatus = SafetyStatus.SAFE
    success: bool = True
    error_message: Optional[str] = None
    error_code: Optional[ErrorCode] = None
    degraded: bool = False
    # advisory rewrites for a violating scene, never re-validated
    alternatives: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            'scene_id': self.scene_id,
            'index': self.index,
            'original_text': self.original_text,
            'visual_elements': self.visual_elements.to_dict(),
            'visual_prompt': self.visual_prompt,
            'safety_status': self.safety_status.value,
            'success': self.success,
            'error_message': self.error_message,
            'error_code': self.error_code.value if self.error_code else None,
            'degraded': self.degraded,
            'alternatives': list(self.alternatives),
        }


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating a user-edited prompt."""
    is_valid: bool
    safety_result: SafetyEvaluation
    suggestions: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            'is_valid': self.is_valid,
            'safety_result': self.safety_result.to_dict(),
            'suggestions': list(self.suggestions),
        }

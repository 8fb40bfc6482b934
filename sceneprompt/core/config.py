"""
ScenePrompt Configuration Management

Typed project configuration with JSON loading, validation and request-level
overrides.

Override precedence (highest first):
    1. Request overrides (``ConfigOverrides``), applied field by field for
       ``safety`` and as whole values for ``aspect_ratio`` / ``template``
    2. The project's stored configuration (``ProjectConfig``)
    3. Dataclass defaults
"""

import json
import os
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Literal, Optional, Tuple, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, ValidationError

from .constants import (
    AdultContentMode,
    AspectRatio,
    ContentPolicy,
    DEFAULT_REQUESTS_PER_MINUTE,
    DEFAULT_TEMPLATE,
    ErrorStrategy,
    ImageQuality,
    MAX_BATCH_WORKERS,
    MIN_BATCH_WORKERS,
    TemplateName,
    TransitionType,
    VoiceType,
)
from .env_loader import get_env_float, get_env_int
from .exceptions import ConfigurationError, InvalidConfigError
from .logging_config import get_logger

logger = get_logger("core.config")

E = TypeVar("E", bound=Enum)


def _parse_enum(enum_cls: Type[E], value: Any, field_name: str) -> E:
    """Coerce ``value`` into ``enum_cls`` or raise InvalidConfigError."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise InvalidConfigError(
            f"Invalid value for {field_name}: {value!r} (expected one of: {allowed})",
            field_name=field_name,
            value=value,
        )


def _section(data: dict, name: str) -> dict:
    """Sub-mapping ``data[name]``; absent means defaults, anything but an object is rejected."""
    if name not in data:
        return {}
    value = data[name]
    if not isinstance(value, dict):
        raise InvalidConfigError(
            f"Config section '{name}' must be an object, got {type(value).__name__}",
            field_name=name,
            value=value,
        )
    return value


def parse_template_name(value: Any) -> TemplateName:
    """Resolve a template name, falling back to ``classic`` for unknown names."""
    if isinstance(value, TemplateName):
        return value
    try:
        return TemplateName(str(value).strip().lower())
    except ValueError:
        logger.warning(f"Unknown template '{value}', falling back to '{DEFAULT_TEMPLATE.value}'")
        return DEFAULT_TEMPLATE


def normalize_blocked_words(words: Optional[Iterable[str]]) -> Tuple[str, ...]:
    """Strip, drop blanks and de-duplicate case-insensitively, keeping first-seen order."""
    if words is None:
        return ()
    if isinstance(words, str):
        raise InvalidConfigError("blocked_words must be a list of strings", field_name="safety.blocked_words")
    seen = set()
    normalized = []
    for word in words:
        if not isinstance(word, str):
            raise InvalidConfigError(
                f"blocked_words entries must be strings, got {type(word).__name__}",
                field_name="safety.blocked_words",
            )
        word = word.strip()
        if not word or word.lower() in seen:
            continue
        seen.add(word.lower())
        normalized.append(word)
    return tuple(normalized)


@dataclass(frozen=True)
class TemplateConfig:
    """Visual template settings. Only ``name`` affects prompt generation."""
    name: TemplateName = DEFAULT_TEMPLATE
    transitions: TransitionType = TransitionType.FADE
    transition_duration: int = 500  # milliseconds
    background_music: bool = True
    bgm_volume: float = -18.0  # LUFS

    @classmethod
    def from_dict(cls, data: dict) -> 'TemplateConfig':
        return cls(
            name=parse_template_name(data.get('name', DEFAULT_TEMPLATE.value)),
            transitions=_parse_enum(TransitionType, data.get('transitions', 'fade'), 'template.transitions'),
            transition_duration=int(data.get('transition_duration', 500)),
            background_music=bool(data.get('background_music', True)),
            bgm_volume=float(data.get('bgm_volume', -18.0)),
        )

    def to_dict(self) -> dict:
        return {
            'name': self.name.value,
            'transitions': self.transitions.value,
            'transition_duration': self.transition_duration,
            'background_music': self.background_music,
            'bgm_volume': self.bgm_volume,
        }


@dataclass(frozen=True)
class VoiceConfig:
    """Narration settings, carried through untouched."""
    type: VoiceType = VoiceType.NATURAL
    speed: float = 1.0
    language: str = "zh-TW"
    accent: str = "taiwan"

    @classmethod
    def from_dict(cls, data: dict) -> 'VoiceConfig':
        return cls(
            type=_parse_enum(VoiceType, data.get('type', 'natural'), 'voice.type'),
            speed=float(data.get('speed', 1.0)),
            language=str(data.get('language', 'zh-TW')),
            accent=str(data.get('accent', 'taiwan')),
        )

    def to_dict(self) -> dict:
        return {
            'type': self.type.value,
            'speed': self.speed,
            'language': self.language,
            'accent': self.accent,
        }


@dataclass(frozen=True)
class GenerationConfig:
    """Generation limits; ``retry_attempts`` and ``timeout_seconds`` drive the batch."""
    images_per_scene: int = 1
    image_quality: ImageQuality = ImageQuality.STANDARD
    retry_attempts: int = 3
    timeout_seconds: float = 300.0
    smart_crop: bool = True

    def __post_init__(self):
        if self.images_per_scene not in (1, 2, 3):
            raise InvalidConfigError(
                "images_per_scene must be 1, 2 or 3",
                field_name="generation.images_per_scene",
                value=self.images_per_scene,
            )
        if self.retry_attempts < 0:
            raise InvalidConfigError(
                "retry_attempts must be >= 0",
                field_name="generation.retry_attempts",
                value=self.retry_attempts,
            )
        if self.timeout_seconds <= 0:
            raise InvalidConfigError(
                "timeout_seconds must be > 0",
                field_name="generation.timeout_seconds",
                value=self.timeout_seconds,
            )

    @classmethod
    def from_dict(cls, data: dict) -> 'GenerationConfig':
        return cls(
            images_per_scene=int(data.get('images_per_scene', 1)),
            image_quality=_parse_enum(ImageQuality, data.get('image_quality', 'standard'), 'generation.image_quality'),
            retry_attempts=int(data.get('retry_attempts', 3)),
            timeout_seconds=float(data.get('timeout_seconds', 300.0)),
            smart_crop=bool(data.get('smart_crop', True)),
        )

    def to_dict(self) -> dict:
        return {
            'images_per_scene': self.images_per_scene,
            'image_quality': self.image_quality.value,
            'retry_attempts': self.retry_attempts,
            'timeout_seconds': self.timeout_seconds,
            'smart_crop': self.smart_crop,
        }


@dataclass(frozen=True)
class SafetyConfig:
    """Content-safety policy."""
    content_policy: ContentPolicy = ContentPolicy.STANDARD
    blocked_words: Tuple[str, ...] = ()
    error_strategy: ErrorStrategy = ErrorStrategy.SKIP
    adult_content: AdultContentMode = AdultContentMode.BLOCK
    violence_filter: bool = True

    def __post_init__(self):
        # Frozen dataclass: normalise through object.__setattr__
        object.__setattr__(self, 'blocked_words', normalize_blocked_words(self.blocked_words))

    @classmethod
    def from_dict(cls, data: dict) -> 'SafetyConfig':
        return cls(
            content_policy=_parse_enum(ContentPolicy, data.get('content_policy', 'standard'), 'safety.content_policy'),
            blocked_words=normalize_blocked_words(data.get('blocked_words', ())),
            error_strategy=_parse_enum(ErrorStrategy, data.get('error_strategy', 'skip'), 'safety.error_strategy'),
            adult_content=_parse_enum(AdultContentMode, data.get('adult_content', 'block'), 'safety.adult_content'),
            violence_filter=bool(data.get('violence_filter', True)),
        )

    def to_dict(self) -> dict:
        return {
            'content_policy': self.content_policy.value,
            'blocked_words': list(self.blocked_words),
            'error_strategy': self.error_strategy.value,
            'adult_content': self.adult_content.value,
            'violence_filter': self.violence_filter,
        }


@dataclass(frozen=True)
class ProjectConfig:
    """Read-only configuration snapshot passed to a batch."""
    aspect_ratio: AspectRatio = AspectRatio.PORTRAIT
    template: TemplateConfig = field(default_factory=TemplateConfig)
    voice: VoiceConfig = field(default_factory=VoiceConfig)
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    safety: SafetyConfig = field(default_factory=SafetyConfig)

    @classmethod
    def from_dict(cls, data: dict) -> 'ProjectConfig':
        """Create ProjectConfig from dictionary."""
        if not isinstance(data, dict):
            raise InvalidConfigError(f"Project config must be a mapping, got {type(data).__name__}")

        # Accept the shorthand {"template": "dark"}
        if isinstance(data.get('template'), str):
            template_data = {'name': data['template']}
        else:
            template_data = _section(data, 'template')

        try:
            return cls(
                aspect_ratio=_parse_enum(AspectRatio, data.get('aspect_ratio', '9:16'), 'aspect_ratio'),
                template=TemplateConfig.from_dict(template_data),
                voice=VoiceConfig.from_dict(_section(data, 'voice')),
                generation=GenerationConfig.from_dict(_section(data, 'generation')),
                safety=SafetyConfig.from_dict(_section(data, 'safety')),
            )
        except (TypeError, ValueError) as e:
            raise InvalidConfigError(f"Invalid project config: {e}")

    def to_dict(self) -> dict:
        return {
            'aspect_ratio': self.aspect_ratio.value,
            'template': self.template.to_dict(),
            'voice': self.voice.to_dict(),
            'generation': self.generation.to_dict(),
            'safety': self.safety.to_dict(),
        }


DEFAULT_PROJECT_CONFIG = ProjectConfig()


# =============================================================================
# REQUEST OVERRIDES
# =============================================================================

class SafetyOverrides(BaseModel):
    """Request-level safety overrides; unset fields keep the project value."""
    model_config = ConfigDict(extra="forbid")

    content_policy: Optional[Literal["strict", "standard"]] = None
    blocked_words: Optional[List[str]] = None
    error_strategy: Optional[Literal["skip", "mask", "fail"]] = None
    adult_content: Optional[Literal["block", "warn", "allow"]] = None
    violence_filter: Optional[bool] = None


class ConfigOverrides(BaseModel):
    """Request-level overrides accepted alongside a batch."""
    model_config = ConfigDict(extra="forbid")

    aspect_ratio: Optional[Literal["9:16", "16:9", "1:1"]] = None
    template: Optional[str] = None
    safety: Optional[SafetyOverrides] = None


def merge_config(
    project: ProjectConfig,
    overrides: Union[ConfigOverrides, Dict[str, Any], None] = None
) -> ProjectConfig:
    """
    Apply request overrides on top of a project configuration.

    Args:
        project: Stored project configuration
        overrides: Overrides model or raw mapping (validated here)

    Returns:
        New ProjectConfig; ``project`` is never modified
    """
    if overrides is None:
        return project

    if not isinstance(overrides, ConfigOverrides):
        try:
            overrides = ConfigOverrides.model_validate(overrides)
        except ValidationError as e:
            raise InvalidConfigError(f"Invalid config overrides: {e.errors()}")

    merged = project

    if overrides.aspect_ratio is not None:
        merged = replace(merged, aspect_ratio=AspectRatio(overrides.aspect_ratio))

    if overrides.template is not None:
        merged = replace(
            merged,
            template=replace(merged.template, name=parse_template_name(overrides.template))
        )

    if overrides.safety is not None:
        safety_fields = overrides.safety.model_dump(exclude_none=True)
        if safety_fields:
            merged = replace(
                merged,
                safety=SafetyConfig.from_dict({**merged.safety.to_dict(), **safety_fields})
            )

    return merged


# =============================================================================
# SERVICE SETTINGS
# =============================================================================

@dataclass
class ServiceSettings:
    """Process-level settings for the model client and worker pool."""
    model: str = "gemini-2.0-flash"
    request_timeout: float = 30.0
    requests_per_minute: int = DEFAULT_REQUESTS_PER_MINUTE
    min_workers: int = MIN_BATCH_WORKERS
    max_workers: int = MAX_BATCH_WORKERS

    def __post_init__(self):
        if self.min_workers < 1 or self.max_workers < self.min_workers:
            raise InvalidConfigError(
                f"Invalid worker bounds: min={self.min_workers}, max={self.max_workers}",
                field_name="workers",
            )

    @classmethod
    def from_env(cls) -> 'ServiceSettings':
        """Build settings from ``SCENEPROMPT_*`` environment variables."""
        return cls(
            model=os.getenv("SCENEPROMPT_MODEL", "gemini-2.0-flash"),
            request_timeout=get_env_float("SCENEPROMPT_REQUEST_TIMEOUT", 30.0),
            requests_per_minute=get_env_int("SCENEPROMPT_RPM", DEFAULT_REQUESTS_PER_MINUTE),
            min_workers=get_env_int("SCENEPROMPT_MIN_WORKERS", MIN_BATCH_WORKERS),
            max_workers=get_env_int("SCENEPROMPT_MAX_WORKERS", MAX_BATCH_WORKERS),
        )


def load_config(config_path: Union[Path, str, None] = None) -> ProjectConfig:
    """
    Load a project configuration from a JSON file.

    Args:
        config_path: Path to configuration file. If None or missing, defaults are used.

    Returns:
        Loaded ProjectConfig instance
    """
    if config_path is None:
        return DEFAULT_PROJECT_CONFIG

    config_path = Path(config_path)
    if not config_path.exists():
        logger.info(f"Config file not found at {config_path}, using defaults")
        return DEFAULT_PROJECT_CONFIG

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise InvalidConfigError(f"Invalid JSON in config file: {e}")
    except OSError as e:
        raise ConfigurationError(f"Failed to load config: {e}")

    return ProjectConfig.from_dict(data)

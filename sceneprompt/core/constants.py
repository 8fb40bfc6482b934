"""
ScenePrompt Constants

Enumerations and fixed values shared across the pipeline.
"""

from enum import Enum

# =============================================================================
# VERSION INFO
# =============================================================================
VERSION = "1.0.0"
PROJECT_NAME = "ScenePrompt"


# =============================================================================
# PROJECT CONFIGURATION VALUES
# =============================================================================

class AspectRatio(Enum):
    """Output frame shapes supported by the downstream image generator."""
    PORTRAIT = "9:16"
    LANDSCAPE = "16:9"
    SQUARE = "1:1"


class TemplateName(Enum):
    """Named style templates."""
    CLASSIC = "classic"
    DARK = "dark"
    VIVID = "vivid"


DEFAULT_TEMPLATE = TemplateName.CLASSIC


class ContentPolicy(Enum):
    STRICT = "strict"
    STANDARD = "standard"


class ErrorStrategy(Enum):
    """How a safety violation is resolved for a scene."""
    SKIP = "skip"
    MASK = "mask"
    FAIL = "fail"


class AdultContentMode(Enum):
    BLOCK = "block"
    WARN = "warn"
    ALLOW = "allow"


class TransitionType(Enum):
    NONE = "none"
    FADE = "fade"
    ZOOM = "zoom"


class VoiceType(Enum):
    MALE = "male"
    FEMALE = "female"
    NATURAL = "natural"


class ImageQuality(Enum):
    STANDARD = "standard"
    HIGH = "high"


# =============================================================================
# PIPELINE STATUS VALUES
# =============================================================================

class SafetyStatus(Enum):
    """Final safety outcome recorded on each scene result."""
    SAFE = "safe"
    FILTERED = "filtered"
    REPLACED = "replaced"  # reserved; resolve() never produces it
    SKIPPED = "skipped"
    FAILED = "failed"


class SceneStage(Enum):
    """Per-scene pipeline state."""
    PENDING = "pending"
    EXTRACTING = "extracting"
    SYNTHESIZING = "synthesizing"
    TEMPLATING = "templating"
    VALIDATING = "validating"
    SUGGESTING = "suggesting"
    RESOLVED = "resolved"


class ErrorCode(Enum):
    """Error taxonomy reported on failed or degraded scenes."""
    EXTRACTION_FAILED = "EXTRACTION_FAILED"
    SYNTHESIS_FAILED = "SYNTHESIS_FAILED"
    TIMEOUT = "TIMEOUT"
    RATE_LIMITED = "RATE_LIMITED"
    SAFETY_VIOLATION = "SAFETY_VIOLATION"
    MALFORMED_RESPONSE = "MALFORMED_RESPONSE"
    CANCELLED = "CANCELLED"


# =============================================================================
# VISUAL ELEMENT CATEGORIES
# =============================================================================

VISUAL_CATEGORIES = ("subject", "environment", "camera", "lighting", "mood")


# =============================================================================
# LIMITS
# =============================================================================

# Prompt preview shown in scene lists
PREVIEW_MAX_LENGTH = 80

# Synthesized base prompts are cut to this many characters
BASE_PROMPT_MAX_LENGTH = 400

# Each scene issues an extraction call and a synthesis call
MODEL_CALLS_PER_SCENE = 2

# Worker pool bounds for batch processing
MIN_BATCH_WORKERS = 1
MAX_BATCH_WORKERS = 8

# Number of rewrites requested on the edit-validation path
DEFAULT_SUGGESTION_COUNT = 3

# Requests per minute allowed by the model provider's free tier
DEFAULT_REQUESTS_PER_MINUTE = 15

"""
ScenePrompt - Scene Prompt Generation & Safety Pipeline

Transforms narrative scenes into English visual-generation prompts with a
deterministic style template and a configurable content-safety policy.

Version: 1.0.0
"""

from .core.constants import PROJECT_NAME, VERSION

__version__ = VERSION
__project__ = PROJECT_NAME

from pathlib import Path

# Package root directory
PACKAGE_ROOT = Path(__file__).parent

from .core.config import ConfigOverrides, ProjectConfig, load_config, merge_config
from .pipelines import (
    PromptResult,
    SceneInput,
    ScenePromptPipeline,
    ValidationResult,
    VisualElements,
)
from .safety import SafetyEvaluation

__all__ = [
    "__version__",
    "PACKAGE_ROOT",
    "ConfigOverrides",
    "ProjectConfig",
    "load_config",
    "merge_config",
    "PromptResult",
    "SceneInput",
    "ScenePromptPipeline",
    "ValidationResult",
    "VisualElements",
    "SafetyEvaluation",
]

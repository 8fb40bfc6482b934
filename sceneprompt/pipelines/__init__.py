"""
ScenePrompt Pipelines Module

Scene prompt generation stages and the batch orchestrator.
"""

from .alternatives import AlternativeGenerator
from .concurrency import BatchLimiter, derive_worker_count
from .extractor import VisualElementExtractor, parse_visual_elements
from .models import ExtractionOutcome, PromptResult, SceneInput, ValidationResult, VisualElements
from .orchestrator import ScenePromptPipeline
from .synthesizer import PromptSynthesizer
from .templates import STYLE_RECIPES, TemplateApplier, apply_template

__all__ = [
    'AlternativeGenerator',
    'BatchLimiter',
    'derive_worker_count',
    'VisualElementExtractor',
    'parse_visual_elements',
    'ExtractionOutcome',
    'PromptResult',
    'SceneInput',
    'ValidationResult',
    'VisualElements',
    'ScenePromptPipeline',
    'PromptSynthesizer',
    'STYLE_RECIPES',
    'TemplateApplier',
    'apply_template',
]

"""
ScenePrompt Safety Module

Content-policy evaluation and violation resolution.
"""

from .lexicons import ADULT_TERMS, STRICT_TERMS, VIOLENCE_TERMS
from .resolver import Resolution, is_valid_for_edit, resolve
from .validator import SafetyEvaluation, SafetyValidator, evaluate, mask_spans

__all__ = [
    'ADULT_TERMS',
    'STRICT_TERMS',
    'VIOLENCE_TERMS',
    'Resolution',
    'is_valid_for_edit',
    'resolve',
    'SafetyEvaluation',
    'SafetyValidator',
    'evaluate',
    'mask_spans',
]

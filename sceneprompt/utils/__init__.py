"""
ScenePrompt Utilities
"""

from .text_utils import (
    clean_unicode,
    generate_prompt_preview,
    normalize_whitespace,
    strip_wrapping_quotes,
    truncate_at_word,
)

__all__ = [
    'clean_unicode',
    'generate_prompt_preview',
    'normalize_whitespace',
    'strip_wrapping_quotes',
    'truncate_at_word',
]

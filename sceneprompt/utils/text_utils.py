"""
ScenePrompt Text Utilities

Text normalization for model output and prompt previews.
"""

import re

from sceneprompt.core.constants import PREVIEW_MAX_LENGTH

ELLIPSIS = "…"

# Stripped from the end of a truncated preview before the ellipsis
TRAILING_PUNCTUATION = " ,.;:!?-–—(\"'"


def clean_unicode(text: str) -> str:
    """
    Clean problematic Unicode characters from text.

    Removes zero-width characters, control characters (except newlines and
    tabs) and replacement characters.
    """
    text = re.sub(r'[\u200b\u200c\u200d\ufeff]', '', text)
    text = re.sub(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]', '', text)
    return text.replace('\ufffd', '')


def normalize_whitespace(text: str) -> str:
    """Collapse every whitespace run (newlines included) to one space and trim."""
    return re.sub(r'\s+', ' ', text or '').strip()


def strip_wrapping_quotes(text: str) -> str:
    """Remove one layer of matching quotes/backticks around the whole string."""
    text = text.strip()
    pairs = (('"', '"'), ("'", "'"), ('`', '`'), ('“', '”'), ('「', '」'))
    for left, right in pairs:
        if len(text) >= 2 and text.startswith(left) and text.endswith(right):
            return text[len(left):-len(right)].strip()
    return text


def truncate_at_word(text: str, limit: int) -> str:
    """
    Cut ``text`` to at most ``limit`` characters, preferring a word boundary.

    Falls back to a hard cut when the first word alone exceeds the limit.
    """
    if len(text) <= limit:
        return text
    cut = text[:limit]
    # a boundary exactly at the limit keeps the whole last word
    if text[limit] == ' ':
        return cut.rstrip()
    boundary = cut.rfind(' ')
    if boundary > 0:
        return cut[:boundary].rstrip()
    return cut


def generate_prompt_preview(prompt: str, max_length: int = PREVIEW_MAX_LENGTH) -> str:
    """
    Single-line summary of a prompt for list display.

    Whitespace is collapsed; prompts within ``max_length`` are returned as
    is. Longer prompts are cut at the last word boundary within
    ``max_length - 1`` characters, trailing punctuation is dropped and an
    ellipsis appended. The result never exceeds ``max_length`` and
    ``generate_prompt_preview(generate_prompt_preview(p)) ==
    generate_prompt_preview(p)``.

    Args:
        prompt: Full prompt text
        max_length: Character bound for the preview (>= 2)

    Returns:
        Preview string
    """
    if max_length < 2:
        raise ValueError("max_length must be at least 2")

    text = normalize_whitespace(prompt)
    if len(text) <= max_length:
        return text

    head = truncate_at_word(text, max_length - 1).rstrip(TRAILING_PUNCTUATION)
    if not head:
        head = text[:max_length - 1].rstrip()
    return head + ELLIPSIS

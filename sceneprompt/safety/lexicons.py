"""
Built-in safety lexicons.

Terms are lowercase; matching is case-insensitive substring matching, so
entries are kept short and unambiguous. Template vocabulary (style
modifiers, safe words) must never appear here, otherwise a templated prompt
would trip its own filter.
"""

from typing import Tuple

# Scanned when ``violence_filter`` is on
VIOLENCE_TERMS: Tuple[str, ...] = (
    "violence",
    "weapon",
    "gun",
    "knife",
    "blood",
    "death",
    "kill",
)

# Scanned when ``adult_content`` is ``block``
ADULT_TERMS: Tuple[str, ...] = (
    "nude",
    "naked",
    "sexual",
    "explicit",
    "adult",
)

# Scanned only under the ``strict`` content policy
STRICT_TERMS: Tuple[str, ...] = (
    # hate speech
    "hate",
    "discrimination",
    "racist",
    "offensive",
    # copyrighted brands and characters
    "disney",
    "marvel",
    "pokemon",
    "nintendo",
    "sony",
    # unsettling imagery
    "disturbing",
    "scary",
    "horror",
    "nightmare",
)

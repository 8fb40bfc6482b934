"""
ScenePrompt Safety Validator

Pure policy evaluation of a prompt against a ``SafetyConfig``.

Scan order (violations are reported in this order):
    1. project ``blocked_words``        -> ``blocked_word:<term>``
    2. strict lexicon (strict policy)   -> ``strict_policy:<term>``
    3. violence lexicon (filter on)     -> ``violence:<term>``
    4. adult lexicon (mode ``block``)   -> ``adult_content:<term>``

Every violation here is lexical, so a masked ``filtered_prompt`` is always
computable when violations exist.
"""

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from sceneprompt.core.config import SafetyConfig
from sceneprompt.core.constants import AdultContentMode, ContentPolicy
from sceneprompt.core.logging_config import get_logger

from .lexicons import ADULT_TERMS, STRICT_TERMS, VIOLENCE_TERMS

logger = get_logger("safety.validator")

MASK_CHAR = "*"


@dataclass(frozen=True)
class SafetyEvaluation:
    """Outcome of one safety scan."""
    violations: Tuple[str, ...] = ()
    filtered_prompt: Optional[str] = None

    @property
    def is_safe(self) -> bool:
        return not self.violations

    def to_dict(self) -> dict:
        return {
            "violations": list(self.violations),
            "filtered_prompt": self.filtered_prompt,
        }


def _find_spans(prompt: str, term: str) -> List[Tuple[int, int]]:
    """All case-insensitive (start, end) occurrences of ``term``, overlaps included."""
    pattern = re.compile(f"(?=({re.escape(term)}))", re.IGNORECASE)
    return [(m.start(1), m.end(1)) for m in pattern.finditer(prompt)]


def _merge_spans(spans: Iterable[Tuple[int, int]]) -> List[Tuple[int, int]]:
    merged: List[Tuple[int, int]] = []
    for start, end in sorted(spans):
        if merged and start <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return merged


def mask_spans(prompt: str, spans: Iterable[Tuple[int, int]]) -> str:
    """Replace each span with a same-length run of ``*``."""
    chars = list(prompt)
    for start, end in _merge_spans(spans):
        chars[start:end] = MASK_CHAR * (end - start)
    return "".join(chars)


def evaluate(prompt: str, safety: SafetyConfig) -> SafetyEvaluation:
    """
    Evaluate ``prompt`` against the safety policy.

    Args:
        prompt: Prompt text to scan
        safety: Safety policy

    Returns:
        SafetyEvaluation; ``filtered_prompt`` is set only when violations exist
    """
    prompt = prompt or ""
    scans: List[Tuple[str, Iterable[str]]] = [("blocked_word", safety.blocked_words)]
    if safety.content_policy == ContentPolicy.STRICT:
        scans.append(("strict_policy", STRICT_TERMS))
    if safety.violence_filter:
        scans.append(("violence", VIOLENCE_TERMS))
    if safety.adult_content == AdultContentMode.BLOCK:
        scans.append(("adult_content", ADULT_TERMS))
    elif safety.adult_content == AdultContentMode.WARN:
        flagged = [term for term in ADULT_TERMS if _find_spans(prompt, term)]
        if flagged:
            logger.warning(f"Adult content terms present (warn mode): {', '.join(flagged)}")

    violations: List[str] = []
    seen = set()
    spans: List[Tuple[int, int]] = []

    for category, terms in scans:
        for term in terms:
            needle = term.strip()
            if not needle:
                continue
            # IGNORECASE on the term as written; lower() can change its length
            found = _find_spans(prompt, needle)
            if not found:
                continue
            spans.extend(found)
            code = f"{category}:{needle.casefold()}"
            if code not in seen:
                seen.add(code)
                violations.append(code)

    if not violations:
        return SafetyEvaluation()

    return SafetyEvaluation(
        violations=tuple(violations),
        filtered_prompt=mask_spans(prompt, spans),
    )


class SafetyValidator:
    """Object wrapper around ``evaluate`` bound to one policy."""

    def __init__(self, safety: SafetyConfig):
        self.safety = safety

    def evaluate(self, prompt: str) -> SafetyEvaluation:
        result = evaluate(prompt, self.safety)
        if not result.is_safe:
            logger.debug(f"Safety violations: {', '.join(result.violations)}")
        return result

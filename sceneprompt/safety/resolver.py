"""
Safety strategy resolution.

Maps a ``SafetyEvaluation`` and the configured ``ErrorStrategy`` onto the
scene outcome:

    violations | strategy | status   | prompt                  | success
    -----------+----------+----------+-------------------------+--------
    none       | any      | safe     | unchanged               | True
    present    | mask     | filtered | filtered (or original)  | True
    present    | skip     | skipped  | ""                      | False
    present    | fail     | raises SafetyViolationError
"""

from dataclasses import dataclass
from typing import Optional

from sceneprompt.core.constants import ErrorCode, ErrorStrategy, SafetyStatus
from sceneprompt.core.exceptions import SafetyViolationError

from .validator import SafetyEvaluation


@dataclass(frozen=True)
class Resolution:
    status: SafetyStatus
    visual_prompt: str
    success: bool
    error_code: Optional[ErrorCode] = None
    error_message: Optional[str] = None


def resolve(prompt: str, evaluation: SafetyEvaluation, strategy: ErrorStrategy) -> Resolution:
    """
    Resolve a validated prompt according to ``strategy``.

    Raises:
        SafetyViolationError: strategy is ``fail`` and violations exist
    """
    if evaluation.is_safe:
        return Resolution(status=SafetyStatus.SAFE, visual_prompt=prompt, success=True)

    summary = ", ".join(evaluation.violations)

    if strategy == ErrorStrategy.MASK:
        masked = evaluation.filtered_prompt if evaluation.filtered_prompt is not None else prompt
        return Resolution(
            status=SafetyStatus.FILTERED,
            visual_prompt=masked,
            success=True,
        )

    if strategy == ErrorStrategy.SKIP:
        return Resolution(
            status=SafetyStatus.SKIPPED,
            visual_prompt="",
            success=False,
            error_code=ErrorCode.SAFETY_VIOLATION,
            error_message=f"Scene skipped by safety policy: {summary}",
        )

    raise SafetyViolationError(evaluation.violations)


def is_valid_for_edit(evaluation: SafetyEvaluation) -> bool:
    """Edit-path validity ignores the batch strategy."""
    return evaluation.is_safe

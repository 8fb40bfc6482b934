"""
ScenePrompt Custom Exceptions

Custom exception classes for error handling throughout the pipeline.
"""

from typing import Optional, Sequence

from .constants import ErrorCode


class ScenePromptError(Exception):
    """Base exception for all ScenePrompt errors."""

    code: Optional[ErrorCode] = None

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================

class ConfigurationError(ScenePromptError):
    """Raised when there's an issue with configuration."""
    pass


class MissingConfigError(ConfigurationError):
    """Raised when a required configuration is missing."""
    pass


class InvalidConfigError(ConfigurationError):
    """Raised when a configuration value is invalid."""

    def __init__(self, message: str, field_name: str = None, value=None):
        details = {}
        if field_name:
            details["field"] = field_name
        if value is not None:
            details["value"] = value
        super().__init__(message, details)


# =============================================================================
# PIPELINE ERRORS
# =============================================================================

class PipelineError(ScenePromptError):
    """Base exception for pipeline errors."""
    pass


class InvalidBatchError(PipelineError):
    """Raised when a batch is rejected before any model call is issued."""
    pass


class PipelineStageError(PipelineError):
    """Raised when a specific pipeline stage fails."""

    def __init__(self, stage_name: str, reason: str):
        message = f"Pipeline stage '{stage_name}' failed: {reason}"
        super().__init__(message, {"stage": stage_name, "reason": reason})
        self.stage_name = stage_name
        self.reason = reason


class ExtractionFailedError(PipelineStageError):
    """Visual element extraction could not reach the model."""

    code = ErrorCode.EXTRACTION_FAILED

    def __init__(self, reason: str, code: ErrorCode = None):
        super().__init__("extraction", reason)
        if code is not None:
            self.code = code


class SynthesisFailedError(PipelineStageError):
    """Base prompt synthesis failed."""

    code = ErrorCode.SYNTHESIS_FAILED

    def __init__(self, reason: str, code: ErrorCode = None):
        super().__init__("synthesis", reason)
        if code is not None:
            self.code = code


class SceneTimeoutError(PipelineStageError):
    """A scene exceeded its processing deadline."""

    code = ErrorCode.TIMEOUT

    def __init__(self, scene_id: str, timeout_seconds: float):
        super().__init__("scene", f"scene '{scene_id}' timed out after {timeout_seconds}s")
        self.details["scene_id"] = scene_id
        self.details["timeout_seconds"] = timeout_seconds


class SafetyViolationError(PipelineError):
    """Raised by the ``fail`` strategy when a prompt violates the safety policy."""

    code = ErrorCode.SAFETY_VIOLATION

    def __init__(self, violations: Sequence[str]):
        violations = list(violations)
        message = f"Safety policy violated: {', '.join(violations)}"
        super().__init__(message, {"violations": violations})
        self.violations = violations


# =============================================================================
# LLM ERRORS
# =============================================================================

class LLMError(ScenePromptError):
    """Base exception for LLM-related errors."""

    retryable: bool = False


class LLMProviderError(LLMError):
    """Raised when there's an issue with an LLM provider."""

    def __init__(self, provider: str, reason: str, retryable: bool = False, status_code: int = None):
        message = f"LLM provider '{provider}' error: {reason}"
        details = {"provider": provider, "reason": reason}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, details)
        self.retryable = retryable
        self.status_code = status_code


class LLMResponseError(LLMError):
    """Raised when LLM response is invalid or unexpected."""

    code = ErrorCode.MALFORMED_RESPONSE


class LLMTimeoutError(LLMError):
    """Raised when a model request times out."""

    code = ErrorCode.TIMEOUT
    retryable = True


class RateLimitError(LLMError):
    """Raised when the provider (or the local limiter) rejects a request."""

    code = ErrorCode.RATE_LIMITED
    retryable = True

    def __init__(self, message: str, retry_after: float = None):
        details = {"retry_after": retry_after} if retry_after is not None else {}
        super().__init__(message, details)
        self.retry_after = retry_after


class ContentBlockedError(LLMProviderError):
    """Raised when content is blocked by provider's safety filters."""

    def __init__(self, provider: str, reason: str):
        super().__init__(provider, f"content blocked: {reason}")
        self.is_content_block = True

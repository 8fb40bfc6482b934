"""
ScenePrompt Pipeline Metrics

In-memory counters for batch runs. A process-wide default instance exists for
convenience, but the pipeline always receives its metrics object explicitly,
so tests can inject a fresh one or call ``reset_metrics()``.
"""

import threading
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .constants import ErrorCode, SafetyStatus


@dataclass
class StageTiming:
    """Accumulated wall time for one pipeline stage."""
    count: int = 0
    total_seconds: float = 0.0

    @property
    def average_seconds(self) -> float:
        return self.total_seconds / self.count if self.count else 0.0


class PipelineMetrics:
    """
    Thread-safe counters for scene outcomes, errors and model usage.

    Features:
    - Scene counts per safety status
    - Error counts per error code
    - Model call and retry counts
    - Per-stage timing
    """

    def __init__(self):
        self._lock = threading.Lock()
        self.reset()

    def reset(self) -> None:
        """Drop all recorded values."""
        with self._lock:
            self._batches = 0
            self._statuses: Counter = Counter()
            self._errors: Counter = Counter()
            self._model_calls = 0
            self._retries = 0
            self._degraded = 0
            self._stages: Dict[str, StageTiming] = {}

    def record_batch(self) -> None:
        with self._lock:
            self._batches += 1

    def record_scene(self, status: SafetyStatus, error_code: Optional[ErrorCode] = None, degraded: bool = False) -> None:
        with self._lock:
            self._statuses[status.value] += 1
            if error_code is not None:
                self._errors[error_code.value] += 1
            if degraded:
                self._degraded += 1

    def record_model_call(self) -> None:
        with self._lock:
            self._model_calls += 1

    def record_retry(self, error: Exception = None, attempt: int = 0) -> None:
        """Retry hook; signature matches ``retry_async_call(on_retry=...)``."""
        with self._lock:
            self._retries += 1

    def record_stage(self, stage: str, seconds: float) -> None:
        with self._lock:
            timing = self._stages.setdefault(stage, StageTiming())
            timing.count += 1
            timing.total_seconds += seconds

    def snapshot(self) -> Dict[str, Any]:
        """Get a point-in-time copy of all metrics."""
        with self._lock:
            return {
                "batches": self._batches,
                "scenes": dict(self._statuses),
                "errors": dict(self._errors),
                "degraded_extractions": self._degraded,
                "model_calls": self._model_calls,
                "retries": self._retries,
                "stages": {
                    name: {
                        "count": timing.count,
                        "avg_seconds": round(timing.average_seconds, 4),
                    }
                    for name, timing in self._stages.items()
                },
            }


_metrics: Optional[PipelineMetrics] = None


def get_metrics() -> PipelineMetrics:
    """Get the process-wide metrics instance."""
    global _metrics
    if _metrics is None:
        _metrics = PipelineMetrics()
    return _metrics


def reset_metrics() -> None:
    """Reset the process-wide metrics (for testing)."""
    if _metrics is not None:
        _metrics.reset()

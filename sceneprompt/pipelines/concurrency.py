"""
ScenePrompt Concurrency Limiter

Bounded worker slots for batch processing. The slot count is derived from
the model client's rate-limit headroom so a batch never fans out past what
the provider will accept.
"""

import asyncio
import time
from contextlib import asynccontextmanager
from typing import Any, Dict

from sceneprompt.core.constants import MAX_BATCH_WORKERS, MIN_BATCH_WORKERS, MODEL_CALLS_PER_SCENE
from sceneprompt.core.logging_config import get_logger
from sceneprompt.llm.client import RateLimitStatus

logger = get_logger("pipelines.concurrency")


def derive_worker_count(
    status: RateLimitStatus,
    batch_size: int,
    floor: int = MIN_BATCH_WORKERS,
    ceiling: int = MAX_BATCH_WORKERS,
    calls_per_scene: int = MODEL_CALLS_PER_SCENE
) -> int:
    """
    Worker count for a batch.

    clamp(remaining // calls_per_scene, floor, ceiling), then capped at the
    batch size (but never below 1).
    """
    workers = max(0, status.remaining) // max(1, calls_per_scene)
    workers = max(floor, min(ceiling, workers))
    return max(1, min(workers, batch_size))


class BatchLimiter:
    """
    Semaphore-backed slot limiter for one batch.

    Features:
    - Fixed slot count
    - Active / total acquisition counts
    - Accumulated wait time
    """

    def __init__(self, max_concurrent: int):
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be >= 1")
        self.max_concurrent = max_concurrent
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._active = 0
        self._peak = 0
        self._total = 0
        self._wait_time = 0.0

    @asynccontextmanager
    async def acquire(self):
        """
        Hold one slot for the duration of the block.

        Usage:
            async with limiter.acquire():
                await process_scene()
        """
        start_wait = time.perf_counter()

        async with self._semaphore:
            wait_time = time.perf_counter() - start_wait
            self._active += 1
            self._total += 1
            self._peak = max(self._peak, self._active)
            self._wait_time += wait_time

            if wait_time > 0.1:
                logger.debug(f"Acquired slot after {wait_time:.2f}s wait (active: {self._active})")

            try:
                yield
            finally:
                self._active -= 1

    @property
    def active(self) -> int:
        return self._active

    def get_stats(self) -> Dict[str, Any]:
        return {
            "max_concurrent": self.max_concurrent,
            "active": self._active,
            "peak_active": self._peak,
            "total_acquisitions": self._total,
            "avg_wait_time": f"{(self._wait_time / self._total):.3f}s" if self._total else "0s",
        }

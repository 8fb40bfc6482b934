"""
ScenePrompt Model Clients

Text-generation client interface used by the pipeline, plus the Gemini
implementation.

The pipeline only relies on three operations:
- ``generate_text(prompt)`` returns generated text or raises an ``LLMError``
- ``check_availability()`` reports whether the provider can be reached
- ``get_rate_limit_status()`` reports the remaining request headroom

Clients are shared across concurrently running scenes, so their rate-limit
bookkeeping must tolerate concurrent access.
"""

import threading
import time
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, Optional

import httpx

from sceneprompt.core.config import ServiceSettings
from sceneprompt.core.env_loader import get_gemini_api_key
from sceneprompt.core.exceptions import (
    ContentBlockedError,
    LLMError,
    LLMProviderError,
    LLMResponseError,
    LLMTimeoutError,
    MissingConfigError,
    RateLimitError,
)
from sceneprompt.core.logging_config import get_logger

logger = get_logger("llm.client")


@dataclass(frozen=True)
class RateLimitStatus:
    """Remaining requests in the current window and when the window frees up."""
    remaining: int
    reset_time: float  # epoch seconds


class BaseModelClient(ABC):
    """Abstract base class for text-generation clients."""

    provider_name = "model"

    @abstractmethod
    async def generate_text(
        self,
        prompt: str,
        temperature: float = 0.7,
        max_tokens: int = 1024
    ) -> str:
        """Generate a response from the model."""
        pass

    @abstractmethod
    async def check_availability(self) -> bool:
        """Check if the provider is reachable with the configured credentials."""
        pass

    @abstractmethod
    def get_rate_limit_status(self) -> RateLimitStatus:
        """Report current rate-limit headroom."""
        pass


class SlidingWindowLimiter:
    """
    Thread-safe requests-per-window limiter.

    Requests are recorded on success; ``check()`` raises ``RateLimitError``
    with a ``retry_after`` hint once the window is full.
    """

    def __init__(self, limit: int, window_seconds: float = 60.0, clock=time.time):
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._requests: Deque[float] = deque()
        self._lock = threading.Lock()

    def _prune(self, now: float) -> None:
        while self._requests and now - self._requests[0] >= self.window_seconds:
            self._requests.popleft()

    def check(self) -> None:
        with self._lock:
            now = self._clock()
            self._prune(now)
            if len(self._requests) >= self.limit:
                wait = self.window_seconds - (now - self._requests[0])
                raise RateLimitError(
                    f"Rate limit exceeded. Try again in {wait:.0f} seconds.",
                    retry_after=max(0.0, wait),
                )

    def record(self) -> None:
        with self._lock:
            self._requests.append(self._clock())

    def status(self) -> RateLimitStatus:
        with self._lock:
            now = self._clock()
            self._prune(now)
            remaining = max(0, self.limit - len(self._requests))
            reset_time = self._requests[0] + self.window_seconds if self._requests else now
            return RateLimitStatus(remaining=remaining, reset_time=reset_time)


class GeminiClient(BaseModelClient):
    """Client for the Google Gemini ``generateContent`` REST endpoint."""

    BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"
    provider_name = "gemini"

    # finish reasons that mean the candidate was withheld
    BLOCKED_FINISH_REASONS = {"SAFETY", "RECITATION", "PROHIBITED_CONTENT", "BLOCKLIST", "SPII"}

    def __init__(
        self,
        api_key: str = None,
        settings: ServiceSettings = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        """
        Initialize the Gemini client.

        Args:
            api_key: API key (defaults to GEMINI_API_KEY / GOOGLE_API_KEY)
            settings: Model name, timeout and rpm limit
            http_client: Pre-built httpx client (tests, connection reuse)
        """
        self.api_key = api_key or get_gemini_api_key()
        if not self.api_key:
            raise MissingConfigError("Gemini API key is required (set GEMINI_API_KEY)")
        self.settings = settings or ServiceSettings.from_env()
        self._limiter = SlidingWindowLimiter(self.settings.requests_per_minute)
        self._http = http_client
        self._owns_http = http_client is None

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-goog-api-key": self.api_key,
        }

    def _get_http(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=self.settings.request_timeout)
        return self._http

    async def aclose(self) -> None:
        if self._http is not None and self._owns_http:
            await self._http.aclose()
            self._http = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.aclose()

    async def generate_text(
        self,
        prompt: str,
        temperature: float = 0.7,
        max_tokens: int = 1024
    ) -> str:
        self._limiter.check()

        url = f"{self.BASE_URL}/{self.settings.model}:generateContent"
        body = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": temperature,
                "maxOutputTokens": max_tokens,
                "topP": 0.8,
                "topK": 40,
            },
        }

        try:
            response = await self._get_http().post(url, json=body, headers=self._get_headers())
        except httpx.TimeoutException as e:
            raise LLMTimeoutError(f"Gemini request timed out: {e}")
        except httpx.HTTPError as e:
            raise LLMProviderError(self.provider_name, f"transport error: {e}", retryable=True)

        self._raise_for_status(response)

        text = self._extract_text(response.json())
        self._limiter.record()
        return text

    def _raise_for_status(self, response: httpx.Response) -> None:
        """Translate HTTP failures into the LLM error hierarchy."""
        status = response.status_code
        if status < 400:
            return

        message = response.text[:300]
        if status == 429:
            retry_after = response.headers.get("retry-after")
            try:
                retry_after = float(retry_after) if retry_after else None
            except ValueError:
                retry_after = None
            raise RateLimitError(f"Gemini rate limit: {message}", retry_after=retry_after)
        if status in (401, 403):
            raise LLMProviderError(self.provider_name, f"invalid API key or permission denied: {message}", status_code=status)
        if status == 408 or status == 504:
            raise LLMTimeoutError(f"Gemini gateway timeout ({status})")
        if status >= 500:
            raise LLMProviderError(self.provider_name, f"HTTP {status}: {message}", retryable=True, status_code=status)
        raise LLMProviderError(self.provider_name, f"HTTP {status}: {message}", status_code=status)

    def _extract_text(self, payload: dict) -> str:
        candidates = payload.get("candidates") or []
        if not candidates:
            block_reason = (payload.get("promptFeedback") or {}).get("blockReason", "UNKNOWN")
            logger.warning(f"Gemini blocked prompt: {block_reason}")
            raise ContentBlockedError(self.provider_name, f"block_reason: {block_reason}")

        candidate = candidates[0]
        finish_reason = candidate.get("finishReason")
        if finish_reason in self.BLOCKED_FINISH_REASONS:
            logger.warning(f"Gemini withheld candidate: finish_reason={finish_reason}")
            raise ContentBlockedError(self.provider_name, f"finish_reason: {finish_reason}")

        parts = (candidate.get("content") or {}).get("parts") or []
        text = "".join(part.get("text", "") for part in parts)
        if not text.strip():
            raise LLMResponseError("Empty response from Gemini")
        return text

    async def check_availability(self) -> bool:
        try:
            await self.generate_text("ping", temperature=0.0, max_tokens=1)
            return True
        except LLMResponseError:
            # Reached the model; a 1-token reply may legitimately be empty
            return True
        except LLMError as e:
            logger.error(f"Gemini availability check failed: {e}")
            return False

    def get_rate_limit_status(self) -> RateLimitStatus:
        return self._limiter.status()

"""
ScenePrompt LLM Module

Text-generation clients consumed by the pipeline.
"""

from .client import BaseModelClient, GeminiClient, RateLimitStatus, SlidingWindowLimiter

__all__ = [
    'BaseModelClient',
    'GeminiClient',
    'RateLimitStatus',
    'SlidingWindowLimiter',
]

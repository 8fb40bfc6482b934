"""
ScenePrompt Core Module

Contains core systems including configuration, constants, exceptions, logging,
retry and metrics.
"""

from .config import (
    ConfigOverrides,
    GenerationConfig,
    ProjectConfig,
    SafetyConfig,
    SafetyOverrides,
    ServiceSettings,
    TemplateConfig,
    VoiceConfig,
    load_config,
    merge_config,
)
from .constants import *
from .exceptions import *
from .logging_config import setup_logging, get_logger, LogLevel
from .metrics import PipelineMetrics, get_metrics, reset_metrics
from .retry import RetryConfig, retry_async_call

__all__ = [
    'ConfigOverrides',
    'GenerationConfig',
    'ProjectConfig',
    'SafetyConfig',
    'SafetyOverrides',
    'ServiceSettings',
    'TemplateConfig',
    'VoiceConfig',
    'load_config',
    'merge_config',
    'setup_logging',
    'get_logger',
    'LogLevel',
    'PipelineMetrics',
    'get_metrics',
    'reset_metrics',
    'RetryConfig',
    'retry_async_call',
]

"""
Centralized environment variable loading for ScenePrompt.

Ensures .env is loaded once and consistently across the package.

Usage:
    from sceneprompt.core.env_loader import ensure_env_loaded
    ensure_env_loaded()
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

_env_loaded = False


def get_project_root() -> Path:
    """Get the project root directory (where .env is located)."""
    # This file is at sceneprompt/core/env_loader.py
    return Path(__file__).parent.parent.parent


def ensure_env_loaded(override: bool = False, env_path: Optional[Path] = None) -> bool:
    """
    Ensure environment variables from .env are loaded.

    Args:
        override: If True, .env values replace variables already set in the
                  process environment
        env_path: Explicit .env location (defaults to the project root)

    Returns:
        True if .env was loaded, False if already loaded or file not found
    """
    global _env_loaded

    if _env_loaded:
        return False

    env_path = Path(env_path) if env_path else get_project_root() / ".env"

    if not env_path.exists():
        return False

    load_dotenv(env_path, override=override)
    _env_loaded = True
    return True


def get_api_key(key_name: str, fallback_keys: Optional[list] = None) -> Optional[str]:
    """
    Get an API key from environment, with fallback options.

    Args:
        key_name: Primary environment variable name
        fallback_keys: List of fallback variable names to try

    Returns:
        API key value or None if not found
    """
    ensure_env_loaded()

    value = os.getenv(key_name)
    if value:
        return value

    for fallback in fallback_keys or []:
        value = os.getenv(fallback)
        if value:
            return value

    return None


def get_gemini_api_key() -> Optional[str]:
    """Get Gemini API key."""
    return get_api_key("GEMINI_API_KEY", ["GOOGLE_API_KEY"])


def get_env_int(name: str, default: int) -> int:
    """Read an integer setting, falling back to ``default`` on absence or garbage."""
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def get_env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default

"""
Environment-variable defaults for the CLI and the inspector.

Each setting accepts a short ``BSW_*`` name and a long ``BOX_SHADOW_WIDTHS_*``
name; the short one wins when both are set.
"""

from __future__ import annotations

import os
from typing import Mapping, Optional

OUTPUT_CHOICES = ("text", "jsonl")
LOG_LEVEL_CHOICES = ("debug", "info", "warning", "error")

_TRUTHY = {"1", "true", "yes", "y", "on"}
_FALSY = {"0", "false", "no", "n", "off"}


def _env_first(env: Mapping[str, str], *keys: str) -> Optional[str]:
    """Return the value of the first key present in *env*, or ``None``."""
    for k in keys:
        v = env.get(k)
        if v is not None:
            return v
    return None


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    v = _env_first(env, f"BSW_{name}", f"BOX_SHADOW_WIDTHS_{name}")
    if v is None:
        return default
    v = v.strip().lower()
    if v in _TRUTHY:
        return True
    if v in _FALSY:
        return False
    return default


def _env_choice(env: Mapping[str, str], name: str, choices: tuple[str, ...], default: str) -> str:
    v = (_env_first(env, f"BSW_{name}", f"BOX_SHADOW_WIDTHS_{name}") or "").strip().lower()
    return v if v in choices else default


def default_output(env: Mapping[str, str] = os.environ) -> str:
    return _env_choice(env, "OUTPUT", OUTPUT_CHOICES, "text")


def default_log_level(env: Mapping[str, str] = os.environ) -> str:
    return _env_choice(env, "LOG_LEVEL", LOG_LEVEL_CHOICES, "info")


def default_headless(env: Mapping[str, str] = os.environ) -> bool:
    """
    Whether `inspect` launches Chrome headless. Only the computed style and box
    model are read, so no visible window is needed.
    """
    return _env_bool(env, "HEADLESS", True)


def default_sandbox(env: Mapping[str, str] = os.environ) -> bool:
    return _env_bool(env, "SANDBOX", True)

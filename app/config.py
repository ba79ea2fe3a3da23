"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

_ALLOWED_AGENT_CLIENTS = {"mock", "http"}


def load_env_files() -> None:
    """
    Load simple KEY=VALUE pairs from `.env` and `.env.local` (if present).
    Existing process environment variables are not overwritten.
    """

    project_root = Path(__file__).resolve().parents[1]
    for filename in (".env", ".env.local"):
        env_path = project_root / filename
        if not env_path.exists():
            continue

        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip().strip('"').strip("'")
            if key and key not in os.environ:
                os.environ[key] = value


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    """
    Read an optional string value from environment variables.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


def _require_agent_client() -> str:
    """
    Read and validate AGENT_CLIENT from the environment.

    Defaults to 'mock'. Unknown values raise RuntimeError rather than
    silently falling back to the canned client.
    """

    raw = _get_str_env("AGENT_CLIENT", "mock")
    client = raw.lower()
    if client not in _ALLOWED_AGENT_CLIENTS:
        raise RuntimeError(
            f"AGENT_CLIENT '{raw}' is not valid. "
            f"Allowed values: {sorted(_ALLOWED_AGENT_CLIENTS)}."
        )
    return client


@dataclass(frozen=True)
class AgentSettings:
    """
    Upstream conversational agent settings.
    """

    client: str = "mock"
    agent_id: str = "inventory-dashboard"
    base_url: str | None = None
    api_key: str | None = None


@dataclass(frozen=True)
class AgentHTTPSettings:
    """
    HTTP behavior settings for the agent transport.
    """

    timeout_seconds: float = 60.0
    max_retries: int = 2
    backoff_initial_seconds: float = 0.5
    backoff_multiplier: float = 2.0


@dataclass(frozen=True)
class DashboardSettings:
    """
    Dashboard state behavior settings.
    """

    discard_stale_responses: bool = False
    load_on_start: bool = True
    log_level: str = "INFO"


@lru_cache(maxsize=1)
def get_agent_settings() -> AgentSettings:
    """
    Return cached agent settings from environment variables.

    Raises RuntimeError if AGENT_CLIENT is set to an unknown client.
    """

    return AgentSettings(
        client=_require_agent_client(),
        agent_id=_get_str_env("AGENT_ID", "inventory-dashboard"),
        base_url=_get_optional_str_env("AGENT_BASE_URL"),
        api_key=_get_optional_str_env("AGENT_API_KEY"),
    )


@lru_cache(maxsize=1)
def get_agent_http_settings() -> AgentHTTPSettings:
    """
    Return agent transport HTTP settings from environment variables.
    """

    return AgentHTTPSettings(
        timeout_seconds=max(1.0, _get_float_env("AGENT_HTTP_TIMEOUT_SECONDS", 60.0)),
        max_retries=max(0, _get_int_env("AGENT_HTTP_MAX_RETRIES", 2)),
        backoff_initial_seconds=max(0.1, _get_float_env("AGENT_HTTP_BACKOFF_INITIAL_SECONDS", 0.5)),
        backoff_multiplier=max(1.0, _get_float_env("AGENT_HTTP_BACKOFF_MULTIPLIER", 2.0)),
    )


@lru_cache(maxsize=1)
def get_dashboard_settings() -> DashboardSettings:
    """
    Return dashboard behavior settings from environment variables.
    """

    return DashboardSettings(
        discard_stale_responses=_get_bool_env("DASHBOARD_DISCARD_STALE_RESPONSES", False),
        load_on_start=_get_bool_env("DASHBOARD_LOAD_ON_START", True),
        log_level=_get_str_env("LOG_LEVEL", "INFO"),
    )

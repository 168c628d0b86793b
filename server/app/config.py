"""Configuration helpers for the breath guide service."""
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


def _env_flag(name: str, *, default: bool) -> bool:
    """Return True if the environment flag is set to a truthy value."""

    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, *, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except (TypeError, ValueError):
        return default


def _env_float(name: str, *, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw.strip())
    except (TypeError, ValueError):
        return default


@dataclass
class Settings:
    """Centralized environment-driven configuration.

    Values are read when this module is imported, after the package bootstrap
    has loaded ``.env`` and ``.env.local``. Tests build their own instances
    instead of mutating the cached one.
    """

    openai_api_key: Optional[str] = os.getenv("OPENAI_API_KEY")
    openai_assistant_id: Optional[str] = os.getenv("OPENAI_ASSISTANT_ID")
    openai_base_url: str = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
    # Optional override of the model configured on the assistant itself.
    openai_assistant_model: Optional[str] = os.getenv("OPENAI_ASSISTANT_MODEL")
    openai_chat_model: str = os.getenv("OPENAI_CHAT_MODEL", "gpt-4o")
    assistant_file_search: bool = _env_flag("ASSISTANT_FILE_SEARCH", default=True)
    supabase_url: Optional[str] = os.getenv("SUPABASE_URL")
    supabase_service_role_key: Optional[str] = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
    session_table: str = os.getenv("SESSION_TABLE", "chat_sessions")
    message_table: str = os.getenv("MESSAGE_TABLE", "chat_messages")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    default_guide: str = os.getenv("DEFAULT_GUIDE", "abhi")
    run_max_attempts: int = _env_int("RUN_MAX_ATTEMPTS", default=60)
    run_poll_interval: float = _env_float("RUN_POLL_INTERVAL", default=1.0)
    request_timeout: float = _env_float("REQUEST_TIMEOUT", default=30.0)
    answer_background_color: str = "#E8D1D1"
    error_background_color: str = "#F2E8E8"

    @property
    def supabase_enabled(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_role_key)

    def missing_assistant_fields(self) -> list[str]:
        """Return the environment names required by the assistant flow that are unset."""

        missing = []
        if not self.openai_api_key:
            missing.append("OPENAI_API_KEY")
        if not self.openai_assistant_id:
            missing.append("OPENAI_ASSISTANT_ID")
        return missing


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached settings instance to avoid repeated environment reads."""

    return Settings()


settings = get_settings()

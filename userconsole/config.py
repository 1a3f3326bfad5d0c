"""
Application Configuration.

Pydantic Settings model for the user console.
All configuration is loaded from environment variables and .env files.
Inject an AppConfig instance via dependency injection where needed.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings
from pydantic import Field, SecretStr, model_validator


class AppConfig(BaseSettings):
    """Central configuration loaded from environment variables and defaults."""

    # --- Supabase ---
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: SecretStr = SecretStr("")
    SUPABASE_SERVICE_ROLE_KEY: SecretStr = SecretStr("")  # Admin identity deletion only

    # --- Avatar storage ---
    PROFILE_PICTURES_BUCKET: str = "profile-pictures"
    AVATAR_MAX_BYTES: int = 5 * 1024 * 1024  # 5 MB
    AVATAR_ALLOWED_TYPES: frozenset[str] = Field(default_factory=lambda: frozenset({
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
    }))
    AVATAR_CACHE_CONTROL: str = "3600"

    # --- Registration ---
    MIN_PASSWORD_LENGTH: int = 6

    # --- Roles ---
    DEFAULT_ROLE_NAME: str = "user"
    # Role name used when a profile's role join comes back empty.
    # Empty string turns the missing role into a profile error instead.
    MISSING_ROLE_FALLBACK: str = "user"

    # --- Logging ---
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "userconsole.log"
    LOG_MAX_BYTES: int = 5_242_880  # 5 MB
    LOG_BACKUP_COUNT: int = 3

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @model_validator(mode="after")
    def _warn_missing_env(self) -> "AppConfig":
        """Emit a startup warning when critical configuration is empty.

        Pydantic silently falls back to defaults when ``.env`` is missing.
        This validator logs a warning so operators know the console is
        running with placeholder values.
        """
        _log = logging.getLogger("userconsole.config")

        if not Path(".env").exists():
            _log.warning(
                "No .env file found; all configuration loaded from "
                "environment variables or defaults."
            )

        if not self.SUPABASE_URL or not self.SUPABASE_ANON_KEY.get_secret_value():
            _log.warning(
                "SUPABASE_URL or SUPABASE_ANON_KEY is empty; every backend "
                "operation will fail until credentials are provided."
            )

        if not self.SUPABASE_SERVICE_ROLE_KEY.get_secret_value():
            _log.warning(
                "SUPABASE_SERVICE_ROLE_KEY is empty; user deletion and "
                "sign-up compensation are disabled."
            )

        return self

    @property
    def missing_role_fallback(self) -> Optional[str]:
        """Fallback role name, or ``None`` when a missing role is an error."""
        return self.MISSING_ROLE_FALLBACK.strip() or None


# ---------------------------------------------------------------------------
# Module-level singleton factory
# ---------------------------------------------------------------------------

_config_instance: Optional[AppConfig] = None
_config_lock: threading.Lock = threading.Lock()


def get_config() -> AppConfig:
    """Return a cached ``AppConfig`` singleton.

    On first call, creates an ``AppConfig`` instance (reading from ``.env``).
    Subsequent calls return the same instance.  Uses a check-lock-check
    pattern to avoid the lock overhead on the fast path while remaining
    thread-safe during first initialisation.

    Prefer direct constructor injection of ``AppConfig``; this factory
    exists for the logger, which has no other way to reach configuration.
    """
    global _config_instance
    if _config_instance is None:
        with _config_lock:
            if _config_instance is None:
                _config_instance = AppConfig()
    return _config_instance

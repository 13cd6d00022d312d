"""Application-wide configuration loader.

Every value is read from the environment.  We use the idiom

    os.getenv(KEY) or DEFAULT

so that *falsy* values injected by docker-compose (``KEY=""``) do not
override the in-code default.

Only ``JWT_SECRET`` is mandatory; :meth:`Settings.validate` is called by the
application factory so a missing signing key stops the process at start-up.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from scribe.errors import ConfigurationError

OPENAI_KEY_PREFIX = "sk-"
GROQ_KEY_PREFIX = "gsk_"


def _as_bool(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    """Settings helper that gracefully falls back to sane defaults."""

    def __init__(self) -> None:
        self.JWT_SECRET: str = os.getenv("JWT_SECRET") or ""
        self.JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM") or "HS256"
        self.TOKEN_EXPIRE_DAYS: int = int(os.getenv("TOKEN_EXPIRE_DAYS") or "7")

        self.DATABASE_URL: str = os.getenv("DATABASE_URL") or "postgresql://scribe:scribe@db:5432/scribe"
        self.DB_ECHO: bool = _as_bool(os.getenv("DB_ECHO"))

        self.DATA_ROOT: Path = Path(os.getenv("DATA_ROOT") or "data")
        self.UPLOAD_DIR: Path = Path(os.getenv("UPLOAD_DIR") or self.DATA_ROOT / "uploads")
        self.LOG_DIR: Path = Path(os.getenv("LOG_DIR") or "logs")
        self.LOG_LEVEL: str = (os.getenv("LOG_LEVEL") or "INFO").upper()
        self.MAX_UPLOAD_SIZE_MB: int = int(os.getenv("MAX_UPLOAD_SIZE_MB") or "50")

        # "local" writes under UPLOAD_DIR, "supabase" pushes to Supabase Storage
        self.BLOB_BACKEND: str = (os.getenv("BLOB_BACKEND") or "local").lower()
        self.SUPABASE_URL: str = os.getenv("SUPABASE_URL") or ""
        self.SUPABASE_SERVICE_ROLE_KEY: str = os.getenv("SUPABASE_SERVICE_ROLE_KEY") or ""
        self.SUPABASE_BUCKET: str = os.getenv("SUPABASE_BUCKET") or "audio-files"

        self.OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY") or ""
        self.GROQ_API_KEY: str = os.getenv("GROQ_API_KEY") or ""
        self.TRANSCRIPTION_TIMEOUT: float = float(os.getenv("TRANSCRIPTION_TIMEOUT") or "60")

        self.CANCEL_ON_DELETE: bool = _as_bool(os.getenv("CANCEL_ON_DELETE"))
        self.CORS_ORIGINS: list[str] = [
            origin.strip()
            for origin in (os.getenv("CORS_ORIGINS") or "*").split(",")
            if origin.strip()
        ]

    @property
    def max_upload_size_bytes(self) -> int:
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024

    @property
    def openai_configured(self) -> bool:
        return self.OPENAI_API_KEY.startswith(OPENAI_KEY_PREFIX)

    @property
    def groq_configured(self) -> bool:
        return self.GROQ_API_KEY.startswith(GROQ_KEY_PREFIX)

    def validate(self) -> "Settings":
        """Refuse to run without the values the service cannot work around."""
        if not self.JWT_SECRET:
            raise ConfigurationError("JWT_SECRET environment variable is not set")
        if self.BLOB_BACKEND not in {"local", "supabase"}:
            raise ConfigurationError(f"Unknown BLOB_BACKEND '{self.BLOB_BACKEND}'")
        if self.BLOB_BACKEND == "supabase" and not (self.SUPABASE_URL and self.SUPABASE_SERVICE_ROLE_KEY):
            raise ConfigurationError(
                "SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set when BLOB_BACKEND=supabase"
            )
        return self


def get_settings() -> Settings:
    """Build a fresh :class:`Settings` from the current environment."""
    return Settings()

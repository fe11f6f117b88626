"""Process-wide settings, built once at start-up and handed to the app factory."""
from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Mapping

PROJECT_ROOT = Path(__file__).resolve().parents[1]

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


@dataclass(frozen=True)
class Settings:
    secret_key: str = "change-me-later"
    database_url: str = "sqlite:///salonease.db"
    token_max_age: int = 7 * 24 * 60 * 60
    upload_folder: str = str(PROJECT_ROOT / "uploads")
    max_upload_bytes: int = 5 * 1024 * 1024
    cors_origins: tuple[str, ...] = ("http://localhost:3000",)
    environment: str = "development"
    log_level: str = "INFO"
    # Reject cancellations that fall inside the notice window.
    enforce_cancellation_window: bool = False
    # Apply the notice window to pending bookings as well as confirmed ones.
    strict_time_windows: bool = False
    testing: bool = False
    extra: Mapping[str, object] = field(default_factory=dict)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.environ.get("CORS_ORIGINS", "http://localhost:3000")
        return cls(
            secret_key=os.environ.get("SECRET_KEY", cls.secret_key),
            database_url=os.environ.get("DATABASE_URL", cls.database_url),
            token_max_age=int(os.environ.get("TOKEN_MAX_AGE", cls.token_max_age)),
            upload_folder=os.environ.get("UPLOAD_PATH", str(PROJECT_ROOT / "uploads")),
            max_upload_bytes=int(os.environ.get("MAX_FILE_SIZE", cls.max_upload_bytes)),
            cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
            environment=os.environ.get("APP_ENV", cls.environment),
            log_level=os.environ.get("LOG_LEVEL", cls.log_level),
            enforce_cancellation_window=_env_flag("ENFORCE_CANCELLATION_WINDOW"),
            strict_time_windows=_env_flag("STRICT_TIME_WINDOWS"),
        )

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, object]) -> "Settings":
        """Build settings from Flask-style upper-case keys (used by tests and scripts)."""
        base = cls.from_env()
        known = {
            "SECRET_KEY": "secret_key",
            "SQLALCHEMY_DATABASE_URI": "database_url",
            "TOKEN_MAX_AGE": "token_max_age",
            "UPLOAD_FOLDER": "upload_folder",
            "MAX_CONTENT_LENGTH": "max_upload_bytes",
            "APP_ENV": "environment",
            "LOG_LEVEL": "log_level",
            "ENFORCE_CANCELLATION_WINDOW": "enforce_cancellation_window",
            "STRICT_TIME_WINDOWS": "strict_time_windows",
            "TESTING": "testing",
        }
        changes: dict[str, object] = {}
        extra: dict[str, object] = {}
        for key, value in mapping.items():
            if key in known:
                changes[known[key]] = value
            else:
                extra[key] = value
        return replace(base, extra=extra, **changes)

    def to_flask_config(self) -> dict[str, object]:
        config: dict[str, object] = {
            "SECRET_KEY": self.secret_key,
            "SQLALCHEMY_DATABASE_URI": self.database_url,
            "SQLALCHEMY_TRACK_MODIFICATIONS": False,
            "MAX_CONTENT_LENGTH": self.max_upload_bytes,
            "UPLOAD_FOLDER": self.upload_folder,
            "TESTING": self.testing,
            "SETTINGS": self,
        }
        config.update(self.extra)
        return config

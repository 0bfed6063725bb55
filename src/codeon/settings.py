"""Runtime settings loaded from the environment."""

import os
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field


def default_data_dir() -> Path:
    """Return ~/.local/share/codeon."""
    return Path.home() / ".local" / "share" / "codeon"


class Settings(BaseModel):
    """Engine configuration."""

    sandbox: Literal["piston", "docker"] = Field(default="piston")
    piston_url: str = Field(default="https://emkc.org/api/v2/piston")
    language: str = Field(default="csharp")
    language_version: str = Field(default="*", description="'*' picks the latest runtime")
    sandbox_timeout: float = Field(default=30.0, description="Seconds per sandbox call")
    docker_image: str = Field(default="mono:latest")
    data_dir: Path = Field(default_factory=default_data_dir)
    lint_debounce: float = Field(default=0.5, description="Seconds of quiet before linting")
    sync_max_attempts: int = Field(default=5)
    sync_backoff: float = Field(default=0.5, description="Base delay for sync retries")
    log_level: str = Field(default="INFO")

    @property
    def db_path(self) -> Path:
        return self.data_dir / "codeon.db"

    @property
    def log_dir(self) -> Path:
        return self.data_dir / "logs"

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "Settings":
        """Build settings from CODEON_* environment variables.

        Args:
            environ: Mapping to read instead of os.environ

        Returns:
            Settings with defaults for anything unset
        """
        env = os.environ if environ is None else environ
        mapping = {
            "sandbox": "CODEON_SANDBOX",
            "piston_url": "CODEON_PISTON_URL",
            "language": "CODEON_LANGUAGE",
            "language_version": "CODEON_LANGUAGE_VERSION",
            "sandbox_timeout": "CODEON_SANDBOX_TIMEOUT",
            "docker_image": "CODEON_DOCKER_IMAGE",
            "data_dir": "CODEON_DATA_DIR",
            "lint_debounce": "CODEON_LINT_DEBOUNCE",
            "sync_max_attempts": "CODEON_SYNC_MAX_ATTEMPTS",
            "sync_backoff": "CODEON_SYNC_BACKOFF",
            "log_level": "CODEON_LOG_LEVEL",
        }
        values = {field: env[var] for field, var in mapping.items() if env.get(var)}
        return cls(**values)

"""Application configuration from environment variables and Docker Swarm secrets."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings


def _read_secret(name: str) -> str | None:
    """Read a Docker Swarm secret from /run/secrets/."""
    secret_path = Path(f"/run/secrets/{name}")
    if secret_path.exists():
        return secret_path.read_text().strip()
    return None


class Settings(BaseSettings):
    """Application settings with env var and secret support."""

    database_url: str = "sqlite:///./prompt_ledger.db"
    database_echo: bool = False
    port: int = 8400
    log_level: str = "INFO"
    diff_context_lines: int = 3

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "env_prefix": "LEDGER_"}

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # Override with Docker Swarm secrets if available
        if secret := _read_secret("ledger_database_url"):
            self.database_url = secret


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()

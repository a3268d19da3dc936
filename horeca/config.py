"""Application configuration loaded from config.yaml + environment variables."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings

_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"


def _load_yaml() -> dict:
    if _CONFIG_PATH.exists():
        with open(_CONFIG_PATH) as f:
            return yaml.safe_load(f) or {}
    return {}


_yaml = _load_yaml()


class SessionConfig(BaseSettings):
    cookie_name: str = "session_token"
    max_age_days: int = 7


class StorageConfig(BaseSettings):
    base_dir: str = "data/files"
    max_upload_bytes: int = 10 * 1024 * 1024
    preview_size: tuple[int, int] = (480, 480)
    allowed_mime_types: list[str] = Field(default_factory=lambda: [
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "text/plain",
        "text/csv",
        "image/jpeg",
        "image/png",
        "image/webp",
        "image/gif",
    ])


class BillingConfig(BaseSettings):
    provider: str = "mock"
    allow_mock_in_prod: bool = False
    public_url: str = "http://localhost:8000"
    period_days: int = 30


class SandboxConfig(BaseSettings):
    max_courses: int = 1
    max_quizzes: int = 1
    max_lessons_per_course: int = 3
    max_assignments: int = 5


class Settings(BaseSettings):
    env: str = "development"
    log_level: str = "INFO"
    database_url: str = "sqlite+aiosqlite:///data/horeca.db"
    session: SessionConfig = Field(default_factory=SessionConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    billing: BillingConfig = Field(default_factory=BillingConfig)
    sandbox: SandboxConfig = Field(default_factory=SandboxConfig)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @property
    def is_production(self) -> bool:
        return self.env.lower() == "production"


def _build_settings() -> Settings:
    """Build Settings by merging YAML defaults with env overrides."""
    y = _yaml
    billing = dict(y.get("billing", {}))
    # Deployment switches for the payment provider
    if os.getenv("DEV_PAYMENT_PROVIDER"):
        billing["provider"] = os.environ["DEV_PAYMENT_PROVIDER"]
    if os.getenv("DEV_PAYMENT_ALLOW_IN_PROD"):
        billing["allow_mock_in_prod"] = os.environ["DEV_PAYMENT_ALLOW_IN_PROD"].lower() in ("1", "true", "yes")

    overrides = {
        "session": SessionConfig(**y.get("session", {})),
        "storage": StorageConfig(**y.get("storage", {})),
        "billing": BillingConfig(**billing),
        "sandbox": SandboxConfig(**y.get("sandbox", {})),
    }
    # Env vars win over YAML for the flat fields
    if "DATABASE_URL" not in os.environ and "url" in y.get("database", {}):
        overrides["database_url"] = y["database"]["url"]
    if "ENV" not in os.environ and "env" in y:
        overrides["env"] = y["env"]
    if "LOG_LEVEL" not in os.environ and "log_level" in y:
        overrides["log_level"] = y["log_level"]
    return Settings(**overrides)


@lru_cache
def get_settings() -> Settings:
    return _build_settings()

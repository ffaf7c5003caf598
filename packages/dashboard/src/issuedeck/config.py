"""
Configuration paths and the immutable startup configuration.

Data lives under ~/.issuedeck (override with ISSUEDECK_DIR):
    auth.json   saved token
    logs/       rotating log files
"""
from __future__ import annotations

import os
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigError

APP_NAME: str = "issuedeck"
CONFIG_DIR_NAME: str = ".issuedeck"
VERSION: str = "0.1.0"

ENV_DATA_DIR: str = "ISSUEDECK_DIR"
DEFAULT_API_URL: str = "https://api.github.com"

LogLevel = Literal["trace", "debug", "info", "warn", "error", "none"]
LOG_LEVELS: tuple[str, ...] = ("trace", "debug", "info", "warn", "error", "none")


# ─── Paths ───────────────────────────────────────────────────────────────────

def get_data_dir() -> str:
    """Get the data directory (e.g., ~/.issuedeck/)."""
    env_dir = os.environ.get(ENV_DATA_DIR)
    if env_dir:
        home = os.path.expanduser("~")
        if env_dir == "~":
            return home
        if env_dir.startswith("~/"):
            return home + env_dir[1:]
        return env_dir
    return os.path.join(os.path.expanduser("~"), CONFIG_DIR_NAME)


def get_log_dir() -> str:
    return os.path.join(get_data_dir(), "logs")


def get_auth_path() -> str:
    return os.path.join(get_data_dir(), "auth.json")


# ─── AppConfig ───────────────────────────────────────────────────────────────

class FeatureFlags(BaseModel):
    model_config = ConfigDict(frozen=True)

    syntax_highlight: bool = True
    hyperlinks: bool = True
    # fetch reactions after the conversation is painted instead of with it
    lazy_reactions: bool = True


class AppConfig(BaseModel):
    """Everything the App needs at startup; never mutated afterwards."""
    model_config = ConfigDict(frozen=True)

    owner: str
    repo: str
    token: str | None = None
    api_url: str = DEFAULT_API_URL
    viewport: tuple[int, int] | None = None
    log_dir: str = Field(default_factory=get_log_dir)
    log_level: LogLevel = "info"
    features: FeatureFlags = Field(default_factory=FeatureFlags)

    @field_validator("owner", "repo")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value or "/" in value:
            raise ValueError("must be a single non-empty path segment")
        return value

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


def load_config(owner: str, repo: str, **overrides: object) -> AppConfig:
    """Build an AppConfig, turning validation failures into ConfigError."""
    try:
        return AppConfig(owner=owner, repo=repo, **overrides)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise ConfigError(problems) from exc

"""
Token storage: the saved GitHub token lives in <data dir>/auth.json.
"""
from __future__ import annotations

import json
import logging
import os
from typing import Any

from .config import get_auth_path

logger = logging.getLogger(__name__)

TOKEN_ENV_VARS: tuple[str, ...] = ("GITHUB_TOKEN", "GH_TOKEN")


class AuthStorage:
    """
    Stores the GitHub token on disk with owner-only permissions.

    Resolution order: stored token → GITHUB_TOKEN → GH_TOKEN.
    """

    def __init__(self, path: str | None = None) -> None:
        self.path = path or get_auth_path()
        self._data: dict[str, Any] = {}
        self._loaded = False

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self._load()

    def _load(self) -> None:
        if os.path.exists(self.path):
            try:
                with open(self.path, encoding="utf-8") as f:
                    data = json.load(f)
                self._data = data if isinstance(data, dict) else {}
            except (json.JSONDecodeError, OSError) as exc:
                logger.warning("ignoring unreadable %s: %s", self.path, exc)
                self._data = {}
        self._loaded = True

    def _save(self) -> None:
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(self._data, f, indent=2)
        # O_CREAT's mode only applies to new files
        os.chmod(self.path, 0o600)

    def get_token(self) -> str | None:
        self._ensure_loaded()
        token = self._data.get("github_token")
        return token if isinstance(token, str) and token else None

    def set_token(self, token: str) -> None:
        self._ensure_loaded()
        self._data["github_token"] = token.strip()
        self._save()
        logger.info("saved token to %s", self.path)

    def delete_token(self) -> None:
        self._ensure_loaded()
        if self._data.pop("github_token", None) is not None:
            self._save()

    def resolve_token(self) -> str | None:
        stored = self.get_token()
        if stored:
            return stored
        for name in TOKEN_ENV_VARS:
            value = os.environ.get(name)
            if value:
                return value
        return None

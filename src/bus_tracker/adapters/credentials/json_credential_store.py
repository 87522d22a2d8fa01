"""Credential stores used for silent session resumption."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from bus_tracker.domain.ports.credential_store import CredentialStore

logger = logging.getLogger(__name__)


class InMemoryCredentialStore(CredentialStore):
    """Credential store that forgets everything when the process exits."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def put(self, key: str, value: str) -> None:
        self._values[key] = value

    def remove(self, *keys: str) -> None:
        for key in keys:
            self._values.pop(key, None)


class JsonCredentialStore(CredentialStore):
    """Credential store persisted as a small JSON object on disk.

    The file is rewritten on every change and created with owner-only
    permissions, since it holds an OAuth token.
    """

    def __init__(self, path: str | Path) -> None:
        """Initialize the store, loading existing values.

        Args:
            path: Location of the JSON file. Parent directories are created on write.
        """
        self._path = Path(path).expanduser()
        self._values = self._load()

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def put(self, key: str, value: str) -> None:
        self._values[key] = value
        self._save()

    def remove(self, *keys: str) -> None:
        removed = [key for key in keys if self._values.pop(key, None) is not None]
        if removed:
            self._save()

    def _load(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            with open(self._path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable credentials file {self._path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring credentials file {self._path}: expected a JSON object")
            return {}
        return {str(k): str(v) for k, v in data.items() if v is not None}

    def _save(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.touch(mode=0o600, exist_ok=True)
        with open(self._path, "w", encoding="utf-8") as f:
            json.dump(self._values, f, indent=2, sort_keys=True)

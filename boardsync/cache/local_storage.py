"""
Client-local key/value storage + centralised key names

Two lifetimes:
- durable (JsonFileStorage): survives restarts; refresh token, preferences,
  connection settings
- session (MemoryStorage): gone with the process; PKCE verifier

The access token is never written to either.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

import structlog

log = structlog.get_logger()


class StorageKeys:
    """
    Storage key names in one place, no ad-hoc literals
    Naming: {app}_{resource}
    """

    # ── Auth ──
    REFRESH_TOKEN = "usable_refresh_token"
    PKCE_VERIFIER = "usable_pkce_verifier"  # session only

    # ── Display preferences ──
    PREFERENCES = "kanban_preferences"

    # ── Connection settings (token, workspace id, fragment type id) ──
    CONNECTION = "kanban_connection"


class KeyValueStorage(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStorage:
    """Process-lifetime storage"""

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStorage:
    """
    Durable storage in a single JSON file.

    Writes go through a temp file + os.replace so a crash never leaves a
    half-written file. An unreadable file is treated as empty.
    """

    def __init__(self, path: Path | str):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, Any]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            log.warning("Local storage unreadable, starting empty", path=str(self._path), error=str(e))
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self._path.parent, prefix=".storage-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp, self._path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def get(self, key: str, default: Any = None) -> Any:
        return self._read().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)

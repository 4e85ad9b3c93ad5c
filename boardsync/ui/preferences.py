"""
Durable user settings edited from the board UI

- display preferences: card size, docked chat panel
- connection settings: API token, workspace id, fragment type id
"""

from enum import Enum

import structlog
from pydantic import BaseModel, ValidationError

from boardsync.cache.local_storage import KeyValueStorage, StorageKeys
from boardsync.config import ConnectionConfig

log = structlog.get_logger()


class CardSize(str, Enum):
    COMPACT = "compact"
    NORMAL = "normal"
    LARGE = "large"


class Preferences(BaseModel):
    card_size: CardSize = CardSize.NORMAL
    panel_docked: bool = False


class PreferencesStore:
    def __init__(self, storage: KeyValueStorage):
        self._storage = storage

    def load(self) -> Preferences:
        raw = self._storage.get(StorageKeys.PREFERENCES) or {}
        try:
            return Preferences.model_validate(raw)
        except ValidationError as e:
            log.warning("Stored preferences invalid, using defaults", error=str(e))
            return Preferences()

    def save(self, preferences: Preferences) -> None:
        self._storage.set(StorageKeys.PREFERENCES, preferences.model_dump(mode="json"))


class ConnectionSettings(BaseModel):
    api_token: str = ""
    workspace_id: str = ""
    fragment_type_id: str = ""


class ConnectionSettingsStore:
    def __init__(self, storage: KeyValueStorage):
        self._storage = storage

    def load(self) -> ConnectionSettings:
        raw = self._storage.get(StorageKeys.CONNECTION) or {}
        try:
            return ConnectionSettings.model_validate(raw)
        except ValidationError as e:
            log.warning("Stored connection settings invalid, ignoring", error=str(e))
            return ConnectionSettings()

    def save(self, config: ConnectionConfig) -> None:
        settings = ConnectionSettings(
            api_token=config.api_token,
            workspace_id=config.workspace_id,
            fragment_type_id=config.fragment_type_id,
        )
        self._storage.set(StorageKeys.CONNECTION, settings.model_dump())

# tests/test_local_storage.py

from __future__ import annotations

import json
from pathlib import Path

from boardsync.cache.local_storage import JsonFileStorage, MemoryStorage, StorageKeys
from boardsync.config import ConnectionConfig
from boardsync.ui.preferences import (
    CardSize,
    ConnectionSettingsStore,
    Preferences,
    PreferencesStore,
)


def test_json_file_storage_persists_across_instances(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "storage.json"
    JsonFileStorage(path).set(StorageKeys.REFRESH_TOKEN, "r-1")

    reopened = JsonFileStorage(path)

    assert reopened.get(StorageKeys.REFRESH_TOKEN) == "r-1"
    assert json.loads(path.read_text(encoding="utf-8")) == {"usable_refresh_token": "r-1"}


def test_json_file_storage_remove(tmp_path: Path) -> None:
    storage = JsonFileStorage(tmp_path / "storage.json")
    storage.set("a", 1)
    storage.set("b", 2)

    storage.remove("a")
    storage.remove("missing")

    assert storage.get("a") is None
    assert storage.get("b") == 2
    assert storage.get("missing", "fallback") == "fallback"


def test_corrupt_file_reads_as_empty(tmp_path: Path) -> None:
    path = tmp_path / "storage.json"
    path.write_text("{not json", encoding="utf-8")
    storage = JsonFileStorage(path)

    assert storage.get("anything") is None

    storage.set("k", "v")
    assert json.loads(path.read_text(encoding="utf-8")) == {"k": "v"}


def test_no_temp_files_left_behind(tmp_path: Path) -> None:
    storage = JsonFileStorage(tmp_path / "storage.json")
    for i in range(3):
        storage.set("k", i)

    assert [p.name for p in tmp_path.iterdir()] == ["storage.json"]


def test_preferences_round_trip_and_defaults() -> None:
    storage = MemoryStorage()
    prefs = PreferencesStore(storage)

    assert prefs.load() == Preferences()

    prefs.save(Preferences(card_size=CardSize.COMPACT, panel_docked=True))

    assert storage.get(StorageKeys.PREFERENCES) == {"card_size": "compact", "panel_docked": True}
    assert prefs.load().card_size == CardSize.COMPACT


def test_invalid_preferences_fall_back_to_defaults() -> None:
    storage = MemoryStorage()
    storage.set(StorageKeys.PREFERENCES, {"card_size": "gigantic"})

    assert PreferencesStore(storage).load() == Preferences()


def test_connection_settings_never_store_base_url() -> None:
    storage = MemoryStorage()
    store = ConnectionSettingsStore(storage)

    store.save(ConnectionConfig(api_base_url="https://x.test/api", api_token="t", workspace_id="w"))

    assert storage.get(StorageKeys.CONNECTION) == {"api_token": "t", "workspace_id": "w", "fragment_type_id": ""}
    assert store.load().workspace_id == "w"

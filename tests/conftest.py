# tests/conftest.py

from __future__ import annotations

import pytest

from boardsync.board.engine import SyncEngine
from boardsync.board.sort_keys import SortKeyAllocator
from boardsync.cache.local_storage import MemoryStorage
from boardsync.config import AuthConfig, ConnectionConfig

from .fakes import FakeChannel, FakeFragmentStore, FakeNavigator, fragment

NOW_MS = 1_000_000

EMBED_ORIGIN = "https://chat.example.test"


@pytest.fixture()
def connection_config() -> ConnectionConfig:
    return ConnectionConfig(
        api_base_url="https://store.example.test/api",
        api_token="static-token",
        workspace_id="ws-1",
        fragment_type_id="ft-1",
    )


@pytest.fixture()
def auth_config() -> AuthConfig:
    return AuthConfig(
        base_url="https://idp.example.test/realms/r/protocol/openid-connect",
        client_id="board-client",
        redirect_uri="http://localhost:8888/callback",
        token_url="http://localhost:8888/auth/token",
        app_origin="http://localhost:8888",
    )


@pytest.fixture()
def allocator() -> SortKeyAllocator:
    """Allocator with a frozen clock so time-derived keys are predictable"""
    return SortKeyAllocator(clock=lambda: NOW_MS)


@pytest.fixture()
def store() -> FakeFragmentStore:
    return FakeFragmentStore([
        fragment("a", "Write docs", sort=10),
        fragment("b", "Fix login", sort=20, priority="high"),
        fragment("c", "Ship release", status="in-progress", sort=5),
        fragment("d", "Old idea", status="deleted", sort=1),
    ])


@pytest.fixture()
def engine(store: FakeFragmentStore, connection_config: ConnectionConfig, allocator: SortKeyAllocator) -> SyncEngine:
    return SyncEngine(store, connection_config, allocator=allocator)


@pytest.fixture()
def channel() -> FakeChannel:
    return FakeChannel()


@pytest.fixture()
def navigator() -> FakeNavigator:
    return FakeNavigator()


@pytest.fixture()
def durable() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture()
def session_storage() -> MemoryStorage:
    return MemoryStorage()

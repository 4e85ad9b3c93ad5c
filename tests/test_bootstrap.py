# tests/test_bootstrap.py

from __future__ import annotations

import httpx
import pytest

from boardsync.bootstrap import BoardClient
from boardsync.cache.local_storage import MemoryStorage, StorageKeys
from boardsync.config import Settings

from .fakes import FakeChannel, FakeFragmentStore, FakeNavigator, fragment


class Relay:
    """MockTransport handler for the relay's /config and /auth/token"""

    def __init__(self, config: dict | None = None) -> None:
        self.config = config or {}
        self.paths: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.paths.append(request.url.path)
        if request.url.path == "/config":
            return httpx.Response(200, json={"API_BASE_URL": "/api", **self.config})
        if request.url.path == "/auth/token":
            return httpx.Response(
                200, json={"access_token": "access-1", "refresh_token": "refresh-1", "expires_in": 3600}
            )
        return httpx.Response(404)


def _settings(**overrides) -> Settings:
    values = {"WORKSPACE_ID": "ws-1", "FRAGMENT_TYPE_ID": "ft-1", "API_TOKEN": ""}
    values.update(overrides)
    return Settings(_env_file=None, **values)


def _client(settings: Settings, relay: Relay, durable: MemoryStorage, session: MemoryStorage | None = None):
    return BoardClient(
        FakeChannel(),
        settings,
        navigator=FakeNavigator(),
        durable=durable,
        session=session or MemoryStorage(),
        store=FakeFragmentStore([fragment("a", "Write docs", sort=10)]),
        transport=httpx.MockTransport(relay),
    )


@pytest.mark.asyncio
async def test_start_restores_session_and_loads_board() -> None:
    durable = MemoryStorage()
    durable.set(StorageKeys.REFRESH_TOKEN, "stored")
    relay = Relay()
    client = _client(_settings(), relay, durable)

    assert await client.start() is True

    assert client.tokens.access_token == "access-1"
    assert client.engine.get("a") is not None
    assert relay.paths == ["/auth/token"]
    await client.aclose()


@pytest.mark.asyncio
async def test_start_fills_missing_ids_from_relay() -> None:
    relay = Relay({"WORKSPACE_ID": "relay-ws", "FRAGMENT_TYPE_ID": "relay-ft"})
    client = _client(_settings(WORKSPACE_ID="", FRAGMENT_TYPE_ID=""), relay, MemoryStorage())

    assert await client.start() is False

    assert client.engine.config.workspace_id == "relay-ws"
    assert client.engine.config.fragment_type_id == "relay-ft"
    assert client.store.config.workspace_id == "relay-ws"
    assert relay.paths == ["/config"]


@pytest.mark.asyncio
async def test_start_completes_login_callback() -> None:
    session = MemoryStorage()
    session.set(StorageKeys.PKCE_VERIFIER, "verifier")
    durable = MemoryStorage()
    client = _client(_settings(), Relay(), durable, session)

    authenticated = await client.start("http://localhost:8888/callback?code=abc")

    assert authenticated is True
    assert durable.get(StorageKeys.REFRESH_TOKEN) == "refresh-1"
    await client.aclose()


@pytest.mark.asyncio
async def test_rejected_login_falls_back_to_logged_out() -> None:
    client = _client(_settings(), Relay(), MemoryStorage())

    assert await client.start("http://localhost:8888/callback?error=access_denied") is False
    assert client.engine.get("a") is not None


def test_stored_connection_settings_override_environment() -> None:
    durable = MemoryStorage()
    durable.set(StorageKeys.CONNECTION, {"workspace_id": "stored-ws", "api_token": "", "fragment_type_id": ""})

    client = _client(_settings(), Relay(), durable)

    assert client.engine.config.workspace_id == "stored-ws"
    assert client.engine.config.fragment_type_id == "ft-1"


def test_reconfigure_persists_connection_settings() -> None:
    durable = MemoryStorage()
    client = _client(_settings(), Relay(), durable)

    client.reconfigure(client.engine.config.model_copy(update={"workspace_id": "ws-2"}))

    assert durable.get(StorageKeys.CONNECTION)["workspace_id"] == "ws-2"
    assert client.store.config.workspace_id == "ws-2"

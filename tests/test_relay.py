# tests/test_relay.py

from __future__ import annotations

import json
from urllib.parse import parse_qs

import httpx
import pytest
from fastapi.testclient import TestClient

from boardsync.api.deps import get_http_client
from boardsync.config import Settings, get_settings
from boardsync.main import app

UPSTREAM = "https://upstream.example.test"
IDP = "https://idp.example.test/realms/r/protocol/openid-connect"


class Upstream:
    """Records what the relay forwarded"""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.fail = False

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if self.fail:
            raise httpx.ConnectError("upstream down", request=request)
        self.requests.append(request)
        if request.url.path.endswith("/token"):
            form = parse_qs(request.content.decode())
            if form.get("grant_type") == ["refresh_token"]:
                return httpx.Response(400, json={"error": "invalid_grant"})
            return httpx.Response(200, json={"access_token": "a", "expires_in": 300})
        return httpx.Response(200, json={"fragments": [], "echo": request.method})


@pytest.fixture()
def upstream() -> Upstream:
    return Upstream()


@pytest.fixture()
def client(upstream: Upstream):
    settings = Settings(
        _env_file=None,
        RELAY_UPSTREAM_URL=UPSTREAM,
        AUTH_BASE_URL=IDP,
        WORKSPACE_ID="ws-relay",
        FRAGMENT_TYPE_ID="ft-relay",
        API_TOKEN="server-side-secret",
    )
    http = httpx.AsyncClient(transport=httpx.MockTransport(upstream))
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_http_client] = lambda: http
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client: TestClient) -> None:
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
    assert resp.json()["upstream"] == UPSTREAM


def test_config_serves_ids_but_never_tokens(client: TestClient) -> None:
    resp = client.get("/config")

    assert resp.json() == {"API_BASE_URL": "/api", "WORKSPACE_ID": "ws-relay", "FRAGMENT_TYPE_ID": "ft-relay"}
    assert "server-side-secret" not in resp.text


def test_api_call_forwarded_with_query_and_bearer(client: TestClient, upstream: Upstream) -> None:
    resp = client.get(
        "/api/memory-fragments",
        params={"workspaceId": "ws-1", "limit": 100},
        headers={"Authorization": "Bearer user-token"},
    )

    assert resp.status_code == 200
    assert resp.json()["fragments"] == []
    [forwarded] = upstream.requests
    assert str(forwarded.url) == f"{UPSTREAM}/api/memory-fragments?workspaceId=ws-1&limit=100"
    assert forwarded.headers["Authorization"] == "Bearer user-token"


def test_api_body_and_method_forwarded(client: TestClient, upstream: Upstream) -> None:
    resp = client.patch("/api/memory-fragments/abc", json={"title": "T"})

    assert resp.json()["echo"] == "PATCH"
    forwarded = upstream.requests[0]
    assert forwarded.url.path == "/api/memory-fragments/abc"
    assert json.loads(forwarded.content) == {"title": "T"}
    assert "Authorization" not in forwarded.headers


def test_upstream_failure_is_502(client: TestClient, upstream: Upstream) -> None:
    upstream.fail = True

    resp = client.get("/api/memory-fragments")

    assert resp.status_code == 502
    assert resp.json() == {"error": "Proxy error"}


def test_token_exchange_forwarded_to_identity_provider(client: TestClient, upstream: Upstream) -> None:
    resp = client.post(
        "/auth/token",
        data={"grant_type": "authorization_code", "code": "abc", "code_verifier": "v"},
    )

    assert resp.status_code == 200
    assert resp.json()["access_token"] == "a"
    forwarded = upstream.requests[0]
    assert str(forwarded.url) == f"{IDP}/token"
    assert parse_qs(forwarded.content.decode())["code"] == ["abc"]


def test_token_error_status_passed_through(client: TestClient) -> None:
    resp = client.post("/auth/token", data={"grant_type": "refresh_token", "refresh_token": "old"})

    assert resp.status_code == 400
    assert resp.json() == {"error": "invalid_grant"}


def test_token_proxy_failure_is_502(client: TestClient, upstream: Upstream) -> None:
    upstream.fail = True

    resp = client.post("/auth/token", data={"grant_type": "refresh_token"})

    assert resp.status_code == 502


def test_trace_id_round_trip(client: TestClient) -> None:
    resp = client.get("/config", headers={"X-Trace-ID": "trace-123"})

    assert resp.headers["X-Trace-ID"] == "trace-123"
    assert "X-Duration-Ms" in resp.headers


def test_metrics_exposed(client: TestClient) -> None:
    client.get("/config")

    resp = client.get("/metrics/")

    assert resp.status_code == 200
    assert "boardsync_relay_request_total" in resp.text


def test_trace_id_forwarded_upstream(client: TestClient, upstream: Upstream) -> None:
    client.get("/api/memory-fragments", headers={"X-Trace-ID": "trace-456"})

    assert upstream.requests[0].headers["X-Trace-ID"] == "trace-456"


def test_metrics_label_routes_by_template(client: TestClient) -> None:
    client.get("/api/memory-fragments/frag-1")

    resp = client.get("/metrics/")

    assert 'route="/api/{path:path}"' in resp.text
    assert 'route="/api/memory-fragments/frag-1"' not in resp.text

"""
Fragment store HTTP client

Endpoints (relative to ConnectionConfig.api_base_url):
- GET    /memory-fragments?workspaceId=&fragmentTypeId=&limit=  -> {"fragments": [...]}
- POST   /memory-fragments
- PATCH  /memory-fragments/{id}
- DELETE /memory-fragments/{id}

Every failure (transport error, non-2xx, undecodable body) is raised as
SyncUnavailable; nothing is retried here, reconciliation is the engine's job.
"""

from collections.abc import Callable
from typing import Any, Protocol
from urllib.parse import quote

import httpx
import structlog

from boardsync.config import ConnectionConfig
from boardsync.observability.metrics import SYNC_CALL_TOTAL

log = structlog.get_logger()


class SyncUnavailable(Exception):
    """Remote store call failed"""

    def __init__(self, message: str, cause: Exception | None = None, status_code: int | None = None):
        super().__init__(message)
        self.cause = cause
        self.status_code = status_code


class FragmentStore(Protocol):
    """What the sync engine needs from the remote store"""

    async def list_fragments(self) -> list[dict]: ...

    async def create_fragment(self, payload: dict) -> dict: ...

    async def update_fragment(self, fragment_id: str, payload: dict) -> dict: ...

    async def delete_fragment(self, fragment_id: str) -> None: ...

    def reconfigure(self, config: ConnectionConfig) -> None: ...


class FragmentStoreClient:
    """httpx-backed FragmentStore"""

    def __init__(
        self,
        config: ConnectionConfig,
        token_provider: Callable[[], str | None] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._config = config
        self._token_provider = token_provider
        self._transport = transport

    @property
    def config(self) -> ConnectionConfig:
        return self._config

    def reconfigure(self, config: ConnectionConfig) -> None:
        self._config = config

    def _bearer(self) -> str:
        # OAuth access token wins over a statically configured API token
        token = (self._token_provider() if self._token_provider else None) or self._config.api_token
        return f"Bearer {token}" if token else ""

    async def _request(self, operation: str, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self._config.api_base_url.rstrip('/')}{path}"
        headers = {"Content-Type": "application/json"}
        bearer = self._bearer()
        if bearer:
            headers["Authorization"] = bearer

        try:
            async with httpx.AsyncClient(timeout=self._config.timeout, transport=self._transport) as client:
                resp = await client.request(method, url, headers=headers, **kwargs)
        except httpx.TimeoutException as e:
            SYNC_CALL_TOTAL.labels(operation=operation, status="error").inc()
            log.warning("Fragment store timeout", operation=operation, timeout=self._config.timeout)
            raise SyncUnavailable(f"{operation}: timed out after {self._config.timeout}s", cause=e) from e
        except httpx.HTTPError as e:
            SYNC_CALL_TOTAL.labels(operation=operation, status="error").inc()
            log.error("Fragment store unreachable", operation=operation, error=str(e))
            raise SyncUnavailable(f"{operation}: {e}", cause=e) from e

        if resp.is_error:
            SYNC_CALL_TOTAL.labels(operation=operation, status="error").inc()
            message = _error_message(resp)
            log.warning("Fragment store error", operation=operation, status_code=resp.status_code, error=message)
            raise SyncUnavailable(f"{operation}: {message}", status_code=resp.status_code)

        SYNC_CALL_TOTAL.labels(operation=operation, status="success").inc()
        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError as e:
            raise SyncUnavailable(f"{operation}: invalid JSON response", cause=e) from e

    async def list_fragments(self) -> list[dict]:
        data = await self._request(
            "list",
            "GET",
            "/memory-fragments",
            params={
                "workspaceId": self._config.workspace_id,
                "fragmentTypeId": self._config.fragment_type_id,
                "limit": self._config.list_limit,
            },
        )
        if not isinstance(data, dict):
            raise SyncUnavailable(f"list: unexpected response shape ({type(data).__name__})")
        fragments = data.get("fragments") or []
        if not isinstance(fragments, list):
            raise SyncUnavailable("list: 'fragments' is not a list")
        return fragments

    async def create_fragment(self, payload: dict) -> dict:
        body = {
            "workspaceId": self._config.workspace_id,
            "fragmentTypeId": self._config.fragment_type_id,
            **payload,
        }
        return await self._request("create", "POST", "/memory-fragments", json=body)

    async def update_fragment(self, fragment_id: str, payload: dict) -> dict:
        return await self._request("update", "PATCH", _fragment_path(fragment_id), json=payload)

    async def delete_fragment(self, fragment_id: str) -> None:
        await self._request("delete", "DELETE", _fragment_path(fragment_id))


def _fragment_path(fragment_id: str) -> str:
    return f"/memory-fragments/{quote(str(fragment_id), safe='')}"


def _error_message(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return f"API Error: {resp.status_code}"
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return f"API Error: {resp.status_code}"

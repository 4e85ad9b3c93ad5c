# tests/fakes.py

from __future__ import annotations

import asyncio
import copy
import itertools
from dataclasses import dataclass, field
from typing import Any

from boardsync.board.codec import encode
from boardsync.config import ConnectionConfig
from boardsync.store.client import SyncUnavailable


def fragment(
    fragment_id: str,
    title: str,
    *,
    status: str = "todo",
    priority: str = "medium",
    sort: int = 0,
    body: str = "",
    summary: str = "",
    tags: list[str] | None = None,
) -> dict:
    """Fragment dict as the remote store returns it"""
    return {
        "id": fragment_id,
        "title": title,
        "summary": summary,
        "content": encode(status, priority, sort, body),
        "tags": ["kloddin", "todo", *(tags or [])],
    }


class FakeFragmentStore:
    """
    In-memory FragmentStore.

    - `calls` records (operation, args) for assertions
    - `fail` holds operation names that raise SyncUnavailable until removed
    - `update_gate`, when set, makes update_fragment wait for it
    """

    def __init__(self, fragments: list[dict] | None = None) -> None:
        self.fragments: dict[str, dict] = {f["id"]: copy.deepcopy(f) for f in fragments or []}
        self.calls: list[tuple[str, Any]] = []
        self.fail: set[str] = set()
        self.update_gate: asyncio.Event | None = None
        self.config: ConnectionConfig | None = None
        self._ids = itertools.count(1)

    def _check(self, operation: str) -> None:
        if operation in self.fail:
            raise SyncUnavailable(f"{operation}: simulated outage")

    def mutations(self) -> list[tuple[str, Any]]:
        return [c for c in self.calls if c[0] != "list"]

    async def list_fragments(self) -> list[dict]:
        self.calls.append(("list", None))
        self._check("list")
        return [copy.deepcopy(f) for f in self.fragments.values()]

    async def create_fragment(self, payload: dict) -> dict:
        self.calls.append(("create", copy.deepcopy(payload)))
        self._check("create")
        fragment_id = f"frag-{next(self._ids)}"
        stored = {"id": fragment_id, **copy.deepcopy(payload)}
        self.fragments[fragment_id] = stored
        return copy.deepcopy(stored)

    async def update_fragment(self, fragment_id: str, payload: dict) -> dict:
        self.calls.append(("update", (fragment_id, copy.deepcopy(payload))))
        if self.update_gate is not None:
            await self.update_gate.wait()
        self._check("update")
        self.fragments.setdefault(fragment_id, {"id": fragment_id}).update(copy.deepcopy(payload))
        return copy.deepcopy(self.fragments[fragment_id])

    async def delete_fragment(self, fragment_id: str) -> None:
        self.calls.append(("delete", fragment_id))
        self._check("delete")
        self.fragments.pop(fragment_id, None)

    def reconfigure(self, config: ConnectionConfig) -> None:
        self.config = config


@dataclass
class FakeChannel:
    """Records every message posted to the embedded surface"""

    sent: list[tuple[dict, str]] = field(default_factory=list)

    async def post(self, message: dict, target_origin: str) -> None:
        self.sent.append((message, target_origin))

    def types(self) -> list[str]:
        return [m["type"] for m, _ in self.sent]

    def of_type(self, msg_type: str) -> list[dict]:
        return [m for m, _ in self.sent if m["type"] == msg_type]


@dataclass
class FakeNavigator:
    opened: list[str] = field(default_factory=list)
    replaced: list[str] = field(default_factory=list)

    def open(self, url: str) -> None:
        self.opened.append(url)

    def replace_location(self, url: str) -> None:
        self.replaced.append(url)


class FakeTokens:
    """Stand-in for TokenManager where only the token matters"""

    def __init__(self, access_token: str | None = None, refreshed: str | None = None) -> None:
        self.access_token = access_token
        self.refreshed = refreshed
        self.refresh_calls = 0

    async def refresh_token(self) -> str | None:
        self.refresh_calls += 1
        self.access_token = self.refreshed
        return self.refreshed

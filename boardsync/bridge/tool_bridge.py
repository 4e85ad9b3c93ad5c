"""
Tool bridge: request/response RPC between the board and the embedded agent

Inbound handling:
- origin check first; anything not from the single allowed origin is dropped
  with no state change and no reply
- READY                 -> AUTH (if logged in) + REGISTER_TOOLS + ADD_CONTEXT
- REQUEST_TOKEN_REFRESH -> refresh via the token manager, AUTH with the new token
- TOOL_CALL             -> exactly one TOOL_RESPONSE per requestId; after a
                           write tool the board is reloaded and ADD_CONTEXT re-sent

While the chat panel is open a silent poll reloads the board and re-sends the
context only when the task list actually changed.
"""

import asyncio
from collections.abc import AsyncIterator
from typing import Any

import structlog
from pydantic import ValidationError

from boardsync.board.engine import SyncEngine
from boardsync.bridge.channel import InboundEnvelope, MessageChannel
from boardsync.bridge.protocol import (
    AddContextMessage,
    AuthMessage,
    BridgeMessage,
    ContextItem,
    ReadyMessage,
    RegisterToolsMessage,
    RequestTokenRefreshMessage,
    ToolCallMessage,
    ToolResponseMessage,
    inbound_adapter,
)
from boardsync.observability.metrics import BRIDGE_MESSAGE_TOTAL
from boardsync.security.tokens import TokenManager
from boardsync.store.client import SyncUnavailable
from boardsync.tools.base import ToolResult
from boardsync.tools.registry import ToolRegistry

log = structlog.get_logger()


class OriginRejected(Exception):
    """Inbound message from an origin other than the embedded surface"""


class ToolBridge:
    """Board side of the cross-frame protocol"""

    def __init__(
        self,
        channel: MessageChannel,
        engine: SyncEngine,
        tokens: TokenManager,
        registry: ToolRegistry,
        allowed_origin: str,
        poll_interval: float = 30.0,
    ):
        self._channel = channel
        self._engine = engine
        self._tokens = tokens
        self._registry = registry
        self._allowed_origin = allowed_origin.rstrip("/")
        self._poll_interval = poll_interval
        self._poll_task: asyncio.Task | None = None
        self._handlers: set[asyncio.Task] = set()

    @property
    def polling(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    # ── Inbound ──

    def _check_origin(self, origin: str) -> None:
        if (origin or "").rstrip("/") != self._allowed_origin:
            raise OriginRejected(origin)

    async def handle_message(self, data: Any, origin: str) -> None:
        """Process one inbound message event"""
        try:
            self._check_origin(origin)
        except OriginRejected:
            BRIDGE_MESSAGE_TOTAL.labels(type="unknown", outcome="rejected_origin").inc()
            log.debug("Bridge message from disallowed origin dropped", origin=origin)
            return

        try:
            message = inbound_adapter.validate_python(data)
        except ValidationError as e:
            request_id = _correlatable_tool_call(data)
            if request_id is not None:
                BRIDGE_MESSAGE_TOTAL.labels(type="TOOL_CALL", outcome="invalid").inc()
                await self._reject_tool_call(request_id, e)
                return
            BRIDGE_MESSAGE_TOTAL.labels(type="unknown", outcome="malformed").inc()
            msg_type = data.get("type") if isinstance(data, dict) else None
            log.debug("Unhandled bridge message dropped", type=msg_type)
            return

        BRIDGE_MESSAGE_TOTAL.labels(type=message.type, outcome="handled").inc()
        if isinstance(message, ReadyMessage):
            await self._on_ready()
        elif isinstance(message, RequestTokenRefreshMessage):
            await self._on_token_refresh_request()
        elif isinstance(message, ToolCallMessage):
            await self._on_tool_call(message)

    async def serve(self, inbound: AsyncIterator[InboundEnvelope]) -> None:
        """
        Consume inbound message events until the stream ends.

        Each message is handled in its own task so a slow tool call does not
        hold up the next message.
        """
        async for envelope in inbound:
            task = asyncio.create_task(self.handle_message(envelope.data, envelope.origin))
            self._handlers.add(task)
            task.add_done_callback(self._handlers.discard)

    # ── Handlers ──

    async def _on_ready(self) -> None:
        log.info("Embedded agent ready")
        await self.push_auth()
        await self._post(RegisterToolsMessage(tools=self._registry.get_all_schemas()))
        await self.push_context()

    async def _on_token_refresh_request(self) -> None:
        token = await self._tokens.refresh_token()
        if token is None:
            log.warning("Embedded agent asked for a token but the session is gone")
            return
        await self._post(AuthMessage(token=token))

    async def _on_tool_call(self, message: ToolCallMessage) -> None:
        with structlog.contextvars.bound_contextvars(request_id=str(message.request_id), tool=message.tool):
            try:
                result = await self._registry.execute(message.tool, message.input)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                log.error("Tool dispatch failed", error=str(e), exc_info=True)
                result = ToolResult.fail(f"internal error: {e}")

            log.info("Tool call finished", status=result.status)
            await self._post(ToolResponseMessage(request_id=message.request_id, **result.to_payload()))

            if self._registry.has_tool(message.tool) and self._registry.get(message.tool).mutates:
                await self._resync()

    async def _reject_tool_call(self, request_id: str | int, error: ValidationError) -> None:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'] if p != 'TOOL_CALL') or 'message'}: {err['msg']}"
            for err in error.errors()
        )
        log.warning("Malformed tool call rejected", request_id=str(request_id), error=details)
        await self._post(ToolResponseMessage(request_id=request_id, error=f"ToolInputInvalid: {details}"))

    async def _resync(self) -> None:
        try:
            await self._engine.load()
        except SyncUnavailable as e:
            log.warning("Board reload after tool call failed", error=str(e))
        except Exception as e:
            log.error("Board reload after tool call raised", error=str(e), exc_info=True)
        await self.push_context()

    # ── Outbound ──

    async def _post(self, message: BridgeMessage) -> None:
        try:
            await self._channel.post(message.to_wire(), target_origin=self._allowed_origin)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            log.error("Bridge post failed", type=message.type, error=str(e))

    async def push_auth(self) -> None:
        token = self._tokens.access_token
        if token:
            await self._post(AuthMessage(token=token))

    async def push_context(self) -> None:
        """Send the current board digest as agent context"""
        item = ContextItem(id="kanban-board", title="Kanban board", content=self._engine.digest())
        await self._post(AddContextMessage(items=[item]))

    # ── Panel polling ──

    def open_panel(self) -> None:
        """Chat panel became visible: start the silent poll"""
        if not self.polling:
            self._poll_task = asyncio.get_running_loop().create_task(self._poll_loop(), name="bridge-poll")

    def close_panel(self) -> None:
        """Chat panel hidden: stop polling"""
        task, self._poll_task = self._poll_task, None
        if task is not None:
            task.cancel()

    async def _poll_loop(self) -> None:
        while True:
            await asyncio.sleep(self._poll_interval)
            try:
                changed = await self._engine.load()
            except SyncUnavailable as e:
                log.debug("Silent board poll failed", error=str(e))
                continue
            except Exception as e:
                log.error("Silent board poll raised", error=str(e), exc_info=True)
                continue
            if changed:
                log.debug("Board changed remotely, refreshing agent context")
                await self.push_context()

    async def aclose(self) -> None:
        """Stop polling and wait for in-flight message handlers"""
        self.close_panel()
        if self._handlers:
            await asyncio.gather(*self._handlers, return_exceptions=True)


def _correlatable_tool_call(data: Any) -> str | int | None:
    """requestId of a TOOL_CALL that failed validation, if one can be answered"""
    if not isinstance(data, dict) or data.get("type") != "TOOL_CALL":
        return None
    request_id = data.get("requestId")
    if isinstance(request_id, bool) or not isinstance(request_id, (str, int)):
        return None
    return request_id

"""
Client wiring: builds every board component from Settings

    client = BoardClient(channel=host_channel)
    await client.start(location=current_url)

Startup order: finish a pending login callback, otherwise try a silent
session restore; fill connection ids the user never configured from the
relay's /config; then load the board.
"""

import httpx
import structlog

from boardsync.board.engine import SyncEngine
from boardsync.bridge.channel import MessageChannel
from boardsync.bridge.tool_bridge import ToolBridge
from boardsync.cache.local_storage import JsonFileStorage, KeyValueStorage, MemoryStorage
from boardsync.config import AuthConfig, ConnectionConfig, Settings, get_settings
from boardsync.security.navigator import BrowserNavigator, Navigator
from boardsync.security.tokens import TokenExchangeError, TokenManager
from boardsync.store.client import FragmentStore, FragmentStoreClient
from boardsync.tools.builtin_tools import create_board_registry
from boardsync.ui.drag import DragController
from boardsync.ui.preferences import ConnectionSettingsStore, PreferencesStore

log = structlog.get_logger()


class BoardClient:
    """One board session: storage, auth, sync engine, tools and bridge"""

    def __init__(
        self,
        channel: MessageChannel,
        settings: Settings | None = None,
        *,
        navigator: Navigator | None = None,
        durable: KeyValueStorage | None = None,
        session: KeyValueStorage | None = None,
        store: FragmentStore | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = settings or get_settings()
        self._settings = settings
        self._transport = transport

        self.durable = durable if durable is not None else JsonFileStorage(settings.STORAGE_PATH)
        self.session_storage = session if session is not None else MemoryStorage()
        self.preferences = PreferencesStore(self.durable)
        self.connection_settings = ConnectionSettingsStore(self.durable)

        config = ConnectionConfig.from_settings(settings, self.connection_settings.load().model_dump())

        self.tokens = TokenManager(
            AuthConfig.from_settings(settings),
            durable=self.durable,
            session=self.session_storage,
            navigator=navigator or BrowserNavigator(),
            transport=transport,
        )
        self.store = store or FragmentStoreClient(
            config,
            token_provider=lambda: self.tokens.access_token,
            transport=transport,
        )
        self.engine = SyncEngine(self.store, config)
        self.registry = create_board_registry(self.engine)
        self.bridge = ToolBridge(
            channel,
            self.engine,
            self.tokens,
            self.registry,
            allowed_origin=settings.EMBED_ORIGIN,
            poll_interval=settings.BRIDGE_POLL_INTERVAL,
        )
        self.drag = DragController(self.engine)

    async def start(self, location: str | None = None) -> bool:
        """
        Authenticate and load the board. Returns whether a user session is active.

        SyncUnavailable from the initial load propagates to the caller.
        """
        handled = False
        if location:
            try:
                handled = await self.tokens.handle_callback(location)
            except TokenExchangeError as e:
                log.warning("Login callback failed", error=str(e))
        if not handled:
            await self.tokens.try_restore()

        config = self.engine.config
        if not (config.workspace_id and config.fragment_type_id):
            async with httpx.AsyncClient(timeout=config.timeout, transport=self._transport) as client:
                filled = await config.with_relay_defaults(self._settings.APP_ORIGIN, client)
            if filled != config:
                self.engine.reconfigure(filled)

        await self.engine.load()
        return self.tokens.is_authenticated()

    def reconfigure(self, config: ConnectionConfig) -> None:
        """Apply and persist new connection settings (takes effect on the next load)"""
        self.engine.reconfigure(config)
        self.connection_settings.save(config)

    async def aclose(self) -> None:
        await self.bridge.aclose()
        self.tokens.refresh_timer.cancel()

"""
Global configuration: pydantic-settings reads environment variables / .env

Settings holds process-wide defaults. The pieces that the sync engine and the
token manager actually consume are copied into explicit config objects
(ConnectionConfig / AuthConfig) at construction time, and are swapped only via
an explicit reconfigure() call.
"""

from functools import lru_cache
from pathlib import Path

import httpx
import structlog
from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

log = structlog.get_logger()


class Settings(BaseSettings):
    """Application settings, loaded from .env"""

    model_config = SettingsConfigDict(
        env_file=Path(__file__).parent / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Remote fragment store ──
    API_BASE_URL: str = "http://localhost:8888/api"  # local relay by default
    API_TOKEN: str = ""
    WORKSPACE_ID: str = ""
    FRAGMENT_TYPE_ID: str = ""
    LIST_LIMIT: int = 100
    DEFAULT_TAGS: list[str] = ["kloddin", "todo"]
    HTTP_TIMEOUT: float = 15.0

    # ── Identity provider (OpenID Connect, PKCE) ──
    AUTH_BASE_URL: str = "https://auth.flowcore.io/realms/memory-mesh/protocol/openid-connect"
    AUTH_CLIENT_ID: str = "mcp_oauth_client"
    AUTH_REDIRECT_URI: str = "http://localhost:8888/callback"
    AUTH_SCOPES: str = "openid profile email"
    AUTH_TOKEN_URL: str = "http://localhost:8888/auth/token"  # proxied through the relay
    APP_ORIGIN: str = "http://localhost:8888"

    # ── Token refresh ──
    REFRESH_LEAD_SECONDS: float = 30.0
    REFRESH_FLOOR_SECONDS: float = 10.0
    DEFAULT_EXPIRES_IN: int = 300

    # ── Embedded agent (tool bridge) ──
    EMBED_ORIGIN: str = "https://chat.usable.dev"
    BRIDGE_POLL_INTERVAL: float = 30.0

    # ── Client-local storage ──
    STORAGE_PATH: Path = Path.home() / ".boardsync" / "storage.json"

    # ── Relay ──
    RELAY_UPSTREAM_URL: str = "https://usable.dev"
    RELAY_PORT: int = 8888

    # ── Application ──
    ENV: str = "development"  # development | production
    LOG_LEVEL: str = "INFO"
    APP_NAME: str = "boardsync"

    @model_validator(mode="after")
    def _check_production_endpoints(self) -> "Settings":
        """Production must talk to the identity provider over https"""
        if self.ENV == "production" and not self.AUTH_BASE_URL.startswith("https://"):
            raise ValueError("AUTH_BASE_URL must use https in production")
        return self


@lru_cache
def get_settings() -> Settings:
    """Cached settings singleton"""
    return Settings()


class ConnectionConfig(BaseModel):
    """Connection settings for the remote fragment store"""

    api_base_url: str
    api_token: str = ""
    workspace_id: str = ""
    fragment_type_id: str = ""
    list_limit: int = 100
    default_tags: list[str] = Field(default_factory=lambda: ["kloddin", "todo"])
    timeout: float = 15.0

    @classmethod
    def from_settings(cls, settings: Settings, overrides: dict | None = None) -> "ConnectionConfig":
        """Settings defaults, overlaid with durable connection settings"""
        base = cls(
            api_base_url=settings.API_BASE_URL,
            api_token=settings.API_TOKEN,
            workspace_id=settings.WORKSPACE_ID,
            fragment_type_id=settings.FRAGMENT_TYPE_ID,
            list_limit=settings.LIST_LIMIT,
            default_tags=list(settings.DEFAULT_TAGS),
            timeout=settings.HTTP_TIMEOUT,
        )
        return base.merged(overrides or {})

    def merged(self, overrides: dict) -> "ConnectionConfig":
        """Copy with non-empty override values applied"""
        known = {k: v for k, v in overrides.items() if k in type(self).model_fields and v not in (None, "")}
        return self.model_copy(update=known)

    async def with_relay_defaults(self, relay_url: str, client: httpx.AsyncClient | None = None) -> "ConnectionConfig":
        """
        Merge the relay's /config defaults into this config.

        Only fields that are still empty locally are taken from the relay; a
        relay that is down leaves the config unchanged.
        """
        owns_client = client is None
        client = client or httpx.AsyncClient(timeout=self.timeout)
        try:
            resp = await client.get(f"{relay_url.rstrip('/')}/config")
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            log.warning("Relay config unavailable, keeping local defaults", error=str(e))
            return self
        finally:
            if owns_client:
                await client.aclose()

        remote = {
            "workspace_id": data.get("WORKSPACE_ID"),
            "fragment_type_id": data.get("FRAGMENT_TYPE_ID"),
        }
        missing = {k: v for k, v in remote.items() if not getattr(self, k)}
        return self.merged(missing)


class AuthConfig(BaseModel):
    """Identity provider endpoints and PKCE client parameters"""

    base_url: str
    client_id: str
    redirect_uri: str
    scopes: str = "openid profile email"
    token_url: str
    app_origin: str
    refresh_lead_seconds: float = 30.0
    refresh_floor_seconds: float = 10.0
    default_expires_in: int = 300
    timeout: float = 15.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "AuthConfig":
        return cls(
            base_url=settings.AUTH_BASE_URL,
            client_id=settings.AUTH_CLIENT_ID,
            redirect_uri=settings.AUTH_REDIRECT_URI,
            scopes=settings.AUTH_SCOPES,
            token_url=settings.AUTH_TOKEN_URL,
            app_origin=settings.APP_ORIGIN,
            refresh_lead_seconds=settings.REFRESH_LEAD_SECONDS,
            refresh_floor_seconds=settings.REFRESH_FLOOR_SECONDS,
            default_expires_in=settings.DEFAULT_EXPIRES_IN,
            timeout=settings.HTTP_TIMEOUT,
        )

    @property
    def authorize_url(self) -> str:
        return f"{self.base_url}/auth"

    @property
    def logout_url(self) -> str:
        return f"{self.base_url}/logout"

    @property
    def upstream_token_url(self) -> str:
        """Identity provider's own token endpoint (what the relay forwards to)"""
        return f"{self.base_url}/token"

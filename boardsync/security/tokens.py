"""
OAuth PKCE token lifecycle: login, code exchange, scheduled refresh, restore

State machine:
    LOGGED_OUT -> AWAITING_CALLBACK -> AUTHENTICATED <-> REFRESHING -> LOGGED_OUT

Storage split by sensitivity:
- refresh token: durable storage (survives restarts)
- access token: memory only, never persisted
- PKCE verifier: session storage, single use, discarded after the exchange

Every refresh failure degrades to LOGGED_OUT; a stale access token is never
kept around.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from urllib.parse import parse_qs, urlencode, urlsplit

import httpx
import jwt
import structlog

from boardsync.cache.local_storage import KeyValueStorage, StorageKeys
from boardsync.config import AuthConfig
from boardsync.observability.metrics import TOKEN_REFRESH_TOTAL
from boardsync.security.navigator import Navigator
from boardsync.security.pkce import code_challenge, generate_code_verifier
from boardsync.security.scheduler import ScheduledTask

log = structlog.get_logger()


class AuthState(str, Enum):
    LOGGED_OUT = "logged_out"
    AWAITING_CALLBACK = "awaiting_callback"
    AUTHENTICATED = "authenticated"
    REFRESHING = "refreshing"


class AuthError(Exception):
    """Token lifecycle failure"""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class TokenExchangeError(AuthError):
    """Token endpoint rejected the grant or was unreachable"""


class AuthExpired(AuthError):
    """Refresh token expired or revoked; the session is over"""


@dataclass
class UserInfo:
    """Display-only claims from the access token (signature NOT verified)"""

    name: str
    email: str
    sub: str | None


class TokenManager:
    """Single token owner for the app session"""

    def __init__(
        self,
        config: AuthConfig,
        durable: KeyValueStorage,
        session: KeyValueStorage,
        navigator: Navigator,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._config = config
        self._durable = durable
        self._session = session
        self._navigator = navigator
        self._transport = transport

        self._access_token: str | None = None
        self._refresh_token: str | None = None
        self._timer = ScheduledTask(name="token-refresh")
        self._inflight: asyncio.Task | None = None
        self._state = AuthState.LOGGED_OUT
        # bumped on every clear; a grant that lands in a newer session is dropped
        self._session_gen = 0
        self._listeners: list[Callable[[AuthState], None]] = []

    # ── State ──

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def access_token(self) -> str | None:
        return self._access_token

    @property
    def refresh_timer(self) -> ScheduledTask:
        return self._timer

    def is_authenticated(self) -> bool:
        return self._access_token is not None

    def reconfigure(self, config: AuthConfig) -> None:
        self._config = config

    def subscribe(self, listener: Callable[[AuthState], None]) -> Callable[[], None]:
        """Listener gets every state transition (UI re-renders on LOGGED_OUT)"""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _set_state(self, state: AuthState) -> None:
        if state == self._state:
            return
        log.debug("Auth state changed", from_state=self._state.value, to_state=state.value)
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                log.error("Auth listener failed", error=str(e), exc_info=True)

    # ── Login / callback ──

    def login(self) -> str:
        """Start the PKCE flow; returns the authorization URL the user was sent to"""
        verifier = generate_code_verifier()
        self._session.set(StorageKeys.PKCE_VERIFIER, verifier)

        params = urlencode({
            "response_type": "code",
            "client_id": self._config.client_id,
            "redirect_uri": self._config.redirect_uri,
            "scope": self._config.scopes,
            "code_challenge": code_challenge(verifier),
            "code_challenge_method": "S256",
        })
        url = f"{self._config.authorize_url}?{params}"

        self._set_state(AuthState.AWAITING_CALLBACK)
        self._navigator.open(url)
        return url

    async def handle_callback(self, location: str) -> bool:
        """
        Finish login if location carries an authorization code.

        Returns False for ordinary locations (no code) and when no verifier
        is pending. Raises TokenExchangeError when the exchange fails.
        """
        query = parse_qs(urlsplit(location).query)
        code = (query.get("code") or [None])[0]
        error = (query.get("error") or [None])[0]

        if error and not code:
            self._session.remove(StorageKeys.PKCE_VERIFIER)
            self._set_state(AuthState.LOGGED_OUT)
            raise TokenExchangeError(f"authorization failed: {error}")
        if not code:
            return False

        verifier = self._session.get(StorageKeys.PKCE_VERIFIER)
        # single use, whatever happens next
        self._session.remove(StorageKeys.PKCE_VERIFIER)
        if not verifier:
            log.warning("Authorization code without a pending PKCE verifier, ignoring")
            return False

        session_gen = self._session_gen
        try:
            tokens = await self._exchange({
                "grant_type": "authorization_code",
                "client_id": self._config.client_id,
                "code": code,
                "redirect_uri": self._config.redirect_uri,
                "code_verifier": verifier,
            })
            if session_gen != self._session_gen:
                log.info("Session ended during code exchange, discarding tokens")
                return False
            self._set_tokens(tokens)
        except TokenExchangeError:
            self._set_state(AuthState.LOGGED_OUT)
            raise

        self._navigator.replace_location(f"{self._config.app_origin.rstrip('/')}/")
        log.info("Login completed")
        return True

    # ── Token endpoint ──

    async def _exchange(self, form: dict[str, str]) -> dict:
        try:
            async with httpx.AsyncClient(timeout=self._config.timeout, transport=self._transport) as client:
                resp = await client.post(self._config.token_url, data=form)
        except httpx.HTTPError as e:
            raise TokenExchangeError(f"token endpoint unreachable: {e}", cause=e) from e

        if resp.is_error:
            raise TokenExchangeError(f"token endpoint returned {resp.status_code}: {resp.text[:200]}")
        try:
            tokens = resp.json()
        except ValueError as e:
            raise TokenExchangeError("token endpoint returned invalid JSON", cause=e) from e
        if not isinstance(tokens, dict) or not tokens.get("access_token"):
            raise TokenExchangeError("token response carried no access_token")
        return tokens

    def _set_tokens(self, tokens: dict) -> None:
        self._access_token = tokens["access_token"]
        if tokens.get("refresh_token"):
            self._refresh_token = tokens["refresh_token"]
            self._durable.set(StorageKeys.REFRESH_TOKEN, self._refresh_token)

        self._set_state(AuthState.AUTHENTICATED)
        self.schedule_refresh(self._expires_in(tokens))

    def _expires_in(self, tokens: dict) -> int:
        try:
            return int(tokens.get("expires_in") or self._config.default_expires_in)
        except (TypeError, ValueError):
            log.warning("Unusable expires_in, using default", expires_in=str(tokens.get("expires_in"))[:40])
            return self._config.default_expires_in

    def _clear(self) -> None:
        self._session_gen += 1
        self._inflight = None
        self._access_token = None
        self._refresh_token = None
        self._durable.remove(StorageKeys.REFRESH_TOKEN)
        self._timer.cancel()

    # ── Refresh ──

    def schedule_refresh(self, expires_in: float) -> None:
        """Refresh lead-seconds before expiry, never sooner than the floor"""
        delay = max(expires_in - self._config.refresh_lead_seconds, self._config.refresh_floor_seconds)
        self._timer.arm(delay, self._refresh_from_timer)
        log.debug("Token refresh scheduled", delay_seconds=delay)

    async def _refresh_from_timer(self) -> None:
        await self.refresh_token()

    async def refresh_token(self) -> str | None:
        """
        Exchange the refresh token for a new pair.

        Returns the new access token, or None after clearing all token state
        (expired / revoked / unreachable). Concurrent callers share one
        in-flight exchange.
        """
        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._do_refresh())
        return await asyncio.shield(self._inflight)

    async def _do_refresh(self) -> str | None:
        try:
            refresh_token = self._refresh_token or self._durable.get(StorageKeys.REFRESH_TOKEN)
            if not refresh_token:
                if self._access_token is not None:
                    # nothing to renew with; the current access token is about to expire
                    log.warning("No refresh token issued, ending session")
                    self._clear()
                    self._set_state(AuthState.LOGGED_OUT)
                return None

            session_gen = self._session_gen
            self._set_state(AuthState.REFRESHING)
            try:
                tokens = await self._refresh_grant(refresh_token)
            except AuthExpired as e:
                TOKEN_REFRESH_TOTAL.labels(status="error").inc()
                log.warning("Token refresh failed, logging out", error=str(e.cause or e))
                self._clear()
                self._set_state(AuthState.LOGGED_OUT)
                return None

            if session_gen != self._session_gen:
                log.info("Session ended during token refresh, discarding tokens")
                return None

            TOKEN_REFRESH_TOTAL.labels(status="success").inc()
            self._set_tokens(tokens)
            return self._access_token
        finally:
            if self._inflight is asyncio.current_task():
                self._inflight = None

    async def _refresh_grant(self, refresh_token: str) -> dict:
        try:
            return await self._exchange({
                "grant_type": "refresh_token",
                "client_id": self._config.client_id,
                "refresh_token": refresh_token,
            })
        except TokenExchangeError as e:
            raise AuthExpired("session expired, login required", cause=e) from e

    async def try_restore(self) -> bool:
        """Silent login from a durable refresh token (one attempt)"""
        stored = self._durable.get(StorageKeys.REFRESH_TOKEN)
        if not stored:
            return False
        self._refresh_token = stored
        return await self.refresh_token() is not None

    # ── Logout ──

    def logout(self) -> str:
        """Clear all token state and send the user to the provider's logout page"""
        self._clear()
        self._session.remove(StorageKeys.PKCE_VERIFIER)
        self._set_state(AuthState.LOGGED_OUT)

        params = urlencode({
            "client_id": self._config.client_id,
            "post_logout_redirect_uri": self._config.app_origin,
        })
        url = f"{self._config.logout_url}?{params}"
        self._navigator.open(url)
        log.info("Logged out")
        return url

    # ── Claims ──

    def user_info(self) -> UserInfo | None:
        """Unverified access-token claims, for display only"""
        if not self._access_token:
            return None
        try:
            claims = jwt.decode(self._access_token, options={"verify_signature": False})
        except jwt.PyJWTError:
            return None
        return UserInfo(
            name=claims.get("name") or claims.get("preferred_username") or "User",
            email=claims.get("email") or "",
            sub=claims.get("sub"),
        )

"""
Token lifecycle: PKCE login, refresh scheduling, session restore
"""

from boardsync.security.navigator import BrowserNavigator, Navigator
from boardsync.security.scheduler import ScheduledTask
from boardsync.security.tokens import (
    AuthError,
    AuthExpired,
    AuthState,
    TokenExchangeError,
    TokenManager,
    UserInfo,
)

__all__ = [
    "AuthError",
    "AuthExpired",
    "AuthState",
    "BrowserNavigator",
    "Navigator",
    "ScheduledTask",
    "TokenExchangeError",
    "TokenManager",
    "UserInfo",
]

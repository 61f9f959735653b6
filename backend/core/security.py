"""
Merchant Console Security Utilities

Process-wide credential store for the platform access token.

The token moves through three states:

    ABSENT  ──install()──▶  VALID  ──expire()──▶  EXPIRED
       ▲                                             │
       └──────────────────clear()────────────────────┘

Only the transport flips VALID → EXPIRED, when a cluster answers 401.
Once expired, every request fails fast until a new token is installed.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from enum import Enum

import structlog

logger = structlog.get_logger()


class CredentialState(str, Enum):
    """Lifecycle of the platform credential."""

    ABSENT = "absent"
    VALID = "valid"
    EXPIRED = "expired"


ExpiryListener = Callable[["SessionContext"], None]

# Default for expire(): reject whatever token is installed
_CURRENT = object()


class SessionContext:
    """
    Holds the bearer token shared by every request of the process.

    Passed explicitly to the transport; the HTTP surface keeps one
    instance in application state.
    """

    def __init__(self, token: str | None = None):
        self._lock = threading.Lock()
        self._token: str | None = token or None
        self._state = CredentialState.VALID if self._token else CredentialState.ABSENT
        self._listeners: list[ExpiryListener] = []

    @property
    def state(self) -> CredentialState:
        return self._state

    @property
    def token(self) -> str | None:
        return self._token

    @property
    def is_expired(self) -> bool:
        return self._state is CredentialState.EXPIRED

    def install(self, token: str) -> None:
        """Store a freshly issued token (re-authentication)."""
        if not token:
            raise ValueError("Refusing to install an empty token")
        with self._lock:
            self._token = token
            self._state = CredentialState.VALID
        logger.info("session.token_installed")

    def clear(self) -> None:
        """Forget the token without signalling expiry (logout)."""
        with self._lock:
            self._token = None
            self._state = CredentialState.ABSENT

    def expire(self, rejected_token: object = _CURRENT) -> bool:
        """
        Invalidate the credential after an authorization failure.

        ``rejected_token`` is the token the failed request carried. When it
        is no longer the installed one (a new token arrived while the
        request was in flight) the 401 is stale and nothing changes.

        Returns True only for the call that performed the transition, so
        concurrent 401s clear the token and notify listeners exactly once.
        """
        with self._lock:
            if self._state is CredentialState.EXPIRED:
                return False
            if rejected_token is not _CURRENT and rejected_token != self._token:
                logger.info("session.stale_rejection_ignored")
                return False
            self._token = None
            self._state = CredentialState.EXPIRED
            listeners = list(self._listeners)

        logger.warning("session.expired")
        for listener in listeners:
            try:
                listener(self)
            except Exception as exc:
                logger.error("session.listener_failed", error=str(exc))
        return True

    def subscribe(self, listener: ExpiryListener) -> Callable[[], None]:
        """Register an expiry callback; returns an unsubscribe function."""
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

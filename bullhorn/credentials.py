"""
Bullhorn credential store.

Holds the OAuth tokens and the REST session (BhRestToken + restUrl) for the
process. The store is an owned object: the web app creates one and hands it to
the freshness gate and the search service.

States:
- UNAUTHENTICATED: no session material
- FRESH: session younger than the validity window
- STALE: session at least as old as the validity window
"""
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional

from logging_setup import get_logger, Component
from .config import SESSION_VALIDITY_SECONDS, parse_int_env

logger = get_logger(Component.CREDENTIALS)


class CredentialState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    FRESH = "fresh"
    STALE = "stale"


@dataclass(frozen=True)
class Credentials:
    """Snapshot of the material needed to call Bullhorn."""

    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    rest_url: Optional[str] = None
    session_token: Optional[str] = None
    issued_at: float = 0.0

    @property
    def has_session(self) -> bool:
        return bool(self.session_token and self.rest_url)


class CredentialStore:
    """Process-wide Bullhorn credential material with a freshness predicate."""

    def __init__(
        self,
        validity_seconds: float = SESSION_VALIDITY_SECONDS,
        *,
        clock: Callable[[], float] = time.time,
    ):
        self.validity_seconds = validity_seconds
        self._clock = clock
        self._material = Credentials()

    @classmethod
    def from_env(cls) -> "CredentialStore":
        return cls(
            validity_seconds=parse_int_env(
                "BULLHORN_SESSION_VALIDITY_SECONDS", default=SESSION_VALIDITY_SECONDS
            )
        )

    @property
    def material(self) -> Credentials:
        return self._material

    @property
    def is_connected(self) -> bool:
        """True when a REST session exists, regardless of its age."""
        return self._material.has_session

    def age_seconds(self, now: Optional[float] = None) -> float:
        now = self._clock() if now is None else now
        return now - self._material.issued_at

    def is_fresh(self, now: Optional[float] = None) -> bool:
        if not self.is_connected:
            return False
        return self.age_seconds(now) < self.validity_seconds

    def state(self, now: Optional[float] = None) -> CredentialState:
        if not (self.is_connected and self._material.access_token):
            return CredentialState.UNAUTHENTICATED
        if self.is_fresh(now):
            return CredentialState.FRESH
        return CredentialState.STALE

    def install(
        self,
        *,
        access_token: str,
        refresh_token: Optional[str],
        session_token: str,
        rest_url: str,
    ) -> None:
        """Store the result of an authorization-code exchange plus its first login."""
        self._material = Credentials(
            access_token=access_token,
            refresh_token=refresh_token,
            session_token=session_token,
            rest_url=rest_url,
            issued_at=self._clock(),
        )
        logger.info("Bullhorn credentials installed", rest_url=rest_url)

    def update_session(self, *, session_token: str, rest_url: str) -> None:
        """Replace the REST session after a re-login. Token and URL move together."""
        self._material = replace(
            self._material,
            session_token=session_token,
            rest_url=rest_url,
            issued_at=self._clock(),
        )
        logger.info("Bullhorn session refreshed", rest_url=rest_url)

    def clear(self) -> None:
        self._material = Credentials()
        logger.info("Bullhorn credentials cleared")

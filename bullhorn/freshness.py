"""
Freshness gate for the Bullhorn REST session.

Every backend-bound operation goes through `ensure_fresh()` first:
- no session at all  -> BackendUnauthenticated, no network call
- session still fresh -> use it
- session stale       -> re-login with the stored access token

The check and the re-login run under one asyncio.Lock, re-checked after the
lock is acquired, so callers that saw a stale session at the same time share
a single login call.
"""

from __future__ import annotations

import asyncio
from typing import Optional, Protocol

from logging_setup import get_logger, Component
from .client import LoginResult
from .credentials import Credentials, CredentialState, CredentialStore
from .errors import BackendUnauthenticated


logger = get_logger(Component.CREDENTIALS)


class LoginClient(Protocol):
    async def login(self, access_token: str) -> LoginResult: ...


class FreshnessGate:
    """Keeps the credential store usable for backend calls."""

    def __init__(self, store: CredentialStore, client: LoginClient):
        self.store = store
        self._client = client
        self._lock = asyncio.Lock()

    async def ensure_fresh(self) -> Credentials:
        """Return usable credentials, re-logging in first if the session is stale."""
        state = self.store.state()
        if state is CredentialState.UNAUTHENTICATED:
            raise BackendUnauthenticated("Bullhorn not connected")
        if state is CredentialState.FRESH:
            return self.store.material

        async with self._lock:
            # Another caller may have refreshed while we waited.
            if self.store.state() is CredentialState.FRESH:
                return self.store.material

            material = self.store.material
            logger.info(
                "Bullhorn session stale, logging in again",
                age_seconds=int(self.store.age_seconds()),
            )
            # A failed login raises BackendUnavailable and leaves the store stale.
            result = await self._client.login(material.access_token)
            self.store.update_session(session_token=result.session_token, rest_url=result.rest_url)
            return self.store.material

    async def connect(self, access_token: str, refresh_token: Optional[str] = None) -> Credentials:
        """First login after the OAuth code exchange; installs the full material."""
        async with self._lock:
            result = await self._client.login(access_token)
            self.store.install(
                access_token=access_token,
                refresh_token=refresh_token,
                session_token=result.session_token,
                rest_url=result.rest_url,
            )
            return self.store.material

"""
Bullhorn REST client.

Thin async wrappers over the three Bullhorn calls the app needs:
- OAuth authorization-code exchange
- REST login (access token -> BhRestToken + restUrl)
- Candidate search

Every call opens its own aiohttp session. Failures (non-2xx status, network
errors, missing fields in the body) raise BackendUnavailable with a stable
category; token values are never logged.
"""

from __future__ import annotations

import asyncio
import json
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlencode

import aiohttp

from logging_setup import get_logger, Component
from .config import BullhornConfig, get_config
from .errors import BackendErrorCategory, BackendUnavailable


logger = get_logger(Component.BULLHORN)


@dataclass(frozen=True)
class TokenGrant:
    access_token: str
    refresh_token: Optional[str] = None


@dataclass(frozen=True)
class LoginResult:
    session_token: str
    rest_url: str


def _is_success(status: int) -> bool:
    return 200 <= status < 300


class BullhornClient:
    """Async Bullhorn client. Configuration is resolved lazily from the environment."""

    def __init__(self, config: Optional[BullhornConfig] = None):
        self._config = config

    @property
    def config(self) -> BullhornConfig:
        if self._config is None:
            self._config = get_config()
        return self._config

    def authorize_url(self) -> str:
        """URL the user is redirected to in order to start the OAuth flow."""
        params = urlencode({
            "client_id": self.config.client_id,
            "response_type": "code",
            "redirect_uri": self.config.redirect_uri,
        })
        return f"{self.config.authorize_url}?{params}"

    async def exchange_code(self, code: str) -> TokenGrant:
        """Exchange an OAuth authorization code for access + refresh tokens."""
        status, body = await self._request(
            "POST",
            self.config.token_url,
            operation="token_exchange",
            data={
                "grant_type": "authorization_code",
                "code": code,
                "client_id": self.config.client_id,
                "client_secret": self.config.client_secret,
                "redirect_uri": self.config.redirect_uri,
            },
        )
        if not _is_success(status) or not isinstance(body, dict) or not body.get("access_token"):
            logger.error("Bullhorn token exchange failed", status=status)
            raise BackendUnavailable(
                "token exchange failed",
                category=BackendErrorCategory.TOKEN_EXCHANGE_FAILED,
                status=status,
            )
        return TokenGrant(
            access_token=body["access_token"],
            refresh_token=body.get("refresh_token"),
        )

    async def login(self, access_token: str) -> LoginResult:
        """Open a REST session with an OAuth access token."""
        status, body = await self._request(
            "GET",
            self.config.login_url,
            operation="login",
            params={"version": "2.0", "access_token": access_token},
        )
        if (
            not _is_success(status)
            or not isinstance(body, dict)
            or not body.get("BhRestToken")
            or not body.get("restUrl")
        ):
            logger.error("Bullhorn login failed", status=status)
            raise BackendUnavailable(
                "login failed",
                category=BackendErrorCategory.LOGIN_FAILED,
                status=status,
            )
        return LoginResult(session_token=body["BhRestToken"], rest_url=body["restUrl"])

    async def search_candidates(
        self,
        rest_url: str,
        session_token: str,
        query: str,
        count: int,
        fields: str,
    ) -> List[Dict[str, Any]]:
        """Run a Candidate search and return the raw records."""
        endpoint = rest_url.rstrip("/") + "/search/Candidate"
        status, body = await self._request(
            "GET",
            endpoint,
            operation="search",
            params={"query": query, "count": str(count), "start": "0", "fields": fields},
            headers={"BhRestToken": session_token},
        )
        if not _is_success(status) or not isinstance(body, dict) or not isinstance(body.get("data"), list):
            logger.error("Bullhorn search failed", status=status, query=query)
            raise BackendUnavailable(
                "search failed",
                category=BackendErrorCategory.SEARCH_FAILED,
                status=status,
            )
        return body["data"]

    async def _request(
        self,
        method: str,
        url: str,
        *,
        operation: str,
        **kwargs: Any,
    ) -> Tuple[int, Any]:
        """Send one request; returns (status, parsed JSON body or None)."""
        start_ts = time.time()
        timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as s:
                async with s.request(method, url, **kwargs) as resp:
                    status = resp.status
                    text = await resp.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(
                "Bullhorn request failed",
                operation=operation,
                error=str(e),
                error_type=type(e).__name__,
                latency_ms=int((time.time() - start_ts) * 1000),
            )
            raise BackendUnavailable(
                f"{operation}: {type(e).__name__}",
                category=BackendErrorCategory.NETWORK_ERROR,
            ) from e

        try:
            body = json.loads(text) if text else None
        except ValueError:
            body = None

        logger.info(
            "Bullhorn response",
            operation=operation,
            status=status,
            ok=_is_success(status),
            latency_ms=int((time.time() - start_ts) * 1000),
        )
        return status, body

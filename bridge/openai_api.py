"""
OpenAI HTTP collaborators.

- Ephemeral Realtime session provisioning (browser/WebRTC clients)
- Speech synthesis for voice previews

The bridge has nothing useful to do when these fail, so failures carry the
upstream status and body unchanged for the HTTP layer to pass through.
"""

from __future__ import annotations

import asyncio
import json
import time
from typing import Any, Optional

import aiohttp

from logging_setup import get_logger, Component
from .config import VoiceConfig, get_config
from .instructions import get_instructions


logger = get_logger(Component.OPENAI)


class UpstreamProvisioningFailure(Exception):
    """Non-success answer from OpenAI; status and body are preserved."""

    def __init__(self, status: int, body: Any):
        super().__init__(f"upstream status {status}")
        self.status = status
        self.body = body


class OpenAIAudioAPI:
    """Realtime session + speech endpoints. Configuration is resolved lazily."""

    def __init__(self, config: Optional[VoiceConfig] = None, *, timeout_seconds: int = 30):
        self._config = config
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    @property
    def config(self) -> VoiceConfig:
        if self._config is None:
            self._config = get_config()
        return self._config

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.config.openai_api_key}",
            "Content-Type": "application/json",
        }

    async def create_realtime_session(self) -> dict:
        """Create an ephemeral Realtime session carrying the persona instructions."""
        payload = {
            "model": self.config.realtime_model,
            "voice": self.config.voice,
            "modalities": ["audio", "text"],
            "instructions": get_instructions(self.config.persona),
        }
        start_ts = time.time()
        status, raw = await self._post("/realtime/sessions", payload)
        body = _json_or_text(raw)
        logger.info(
            "Realtime session requested",
            status=status,
            model=self.config.realtime_model,
            latency_ms=int((time.time() - start_ts) * 1000),
        )
        if not 200 <= status < 300:
            logger.error("Ephemeral session error", status=status)
            raise UpstreamProvisioningFailure(status, body)
        return body

    async def synthesize(self, voice: str, text: str) -> bytes:
        """Render `text` as MP3 with the given voice."""
        payload = {
            "model": self.config.tts_model,
            "voice": voice,
            "input": text,
            "format": "mp3",
        }
        start_ts = time.time()
        status, raw = await self._post("/audio/speech", payload)
        logger.info(
            "Speech synthesized",
            status=status,
            voice=voice,
            text_length=len(text),
            latency_ms=int((time.time() - start_ts) * 1000),
        )
        if not 200 <= status < 300:
            raise UpstreamProvisioningFailure(status, _json_or_text(raw))
        return raw

    async def _post(self, path: str, payload: dict) -> tuple[int, bytes]:
        url = f"{self.config.api_base_url}{path}"
        try:
            async with aiohttp.ClientSession(timeout=self._timeout) as s:
                async with s.post(url, json=payload, headers=self._headers()) as resp:
                    return resp.status, await resp.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(
                "OpenAI request failed",
                path=path,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise UpstreamProvisioningFailure(502, {"error": "upstream_unreachable"}) from e


def _json_or_text(raw: bytes) -> Any:
    text = raw.decode("utf-8", errors="replace")
    try:
        return json.loads(text)
    except ValueError:
        return text

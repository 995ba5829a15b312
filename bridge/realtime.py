"""
OpenAI Realtime websocket channel.

Server-side transport for the bridge: opens the Realtime websocket, configures
the session with the persona, turns server events into ChannelEvents and
sends client events (response.create, user text turns).
"""

from __future__ import annotations

import json
from typing import Any, AsyncIterator, Dict, Optional

import aiohttp

from logging_setup import get_logger, Component
from .config import VoiceConfig
from .openai_api import UpstreamProvisioningFailure
from .orchestrator import RESPONSE_MODALITIES, ChannelClosed, ChannelEvent, ChannelOpened, TextDelta


logger = get_logger(Component.REALTIME_CHANNEL)

# Text-only responses stream as text deltas; audio responses carry the words
# as transcript deltas.
TEXT_DELTA_EVENTS = frozenset({"response.text.delta", "response.audio_transcript.delta"})


def parse_server_event(raw: str) -> Optional[ChannelEvent]:
    """Map one Realtime server message to a ChannelEvent; anything else is None."""
    try:
        event = json.loads(raw)
    except ValueError:
        logger.debug("Ignoring non-JSON realtime message", length=len(raw))
        return None
    if not isinstance(event, dict):
        return None

    event_type = event.get("type")
    if event_type in TEXT_DELTA_EVENTS and isinstance(event.get("delta"), str):
        return TextDelta(event["delta"])
    if event_type == "error":
        logger.warning("Realtime server error", error=event.get("error"))
    return None


class RealtimeChannel:
    """One Realtime conversation over a websocket."""

    def __init__(self, config: VoiceConfig, *, session_id: str):
        self.config = config
        self.session_id = session_id
        self.logger = logger.with_session(session_id)
        self._http: Optional[aiohttp.ClientSession] = None
        self._ws: Optional[aiohttp.ClientWebSocketResponse] = None

    @property
    def is_open(self) -> bool:
        return self._ws is not None and not self._ws.closed

    async def connect(self, instructions: str) -> None:
        url = f"{self.config.realtime_url}?model={self.config.realtime_model}"
        self._http = aiohttp.ClientSession()
        try:
            self._ws = await self._http.ws_connect(
                url,
                headers={
                    "Authorization": f"Bearer {self.config.openai_api_key}",
                    "OpenAI-Beta": "realtime=v1",
                },
                heartbeat=20,
            )
        except aiohttp.WSServerHandshakeError as e:
            await self.close()
            raise UpstreamProvisioningFailure(e.status, {"error": e.message}) from e
        except aiohttp.ClientError as e:
            await self.close()
            raise UpstreamProvisioningFailure(502, {"error": "upstream_unreachable"}) from e

        await self.send({
            "type": "session.update",
            "session": {
                "instructions": instructions,
                "voice": self.config.voice,
                "modalities": RESPONSE_MODALITIES,
            },
        })
        self.logger.info("Realtime channel connected", model=self.config.realtime_model)

    async def send(self, event: Dict[str, Any]) -> None:
        """Send a client event; a closed channel drops it."""
        if not self.is_open:
            self.logger.debug("Channel not open, event dropped", event_type=event.get("type"))
            return
        await self._ws.send_json(event)

    async def send_user_text(self, text: str) -> None:
        """Add a typed user turn and ask for a response."""
        await self.send({
            "type": "conversation.item.create",
            "item": {
                "type": "message",
                "role": "user",
                "content": [{"type": "input_text", "text": text}],
            },
        })
        await self.send({"type": "response.create", "response": {"modalities": RESPONSE_MODALITIES}})

    async def events(self) -> AsyncIterator[ChannelEvent]:
        if not self.is_open:
            yield ChannelClosed("not_connected")
            return

        yield ChannelOpened()
        reason = "remote_closed"
        async for msg in self._ws:
            if msg.type == aiohttp.WSMsgType.TEXT:
                event = parse_server_event(msg.data)
                if event is not None:
                    yield event
            elif msg.type == aiohttp.WSMsgType.ERROR:
                reason = "error"
                break
        yield ChannelClosed(reason)

    async def close(self) -> None:
        if self._ws is not None and not self._ws.closed:
            await self._ws.close()
        if self._http is not None and not self._http.closed:
            await self._http.close()
        self._ws = None
        self._http = None

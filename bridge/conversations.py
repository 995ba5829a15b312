"""
Server-hosted conversations.

Starts the bridge against a Realtime channel inside the web process, so it
shares the app's credential store. One conversation is active per process;
starting a new one closes the previous one.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import AsyncIterator, Callable, Dict, Optional, Protocol

from logging_setup import get_logger, Component
from .config import get_config
from .instructions import get_instructions
from .orchestrator import BridgeOrchestrator, ChannelEvent, Searcher
from .realtime import RealtimeChannel


logger = get_logger(Component.BRIDGE)


class ConversationChannel(Protocol):
    async def connect(self, instructions: str) -> None: ...

    async def send(self, event: dict) -> None: ...

    async def send_user_text(self, text: str) -> None: ...

    def events(self) -> AsyncIterator[ChannelEvent]: ...

    async def close(self) -> None: ...


def _realtime_channel(session_id: str) -> ConversationChannel:
    return RealtimeChannel(get_config(), session_id=session_id)


@dataclass
class Conversation:
    session_id: str
    channel: ConversationChannel
    orchestrator: BridgeOrchestrator
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    task: Optional[asyncio.Task] = None

    @property
    def active(self) -> bool:
        return self.task is not None and not self.task.done()


class ConversationManager:
    """Owns the single active conversation of this process."""

    def __init__(
        self,
        search: Searcher,
        *,
        channel_factory: Callable[[str], ConversationChannel] = _realtime_channel,
        persona: Optional[str] = None,
    ):
        self.search = search
        self._channel_factory = channel_factory
        self._persona = persona
        self._conversations: Dict[str, Conversation] = {}

    def get(self, session_id: str) -> Optional[Conversation]:
        return self._conversations.get(session_id)

    def active(self) -> Optional[Conversation]:
        for conversation in self._conversations.values():
            if conversation.active:
                return conversation
        return None

    async def start(self) -> Conversation:
        """Connect a new channel and run the bridge on it in the background."""
        previous = self.active()
        if previous is not None:
            await self.stop(previous.session_id)

        session_id = f"conv_{uuid.uuid4().hex[:12]}"
        channel = self._channel_factory(session_id)
        await channel.connect(get_instructions(self._persona))

        orchestrator = BridgeOrchestrator(channel, self.search, session_id=session_id)
        conversation = Conversation(session_id=session_id, channel=channel, orchestrator=orchestrator)
        conversation.task = asyncio.create_task(self._run(conversation))
        self._conversations = {session_id: conversation}

        logger.info("Conversation started", session_id=session_id)
        return conversation

    async def send_user_text(self, session_id: str, text: str) -> bool:
        conversation = self.get(session_id)
        if conversation is None or not conversation.active:
            return False
        await conversation.channel.send_user_text(text)
        return True

    async def stop(self, session_id: str) -> bool:
        conversation = self.get(session_id)
        if conversation is None:
            return False
        await conversation.orchestrator.close("stopped")
        if conversation.task is not None:
            conversation.task.cancel()
            await asyncio.gather(conversation.task, return_exceptions=True)
        await conversation.channel.close()
        logger.info("Conversation stopped", session_id=session_id)
        return True

    async def _run(self, conversation: Conversation) -> None:
        try:
            await conversation.orchestrator.run(conversation.channel.events())
        finally:
            await conversation.channel.close()

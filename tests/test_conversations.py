"""
Tests for bridge.conversations.ConversationManager.

Channels are in-memory: events() yields ChannelOpened and then whatever the
test pushes onto the channel's queue.
"""
import asyncio

import pytest

from bridge.conversations import ConversationManager
from bridge.orchestrator import ChannelClosed, ChannelOpened, TextDelta


class FakeChannel:
    def __init__(self, session_id):
        self.session_id = session_id
        self.instructions = None
        self.sent = []
        self.user_texts = []
        self.closed = False
        self.incoming = asyncio.Queue()

    async def connect(self, instructions):
        self.instructions = instructions

    async def send(self, event):
        self.sent.append(event)

    async def send_user_text(self, text):
        self.user_texts.append(text)

    async def events(self):
        yield ChannelOpened()
        while True:
            event = await self.incoming.get()
            yield event
            if isinstance(event, ChannelClosed):
                return

    async def close(self):
        self.closed = True


class FakeSearch:
    async def search(self, command, *, session_id=None):
        raise AssertionError("search not expected")


class ChannelFactory:
    def __init__(self):
        self.channels = []

    def __call__(self, session_id):
        channel = FakeChannel(session_id)
        self.channels.append(channel)
        return channel


async def _settle():
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_start_connects_with_persona_and_greets():
    factory = ChannelFactory()
    manager = ConversationManager(FakeSearch(), channel_factory=factory)

    conversation = await manager.start()
    await _settle()

    channel = factory.channels[0]
    assert conversation.session_id.startswith("conv_")
    assert channel.session_id == conversation.session_id
    assert "@@SEARCH" in channel.instructions
    assert channel.sent[0]["type"] == "response.create"
    assert manager.active() is conversation

    await manager.stop(conversation.session_id)


@pytest.mark.asyncio
async def test_starting_again_stops_previous():
    factory = ChannelFactory()
    manager = ConversationManager(FakeSearch(), channel_factory=factory)

    first = await manager.start()
    second = await manager.start()

    assert factory.channels[0].closed
    assert first.orchestrator.closed
    assert manager.get(first.session_id) is None
    assert manager.active() is second

    await manager.stop(second.session_id)


@pytest.mark.asyncio
async def test_send_user_text():
    factory = ChannelFactory()
    manager = ConversationManager(FakeSearch(), channel_factory=factory)
    conversation = await manager.start()

    assert await manager.send_user_text(conversation.session_id, "Hiring a data engineer")
    assert factory.channels[0].user_texts == ["Hiring a data engineer"]
    assert not await manager.send_user_text("conv_unknown", "hello")

    await manager.stop(conversation.session_id)


@pytest.mark.asyncio
async def test_stop():
    factory = ChannelFactory()
    manager = ConversationManager(FakeSearch(), channel_factory=factory)
    conversation = await manager.start()

    assert await manager.stop(conversation.session_id)

    assert conversation.orchestrator.closed
    assert factory.channels[0].closed
    assert not conversation.active
    assert manager.active() is None
    assert not await manager.stop("conv_unknown")


@pytest.mark.asyncio
async def test_remote_close_ends_conversation():
    factory = ChannelFactory()
    manager = ConversationManager(FakeSearch(), channel_factory=factory)
    conversation = await manager.start()
    channel = factory.channels[0]

    await channel.incoming.put(TextDelta("Bye for now.\n"))
    await channel.incoming.put(ChannelClosed("remote_closed"))
    await asyncio.wait_for(conversation.task, timeout=1)

    assert conversation.orchestrator.closed
    assert channel.closed
    assert manager.active() is None

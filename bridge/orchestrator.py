"""
Bridge orchestrator: drives one conversation channel.

Consumes typed channel events:
- ChannelOpened  -> ask the assistant for a greeting
- TextDelta      -> feed the line reassembler, queue completed lines
- ChannelClosed  -> stop; pending text and in-flight results are dropped

Completed lines are handled by a single worker task, strictly in order:
narrative lines go to the display sink, @@SEARCH commands run one search each
and the results are injected back as a new response instruction. Deltas keep
being reassembled while a search is outstanding; their lines wait in the
queue until the current command cycle finishes.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, Optional, Protocol, Union

from bullhorn.errors import BackendError, get_user_message
from bullhorn.query import SearchCommand
from bullhorn.search import SearchOutcome
from logging_setup import get_logger, Component as LogComponent
from observability.events import Component as ObsComponent, EventEmitter, Severity, pii_marker
from .commands import CommandLine, CommandParseFailure, NarrativeLine, classify
from .instructions import get_greeting_instruction, results_instruction, search_unavailable_instruction
from .line_reassembler import LineReassembler


logger = get_logger(LogComponent.BRIDGE)

RESPONSE_MODALITIES = ["audio", "text"]


# --- Channel events ---


@dataclass(frozen=True)
class ChannelOpened:
    pass


@dataclass(frozen=True)
class TextDelta:
    text: str


@dataclass(frozen=True)
class ChannelClosed:
    reason: str = "closed"


ChannelEvent = Union[ChannelOpened, TextDelta, ChannelClosed]


# --- Collaborators ---


class Channel(Protocol):
    async def send(self, event: Dict[str, Any]) -> None: ...


class Searcher(Protocol):
    async def search(self, command: SearchCommand, *, session_id: Optional[str] = None) -> SearchOutcome: ...


class DisplaySink(Protocol):
    def narrative(self, text: str) -> None: ...

    def warning(self, text: str) -> None: ...


class LoggingSink:
    """Default sink: narrative and warnings become log lines and stored events."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        self.logger = get_logger(LogComponent.BRIDGE, session_id=session_id)
        self.emitter = EventEmitter(ObsComponent.BRIDGE)

    def narrative(self, text: str) -> None:
        self.logger.debug_pii("Assistant narrative", text=text)
        self.emitter.emit(
            "agent.narrative",
            session_id=self.session_id,
            pii=pii_marker("text"),
            text=text,
        )

    def warning(self, text: str) -> None:
        self.logger.warning("Assistant warning", text=text)
        self.emitter.emit(
            "agent.warning",
            session_id=self.session_id,
            severity=Severity.WARN,
            text=text,
        )


def response_create(instructions: str) -> Dict[str, Any]:
    return {
        "type": "response.create",
        "response": {"modalities": RESPONSE_MODALITIES, "instructions": instructions},
    }


class BridgeOrchestrator:
    """Runs the command-extraction bridge for one channel."""

    def __init__(
        self,
        channel: Channel,
        search: Searcher,
        *,
        sink: Optional[DisplaySink] = None,
        session_id: Optional[str] = None,
        greeting: Optional[str] = None,
    ):
        self.session_id = session_id or f"conv_{uuid.uuid4().hex[:12]}"
        self.channel = channel
        self.search = search
        self.sink = sink or LoggingSink(self.session_id)
        self.greeting = greeting or get_greeting_instruction()
        self.reassembler = LineReassembler()

        self.logger = logger.with_session(self.session_id)
        self.emitter = EventEmitter(ObsComponent.BRIDGE)

        self._lines: asyncio.Queue[str] = asyncio.Queue()
        self._worker: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def run(self, events: AsyncIterator[ChannelEvent]) -> None:
        """Consume a channel's event stream until it closes."""
        try:
            async for event in events:
                await self.handle(event)
                if self._closed:
                    break
        finally:
            await self.close("channel_ended")

    async def handle(self, event: ChannelEvent) -> None:
        if self._closed:
            return
        if isinstance(event, ChannelOpened):
            await self._on_open()
        elif isinstance(event, TextDelta):
            self._on_text_delta(event.text)
        elif isinstance(event, ChannelClosed):
            await self.close(event.reason)

    async def drain(self) -> None:
        """Wait until every queued line has been handled."""
        await self._lines.join()

    async def close(self, reason: str = "closed") -> None:
        if self._closed:
            return
        self._closed = True

        dropped_text = len(self.reassembler.pending)
        self.reassembler.reset()
        dropped_lines = 0
        while not self._lines.empty():
            self._lines.get_nowait()
            self._lines.task_done()
            dropped_lines += 1

        if self._worker is not None:
            self._worker.cancel()
            await asyncio.gather(self._worker, return_exceptions=True)
            self._worker = None

        self.logger.info(
            "Channel closed",
            reason=reason,
            dropped_lines=dropped_lines,
            dropped_chars=dropped_text,
        )
        self.emitter.emit("channel.closed", session_id=self.session_id, reason=reason)

    # --- Event handlers ---

    async def _on_open(self) -> None:
        self.logger.info("Channel opened")
        self.emitter.emit("channel.opened", session_id=self.session_id)
        await self._send_instruction(self.greeting)

    def _on_text_delta(self, text: str) -> None:
        for line in self.reassembler.feed(text):
            self._lines.put_nowait(line)
        if self._worker is None and not self._lines.empty():
            self._worker = asyncio.create_task(self._process_lines())

    async def _process_lines(self) -> None:
        while True:
            line = await self._lines.get()
            try:
                await self._process_line(line)
            except Exception as e:
                # One bad line must not end the conversation.
                self.logger.exception("Line handling failed", error_type=type(e).__name__)
            finally:
                self._lines.task_done()

    async def _process_line(self, line: str) -> None:
        outcome = classify(line)
        if isinstance(outcome, NarrativeLine):
            if outcome.text:
                self.sink.narrative(outcome.text)
        elif isinstance(outcome, CommandParseFailure):
            self.logger.warning("Malformed search command dropped", reason=outcome.reason)
            self.emitter.emit(
                "command.malformed",
                session_id=self.session_id,
                severity=Severity.WARN,
                reason=outcome.reason,
                pii=pii_marker("line"),
                line=outcome.line,
            )
        elif isinstance(outcome, CommandLine):
            await self._run_command(outcome.command)

    async def _run_command(self, command: SearchCommand) -> None:
        correlation_id = f"cmd_{uuid.uuid4().hex[:12]}"
        self.logger.info("Assistant requested candidate search", command=command.model_dump(mode="json"))
        self.emitter.emit(
            "command.detected",
            session_id=self.session_id,
            correlation_id=correlation_id,
            command=command.model_dump(mode="json"),
        )

        try:
            outcome = await self.search.search(command, session_id=self.session_id)
        except BackendError as e:
            message = get_user_message(e.category)
            self.sink.warning(message)
            await self._send_instruction(search_unavailable_instruction(message), correlation_id)
            return

        await self._send_instruction(results_instruction(outcome.to_payload()), correlation_id)

    async def _send_instruction(self, instructions: str, correlation_id: Optional[str] = None) -> None:
        if self._closed:
            self.emitter.emit(
                "instruction.discarded",
                session_id=self.session_id,
                correlation_id=correlation_id,
            )
            return
        await self.channel.send(response_create(instructions))
        self.emitter.emit(
            "instruction.sent",
            session_id=self.session_id,
            correlation_id=correlation_id,
            length=len(instructions),
        )

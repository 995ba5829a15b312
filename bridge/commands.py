"""
Command extraction from the assistant's text lines.

The assistant asks for a candidate search by emitting a line of the form

    @@SEARCH {"job_title":"SRE","skills":["Go"],"location":"London","top_n":5}

Every other line is narrative. `classify()` never raises: a sentinel line with
a bad payload comes back as CommandParseFailure so the caller can log it and
carry on with the conversation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from pydantic import ValidationError

from bullhorn.query import SearchCommand


SENTINEL = "@@SEARCH"
_PREFIX = SENTINEL + " "


@dataclass(frozen=True)
class NarrativeLine:
    text: str


@dataclass(frozen=True)
class CommandLine:
    command: SearchCommand
    line: str


@dataclass(frozen=True)
class CommandParseFailure:
    line: str
    reason: str


LineOutcome = Union[NarrativeLine, CommandLine, CommandParseFailure]


def classify(line: str) -> LineOutcome:
    """Classify one complete line (without its trailing newline)."""
    # Anchored on the raw line: indented sentinels are narrative.
    if not line.startswith(_PREFIX):
        return NarrativeLine(text=line.strip())

    payload = line[len(_PREFIX):].strip()
    try:
        command = SearchCommand.model_validate_json(payload)
    except ValidationError as e:
        return CommandParseFailure(line=line, reason=_summarize(e))
    return CommandLine(command=command, line=line)


def format_command(command: SearchCommand) -> str:
    """Render a command as a single sentinel line (compact JSON, defaults omitted)."""
    payload = command.model_dump_json(exclude_defaults=True)
    return f"{_PREFIX}{payload}"


def _summarize(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        loc = ".".join(str(p) for p in item.get("loc", ())) or "payload"
        parts.append(f"{loc}: {item.get('msg', 'invalid')}")
    return "; ".join(parts)

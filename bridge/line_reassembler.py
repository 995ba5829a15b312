"""
Line reassembly for streamed text deltas.

The assistant's text arrives in fragments with no relation to line breaks.
`feed()` returns every line completed by the new fragment and keeps the
unterminated tail for the next call.
"""

from __future__ import annotations

from typing import List


class LineReassembler:
    """Accumulates fragments and yields complete lines, one channel at a time."""

    def __init__(self) -> None:
        self._buffer = ""

    @property
    def pending(self) -> str:
        """Text received after the last newline."""
        return self._buffer

    def feed(self, fragment: str) -> List[str]:
        if not fragment:
            return []
        pieces = (self._buffer + fragment).split("\n")
        # The last piece has no newline after it yet (possibly "").
        self._buffer = pieces.pop()
        return pieces

    def reset(self) -> None:
        """Drop any unterminated text; it is never yielded."""
        self._buffer = ""

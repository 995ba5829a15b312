"""
Tests for bridge.line_reassembler.

Verifies:
- Complete lines are yielded in order, the tail is retained
- Chunking does not change the resulting line sequence
- Unterminated text is never yielded
"""
from bridge.line_reassembler import LineReassembler


def _feed_all(fragments):
    reassembler = LineReassembler()
    lines = []
    for fragment in fragments:
        lines.extend(reassembler.feed(fragment))
    return lines, reassembler


def test_single_complete_line():
    lines, reassembler = _feed_all(["Hello there, how can I help?\n"])
    assert lines == ["Hello there, how can I help?"]
    assert reassembler.pending == ""


def test_no_newline_yields_nothing():
    reassembler = LineReassembler()
    assert reassembler.feed("partial line") == []
    assert reassembler.pending == "partial line"


def test_partial_line_completed_by_next_fragment():
    reassembler = LineReassembler()
    assert reassembler.feed("Hel") == []
    assert reassembler.feed("lo\nWor") == ["Hello"]
    assert reassembler.pending == "Wor"
    assert reassembler.feed("ld\n") == ["World"]
    assert reassembler.pending == ""


def test_multiple_lines_in_one_fragment():
    lines, reassembler = _feed_all(["a\nb\n\nc"])
    assert lines == ["a", "b", ""]
    assert reassembler.pending == "c"


def test_empty_fragment_is_a_no_op():
    reassembler = LineReassembler()
    reassembler.feed("abc")
    assert reassembler.feed("") == []
    assert reassembler.pending == "abc"


def test_chunking_does_not_change_lines():
    """N newlines -> N lines, whatever the fragment boundaries."""
    text = 'Hi!\n@@SEARCH {"job_title":"SRE"}\nThanks\n\nBye\ntrailing'
    whole, _ = _feed_all([text])
    by_char, _ = _feed_all(list(text))
    uneven, _ = _feed_all([text[:3], text[3:17], text[17:18], text[18:]])

    assert len(whole) == text.count("\n")
    assert whole == by_char == uneven


def test_no_line_yielded_twice():
    reassembler = LineReassembler()
    first = reassembler.feed("one\n")
    second = reassembler.feed("two\n")
    assert first == ["one"]
    assert second == ["two"]


def test_reset_discards_unterminated_text():
    reassembler = LineReassembler()
    reassembler.feed("never finished")
    reassembler.reset()
    assert reassembler.pending == ""
    assert reassembler.feed("\n") == [""]

"Tests for the lookahead buffer."

from __future__ import annotations

import pytest

from xcarchive.services.lookahead import LookaheadBuffer, LookaheadOverflowError


def test_pop_returns_lines_in_push_order() -> None:
    buffer = LookaheadBuffer(3)
    for line in ("a", "b", "c"):
        buffer.push(line)
    assert buffer.is_full
    assert [buffer.pop_for_classification() for _ in range(3)] == ["a", "b", "c"]
    assert buffer.pop_for_classification() is None
    assert not buffer


def test_push_into_full_buffer_fails() -> None:
    buffer = LookaheadBuffer(2)
    buffer.push("a")
    buffer.push("b")
    with pytest.raises(LookaheadOverflowError):
        buffer.push("c")
    assert len(buffer) == 2


def test_next_walks_past_head_and_resets_on_pop() -> None:
    buffer = LookaheadBuffer(4)
    for line in ("a", "b", "c", "d"):
        buffer.push(line)
    assert buffer.pop_for_classification() == "a"
    assert buffer.next() == "b"
    assert buffer.next() == "c"
    assert buffer.remaining() == 1
    assert buffer.pop_for_classification() == "b"
    assert buffer.remaining() == 2
    assert buffer.next() == "c"


def test_next_beyond_buffered_lines_is_fatal() -> None:
    buffer = LookaheadBuffer(4)
    buffer.push("a")
    buffer.push("b")
    buffer.pop_for_classification()
    assert buffer.next() == "b"
    with pytest.raises(LookaheadOverflowError):
        buffer.next()


def test_overflow_is_an_assertion_error() -> None:
    assert issubclass(LookaheadOverflowError, AssertionError)


def test_invalid_capacity() -> None:
    with pytest.raises(ValueError):
        LookaheadBuffer(0)


@pytest.mark.parametrize("capacity", [2, 3, 10])
def test_drain_when_full_supports_capacity_minus_one_lookahead(capacity: int) -> None:
    depth = capacity - 1
    lines = [f"line {index}" for index in range(40)]
    buffer = LookaheadBuffer(capacity)
    classified: list[str] = []
    for line in lines:
        if buffer.is_full:
            current = buffer.pop_for_classification()
            assert current is not None
            peeked = [buffer.next() for _ in range(depth)]
            position = lines.index(current)
            assert peeked == lines[position + 1 : position + 1 + depth]
            classified.append(current)
        buffer.push(line)
        assert len(buffer) <= capacity
    while buffer:
        current = buffer.pop_for_classification()
        assert current is not None
        for _ in range(buffer.remaining()):
            buffer.next()
        classified.append(current)
    assert classified == lines

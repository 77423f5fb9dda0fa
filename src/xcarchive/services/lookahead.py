"Bounded lookahead buffer between the stdout reader and the classifier."

from __future__ import annotations

from collections import deque
from typing import Final, Protocol

DEFAULT_BUFFER_SIZE: Final[int] = 10


class LookaheadOverflowError(AssertionError):
    """Raised when the buffer is asked for more lines than it can hold.

    This is a sizing defect: the buffer capacity is smaller than the
    classifier's lookahead, or the producer pushed without draining.
    """


class LookaheadSource(Protocol):
    """Lines following the one currently being classified."""

    def next(self) -> str | None:
        ...

    def remaining(self) -> int:
        ...


class LookaheadBuffer:
    """Fixed-capacity FIFO of raw lines with a per-cycle lookahead cursor.

    Args:
        capacity: Maximum number of buffered lines.
    """

    def __init__(self, capacity: int = DEFAULT_BUFFER_SIZE) -> None:
        if capacity < 1:
            raise ValueError("Buffer capacity must be at least 1.")
        self._capacity = capacity
        self._lines: deque[str] = deque()
        self._cursor = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def is_full(self) -> bool:
        return len(self._lines) >= self._capacity

    def __len__(self) -> int:
        return len(self._lines)

    def __bool__(self) -> bool:
        return bool(self._lines)

    def push(self, line: str) -> None:
        """Append a line at the tail.

        Raises:
            LookaheadOverflowError: If the buffer is already full.
        """
        if self.is_full:
            raise LookaheadOverflowError(
                f"Buffer already holds {self._capacity} lines; drain one before pushing."
            )
        self._lines.append(line)

    def pop_for_classification(self) -> str | None:
        """Remove the oldest line and reset the lookahead cursor.

        Returns:
            The oldest line, or None when the buffer is empty.
        """
        if not self._lines:
            return None
        self._cursor = 0
        return self._lines.popleft()

    def next(self) -> str:
        """Return the next line after the one being classified.

        Raises:
            LookaheadOverflowError: If the cursor runs past the buffered lines.
        """
        if self._cursor >= len(self._lines):
            raise LookaheadOverflowError(
                "Classifier requested more lines than the buffer holds; increase buffer_size."
            )
        line = self._lines[self._cursor]
        self._cursor += 1
        return line

    def remaining(self) -> int:
        return len(self._lines) - self._cursor

"Incremental UTF-8 line decoding for subprocess pipes."

from __future__ import annotations

import codecs
import logging

logger = logging.getLogger(__name__)


class LineDecoder:
    """Turn arbitrarily chunked bytes into complete text lines.

    State carries across calls: a multi-byte sequence split between two
    chunks is reassembled, and text without a trailing newline is held back
    until the next newline or until ``finish`` is requested.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")()
        self._pending: list[str] = []

    def feed(self, chunk: bytes, finish: bool = False) -> list[str]:
        """Decode a chunk and return the lines it completes.

        Args:
            chunk: Bytes read from the stream, possibly empty.
            finish: Whether the stream reached EOF.

        Returns:
            Completed lines without their line terminator.
        """
        text = self._decode(chunk, finish)
        lines: list[str] = []
        if text:
            parts = text.split("\n")
            for part in parts[:-1]:
                self._pending.append(part)
                lines.append(self._take_line())
            if parts[-1]:
                self._pending.append(parts[-1])
        if finish and self._pending:
            line = self._take_line()
            if line:
                lines.append(line)
        return lines

    @property
    def has_pending(self) -> bool:
        return bool(self._pending)

    def _decode(self, chunk: bytes, finish: bool) -> str:
        try:
            return self._decoder.decode(chunk, final=finish)
        except UnicodeDecodeError as exc:
            # Keep what decoded cleanly, drop the rest of this read.
            logger.debug("Dropping undecodable bytes at offset %d", exc.start)
            self._decoder.reset()
            return exc.object[: exc.start].decode("utf-8", errors="ignore")

    def _take_line(self) -> str:
        line = "".join(self._pending)
        self._pending.clear()
        if line.endswith("\r"):
            line = line[:-1]
        return line

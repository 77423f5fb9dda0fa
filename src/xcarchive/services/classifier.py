"Line classification for build tool output."

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Protocol

from xcarchive.services.lookahead import LookaheadSource

_RESULT_PATTERN = re.compile(r"^\*\* [A-Z ]+ (SUCCEEDED|FAILED) \*\*")
_DIAGNOSTIC_PATTERN = re.compile(r"(?:^|\s|:)(error|warning):\s")
_CARET_PATTERN = re.compile(r"^\s*[~^]*\^[~^]*\s*$")


class OutputType(str, enum.Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    RESULT = "result"


@dataclass(frozen=True)
class ClassifiedLine:
    """Formatted line and its category."""

    text: str
    output_type: OutputType


class Classifier(Protocol):
    """Maps a raw line, with access to the following lines, to output."""

    def classify(self, line: str, lookahead: LookaheadSource) -> ClassifiedLine | None:
        ...

    def formatted_summary(self) -> str | None:
        ...


class BasicClassifier:
    """Minimal classifier for clang/swiftc style diagnostics.

    Diagnostics followed by a source snippet and a caret line are folded
    into one multi-line entry; the folded lines are suppressed when their
    own turn comes.
    """

    def __init__(self) -> None:
        self._suppressed = 0
        self.warning_count = 0
        self.error_count = 0

    def classify(self, line: str, lookahead: LookaheadSource) -> ClassifiedLine | None:
        if self._suppressed:
            self._suppressed -= 1
            return None
        if _RESULT_PATTERN.match(line):
            return ClassifiedLine(line, OutputType.RESULT)
        match = _DIAGNOSTIC_PATTERN.search(line)
        if match is None:
            return ClassifiedLine(line, OutputType.INFO)
        if match.group(1) == "error":
            self.error_count += 1
            output_type = OutputType.ERROR
        else:
            self.warning_count += 1
            output_type = OutputType.WARNING
        return ClassifiedLine(self._with_context(line, lookahead), output_type)

    def formatted_summary(self) -> str | None:
        return f"Build finished with {self.warning_count} warning(s) and {self.error_count} error(s)"

    def _with_context(self, line: str, lookahead: LookaheadSource) -> str:
        if lookahead.remaining() < 2:
            return line
        snippet = lookahead.next()
        caret = lookahead.next()
        if snippet is None or caret is None or not _CARET_PATTERN.match(caret):
            return line
        self._suppressed = 2
        return "\n".join((line, snippet, caret))

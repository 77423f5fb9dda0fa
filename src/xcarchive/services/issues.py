"Warning location extraction and per-file aggregation."

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final, Iterable

logger = logging.getLogger(__name__)

DEFAULT_SOURCE_EXTENSIONS: Final[tuple[str, ...]] = (
    "swift",
    "m",
    "mm",
    "h",
    "c",
    "cc",
    "cpp",
)


@dataclass(frozen=True)
class Issue:
    """A warning message attributed to a source file."""

    path: str
    message: str


@dataclass
class IssueIndex:
    """Warning messages grouped by relative source path, in arrival order."""

    entries: dict[str, list[str]] = field(default_factory=dict)

    def add(self, issue: Issue) -> None:
        self.entries.setdefault(issue.path, []).append(issue.message)

    def __len__(self) -> int:
        return sum(len(messages) for messages in self.entries.values())

    def to_json(self) -> str:
        return json.dumps(self.entries, indent=2, ensure_ascii=False)

    def write(self, path: Path) -> None:
        """Persist the index as a JSON object of arrays.

        Raises:
            OSError: If the file cannot be written.
        """
        path.write_text(self.to_json(), encoding="utf-8")


class WarningExtractor:
    """Parse formatted warning lines for ``file:line:col:`` locations.

    Args:
        working_directory: Prefix removed from paths and messages.
        derived_data_path: Lines mentioning this path are ignored.
        source_extensions: File extensions recognised as source files.
    """

    def __init__(
        self,
        working_directory: str,
        derived_data_path: str | None = None,
        source_extensions: Iterable[str] = DEFAULT_SOURCE_EXTENSIONS,
    ) -> None:
        self._working_directory = working_directory
        self._derived_data_path = derived_data_path or None
        extensions = "|".join(
            re.escape(ext) for ext in sorted(set(source_extensions), key=len, reverse=True)
        )
        self._pattern = re.compile(rf"(?<=[^\s:/])\.(?:{extensions})(:\d+:\d+:)")

    def extract(self, formatted_line: str) -> Issue | None:
        """Return the issue found in a warning line, if any."""
        if self._derived_data_path and self._derived_data_path in formatted_line:
            return None
        match = self._pattern.search(formatted_line)
        if match is None:
            return None
        path = self._relative(formatted_line[: match.start(1)])
        # Folded source context lines are not part of the message.
        message = formatted_line[match.end() :].split("\n", 1)[0]
        if self._working_directory:
            message = message.replace(self._working_directory, "")
        return Issue(path=path, message=message)

    def record(self, formatted_line: str, index: IssueIndex) -> Issue | None:
        """Extract an issue and append it to the index."""
        issue = self.extract(formatted_line)
        if issue is not None:
            index.add(issue)
            logger.debug("Recorded warning for %s", issue.path)
        return issue

    def _relative(self, prefix: str) -> str:
        # The working directory may contain spaces; cut at its end when present.
        if self._working_directory:
            position = prefix.find(self._working_directory)
            if position != -1:
                return prefix[position + len(self._working_directory) :]
        parts = prefix.rsplit(None, 1)
        return parts[-1] if parts else prefix

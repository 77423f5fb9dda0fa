"Process log handler that classifies build output with lookahead."

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import IO, Iterable, Sequence

from xcarchive.services.classifier import BasicClassifier, ClassifiedLine, Classifier, OutputType
from xcarchive.services.issues import DEFAULT_SOURCE_EXTENSIONS, IssueIndex, WarningExtractor
from xcarchive.services.lookahead import DEFAULT_BUFFER_SIZE, LookaheadBuffer
from xcarchive.services.subprocess_runner import format_command

logger = logging.getLogger(__name__)

DEFAULT_LABEL = "xcodebuild"


class ProcessLogger:
    """Buffers stdout lines, classifies them and routes the results.

    Error-stream lines are not classified. Every stdout line is copied to the
    raw log as it arrives; warnings are collected per source file and
    written once on termination.

    Args:
        classifier: Line classifier; BasicClassifier by default.
        raw_logs_file_path: Optional file receiving unformatted stdout.
        warnings_logs_file_path: Optional JSON file receiving the warnings.
        derived_data_path: Build-internal path excluded from warnings.
        working_directory: Prefix stripped from warning paths.
        buffer_size: Lookahead buffer capacity.
        source_extensions: Extensions recognised in warning locations.
        label: Name of the logger receiving formatted lines.
    """

    def __init__(
        self,
        classifier: Classifier | None = None,
        raw_logs_file_path: Path | None = None,
        warnings_logs_file_path: Path | None = None,
        derived_data_path: str | None = None,
        working_directory: str | None = None,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        source_extensions: Iterable[str] = DEFAULT_SOURCE_EXTENSIONS,
        label: str | None = None,
    ) -> None:
        self._classifier = classifier if classifier is not None else BasicClassifier()
        self._buffer = LookaheadBuffer(buffer_size)
        self._extractor = WarningExtractor(
            working_directory=working_directory if working_directory is not None else os.getcwd(),
            derived_data_path=derived_data_path,
            source_extensions=source_extensions,
        )
        self._output = logging.getLogger(label or DEFAULT_LABEL)
        self.warnings = IssueIndex()
        self._warnings_path = _reset_file(warnings_logs_file_path)
        self._raw_log: IO[str] | None = None
        raw_path = _reset_file(raw_logs_file_path)
        if raw_path is not None:
            try:
                self._raw_log = raw_path.open("a", encoding="utf-8")
            except OSError as exc:
                logger.warning("Cannot open raw log %s: %s", raw_path, exc)

    def on_run(self, args: Sequence[str]) -> None:
        logger.debug("run %s", format_command(args))

    def on_write_line(self, line: str, from_error_stream: bool) -> None:
        if from_error_stream:
            return
        self._write_raw(line)
        if self._buffer.is_full:
            self._emit(self._format_next_line())
        self._buffer.push(line)

    def on_terminate(self, output: str, error: str, return_code: int = 0) -> None:
        while self._buffer:
            self._emit(self._format_next_line())
        summary = self._classifier.formatted_summary()
        if summary:
            self._emit(ClassifiedLine(summary, OutputType.RESULT))
        self._close_raw()
        self._write_warnings()

    def close(self) -> None:
        """Release the raw log; safe to call more than once."""
        self._close_raw()

    def _format_next_line(self) -> ClassifiedLine | None:
        line = self._buffer.pop_for_classification()
        if line is None:
            return None
        return self._classifier.classify(line, self._buffer)

    def _emit(self, classified: ClassifiedLine | None) -> None:
        if classified is None:
            return
        if classified.output_type is OutputType.WARNING:
            self._output.warning("%s", classified.text)
            self._extractor.record(classified.text, self.warnings)
        elif classified.output_type is OutputType.ERROR:
            self._output.error("%s", classified.text)
        else:
            self._output.info("%s", classified.text)

    def _write_raw(self, line: str) -> None:
        if self._raw_log is None:
            return
        try:
            self._raw_log.write(line + "\n")
            self._raw_log.flush()
        except OSError as exc:
            logger.warning("Raw log write failed, disabling raw log: %s", exc)
            self._close_raw()

    def _close_raw(self) -> None:
        if self._raw_log is None:
            return
        raw_log, self._raw_log = self._raw_log, None
        try:
            raw_log.close()
        except OSError as exc:
            logger.warning("Raw log close failed: %s", exc)

    def _write_warnings(self) -> None:
        if self._warnings_path is None:
            return
        try:
            self.warnings.write(self._warnings_path)
        except OSError as exc:
            logger.warning("Cannot write warnings to %s: %s", self._warnings_path, exc)


def _reset_file(path: Path | None) -> Path | None:
    """Remove a previous artifact and create an empty file in its place."""
    if path is None:
        return None
    try:
        path.unlink(missing_ok=True)
        path.touch()
    except OSError as exc:
        logger.warning("Cannot create %s: %s", path, exc)
    return path

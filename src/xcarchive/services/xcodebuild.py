"xcodebuild CLI integration."

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from xcarchive.services.subprocess_runner import (
    COMMON_PATHS,
    CommandError,
    CommandResult,
    ProcessLogHandler,
    run_command,
)

XCRUN_PATH = "/usr/bin/xcrun"


class XcodebuildError(RuntimeError):
    """Raised when xcodebuild calls fail."""

    def __init__(self, message: str, return_code: int | None = None) -> None:
        super().__init__(message)
        self.return_code = return_code


class MissingProjectError(XcodebuildError):
    """Raised when neither a workspace nor a project is given."""

    def __init__(self) -> None:
        super().__init__('Neither "--workspace-path" nor "--project-path" are specified.')


@dataclass(frozen=True)
class ArchiveOptions:
    """Inputs of an ``xcodebuild archive`` invocation."""

    archive_path: Path
    scheme: str
    workspace_path: Path | None = None
    project_path: Path | None = None
    configuration: str = "Release"
    destination: str = "generic/platform=iOS"
    derived_data_path: Path | None = None
    debug_information_format: str | None = None


def archive_args(options: ArchiveOptions) -> list[str]:
    """Build the xcodebuild argument list.

    Args:
        options: Archive inputs.

    Returns:
        Arguments passed to xcrun.

    Raises:
        MissingProjectError: If neither workspace nor project is set.
    """
    args = [
        "xcodebuild",
        "archive",
        "-archivePath",
        str(options.archive_path),
        "-scheme",
        options.scheme,
        "-configuration",
        options.configuration,
        "-destination",
        options.destination,
    ]
    if _is_set(options.workspace_path):
        args += ["-workspace", str(options.workspace_path)]
    elif _is_set(options.project_path):
        args += ["-project", str(options.project_path)]
    else:
        raise MissingProjectError()
    if _is_set(options.derived_data_path):
        args += ["-derivedDataPath", str(options.derived_data_path)]
    if options.debug_information_format:
        args.append(f"DEBUG_INFORMATION_FORMAT={options.debug_information_format}")
    return args


def archive(
    options: ArchiveOptions,
    log_handler: ProcessLogHandler | None = None,
    disable_logging: bool = False,
    extra_paths: Sequence[str] = COMMON_PATHS,
    xcrun_path: str = XCRUN_PATH,
) -> CommandResult:
    """Archive a scheme.

    Raises:
        XcodebuildError: If the archive fails.
    """
    args = archive_args(options)
    try:
        return run_command(
            [xcrun_path, *args],
            log_handler=log_handler,
            disable_logging=disable_logging,
            extra_paths=extra_paths,
        )
    except CommandError as exc:
        message = exc.message.strip() or f"xcodebuild archive failed with exit code {exc.return_code}."
        raise XcodebuildError(message, return_code=exc.return_code) from exc


def _is_set(path: Path | None) -> bool:
    return path is not None and str(path) not in ("", ".")

"Core archive workflow shared by the CLI and callers embedding it."

from __future__ import annotations

import logging
import os

from xcarchive.services import xcodebuild
from xcarchive.services.classifier import Classifier
from xcarchive.services.process_logger import ProcessLogger
from xcarchive.services.subprocess_runner import CommandResult
from xcarchive.services.xcodebuild import ArchiveOptions
from xcarchive.settings import AppSettings

logger = logging.getLogger(__name__)


class WorkflowError(RuntimeError):
    """Raised when workflow steps fail."""

    def __init__(self, message: str, return_code: int | None = None) -> None:
        super().__init__(message)
        self.return_code = return_code


def validate_project_paths(options: ArchiveOptions) -> None:
    """Validate the workspace or project path."""
    if options.workspace_path is not None and str(options.workspace_path):
        if not options.workspace_path.is_dir():
            raise WorkflowError(f"Workspace not found: {options.workspace_path}")
        return
    if options.project_path is not None and str(options.project_path):
        if not options.project_path.is_dir():
            raise WorkflowError(f"Project not found: {options.project_path}")
        return
    raise WorkflowError(str(xcodebuild.MissingProjectError()))


def build_process_logger(
    settings: AppSettings,
    classifier: Classifier | None = None,
    working_directory: str | None = None,
) -> ProcessLogger:
    """Create the log handler described by the settings."""
    return ProcessLogger(
        classifier=classifier,
        raw_logs_file_path=settings.raw_logs_file_path,
        warnings_logs_file_path=settings.warnings_logs_file_path,
        derived_data_path=str(settings.derived_data_path) if settings.derived_data_path else None,
        working_directory=working_directory or os.getcwd(),
        buffer_size=settings.buffer_size,
        source_extensions=settings.source_extensions,
        label=settings.log_label,
    )


def run_archive(
    options: ArchiveOptions,
    settings: AppSettings,
    classifier: Classifier | None = None,
) -> CommandResult:
    """Run ``xcodebuild archive`` with classified logging."""
    if settings.derived_data_path is None and options.derived_data_path is not None:
        settings = settings.model_copy(update={"derived_data_path": options.derived_data_path})
    log_handler = None
    if not settings.disable_logging:
        log_handler = build_process_logger(settings, classifier=classifier)
    try:
        return xcodebuild.archive(
            options,
            log_handler=log_handler,
            disable_logging=settings.disable_logging,
            extra_paths=settings.extra_paths,
        )
    except xcodebuild.XcodebuildError as exc:
        raise WorkflowError(str(exc), return_code=exc.return_code) from exc

"CLI entrypoint for xcarchive."

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from xcarchive.logging_config import configure_logging
from xcarchive.services.xcodebuild import ArchiveOptions
from xcarchive.settings import AppSettings
from xcarchive.workflow import WorkflowError, run_archive, validate_project_paths

logger = logging.getLogger(__name__)

app = typer.Typer(add_completion=False, help="Build an xcarchive from an Xcode project or workspace.")


def _merge_settings(settings: AppSettings, **overrides: object) -> AppSettings:
    data = settings.model_dump()
    for key, value in overrides.items():
        if value is None:
            continue
        data[key] = value
    return AppSettings(**data)


@app.command()
def archive(
    archive_path: Path = typer.Option(..., "--archive-path", help="Where the xcarchive is written."),
    scheme: str = typer.Option(..., "--scheme", help="Scheme name."),
    workspace_path: Optional[Path] = typer.Option(None, "--workspace-path", help="Path to the xcworkspace."),
    project_path: Optional[Path] = typer.Option(
        None, "--project-path", help="Path to the xcodeproj, used when no workspace is given."
    ),
    configuration: str = typer.Option("Release", "--configuration", help="Build configuration."),
    destination: str = typer.Option("generic/platform=iOS", "--destination", help="Build destination."),
    derived_data_path: Optional[Path] = typer.Option(None, "--derived-data-path"),
    raw_logs_file_path: Optional[Path] = typer.Option(
        None, "--raw-logs-file-path", help="File receiving unformatted build output."
    ),
    warnings_logs_file_path: Optional[Path] = typer.Option(
        None, "--warnings-logs-file-path", help="JSON file receiving warnings grouped by file."
    ),
    debug_information_format: Optional[str] = typer.Option(
        None, "--debug-information-format", help="stabs, dwarf or dwarf-with-dsym."
    ),
    buffer_size: Optional[int] = typer.Option(None, "--buffer-size", help="Lookahead buffer capacity."),
    disable_logging: Optional[bool] = typer.Option(None, "--disable-logging/--enable-logging"),
    log_level: Optional[str] = typer.Option(None, "--log-level"),
) -> None:
    """Archive a scheme with classified build logs."""
    settings = AppSettings()
    merged = _merge_settings(
        settings,
        derived_data_path=derived_data_path,
        raw_logs_file_path=raw_logs_file_path,
        warnings_logs_file_path=warnings_logs_file_path,
        buffer_size=buffer_size,
        disable_logging=disable_logging,
        log_level=log_level,
    )
    configure_logging(merged.log_level)
    options = ArchiveOptions(
        archive_path=archive_path,
        scheme=scheme,
        workspace_path=workspace_path,
        project_path=project_path,
        configuration=configuration,
        destination=destination,
        derived_data_path=merged.derived_data_path,
        debug_information_format=debug_information_format,
    )
    try:
        merged.require_log_files_writable()
        validate_project_paths(options)
        run_archive(options, merged)
        logger.info("Archive completed: %s", archive_path)
    except ValueError as exc:
        logger.error("Invalid settings: %s", exc)
        raise typer.Exit(code=2) from exc
    except WorkflowError as exc:
        logger.error("Archive failed: %s", exc)
        code = exc.return_code if exc.return_code and exc.return_code > 0 else 1
        raise typer.Exit(code=code) from exc


def main() -> None:
    """Entry point for console script."""
    app()


if __name__ == "__main__":
    main()

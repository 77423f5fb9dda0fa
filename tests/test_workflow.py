"Tests for workflow utilities."

from __future__ import annotations

from pathlib import Path

import pytest

from xcarchive.services.process_logger import ProcessLogger
from xcarchive.services.subprocess_runner import CommandResult
from xcarchive.services.xcodebuild import ArchiveOptions, XcodebuildError
from xcarchive.settings import AppSettings
from xcarchive.workflow import WorkflowError, build_process_logger, run_archive, validate_project_paths


def test_validate_project_paths(tmp_path: Path) -> None:
    project = tmp_path / "App.xcodeproj"
    project.mkdir()
    validate_project_paths(ArchiveOptions(archive_path=tmp_path / "a", scheme="App", project_path=project))


def test_validate_project_paths_missing(tmp_path: Path) -> None:
    options = ArchiveOptions(
        archive_path=tmp_path / "a",
        scheme="App",
        workspace_path=tmp_path / "App.xcworkspace",
    )
    with pytest.raises(WorkflowError):
        validate_project_paths(options)


def test_validate_project_paths_requires_one(tmp_path: Path) -> None:
    with pytest.raises(WorkflowError, match="--workspace-path"):
        validate_project_paths(ArchiveOptions(archive_path=tmp_path / "a", scheme="App"))


def test_build_process_logger_uses_settings(tmp_path: Path) -> None:
    settings = AppSettings(
        raw_logs_file_path=tmp_path / "raw.log",
        warnings_logs_file_path=tmp_path / "warnings.json",
        buffer_size=4,
    )
    handler = build_process_logger(settings, working_directory=str(tmp_path))
    handler.on_write_line(f"{tmp_path}/A.swift:1:1: warning: check", from_error_stream=False)
    handler.on_terminate("", "")
    assert (tmp_path / "raw.log").read_text(encoding="utf-8").startswith(str(tmp_path))
    assert handler.warnings.entries == {"/A.swift": [" warning: check"]}


def test_run_archive_passes_handler(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    calls: list[dict[str, object]] = []

    def record(options, **kwargs):
        calls.append(kwargs)
        return CommandResult(stdout="", stderr="", return_code=0)

    monkeypatch.setattr("xcarchive.services.xcodebuild.archive", record)
    options = ArchiveOptions(
        archive_path=tmp_path / "a",
        scheme="App",
        project_path=tmp_path,
        derived_data_path=tmp_path / "DerivedData",
    )
    run_archive(options, AppSettings())
    assert isinstance(calls[0]["log_handler"], ProcessLogger)
    assert calls[0]["disable_logging"] is False

    run_archive(options, AppSettings(disable_logging=True))
    assert calls[1]["log_handler"] is None
    assert calls[1]["disable_logging"] is True


def test_run_archive_wraps_failures(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def fail(options, **kwargs):
        raise XcodebuildError("build failed", return_code=65)

    monkeypatch.setattr("xcarchive.services.xcodebuild.archive", fail)
    options = ArchiveOptions(archive_path=tmp_path / "a", scheme="App", project_path=tmp_path)
    with pytest.raises(WorkflowError) as excinfo:
        run_archive(options, AppSettings())
    assert excinfo.value.return_code == 65
    assert str(excinfo.value) == "build failed"

"Application settings via pydantic-settings."

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from xcarchive.services.issues import DEFAULT_SOURCE_EXTENSIONS
from xcarchive.services.lookahead import DEFAULT_BUFFER_SIZE
from xcarchive.services.subprocess_runner import COMMON_PATHS


class AppSettings(BaseSettings):
    """App settings loaded from environment and CLI overrides.

    Raises:
        ValueError: If any validation fails.
    """

    model_config = SettingsConfigDict(
        env_prefix="XCARCHIVE_",
        env_file=".env",
        case_sensitive=False,
    )

    buffer_size: int = Field(default=DEFAULT_BUFFER_SIZE, ge=2)
    raw_logs_file_path: Path | None = None
    warnings_logs_file_path: Path | None = None
    derived_data_path: Path | None = None
    extra_paths: list[str] = Field(default_factory=lambda: list(COMMON_PATHS))
    source_extensions: list[str] = Field(default_factory=lambda: list(DEFAULT_SOURCE_EXTENSIONS))
    disable_logging: bool = False
    log_label: str = "xcodebuild"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    def require_log_files_writable(self) -> None:
        """Validate that the log file directories exist.

        Raises:
            ValueError: If a configured log file lives in a missing directory.
        """
        missing = [
            str(path)
            for path in (self.raw_logs_file_path, self.warnings_logs_file_path)
            if path is not None and not path.parent.is_dir()
        ]
        if missing:
            raise ValueError(f"Log file directories do not exist: {', '.join(missing)}")

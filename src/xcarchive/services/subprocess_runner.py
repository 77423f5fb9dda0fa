"Subprocess helpers with concurrent stdout/stderr capture."

from __future__ import annotations

import logging
import os
import selectors
import shlex
import subprocess
import threading
from dataclasses import dataclass
from typing import IO, Final, Mapping, Protocol, Sequence

from xcarchive.services.line_decoder import LineDecoder

logger = logging.getLogger(__name__)

COMMON_PATHS: Final[tuple[str, ...]] = ("/opt/homebrew/bin", "/usr/local/bin")
READ_CHUNK_SIZE: Final[int] = 64 * 1024
POLL_INTERVAL: Final[float] = 0.1
DRAIN_TIMEOUT: Final[float] = 1.0


class CommandError(RuntimeError):
    """Raised when a command exits with a non-zero status.

    The message is the captured stderr text.
    """

    def __init__(self, message: str, return_code: int, result: CommandResult | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.return_code = return_code
        self.result = result


@dataclass(frozen=True)
class CommandResult:
    """Result of a CLI command execution."""

    stdout: str
    stderr: str
    return_code: int


class ProcessLogHandler(Protocol):
    """Receives the lifecycle and output lines of a running command."""

    def on_run(self, args: Sequence[str]) -> None:
        ...

    def on_write_line(self, line: str, from_error_stream: bool) -> None:
        ...

    def on_terminate(self, output: str, error: str, return_code: int = 0) -> None:
        ...

    def close(self) -> None:
        ...


class DefaultProcessLogHandler:
    """Logs the command line, and stderr output of a successful run."""

    def on_run(self, args: Sequence[str]) -> None:
        logger.info("run %s", format_command(args))

    def on_write_line(self, line: str, from_error_stream: bool) -> None:
        return None

    def on_terminate(self, output: str, error: str, return_code: int = 0) -> None:
        # A failing run reports stderr through CommandError.
        if return_code == 0 and error:
            logger.info("stderr output: %s", error)

    def close(self) -> None:
        return None


def format_command(args: Sequence[str]) -> str:
    return " ".join(shlex.quote(arg) for arg in args)


def build_environment(
    additional_env: Mapping[str, str] | None = None,
    extra_paths: Sequence[str] = COMMON_PATHS,
    base: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Merge overrides onto the inherited environment.

    Args:
        additional_env: Values that replace inherited ones.
        extra_paths: Directories appended to ``PATH``.
        base: Environment to start from, ``os.environ`` by default.

    Returns:
        Environment mapping for the child process.
    """
    env = dict(os.environ if base is None else base)
    search_path = [entry for entry in env.get("PATH", "").split(os.pathsep) if entry]
    env["PATH"] = os.pathsep.join([*search_path, *extra_paths])
    if additional_env:
        env.update(additional_env)
    return env


class _StreamPump(threading.Thread):
    """Drains one pipe, forwarding decoded lines to the log handler."""

    def __init__(
        self,
        stream: IO[bytes],
        from_error_stream: bool,
        process: subprocess.Popen[bytes],
        log_handler: ProcessLogHandler | None,
        handler_lock: threading.Lock,
    ) -> None:
        name = "stderr-pump" if from_error_stream else "stdout-pump"
        super().__init__(name=name, daemon=True)
        self._stream = stream
        self._from_error_stream = from_error_stream
        self._process = process
        self._log_handler = log_handler
        self._handler_lock = handler_lock
        self._decoder = LineDecoder()
        self._data = bytearray()
        self._stopping = threading.Event()
        self.error: Exception | None = None

    @property
    def text(self) -> str:
        return self._data.decode("utf-8", errors="replace")

    def stop(self) -> None:
        """Finish once the data already in the pipe is read."""
        self._stopping.set()

    def run(self) -> None:
        fd = self._stream.fileno()
        selector = selectors.DefaultSelector()
        selector.register(fd, selectors.EVENT_READ)
        try:
            while True:
                stopping = self._stopping.is_set()
                if not selector.select(timeout=0 if stopping else POLL_INTERVAL):
                    if stopping:
                        logger.debug("%s stopped with the pipe still open", self.name)
                        break
                    continue
                chunk = os.read(fd, READ_CHUNK_SIZE)
                if not chunk:
                    break
                self._data.extend(chunk)
                self._forward(self._decoder.feed(chunk))
            self._forward(self._decoder.feed(b"", finish=True))
        finally:
            selector.close()
            self._stream.close()

    def _forward(self, lines: list[str]) -> None:
        if self._log_handler is None or self.error is not None:
            return
        try:
            with self._handler_lock:
                for line in lines:
                    self._log_handler.on_write_line(line, self._from_error_stream)
        except Exception as exc:
            # Stop forwarding and stop the child; the caller re-raises after the join.
            self.error = exc
            logger.error("%s handler failed, terminating process: %s", self.name, exc)
            self._process.kill()


def run_command(
    args: Sequence[str],
    check: bool = True,
    cwd: str | os.PathLike[str] | None = None,
    additional_env: Mapping[str, str] | None = None,
    extra_paths: Sequence[str] = COMMON_PATHS,
    disable_logging: bool = False,
    log_handler: ProcessLogHandler | None = None,
    drain_timeout: float = DRAIN_TIMEOUT,
) -> CommandResult:
    """Run a CLI command, reading stdout and stderr concurrently.

    Args:
        args: Command arguments.
        check: Whether to raise on non-zero exit.
        cwd: Optional working directory.
        additional_env: Environment overrides.
        extra_paths: Directories appended to ``PATH``.
        disable_logging: Skip the log handler entirely.
        log_handler: Receives output lines; defaults to DefaultProcessLogHandler.
        drain_timeout: Seconds to wait for the pipes to close after exit.

    Returns:
        CommandResult with stdout, stderr, and return code.

    Raises:
        CommandError: If command fails and check is True.
        LookaheadOverflowError: If the log handler's buffer is undersized.
    """
    handler: ProcessLogHandler | None = None
    if not disable_logging:
        handler = log_handler if log_handler is not None else DefaultProcessLogHandler()
        handler.on_run(args)
    logger.debug("Running command: %s", format_command(args))
    process = subprocess.Popen(
        list(args),
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        cwd=cwd,
        env=build_environment(additional_env, extra_paths),
    )
    assert process.stdout is not None and process.stderr is not None
    handler_lock = threading.Lock()
    pumps = [
        _StreamPump(process.stdout, False, process, handler, handler_lock),
        _StreamPump(process.stderr, True, process, handler, handler_lock),
    ]
    try:
        for pump in pumps:
            pump.start()
        return_code = process.wait()
        for pump in pumps:
            pump.join(drain_timeout)
            if pump.is_alive():
                # A descendant still holds the pipe open.
                logger.debug("%s still open %.1fs after exit, stopping it", pump.name, drain_timeout)
                pump.stop()
                pump.join()
        output_pump, error_pump = pumps
        for pump in pumps:
            if pump.error is not None:
                raise pump.error
        output = output_pump.text
        error = error_pump.text
        if handler is not None:
            with handler_lock:
                handler.on_terminate(output, error, return_code)
    finally:
        if handler is not None:
            handler.close()
    if check and return_code != 0:
        logger.debug("Command exited with %d", return_code)
        raise CommandError(
            error,
            return_code,
            CommandResult(stdout=output, stderr=error, return_code=return_code),
        )
    return CommandResult(stdout=output.strip(), stderr=error, return_code=return_code)

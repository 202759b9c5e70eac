"""Background child processes with concurrently drained output.

Both output pipes are read to completion by dedicated threads from the
moment the process starts, so the child never blocks on a full pipe while
nobody is interested in its output yet.  The buffers are handed back only
after both reader threads finished.
"""

from __future__ import annotations

import logging
import os
import subprocess
import sys
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, TextIO

from webdriver_harness.errors import SpawnFailure

logger = logging.getLogger(__name__)

_INDENT = "    "


@dataclass(frozen=True)
class Command:
    """Program, arguments and environment additions for a child process."""

    argv: list[str]
    env: dict[str, str] = field(default_factory=dict)
    cwd: Path | None = None

    def with_args(self, *args: str) -> Command:
        return Command([*self.argv, *args], dict(self.env), self.cwd)

    def merged_env(self) -> dict[str, str]:
        return {**os.environ, **self.env}

    def __str__(self) -> str:
        return " ".join(self.argv)


class _StreamReader:
    """Reads one pipe to EOF on its own thread."""

    def __init__(self, stream: IO[bytes], label: str) -> None:
        self._stream = stream
        self._data = b""
        self._error: BaseException | None = None
        self._thread = threading.Thread(target=self._read, name=label, daemon=True)
        self._thread.start()

    def _read(self) -> None:
        try:
            self._data = self._stream.read()
        except Exception as e:
            self._error = e
        finally:
            self._stream.close()

    def join(self, timeout: float | None = None) -> bytes:
        """Wait for EOF and return everything read, raising any read error."""
        self._thread.join(timeout)
        if self._thread.is_alive():
            raise TimeoutError(f"reader thread {self._thread.name} did not finish")
        if self._error is not None:
            raise self._error
        return self._data


@dataclass
class _Running:
    popen: subprocess.Popen[bytes]
    stdout: _StreamReader
    stderr: _StreamReader


class _Stopped:
    pass


_STOPPED = _Stopped()


class ManagedProcess:
    """A spawned child process that is killed exactly once.

    ``stop()`` kills the process, waits for it and collects the captured
    output.  Repeated calls do nothing.  Used as a context manager the
    process is stopped at scope exit, printing its output when the scope
    is left with an exception.
    """

    def __init__(self, name: str, state: _Running) -> None:
        self.name = name
        self._state: _Running | _Stopped = state
        self.status: int | None = None
        self.stdout = b""
        self.stderr = b""

    @classmethod
    def spawn(cls, name: str, command: Command) -> ManagedProcess:
        """Start *command* with piped output and no stdin."""
        try:
            popen = subprocess.Popen(
                command.argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                env=command.merged_env(),
                cwd=command.cwd,
            )
        except OSError as e:
            raise SpawnFailure(name, command.argv, str(e)) from e

        assert popen.stdout is not None and popen.stderr is not None
        state = _Running(
            popen=popen,
            stdout=_StreamReader(popen.stdout, f"{name}-stdout"),
            stderr=_StreamReader(popen.stderr, f"{name}-stderr"),
        )
        logger.info(f"Spawned {name} (pid {popen.pid}): {command}")
        return cls(name, state)

    @property
    def pid(self) -> int | None:
        if isinstance(self._state, _Running):
            return self._state.popen.pid
        return None

    @property
    def running(self) -> bool:
        return isinstance(self._state, _Running)

    def stop(self, print_output: bool = False) -> None:
        """Kill the process, reap it and collect its output.

        Never raises: kill, wait and join failures are logged only.
        """
        state, self._state = self._state, _STOPPED
        if not isinstance(state, _Running):
            return

        try:
            state.popen.kill()
        except OSError as e:
            logger.warning(f"Could not kill {self.name}: {e!r}")

        try:
            self.status = state.popen.wait(timeout=10)
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning(f"Could not wait for {self.name}: {e!r}")

        self.stdout = self._collect(state.stdout, "stdout")
        self.stderr = self._collect(state.stderr, "stderr")
        logger.info(f"Stopped {self.name} (status {self.status})")

        if print_output:
            self.print_output()

    def print_output(self, out: TextIO | None = None) -> None:
        """Write the exit status and every non-empty captured stream."""
        out = out or sys.stdout
        out.write(f"{self.name} status: {self.status}\n")
        for stream_name, data in (("stdout", self.stdout), ("stderr", self.stderr)):
            if data:
                text = _indent(data.decode("utf-8", errors="replace"))
                out.write(f"{self.name} {stream_name}:\n{text}")
        out.flush()

    def _collect(self, reader: _StreamReader, stream_name: str) -> bytes:
        try:
            return reader.join(timeout=10)
        except Exception as e:
            logger.warning(f"Could not read {stream_name} for {self.name}: {e!r}")
            return b""

    def __enter__(self) -> ManagedProcess:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop(print_output=exc_type is not None)


def _indent(text: str) -> str:
    return "".join(f"{_INDENT}{line}\n" for line in text.splitlines())

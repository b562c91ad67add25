"""
External process capability.

The media tools (ffprobe, ffmpeg) are executed through a ``ProcessRunner``
so that the probe and the rewriter can be exercised without the binaries
installed. ``SubprocessRunner`` is the production implementation.
"""

import logging
import subprocess

from collections.abc import Sequence
from typing import NamedTuple, Protocol


logger = logging.getLogger(__name__)

# Keep logged stderr short; ffmpeg can be very chatty
STDERR_LOG_LIMIT = 2000


class ProcessResult(NamedTuple):
    """Captured outcome of one process execution."""

    stdout: bytes
    exit_status: int


class ProcessRunner(Protocol):
    """Runs an external command to completion and captures its stdout."""

    def run(self, args: Sequence[str]) -> ProcessResult: ...


class SubprocessRunner:
    """
    ``ProcessRunner`` backed by ``subprocess.run``.

    Blocking: async callers run it through ``asyncio.to_thread``.

    Raises:
        OSError: If the executable cannot be started.
        subprocess.TimeoutExpired: If ``timeout_seconds`` elapses first.
    """

    def __init__(self, timeout_seconds: float | None = None) -> None:
        self.timeout_seconds = timeout_seconds

    def run(self, args: Sequence[str]) -> ProcessResult:
        command = list(args)
        completed = subprocess.run(
            command,
            capture_output=True,
            timeout=self.timeout_seconds,
            check=False,
        )

        if completed.returncode != 0:
            stderr = completed.stderr.decode("utf-8", errors="replace")[-STDERR_LOG_LIMIT:]
            logger.warning(
                "Command exited with status %s",
                completed.returncode,
                extra={"command": command[0], "stderr": stderr},
            )

        return ProcessResult(stdout=completed.stdout, exit_status=completed.returncode)


__all__ = ["ProcessResult", "ProcessRunner", "SubprocessRunner"]

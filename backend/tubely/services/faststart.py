"""
Progressive-playback remux with ffmpeg.

Moves the MP4 ``moov`` atom to the front of the file without re-encoding,
so players can start before the whole object is downloaded.
"""

import logging
import subprocess

from pathlib import Path

from tubely.core.exceptions import RewriteExecutionError
from tubely.services.process_runner import ProcessRunner
from tubely.services.staging import StagedFile


logger = logging.getLogger(__name__)

FASTSTART_MARKER = ".faststart"


def faststart_path(path: Path) -> Path:
    """Sibling output path: ``upload.mp4`` becomes ``upload.faststart.mp4``."""
    return path.with_name(f"{path.stem}{FASTSTART_MARKER}{path.suffix}")


class FastStartRewriter:
    """Runs ``ffmpeg -movflags faststart`` on a staged file."""

    def __init__(self, runner: ProcessRunner, ffmpeg_path: str = "ffmpeg") -> None:
        self.runner = runner
        self.ffmpeg_path = ffmpeg_path

    def rewrite(self, staged: StagedFile) -> StagedFile:
        """
        Write a faststart copy of ``staged`` next to it.

        The input is left untouched. Any partial output is removed before an
        error is raised.

        Raises:
            RewriteExecutionError: If ffmpeg cannot run, exits non-zero, or
                produces no output file.
        """
        output_path = faststart_path(staged.path)
        command = [
            self.ffmpeg_path,
            "-y",
            "-i",
            str(staged.path),
            "-c",
            "copy",
            "-movflags",
            "faststart",
            "-f",
            "mp4",
            str(output_path),
        ]

        try:
            result = self.runner.run(command)
        except (OSError, subprocess.SubprocessError) as e:
            output_path.unlink(missing_ok=True)
            raise RewriteExecutionError(f"Could not run ffmpeg: {e}") from e

        if result.exit_status != 0:
            output_path.unlink(missing_ok=True)
            raise RewriteExecutionError(
                f"ffmpeg exited with status {result.exit_status}",
                details={"exit_status": result.exit_status},
            )

        if not output_path.is_file():
            raise RewriteExecutionError("ffmpeg produced no output file")

        size = output_path.stat().st_size
        logger.debug(
            "Rewrote upload for fast start",
            extra={"input_bytes": staged.size, "output_bytes": size},
        )
        return StagedFile(path=output_path, media_type=staged.media_type, size=size)


__all__ = ["FastStartRewriter", "faststart_path"]

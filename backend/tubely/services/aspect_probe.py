"""
Aspect ratio detection with ffprobe.

Runs ``ffprobe -v error -print_format json -show_streams <path>``, takes the
first stream that reports positive dimensions, and classifies its
width/height ratio as ``16:9``, ``9:16`` or ``other``.
"""

import json
import logging
import subprocess

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from tubely.core.exceptions import NoStreamError, ProbeExecutionError, ProbeParseError
from tubely.services.process_runner import ProcessRunner


logger = logging.getLogger(__name__)

LANDSCAPE = "16:9"
PORTRAIT = "9:16"
OTHER = "other"

LANDSCAPE_RATIO = 16 / 9
PORTRAIT_RATIO = 9 / 16
RATIO_TOLERANCE = 0.1


def classify_ratio(ratio: float) -> str:
    """Classify a width/height ratio within ``RATIO_TOLERANCE`` of 16:9 or 9:16."""
    if abs(ratio - LANDSCAPE_RATIO) < RATIO_TOLERANCE:
        return LANDSCAPE
    if abs(ratio - PORTRAIT_RATIO) < RATIO_TOLERANCE:
        return PORTRAIT
    return OTHER


@dataclass(frozen=True)
class StreamInfo:
    """Dimensions of the primary video stream."""

    width: int
    height: int

    @property
    def ratio(self) -> float:
        return self.width / self.height

    @property
    def aspect_ratio(self) -> str:
        return classify_ratio(self.ratio)


def _positive_int(value: Any) -> int | None:
    # bool is an int subclass; ffprobe never reports dimensions as booleans
    if isinstance(value, int) and not isinstance(value, bool) and value > 0:
        return value
    return None


class AspectProbe:
    """
    Reads stream dimensions from a media file via ffprobe.

    Blocking: async callers run it through ``asyncio.to_thread``.
    """

    def __init__(self, runner: ProcessRunner, ffprobe_path: str = "ffprobe") -> None:
        self.runner = runner
        self.ffprobe_path = ffprobe_path

    def probe(self, path: str | Path) -> StreamInfo:
        """
        Return the dimensions of the first stream with a usable size.

        Raises:
            ProbeExecutionError: If ffprobe cannot run or exits non-zero.
            ProbeParseError: If the output is not JSON with a ``streams`` list.
            NoStreamError: If no stream reports positive width and height.
        """
        command = [
            self.ffprobe_path,
            "-v",
            "error",
            "-print_format",
            "json",
            "-show_streams",
            str(path),
        ]

        try:
            result = self.runner.run(command)
        except (OSError, subprocess.SubprocessError) as e:
            raise ProbeExecutionError(f"Could not run ffprobe: {e}") from e

        if result.exit_status != 0:
            raise ProbeExecutionError(
                f"ffprobe exited with status {result.exit_status}",
                details={"exit_status": result.exit_status},
            )

        try:
            output = json.loads(result.stdout)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ProbeParseError("ffprobe output is not valid JSON") from e

        streams = output.get("streams") if isinstance(output, dict) else None
        if not isinstance(streams, list):
            raise ProbeParseError("ffprobe output has no streams list")

        for stream in streams:
            if not isinstance(stream, dict):
                continue
            width = _positive_int(stream.get("width"))
            height = _positive_int(stream.get("height"))
            if width and height:
                info = StreamInfo(width=width, height=height)
                logger.debug(
                    "Probed video stream",
                    extra={"width": width, "height": height, "aspect_ratio": info.aspect_ratio},
                )
                return info

        raise NoStreamError("No video stream with dimensions found", details={"streams": len(streams)})

    def classify(self, path: str | Path) -> str:
        """Return the aspect label of the file at ``path``."""
        return self.probe(path).aspect_ratio


__all__ = [
    "LANDSCAPE",
    "OTHER",
    "PORTRAIT",
    "AspectProbe",
    "StreamInfo",
    "classify_ratio",
]

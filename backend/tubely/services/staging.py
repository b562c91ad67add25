"""
Scoped local scratch space for uploads.

Each upload gets a private directory from ``tempfile.mkdtemp``. Everything
staged for that upload lives inside it, and the directory is removed when
the session exits, whatever the outcome.
"""

import logging
import shutil
import tempfile

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol


logger = logging.getLogger(__name__)

DEFAULT_STAGING_PREFIX = "tubely-upload-"


@dataclass(frozen=True)
class StagedFile:
    """A fully written and closed file inside a staging session."""

    path: Path
    media_type: str
    size: int


class UploadedFile(Protocol):
    """One file part of an inbound upload."""

    content_type: str | None

    async def read(self, size: int = -1) -> bytes: ...


class UploadSource(Protocol):
    """
    Inbound upload body.

    ``declared_length`` is the client's claimed body size, if any.
    ``overhead_bytes`` is how much of that body may be framing around the
    file itself, so a declared length is only rejected when it exceeds the
    file ceiling plus this allowance. ``open`` yields the named file part
    with the body bounded by ``max_bytes + overhead_bytes``, or ``None``
    when the part is absent.
    """

    declared_length: int | None
    overhead_bytes: int

    async def open(self, max_bytes: int) -> UploadedFile | None: ...


class StagingArea:
    """
    Factory for per-upload scratch directories.

    Args:
        root: Parent directory for sessions (system temp dir when None)
        prefix: Directory name prefix
    """

    def __init__(self, root: str | Path | None = None, prefix: str = DEFAULT_STAGING_PREFIX) -> None:
        self.root = Path(root) if root is not None else None
        self.prefix = prefix

    @contextmanager
    def session(self) -> Iterator[Path]:
        """Yield a fresh directory and remove it with its contents on exit."""
        if self.root is not None:
            self.root.mkdir(parents=True, exist_ok=True)
        workdir = Path(tempfile.mkdtemp(prefix=self.prefix, dir=self.root))
        logger.debug("Opened staging session: %s", workdir)
        try:
            yield workdir
        finally:
            try:
                shutil.rmtree(workdir)
                logger.debug("Cleaned up staging session: %s", workdir)
            except OSError as cleanup_error:
                logger.warning(
                    "Failed to clean up staging directory '%s': %s",
                    workdir,
                    str(cleanup_error),
                )


__all__ = ["StagedFile", "StagingArea", "UploadSource", "UploadedFile"]

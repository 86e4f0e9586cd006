"""
Artifact sinks.

The compiler never touches the filesystem directly: it hands every artifact
to a sink together with a write mode. FileSink writes to disk; MemorySink
keeps bytes in a dict for tests and for callers that post-process output.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from pathlib import Path
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


class WriteMode(StrEnum):
    """How an artifact combines with what is already at its path."""

    TRUNCATE = "truncate"
    APPEND = "append"


@runtime_checkable
class ArtifactSink(Protocol):
    """Destination for generated artifacts."""

    def write(self, path: Path, data: bytes, mode: WriteMode) -> None:
        """
        Persist ``data`` at ``path``.

        Raises:
            OSError: If the data could not be written
        """
        ...


class FileSink:
    """Write artifacts to the filesystem, creating parent directories."""

    def write(self, path: Path, data: bytes, mode: WriteMode) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "ab" if mode == WriteMode.APPEND else "wb") as f:
            f.write(data)
        logger.info("wrote %s (%s, %d bytes)", path, mode.value, len(data))


class MemorySink:
    """
    Keep artifacts in memory.

    Attributes:
        files: Bytes written so far, per path
    """

    def __init__(self) -> None:
        self.files: dict[Path, bytes] = {}

    def write(self, path: Path, data: bytes, mode: WriteMode) -> None:
        if mode == WriteMode.APPEND:
            self.files[path] = self.files.get(path, b"") + data
        else:
            self.files[path] = data

    def read_text(self, path: Path) -> str:
        """Return the artifact at ``path`` decoded as UTF-8."""
        return self.files[path].decode("utf-8")

"""File utility functions."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Final

logger: Final = logging.getLogger(__name__)


def ensure_directory_exists(directory: Path) -> None:
    """Create directory if it doesn't exist.

    Args:
        directory: Path to create
    """
    if not directory.exists():
        directory.mkdir(parents=True, exist_ok=True)
        logger.debug("Created directory: %s", directory)


def atomic_write_text(path: Path, content: str) -> None:
    """Write a text file by renaming a sibling temporary file over it.

    Readers see either the old file or the complete new one.

    Args:
        path: Destination file
        content: Text to write

    Raises:
        OSError: If the directory or file cannot be written
    """
    ensure_directory_exists(path.parent)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_name, path)
    except OSError:
        Path(tmp_name).unlink(missing_ok=True)
        raise

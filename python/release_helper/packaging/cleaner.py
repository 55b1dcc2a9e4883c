"""
Emptying of build output directories.
"""

from __future__ import annotations

import shutil
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)


def clean_directory(path: Path | str | None) -> int:
    """
    Delete the complete content of a directory, keeping the directory itself.

    Sub directories are removed first (recursively), then the remaining
    files. Symbolic links are unlinked, never followed.

    Args:
        path: Directory to empty. An empty or missing path is a no-op.

    Returns:
        Number of top-level entries removed.

    Raises:
        OSError: If an entry cannot be removed.
    """
    if path is None or not str(path).strip():
        return 0

    directory = Path(path)
    if not directory.is_dir():
        logger.debug("clean_directory_skipped", path=str(directory))
        return 0

    entries = list(directory.iterdir())
    removed = 0

    for entry in entries:
        if entry.is_dir() and not entry.is_symlink():
            logger.debug("deleting_directory", path=str(entry))
            shutil.rmtree(entry)
            removed += 1

    for entry in entries:
        if entry.is_symlink() or entry.is_file():
            logger.debug("deleting_file", path=str(entry))
            entry.unlink()
            removed += 1

    logger.info("directory_cleaned", path=str(directory), removed=removed)
    return removed

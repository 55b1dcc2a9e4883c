"""
Lookup of the directory holding the published executable.

Below the bin directory the publish tool writes into ``Release`` and, in
most cases, further target framework / runtime sub directories, e.g.
``bin/Release/net8.0/win-x64/publish``. The release directory is the first
directory (pre-order, depth first) below ``Release`` that contains an
executable.
"""

from __future__ import annotations

import fnmatch
import os
from pathlib import Path

import structlog

from release_helper.config import LocatorConfig

logger = structlog.get_logger(__name__)


class ReleaseLocator:
    """
    Finds the release directory under a bin directory.

    Attributes:
        config: Lookup configuration (directory name, executable patterns).
    """

    def __init__(self, config: LocatorConfig | None = None) -> None:
        self.config = config or LocatorConfig()
        self._patterns = [pattern.lower() for pattern in self.config.executable_patterns]

    def is_executable(self, path: Path) -> bool:
        """Check if a path is an executable file."""
        if not path.is_file():
            return False

        name = path.name.lower()
        if any(fnmatch.fnmatchcase(name, pattern) for pattern in self._patterns):
            return True

        return self.config.use_executable_bit and os.name != "nt" and os.access(path, os.X_OK)

    def contains_executable(self, directory: Path) -> bool:
        """Check if a directory directly contains an executable file."""
        return any(self.is_executable(entry) for entry in directory.iterdir())

    def _sub_directories(self, directory: Path) -> list[Path]:
        children = [entry for entry in directory.iterdir() if entry.is_dir()]
        if self.config.sort_entries:
            children.sort(key=lambda entry: entry.name)
        return children

    def find(self, bin_dir: Path | str) -> Path | None:
        """
        Locate the release directory.

        Args:
            bin_dir: Build output root containing the ``Release`` directory.

        Returns:
            The first directory containing an executable, or None when there
            is no ``Release`` directory or no executable below it.
        """
        release_dir = Path(bin_dir) / self.config.release_dir_name
        if not release_dir.is_dir():
            logger.debug("release_dir_missing", path=str(release_dir))
            return None

        stack = [release_dir]
        while stack:
            directory = stack.pop()
            if self.contains_executable(directory):
                logger.debug("release_dir_found", path=str(directory))
                return directory
            # Reversed so the first child is visited first.
            stack.extend(reversed(self._sub_directories(directory)))

        logger.debug("release_executable_missing", path=str(release_dir))
        return None


def find_release_dir(bin_dir: Path | str, config: LocatorConfig | None = None) -> Path | None:
    """Locate the release directory below ``bin_dir``; see ReleaseLocator.find."""
    return ReleaseLocator(config).find(bin_dir)

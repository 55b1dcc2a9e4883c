"""
Build output handling for release runs.

This package provides:
- Cleaning of the bin directory
- Invocation of the external publish tool
- Lookup of the release directory holding the executable
- Zip archive creation
"""

from release_helper.packaging.archive import (
    Archiver,
    CompressionLevel,
    archive_file_name,
)
from release_helper.packaging.build import (
    BuildInvoker,
    BuildResult,
)
from release_helper.packaging.cleaner import clean_directory
from release_helper.packaging.locator import (
    ReleaseLocator,
    find_release_dir,
)

__all__ = [
    # Archive
    "Archiver",
    "CompressionLevel",
    "archive_file_name",
    # Build
    "BuildInvoker",
    "BuildResult",
    # Cleaner
    "clean_directory",
    # Locator
    "ReleaseLocator",
    "find_release_dir",
]

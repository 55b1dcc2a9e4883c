"""
Zip archives of the release directory.
"""

from __future__ import annotations

import zipfile
from enum import Enum
from pathlib import Path

import structlog

from release_helper.exceptions import ArchiveError
from release_helper.packaging.locator import ReleaseLocator

logger = structlog.get_logger(__name__)


class CompressionLevel(str, Enum):
    """
    Compression level of the release archive.

    Attributes:
        OPTIMAL: Balanced deflate compression.
        FASTEST: Fastest deflate compression.
        NO_COMPRESSION: Store files uncompressed.
        SMALLEST_SIZE: Strongest deflate compression.
    """

    OPTIMAL = "Optimal"
    FASTEST = "Fastest"
    NO_COMPRESSION = "NoCompression"
    SMALLEST_SIZE = "SmallestSize"

    def zip_parameters(self) -> tuple[int, int | None]:
        """Return the zipfile (compression, compresslevel) pair."""
        if self == CompressionLevel.NO_COMPRESSION:
            return zipfile.ZIP_STORED, None
        levels = {
            CompressionLevel.OPTIMAL: 6,
            CompressionLevel.FASTEST: 1,
            CompressionLevel.SMALLEST_SIZE: 9,
        }
        return zipfile.ZIP_DEFLATED, levels[self]


def archive_file_name(name: str, version: object | None, attach_version: bool) -> str:
    """
    Build the archive file name.

    Example:
        archive_file_name("MyApp", Version(24, 51, 0, 630), True) -> "MyApp_v24.51.0.630.zip"
    """
    if attach_version and version is not None:
        return f"{name}_v{version}.zip"
    return f"{name}.zip"


class Archiver:
    """
    Creates the release archive from the located release directory.
    """

    def __init__(self, locator: ReleaseLocator | None = None) -> None:
        self.locator = locator or ReleaseLocator()

    def create(
        self,
        bin_dir: Path,
        destination: Path,
        compression_level: CompressionLevel = CompressionLevel.OPTIMAL,
    ) -> Path | None:
        """
        Zip the release directory found below ``bin_dir``.

        Returns:
            The archive path, or None when no release directory was found.

        Raises:
            ArchiveError: If the archive cannot be written.
        """
        release_dir = self.locator.find(bin_dir)
        if release_dir is None:
            logger.warning("release_dir_not_found_skipping_zip", bin_dir=str(bin_dir))
            return None

        return self.create_from_directory(release_dir, destination, compression_level)

    def create_from_directory(
        self,
        source: Path,
        destination: Path,
        compression_level: CompressionLevel = CompressionLevel.OPTIMAL,
    ) -> Path:
        """
        Zip the content of ``source``; entries are relative to ``source``.

        Raises:
            ArchiveError: If the destination exists or cannot be written.
        """
        if destination.exists():
            raise ArchiveError.already_exists(str(destination))

        logger.info(
            "zip_started",
            source=str(source),
            destination=str(destination),
            compression_level=compression_level.value,
        )

        compression, compresslevel = compression_level.zip_parameters()
        target = destination.resolve()
        file_count = 0

        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            with zipfile.ZipFile(
                destination, "w", compression=compression, compresslevel=compresslevel
            ) as archive:
                for entry in sorted(source.rglob("*")):
                    arcname = entry.relative_to(source).as_posix()
                    if entry.is_dir():
                        if not any(entry.iterdir()):
                            archive.write(entry, arcname)
                    elif entry.resolve() != target:
                        archive.write(entry, arcname)
                        file_count += 1
        except (OSError, zipfile.BadZipFile) as e:
            destination.unlink(missing_ok=True)
            raise ArchiveError.write_failed(str(destination), e) from e

        logger.info("zip_created", destination=str(destination), files=file_count)
        return destination

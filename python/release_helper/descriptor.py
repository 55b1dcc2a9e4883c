"""
Project descriptor editing with backup and rollback.

The descriptor is an MSBuild style XML project file. Its version lives in
one or more of the elements ``AssemblyVersion``, ``FileVersion`` and
``Version``; they are searched in that order by local name, so namespaced
(legacy) project files work as well.
"""

from __future__ import annotations

import os
import shutil
import tempfile
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import TYPE_CHECKING, ClassVar

from release_helper.exceptions import DescriptorError
from release_helper.logging import get_logger
from release_helper.versioning import DEFAULT_VERSION, Version, VersionType, generate_version

if TYPE_CHECKING:
    from release_helper.settings import ReleaseSettings

logger = get_logger(__name__)


def _local_name(tag: object) -> str:
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def create_backup(path: Path) -> Path:
    """
    Copy a file to a new temporary file.

    Returns:
        Path of the backup copy.
    """
    fd, backup = tempfile.mkstemp(prefix=f"{path.name}.", suffix=".bak")
    os.close(fd)
    try:
        shutil.copyfile(path, backup)
    except OSError:
        Path(backup).unlink(missing_ok=True)
        raise
    return Path(backup)


def restore_backup(original: Path, backup: Path) -> None:
    """Overwrite ``original`` with ``backup`` and delete the backup."""
    shutil.copyfile(backup, original)
    backup.unlink()


class DescriptorEditor:
    """
    Reads and writes the version of a project descriptor.

    Attributes:
        path: Path of the project descriptor.
    """

    VERSION_ELEMENTS: ClassVar[tuple[str, ...]] = ("AssemblyVersion", "FileVersion", "Version")

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _load(self) -> tuple[ET.ElementTree, bool]:
        try:
            raw = self.path.read_bytes()
            parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True))
            root = ET.fromstring(raw, parser=parser)
        except (OSError, ET.ParseError) as e:
            raise DescriptorError.read_failed(str(self.path), e) from e

        has_declaration = raw.lstrip().startswith(b"<?xml")

        if root.tag.startswith("{"):
            ET.register_namespace("", root.tag[1:].split("}", 1)[0])

        return ET.ElementTree(root), has_declaration

    def _find(self, tree: ET.ElementTree, name: str) -> ET.Element | None:
        for element in tree.getroot().iter():
            if _local_name(element.tag) == name:
                return element
        return None

    def read_version(self) -> Version:
        """
        Read the version from the descriptor.

        Returns:
            The first version element (by priority) holding a valid version,
            or 1.0.0.0 when there is none.
        """
        tree, _ = self._load()

        for name in self.VERSION_ELEMENTS:
            element = self._find(tree, name)
            if element is None:
                continue
            version = Version.try_parse(element.text)
            if version is not None:
                logger.debug("version_element_found", element=name, version=str(version))
                return version

        logger.warning(
            "version_element_missing",
            path=str(self.path),
            default_version=str(DEFAULT_VERSION),
        )
        return DEFAULT_VERSION

    def write_version(self, version: Version) -> list[str]:
        """
        Write the version into every version element present.

        Returns:
            Names of the elements that were updated.
        """
        tree, has_declaration = self._load()

        updated: list[str] = []
        for name in self.VERSION_ELEMENTS:
            element = self._find(tree, name)
            if element is None:
                continue
            element.text = str(version)
            updated.append(name)

        tree.write(self.path, encoding="utf-8", xml_declaration=has_declaration)
        logger.debug("descriptor_written", path=str(self.path), elements=updated)
        return updated

    def update_version(self, settings: ReleaseSettings) -> Version:
        """
        Bump the descriptor version as one all-or-nothing step.

        The descriptor is backed up first. If reading, generating or writing
        the version fails, the backup is restored and DescriptorError raised.
        On success ``settings.version`` holds the new version.

        Raises:
            DescriptorError: The backup could not be taken or the update was rolled back.
        """
        try:
            backup = create_backup(self.path)
        except OSError as e:
            raise DescriptorError.backup_failed(str(self.path), e) from e
        logger.debug("descriptor_backup_created", backup=str(backup))

        preset_version = settings.version

        try:
            logger.debug("loading_version", file=self.path.name)
            old_version = self.read_version()
            logger.info("old_version", version=str(old_version))

            if settings.version is None:
                logger.debug("generating_version")
                if settings.generate_version_number is not None:
                    settings.version = settings.generate_version_number(old_version)
                else:
                    if settings.version_type == VersionType.CUSTOM:
                        logger.warning("custom_version_generator_missing", fallback="DayOfYear")
                    settings.version = generate_version(old_version, settings.version_type)

            if not isinstance(settings.version, Version):
                raise TypeError(f"Expected a Version, got {type(settings.version).__name__}")

            logger.info("new_version", version=str(settings.version))
            self.write_version(settings.version)
        except Exception as e:
            settings.version = preset_version
            logger.info("descriptor_rollback", path=str(self.path))
            try:
                restore_backup(self.path, backup)
            except OSError as rollback_error:
                raise DescriptorError.rollback_failed(
                    str(self.path), str(backup), rollback_error
                ) from e
            raise DescriptorError.update_failed(str(self.path), e, rolled_back=True) from e

        backup.unlink(missing_ok=True)
        logger.info("version_updated", version=str(settings.version))
        return settings.version

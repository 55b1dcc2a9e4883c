"""
Release settings: the mutable context threaded through one release run.

ReleaseSettings is created by the caller, handed to the pipeline and to
every hook. The pipeline writes the resulting ``version`` and the
``zip_archive_destination`` back into it.

Settings can also be loaded from a YAML document using the PascalCase
option names, for example::

    SolutionFile: MyApp.sln
    ProjectFile: MyApp/MyApp.csproj
    BinDir: MyApp/bin
    CleanBin: true
    VersionType: DayOfYear
    CreateZipArchive: true
    ZipArchiveName: MyApp
    CustomActions:
      - Name: ExtractPackages
        ExecutionType: BeforePublish
        Command: ["python", "tools/extract_packages.py", "{project_file}"]
        StopOnException: true
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ImportString, ValidationError, field_validator

from release_helper.exceptions import ConfigurationError, ErrorCode
from release_helper.hooks import Checkpoint, CommandHook, Hook
from release_helper.logging import get_logger
from release_helper.packaging.archive import CompressionLevel
from release_helper.versioning import Version, VersionType

logger = get_logger(__name__)

_PATH_FIELDS = (
    "solution_file",
    "project_file",
    "bin_dir",
    "publish_profile_file",
    "zip_archive_destination",
)


@dataclass
class ReleaseSettings:
    """
    Settings of a release run.

    Attributes:
        solution_file: Path of the solution (*.sln) handed to the publish tool.
        project_file: Path of the project descriptor (*.csproj) holding the version.
        bin_dir: Build output directory.
        publish_profile_file: Optional publish profile (*.pubxml).
        clean_bin: Empty bin_dir before publishing.
        version: Explicit version to use; written back with the generated one.
        version_type: Version scheme used when no explicit version is given.
        create_zip_archive: Zip the release directory after publishing.
        zip_archive_name: Base name of the archive.
        attach_version_to_zip_archive_name: Append ``_v{version}`` to the archive name.
        zip_archive_destination: Directory for the archive (defaults to bin_dir);
            overwritten with the full archive path.
        generate_version_number: Custom generator taking the old version.
        custom_actions: Ordered hooks.
        zip_compression_level: Compression level of the archive.
    """

    solution_file: Path
    project_file: Path
    bin_dir: Path
    publish_profile_file: Path | None = None
    clean_bin: bool = False
    version: Version | None = None
    version_type: VersionType = VersionType.CALENDAR_WEEK
    create_zip_archive: bool = False
    zip_archive_name: str = ""
    attach_version_to_zip_archive_name: bool = True
    zip_archive_destination: Path | None = None
    generate_version_number: Callable[[Version], Version] | None = None
    custom_actions: list[Hook] = field(default_factory=list)
    zip_compression_level: CompressionLevel = CompressionLevel.OPTIMAL

    def __post_init__(self) -> None:
        """Accept plain strings for path fields."""
        for name in _PATH_FIELDS:
            value = getattr(self, name)
            if isinstance(value, str):
                setattr(self, name, Path(value) if value.strip() else None)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a flat dictionary of display values."""
        return {
            "solution_file": str(self.solution_file),
            "project_file": str(self.project_file),
            "bin_dir": str(self.bin_dir),
            "publish_profile_file": str(self.publish_profile_file or ""),
            "clean_bin": self.clean_bin,
            "version": str(self.version or ""),
            "version_type": self.version_type.value,
            "create_zip_archive": self.create_zip_archive,
            "zip_archive_name": self.zip_archive_name,
            "attach_version_to_zip_archive_name": self.attach_version_to_zip_archive_name,
            "zip_archive_destination": str(self.zip_archive_destination or ""),
            "custom_actions": [hook.name for hook in self.custom_actions],
            "zip_compression_level": self.zip_compression_level.value,
        }


def is_file_valid(path: Path | None) -> bool:
    """Check that a path is set and points to an existing file."""
    return path is not None and path.is_file()


def validate_settings(settings: ReleaseSettings) -> list[str]:
    """
    Check the preconditions of a release run.

    Returns:
        List of validation errors, empty if valid.
    """
    errors: list[str] = []

    if not is_file_valid(settings.solution_file):
        errors.append(f"Solution file not found: {settings.solution_file}")
    if not is_file_valid(settings.project_file):
        errors.append(f"Project file not found: {settings.project_file}")
    if settings.bin_dir is None or not settings.bin_dir.is_dir():
        errors.append(f"Bin directory not found: {settings.bin_dir}")

    if errors:
        logger.warning("settings_validation_failed", errors=errors)
    else:
        logger.debug("settings_validation_passed")

    return errors


def settings_valid(settings: ReleaseSettings) -> bool:
    """Check if the settings satisfy the release preconditions."""
    return not validate_settings(settings)


class CustomActionDocument(BaseModel):
    """A command hook as written in a settings file."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    name: str = Field(alias="Name")
    execution_type: Checkpoint = Field(alias="ExecutionType")
    command: list[str] = Field(alias="Command", min_length=1)
    stop_on_exception: bool = Field(default=False, alias="StopOnException")
    working_directory: str | None = Field(default=None, alias="WorkingDirectory")


class SettingsDocument(BaseModel):
    """Release settings as written in a YAML settings file."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    solution_file: str = Field(alias="SolutionFile")
    project_file: str = Field(alias="ProjectFile")
    bin_dir: str = Field(alias="BinDir")
    publish_profile_file: str | None = Field(default=None, alias="PublishProfileFile")
    clean_bin: bool = Field(default=False, alias="CleanBin")
    version: str | None = Field(default=None, alias="Version")
    version_type: VersionType = Field(default=VersionType.CALENDAR_WEEK, alias="VersionType")
    create_zip_archive: bool = Field(default=False, alias="CreateZipArchive")
    zip_archive_name: str = Field(default="", alias="ZipArchiveName")
    attach_version_to_zip_archive_name: bool = Field(
        default=True, alias="AttachVersionToZipArchiveName"
    )
    zip_archive_destination: str | None = Field(default=None, alias="ZipArchiveDestination")
    generate_version_number: ImportString | None = Field(
        default=None, alias="GenerateVersionNumber"
    )
    custom_actions: list[CustomActionDocument] = Field(
        default_factory=list, alias="CustomActions"
    )
    zip_compression_level: CompressionLevel = Field(
        default=CompressionLevel.OPTIMAL, alias="ZipCompressionLevel"
    )

    @field_validator("version")
    @classmethod
    def _check_version(cls, value: str | None) -> str | None:
        if value is not None:
            Version.parse(value)
        return value

    @field_validator("generate_version_number")
    @classmethod
    def _check_generator(cls, value: Any) -> Any:
        if value is not None and not callable(value):
            raise ValueError("GenerateVersionNumber must reference a callable")
        return value

    def to_release_settings(self, base_dir: Path) -> ReleaseSettings:
        """
        Build ReleaseSettings, resolving relative paths against ``base_dir``.
        """

        def resolve(raw: str | None) -> Path | None:
            if raw is None or not raw.strip():
                return None
            path = Path(raw).expanduser()
            return path if path.is_absolute() else base_dir / path

        hooks: list[Hook] = [
            CommandHook(
                name=action.name,
                checkpoint=action.execution_type,
                command=action.command,
                stop_on_failure=action.stop_on_exception,
                working_directory=resolve(action.working_directory) or base_dir,
            )
            for action in self.custom_actions
        ]

        return ReleaseSettings(
            solution_file=resolve(self.solution_file),
            project_file=resolve(self.project_file),
            bin_dir=resolve(self.bin_dir),
            publish_profile_file=resolve(self.publish_profile_file),
            clean_bin=self.clean_bin,
            version=Version.parse(self.version) if self.version else None,
            version_type=self.version_type,
            create_zip_archive=self.create_zip_archive,
            zip_archive_name=self.zip_archive_name,
            attach_version_to_zip_archive_name=self.attach_version_to_zip_archive_name,
            zip_archive_destination=resolve(self.zip_archive_destination),
            generate_version_number=self.generate_version_number,
            custom_actions=hooks,
            zip_compression_level=self.zip_compression_level,
        )


def load_settings(path: str | Path) -> ReleaseSettings:
    """
    Load release settings from a YAML file.

    Raises:
        ConfigurationError: If the file is missing or its content is invalid.
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigurationError.missing_file(str(path))

    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(
            message=f"Invalid settings file {path}: {e}",
            error_code=ErrorCode.CONFIG_INVALID,
            context={"path": str(path)},
            cause=e,
        ) from e

    try:
        document = SettingsDocument.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        error = ConfigurationError.validation_failed(
            ".".join(str(part) for part in first["loc"]) or "settings",
            first.get("input"),
            first["msg"],
        )
        error.context["path"] = str(path)
        error.context["error_count"] = e.error_count()
        error.cause = e
        raise error from e

    settings = document.to_release_settings(path.parent.resolve())
    logger.debug("settings_loaded", path=str(path), hooks=len(settings.custom_actions))
    return settings

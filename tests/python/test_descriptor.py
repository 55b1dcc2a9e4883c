"""Tests for project descriptor editing, backup and rollback."""

from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from release_helper.descriptor import DescriptorEditor, create_backup, restore_backup
from release_helper.exceptions import DescriptorError, ErrorCode
from release_helper.settings import ReleaseSettings
from release_helper.versioning import DEFAULT_VERSION, Version, VersionType

LEGACY_PROJECT = """\
<?xml version="1.0" encoding="utf-8"?>
<Project ToolsVersion="15.0" xmlns="http://schemas.microsoft.com/developer/msbuild/2003">
  <PropertyGroup>
    <FileVersion>2.0.0.0</FileVersion>
  </PropertyGroup>
</Project>
"""


@pytest.fixture
def isolated_tempdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Redirect backups into a private directory."""
    backups = tmp_path / "backups"
    backups.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(backups))
    return backups


class TestBackup:
    """Test backup helpers."""

    def test_create_and_restore(self, project_file: Path) -> None:
        """A restored backup brings back the original bytes."""
        original = project_file.read_bytes()
        backup = create_backup(project_file)
        project_file.write_text("<Project />", encoding="utf-8")

        restore_backup(project_file, backup)

        assert project_file.read_bytes() == original
        assert not backup.exists()

    def test_backup_of_missing_file(self, tmp_path: Path, isolated_tempdir: Path) -> None:
        """A missing file raises and leaves no backup behind."""
        with pytest.raises(OSError):
            create_backup(tmp_path / "missing.csproj")
        assert list(isolated_tempdir.iterdir()) == []


class TestReadVersion:
    """Test reading versions."""

    def test_reads_assembly_version(self, project_file: Path) -> None:
        """Test reading from a SDK style project."""
        assert DescriptorEditor(project_file).read_version() == Version(1, 2, 3, 4)

    def test_priority_skips_invalid_values(self, tmp_path: Path) -> None:
        """An unparsable AssemblyVersion falls through to FileVersion."""
        path = tmp_path / "App.csproj"
        path.write_text(
            "<Project><PropertyGroup>"
            "<AssemblyVersion>$(Ver)</AssemblyVersion>"
            "<FileVersion>3.4.5.6</FileVersion>"
            "</PropertyGroup></Project>",
            encoding="utf-8",
        )
        assert DescriptorEditor(path).read_version() == Version(3, 4, 5, 6)

    def test_missing_version_defaults(self, tmp_path: Path) -> None:
        """Without version elements the default 1.0.0.0 is returned."""
        path = tmp_path / "App.csproj"
        path.write_text("<Project><PropertyGroup /></Project>", encoding="utf-8")
        assert DescriptorEditor(path).read_version() == DEFAULT_VERSION

    def test_namespaced_project(self, tmp_path: Path) -> None:
        """Elements are matched by local name."""
        path = tmp_path / "Legacy.csproj"
        path.write_text(LEGACY_PROJECT, encoding="utf-8")
        assert DescriptorEditor(path).read_version() == Version(2, 0, 0, 0)

    def test_malformed_xml(self, tmp_path: Path) -> None:
        """Unparsable XML raises DescriptorError."""
        path = tmp_path / "Broken.csproj"
        path.write_text("<Project><PropertyGroup>", encoding="utf-8")

        with pytest.raises(DescriptorError) as exc_info:
            DescriptorEditor(path).read_version()

        assert exc_info.value.error_code == ErrorCode.DESCRIPTOR_READ_FAILED


class TestWriteVersion:
    """Test writing versions."""

    def test_updates_all_present_elements(self, project_file: Path) -> None:
        """Every version element receives the new value."""
        updated = DescriptorEditor(project_file).write_version(Version(24, 11, 0, 630))

        assert updated == ["AssemblyVersion", "FileVersion", "Version"]
        content = project_file.read_text(encoding="utf-8")
        assert content.count("24.11.0.630") == 3
        assert "1.2.3.4" not in content

    def test_preserves_other_content(self, project_file: Path) -> None:
        """Comments and unrelated elements survive a rewrite."""
        DescriptorEditor(project_file).write_version(Version(5, 0))

        content = project_file.read_text(encoding="utf-8")
        assert "<!-- Application settings -->" in content
        assert "<OutputType>WinExe</OutputType>" in content
        assert 'Sdk="Microsoft.NET.Sdk"' in content

    def test_namespaced_project_keeps_default_namespace(self, tmp_path: Path) -> None:
        """The default namespace is written back without a prefix."""
        path = tmp_path / "Legacy.csproj"
        path.write_text(LEGACY_PROJECT, encoding="utf-8")

        editor = DescriptorEditor(path)
        assert editor.write_version(Version(2, 1, 0, 0)) == ["FileVersion"]

        content = path.read_text(encoding="utf-8")
        assert content.startswith("<?xml")
        assert 'xmlns="http://schemas.microsoft.com/developer/msbuild/2003"' in content
        assert "ns0:" not in content
        assert editor.read_version() == Version(2, 1, 0, 0)


class TestUpdateVersion:
    """Test the all-or-nothing version update."""

    def test_preset_version(self, release_settings: ReleaseSettings, isolated_tempdir: Path) -> None:
        """An explicit version is written unchanged."""
        release_settings.version = Version(9, 8, 7, 6)

        result = DescriptorEditor(release_settings.project_file).update_version(release_settings)

        assert result == Version(9, 8, 7, 6)
        assert "9.8.7.6" in release_settings.project_file.read_text(encoding="utf-8")
        assert list(isolated_tempdir.iterdir()) == []

    def test_generated_version(self, release_settings: ReleaseSettings) -> None:
        """Without an explicit version one is generated and stored in the settings."""
        release_settings.version_type = VersionType.DAY_OF_YEAR

        result = DescriptorEditor(release_settings.project_file).update_version(release_settings)

        assert release_settings.version == result
        assert result != Version(1, 2, 3, 4)
        assert str(result) in release_settings.project_file.read_text(encoding="utf-8")

    def test_custom_generator_receives_old_version(self, release_settings: ReleaseSettings) -> None:
        """The custom generator is called with the stored version."""
        seen: list[Version] = []

        def bump(old: Version) -> Version:
            seen.append(old)
            return Version(old.major, old.minor, old.build + 1, 0)

        release_settings.version_type = VersionType.CUSTOM
        release_settings.generate_version_number = bump

        result = DescriptorEditor(release_settings.project_file).update_version(release_settings)

        assert seen == [Version(1, 2, 3, 4)]
        assert result == Version(1, 2, 4, 0)

    def test_failing_generator_rolls_back(
        self, release_settings: ReleaseSettings, isolated_tempdir: Path
    ) -> None:
        """A failure leaves the file byte-identical and the settings untouched."""
        original = release_settings.project_file.read_bytes()

        def broken(old: Version) -> Version:
            raise RuntimeError("generator exploded")

        release_settings.generate_version_number = broken

        with pytest.raises(DescriptorError) as exc_info:
            DescriptorEditor(release_settings.project_file).update_version(release_settings)

        assert exc_info.value.error_code == ErrorCode.DESCRIPTOR_VERSION_FAILED
        assert exc_info.value.context["rolled_back"] is True
        assert isinstance(exc_info.value.cause, RuntimeError)
        assert release_settings.project_file.read_bytes() == original
        assert release_settings.version is None
        assert list(isolated_tempdir.iterdir()) == []

    def test_generator_returning_wrong_type(self, release_settings: ReleaseSettings) -> None:
        """A generator must return a Version."""
        release_settings.generate_version_number = lambda old: "24.1.0.0"  # type: ignore[assignment,return-value]

        with pytest.raises(DescriptorError):
            DescriptorEditor(release_settings.project_file).update_version(release_settings)

        assert release_settings.version is None

    def test_write_failure_rolls_back(
        self, release_settings: ReleaseSettings, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A failing write restores the original file."""
        original = release_settings.project_file.read_bytes()
        release_settings.version = Version(3, 0)

        def failing_write(self: DescriptorEditor, version: Version) -> list[str]:
            self.path.write_text("<Project>half written", encoding="utf-8")
            raise OSError("disk full")

        monkeypatch.setattr(DescriptorEditor, "write_version", failing_write)

        with pytest.raises(DescriptorError):
            DescriptorEditor(release_settings.project_file).update_version(release_settings)

        assert release_settings.project_file.read_bytes() == original
        assert release_settings.version == Version(3, 0)

    def test_missing_project_file(self, tmp_path: Path) -> None:
        """No backup can be taken of a missing file."""
        settings = ReleaseSettings(
            solution_file=tmp_path / "App.sln",
            project_file=tmp_path / "App.csproj",
            bin_dir=tmp_path,
        )

        with pytest.raises(DescriptorError) as exc_info:
            DescriptorEditor(settings.project_file).update_version(settings)

        assert exc_info.value.error_code == ErrorCode.DESCRIPTOR_BACKUP_FAILED

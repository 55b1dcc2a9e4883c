"""Pytest configuration for Python tests."""

from __future__ import annotations

import logging
import sys
from collections.abc import Generator
from pathlib import Path

import pytest

from release_helper.config import BuildConfig, Config, set_config
from release_helper.settings import ReleaseSettings

SAMPLE_PROJECT = """\
<Project Sdk="Microsoft.NET.Sdk">
  <!-- Application settings -->
  <PropertyGroup>
    <OutputType>WinExe</OutputType>
    <TargetFramework>net8.0-windows</TargetFramework>
    <AssemblyVersion>1.2.3.4</AssemblyVersion>
    <FileVersion>1.2.3.4</FileVersion>
    <Version>1.2.3.4</Version>
  </PropertyGroup>
</Project>
"""

# Stand-in for "dotnet publish <solution>": writes a release below MyApp/bin.
FAKE_DOTNET = """\
import sys
from pathlib import Path

solution = Path(sys.argv[2])
publish = solution.parent / "MyApp" / "bin" / "Release" / "net8.0" / "win-x64" / "publish"
publish.mkdir(parents=True, exist_ok=True)
(publish / "MyApp.exe").write_bytes(b"MZ")
(publish / "MyApp.dll").write_bytes(b"dll")
print("MyApp -> " + str(publish))
"""


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "integration: marks tests as integration tests")


@pytest.fixture(autouse=True)
def reset_global_state() -> Generator[None, None, None]:
    """Give every test default configuration and no log handlers."""
    set_config(Config())
    yield
    root_logger = logging.getLogger()
    for handler in root_logger.handlers:
        handler.close()
    root_logger.handlers = []
    set_config(Config())


@pytest.fixture
def project_file(tmp_path: Path) -> Path:
    """Write a sample SDK style project file."""
    path = tmp_path / "MyApp" / "MyApp.csproj"
    path.parent.mkdir(parents=True)
    path.write_text(SAMPLE_PROJECT, encoding="utf-8")
    return path


@pytest.fixture
def solution_layout(tmp_path: Path, project_file: Path) -> dict[str, Path]:
    """Create a solution with one project and an empty bin directory."""
    solution = tmp_path / "MyApp.sln"
    solution.write_text("Microsoft Visual Studio Solution File\n", encoding="utf-8")
    bin_dir = project_file.parent / "bin"
    bin_dir.mkdir()
    return {"solution": solution, "project": project_file, "bin": bin_dir}


@pytest.fixture
def release_settings(solution_layout: dict[str, Path]) -> ReleaseSettings:
    """Create release settings for the sample solution."""
    return ReleaseSettings(
        solution_file=solution_layout["solution"],
        project_file=solution_layout["project"],
        bin_dir=solution_layout["bin"],
    )


@pytest.fixture
def fake_dotnet(tmp_path: Path) -> Path:
    """Write the fake publish tool script."""
    script = tmp_path / "fake_dotnet.py"
    script.write_text(FAKE_DOTNET, encoding="utf-8")
    return script


@pytest.fixture
def fake_build_config(fake_dotnet: Path) -> BuildConfig:
    """Build configuration running the fake publish tool."""
    return BuildConfig(command=[sys.executable, str(fake_dotnet)])

"""
Command line interface.

Commands:
    run           Run the release pipeline for a settings file.
    validate      Check that the paths of a settings file exist.
    next-version  Print the current and the next generated version of a project.
"""

from __future__ import annotations

from enum import IntEnum
from pathlib import Path

import typer

from release_helper import __version__
from release_helper.config import Config, get_config, set_config
from release_helper.descriptor import DescriptorEditor
from release_helper.exceptions import ConfigurationError, DescriptorError
from release_helper.pipeline import ReleaseHelper
from release_helper.settings import ReleaseSettings, load_settings, validate_settings
from release_helper.versioning import VersionType, generate_version


class ExitCode(IntEnum):
    SUCCESS = 0
    RELEASE_FAILED = 1
    INVALID_SETTINGS = 2


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=int(ExitCode.SUCCESS))


@app.callback()
def _main(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Release automation for .NET projects."""


def _load(settings_file: Path) -> ReleaseSettings:
    try:
        return load_settings(settings_file)
    except ConfigurationError as e:
        typer.echo(f"error: {e.message}", err=True)
        raise typer.Exit(code=int(ExitCode.INVALID_SETTINGS)) from e


def _report(errors: list[str]) -> None:
    for message in errors:
        typer.echo(f"error: {message}", err=True)
    if errors:
        raise typer.Exit(code=int(ExitCode.INVALID_SETTINGS))


@app.command()
def run(
    settings_file: Path = typer.Argument(..., help="Release settings file (YAML)."),
    config_file: Path | None = typer.Option(None, "--config", "-c", help="Tool configuration file (YAML)."),
    log_level: str | None = typer.Option(None, "--log-level", help="Minimum log level."),
    log_format: str | None = typer.Option(None, "--log-format", help="Console log format (plain, json)."),
    log_file: Path | None = typer.Option(None, "--log-file", help="JSONL log file with daily rotation."),
) -> None:
    """Create a release: update version, publish, zip."""
    if config_file is not None:
        if not config_file.is_file():
            typer.echo(f"error: config file not found: {config_file}", err=True)
            raise typer.Exit(code=int(ExitCode.INVALID_SETTINGS))
        set_config(Config.load(str(config_file)))

    settings = _load(settings_file)
    _report(validate_settings(settings))

    config = get_config()
    if log_format is not None:
        config.logging.format = log_format
    if log_file is not None:
        config.logging.file = str(log_file)

    helper = ReleaseHelper(config=config, min_log_level=log_level)
    if not helper.create_release(settings):
        typer.echo("release failed", err=True)
        raise typer.Exit(code=int(ExitCode.RELEASE_FAILED))

    typer.echo(f"version: {settings.version}")
    if settings.create_zip_archive and settings.zip_archive_destination is not None:
        typer.echo(f"archive: {settings.zip_archive_destination}")


@app.command()
def validate(
    settings_file: Path = typer.Argument(..., help="Release settings file (YAML)."),
) -> None:
    """Check that the solution, project and bin paths exist."""
    settings = _load(settings_file)
    _report(validate_settings(settings))
    typer.echo("settings ok")


@app.command("next-version")
def next_version(
    project_file: Path = typer.Argument(..., help="Project file (*.csproj) holding the version."),
    version_type: VersionType = typer.Option(VersionType.CALENDAR_WEEK, "--type", help="Version scheme."),
) -> None:
    """Print the current and the next generated version; nothing is modified."""
    if not project_file.is_file():
        typer.echo(f"error: project file not found: {project_file}", err=True)
        raise typer.Exit(code=int(ExitCode.INVALID_SETTINGS))

    try:
        current = DescriptorEditor(project_file).read_version()
    except DescriptorError as e:
        typer.echo(f"error: {e.message}", err=True)
        raise typer.Exit(code=int(ExitCode.INVALID_SETTINGS)) from e

    typer.echo(f"current: {current}")
    typer.echo(f"next: {generate_version(current, version_type)}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()

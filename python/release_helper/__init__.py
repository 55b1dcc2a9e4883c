"""
Release Helper - .NET release automation

This package automates the release of a .NET project:
- Version generation (calendar week or day of year) and project file update with rollback
- Custom actions at four checkpoints of the release run
- Publishing via the dotnet CLI with streamed output
- Zip archive of the release directory
"""

__version__ = "1.0.0"
__all__ = [
    "cli",
    "config",
    "descriptor",
    "exceptions",
    "hooks",
    "logging",
    "packaging",
    "pipeline",
    "settings",
    "versioning",
]

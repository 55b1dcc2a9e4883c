"""
Four-part release versions and the calendar based version generator.

A release version is ``major.minor.build.revision``:

- major: last two digits of the current year
- minor: calendar week or day of the year, depending on the VersionType
- build: running counter within the same (major, minor) period
- revision: minutes since local midnight
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

_VERSION_PATTERN = re.compile(r"^\d+(\.\d+){1,3}$")


class VersionType(str, Enum):
    """
    How the minor component of a generated version is chosen.

    Attributes:
        CALENDAR_WEEK: Minor is the calendar week (first four-day week, Monday first).
        DAY_OF_YEAR: Minor is the ordinal day of the year.
        CUSTOM: The caller supplies the generator.
    """

    CALENDAR_WEEK = "CalendarWeek"
    DAY_OF_YEAR = "DayOfYear"
    CUSTOM = "Custom"


@dataclass(frozen=True, order=True)
class Version:
    """
    Immutable four-part version, ordered component by component.

    Attributes:
        major: Major version number.
        minor: Minor version number.
        build: Build number.
        revision: Revision number.
    """

    major: int
    minor: int
    build: int = 0
    revision: int = 0

    def __post_init__(self) -> None:
        """Validate version components."""
        if min(self.major, self.minor, self.build, self.revision) < 0:
            raise ValueError("Version components must be non-negative integers")

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.build}.{self.revision}"

    @classmethod
    def parse(cls, text: str) -> Version:
        """
        Parse a version string with two to four numeric components.

        Missing trailing components are 0, so ``"1.0"`` parses to 1.0.0.0.

        Raises:
            ValueError: If the text is not a valid version.
        """
        candidate = text.strip()
        if not _VERSION_PATTERN.match(candidate):
            raise ValueError(f"Invalid version string: {text!r}")

        parts = [int(part) for part in candidate.split(".")]
        parts.extend([0] * (4 - len(parts)))
        return cls(*parts)

    @classmethod
    def try_parse(cls, text: str | None) -> Version | None:
        """Parse a version string, returning None instead of raising."""
        if not text:
            return None
        try:
            return cls.parse(text)
        except ValueError:
            return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "major": self.major,
            "minor": self.minor,
            "build": self.build,
            "revision": self.revision,
            "string": str(self),
        }


DEFAULT_VERSION = Version(1, 0, 0, 0)


def calendar_week(day: date) -> int:
    """
    Week of the year using the first-four-day rule with Monday as first day.

    Days at the end of December that ISO 8601 assigns to week 1 of the next
    year keep counting in their own year, so the result is 1-53.
    """
    iso_year, week, _ = day.isocalendar()
    if iso_year > day.year:
        return date(day.year, 12, 28).isocalendar()[1] + 1
    return week


def generate_version(
    old_version: Version,
    version_type: VersionType,
    now: datetime | None = None,
) -> Version:
    """
    Generate the next version from the old one and the wall clock.

    Args:
        old_version: Version currently stored in the project descriptor.
        version_type: Selects the minor component; CUSTOM falls back to day of year.
        now: Point in time to use, defaults to the local time.

    Returns:
        The new version. The build number increments while the
        (major, minor) period is unchanged and restarts at 0 otherwise.
    """
    now = now or datetime.now()

    major = now.year % 100
    if version_type == VersionType.CALENDAR_WEEK:
        minor = calendar_week(now.date())
    else:
        minor = now.timetuple().tm_yday

    if (major, minor) == (old_version.major, old_version.minor):
        build = old_version.build + 1
    else:
        build = 0

    revision = now.hour * 60 + now.minute

    new_version = Version(major, minor, build, revision)
    logger.debug(
        "version_generated",
        old_version=str(old_version),
        new_version=str(new_version),
        version_type=version_type.value,
    )
    return new_version

"""
Custom exception hierarchy for the release helper.

Follows a single-root exception hierarchy:
- ReleaseHelperError: Base exception for all release-helper errors
- ConfigurationError: Tool configuration and settings file issues
- DescriptorError: Project descriptor read/write and backup/rollback failures
- HookError: Custom action (hook) failures
- BuildError: External publish tool failures
- ArchiveError: Release archive creation failures

Each exception includes:
- error_code: Machine-readable error identifier
- context: Additional structured data for debugging
- is_retryable: Whether the operation can be retried
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Machine-readable error codes for categorization and log analysis."""

    # Configuration errors (1xxx)
    CONFIG_INVALID = "RELEASE_1001"
    CONFIG_MISSING = "RELEASE_1002"
    CONFIG_VALIDATION = "RELEASE_1003"

    # Descriptor errors (2xxx)
    DESCRIPTOR_BACKUP_FAILED = "RELEASE_2001"
    DESCRIPTOR_READ_FAILED = "RELEASE_2002"
    DESCRIPTOR_WRITE_FAILED = "RELEASE_2003"
    DESCRIPTOR_ROLLBACK_FAILED = "RELEASE_2004"
    DESCRIPTOR_VERSION_FAILED = "RELEASE_2005"

    # Hook errors (3xxx)
    HOOK_FAILED = "RELEASE_3001"

    # Build errors (4xxx)
    BUILD_LAUNCH_FAILED = "RELEASE_4001"
    BUILD_EXIT_CODE = "RELEASE_4002"
    BUILD_TIMEOUT = "RELEASE_4003"

    # Archive errors (5xxx)
    ARCHIVE_EXISTS = "RELEASE_5001"
    ARCHIVE_WRITE_FAILED = "RELEASE_5002"

    # General errors (9xxx)
    UNKNOWN = "RELEASE_9999"


@dataclass
class ReleaseHelperError(Exception):
    """
    Base exception for all release-helper errors.

    Provides structured error information for logging.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable error identifier
        context: Additional structured data for debugging
        is_retryable: Whether the operation can be safely retried
        cause: Original exception that caused this error
    """

    message: str
    error_code: ErrorCode = ErrorCode.UNKNOWN
    context: dict[str, Any] = field(default_factory=dict)
    is_retryable: bool = False
    cause: Exception | None = None

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:
        parts = [f"[{self.error_code.value}] {self.message}"]
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f" ({context_str})")
        return "".join(parts)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"context={self.context!r}, "
            f"is_retryable={self.is_retryable})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for structured logging."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code.value,
            "message": self.message,
            "context": self.context,
            "is_retryable": self.is_retryable,
            "cause": str(self.cause) if self.cause else None,
        }


@dataclass
class ConfigurationError(ReleaseHelperError):
    """Raised when configuration or release settings are invalid or missing."""

    error_code: ErrorCode = ErrorCode.CONFIG_INVALID

    @classmethod
    def missing_file(cls, path: str) -> ConfigurationError:
        """Create error for a missing configuration or settings file."""
        return cls(
            message=f"Configuration file not found: {path}",
            error_code=ErrorCode.CONFIG_MISSING,
            context={"path": path},
        )

    @classmethod
    def validation_failed(cls, field: str, value: Any, reason: str) -> ConfigurationError:
        """Create error for validation failure."""
        return cls(
            message=f"Configuration validation failed for '{field}': {reason}",
            error_code=ErrorCode.CONFIG_VALIDATION,
            context={"field": field, "value": str(value), "reason": reason},
        )


@dataclass
class DescriptorError(ReleaseHelperError):
    """Raised when the project descriptor cannot be updated."""

    error_code: ErrorCode = ErrorCode.DESCRIPTOR_WRITE_FAILED

    @classmethod
    def backup_failed(cls, path: str, cause: Exception) -> DescriptorError:
        """Create error for a failed backup snapshot."""
        return cls(
            message=f"Could not create a backup of '{path}': {cause}",
            error_code=ErrorCode.DESCRIPTOR_BACKUP_FAILED,
            context={"path": path},
            cause=cause,
        )

    @classmethod
    def read_failed(cls, path: str, cause: Exception) -> DescriptorError:
        """Create error for an unreadable descriptor."""
        return cls(
            message=f"Could not read project descriptor '{path}': {cause}",
            error_code=ErrorCode.DESCRIPTOR_READ_FAILED,
            context={"path": path},
            cause=cause,
        )

    @classmethod
    def update_failed(cls, path: str, cause: Exception, rolled_back: bool) -> DescriptorError:
        """Create error for a failed version update."""
        return cls(
            message=f"Version update of '{path}' failed: {cause}",
            error_code=ErrorCode.DESCRIPTOR_VERSION_FAILED,
            context={"path": path, "rolled_back": rolled_back},
            cause=cause,
        )

    @classmethod
    def rollback_failed(cls, path: str, backup_path: str, cause: Exception) -> DescriptorError:
        """Create error for a failed rollback; the backup is left in place."""
        return cls(
            message=f"Rollback of '{path}' failed, backup kept at '{backup_path}': {cause}",
            error_code=ErrorCode.DESCRIPTOR_ROLLBACK_FAILED,
            context={"path": path, "backup_path": backup_path},
            cause=cause,
        )


@dataclass
class HookError(ReleaseHelperError):
    """Raised (and logged) when a custom action fails."""

    error_code: ErrorCode = ErrorCode.HOOK_FAILED

    @classmethod
    def action_failed(cls, name: str, checkpoint: str, cause: Exception) -> HookError:
        """Create error for a failing hook."""
        return cls(
            message=f"Custom action '{name}' failed at {checkpoint}: {cause}",
            error_code=ErrorCode.HOOK_FAILED,
            context={"hook": name, "checkpoint": checkpoint},
            cause=cause,
        )

    @classmethod
    def command_failed(cls, name: str, command: list[str], returncode: int) -> HookError:
        """Create error for a command hook exiting with a non-zero code."""
        return cls(
            message=f"Command of custom action '{name}' exited with code {returncode}",
            error_code=ErrorCode.HOOK_FAILED,
            context={"hook": name, "command": " ".join(command), "returncode": returncode},
        )


@dataclass
class BuildError(ReleaseHelperError):
    """Raised when the external publish tool fails."""

    error_code: ErrorCode = ErrorCode.BUILD_EXIT_CODE

    @classmethod
    def launch_failed(cls, command: list[str], cause: Exception) -> BuildError:
        """Create error for a publish tool that could not be started."""
        return cls(
            message=f"Could not start publish tool '{command[0]}': {cause}",
            error_code=ErrorCode.BUILD_LAUNCH_FAILED,
            context={"command": " ".join(command)},
            cause=cause,
        )

    @classmethod
    def exit_code(cls, command: list[str], returncode: int) -> BuildError:
        """Create error for a non-zero exit code."""
        return cls(
            message=f"Publish tool exited with code {returncode}",
            error_code=ErrorCode.BUILD_EXIT_CODE,
            context={"command": " ".join(command), "returncode": returncode},
            is_retryable=True,
        )

    @classmethod
    def timeout(cls, command: list[str], timeout_seconds: float) -> BuildError:
        """Create error for a publish tool killed after the timeout."""
        return cls(
            message=f"Publish tool timed out after {timeout_seconds}s",
            error_code=ErrorCode.BUILD_TIMEOUT,
            context={"command": " ".join(command), "timeout_seconds": timeout_seconds},
            is_retryable=True,
        )


@dataclass
class ArchiveError(ReleaseHelperError):
    """Raised when the release archive cannot be created."""

    error_code: ErrorCode = ErrorCode.ARCHIVE_WRITE_FAILED

    @classmethod
    def already_exists(cls, path: str) -> ArchiveError:
        """Create error for an archive path that is already taken."""
        return cls(
            message=f"Archive already exists: {path}",
            error_code=ErrorCode.ARCHIVE_EXISTS,
            context={"path": path},
        )

    @classmethod
    def write_failed(cls, path: str, cause: Exception) -> ArchiveError:
        """Create error for a failed archive write."""
        return cls(
            message=f"Failed to write archive '{path}': {cause}",
            error_code=ErrorCode.ARCHIVE_WRITE_FAILED,
            context={"path": path},
            cause=cause,
        )

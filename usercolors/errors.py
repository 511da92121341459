"""Error codes and error handling utilities for user color overrides."""

from __future__ import annotations

import errno
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from typing import Any


class ErrorCode(Enum):
    """Standardized error codes for override and config operations."""

    # File system errors
    FILE_NOT_FOUND = auto()
    FILE_ACCESS_DENIED = auto()
    DISK_FULL = auto()
    WRITE_FAILED = auto()

    # Record errors
    RECORD_MALFORMED = auto()
    SLOT_INVALID = auto()
    NAME_INVALID = auto()
    COLOR_INVALID = auto()

    # Resolution errors
    NO_ACTIVE_OVERRIDE = auto()

    # Watch errors
    WATCH_FAILED = auto()


ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.FILE_NOT_FOUND: "The color override was not found. It may have been moved or deleted.",
    ErrorCode.FILE_ACCESS_DENIED: "Access denied. Check folder permissions.",
    ErrorCode.DISK_FULL: "The disk is full. Free up space and try again.",
    ErrorCode.WRITE_FAILED: "Could not write the file. See details for more information.",

    ErrorCode.RECORD_MALFORMED: "The stored record is malformed. Fix or re-import it.",
    ErrorCode.SLOT_INVALID: "Unknown color name.",
    ErrorCode.NAME_INVALID: "Override names must be a single line without path separators.",
    ErrorCode.COLOR_INVALID: "The color value is not a valid CSS color.",

    ErrorCode.NO_ACTIVE_OVERRIDE: "No color override is selected for the current mode.",

    ErrorCode.WATCH_FAILED: "Could not watch for changes. Restart the watcher.",
}


@dataclass
class UserColorsError(Exception):
    """Base exception with error code and context."""

    code: ErrorCode
    message: str = ""
    path: Path | None = None
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = ""

    def __post_init__(self) -> None:
        if not self.message:
            self.message = ERROR_MESSAGES.get(self.code, "An unexpected error occurred.")
        if not self.suggestion and self.code in ERROR_MESSAGES:
            self.suggestion = ERROR_MESSAGES[self.code]

    def __str__(self) -> str:
        parts = [self.message]
        if self.path:
            parts.append(f"\nFile: {self.path}")
        if self.details:
            details_str = " | ".join(f"{k}={v}" for k, v in self.details.items())
            parts.append(f"\nDetails: {details_str}")
        return "".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging or UI display."""
        return {
            "code": self.code.name,
            "message": self.message,
            "path": str(self.path) if self.path else None,
            "details": self.details,
            "suggestion": self.suggestion,
        }


@dataclass
class NotFoundError(UserColorsError):
    """A named record or path is absent."""

    code: ErrorCode = ErrorCode.FILE_NOT_FOUND


@dataclass
class ParseError(UserColorsError):
    """A stored record failed to deserialize or violated the schema."""

    code: ErrorCode = ErrorCode.RECORD_MALFORMED


@dataclass
class InvalidSlotError(UserColorsError):
    """A slot name outside the fixed catalog was used."""

    code: ErrorCode = ErrorCode.SLOT_INVALID


@dataclass
class InvalidNameError(UserColorsError):
    code: ErrorCode = ErrorCode.NAME_INVALID


@dataclass
class InvalidColorError(UserColorsError):
    code: ErrorCode = ErrorCode.COLOR_INVALID


@dataclass
class NoActiveOverrideError(UserColorsError):
    """Resolution produced an empty or absent override name."""

    code: ErrorCode = ErrorCode.NO_ACTIVE_OVERRIDE


@dataclass
class StorageError(UserColorsError):
    """Write, create or permission failure."""

    code: ErrorCode = ErrorCode.WRITE_FAILED


@dataclass
class WatchError(UserColorsError):
    code: ErrorCode = ErrorCode.WATCH_FAILED


def classify_exception(exc: Exception, path: Path | None = None) -> UserColorsError:
    """Classify a generic exception into a UserColorsError with appropriate code."""
    if isinstance(exc, UserColorsError):
        return exc
    exc_name = type(exc).__name__
    exc_str = str(exc).lower()

    if isinstance(exc, FileNotFoundError):
        return NotFoundError(path=path, details={"original": exc_str})
    if isinstance(exc, PermissionError):
        return StorageError(ErrorCode.FILE_ACCESS_DENIED, path=path, details={"original": exc_str})
    if isinstance(exc, OSError):
        if exc.errno == errno.ENOSPC or "no space left" in exc_str:
            return StorageError(ErrorCode.DISK_FULL, path=path, details={"original": exc_str})
        return StorageError(path=path, details={"original": exc_str})

    return UserColorsError(
        ErrorCode.WRITE_FAILED,
        message=f"{exc_name}: {exc}",
        path=path,
        details={"original": exc_str},
    )


def format_error_for_user(error: UserColorsError | Exception) -> str:
    """Format an error for display to the user with actionable suggestions."""
    if isinstance(error, UserColorsError):
        parts = [error.message]
        if error.suggestion and error.suggestion != error.message:
            parts.append(f"\n\n💡 {error.suggestion}")
        if error.path:
            parts.append(f"\n\nFile: {error.path.name}")
        return "".join(parts)

    classified = classify_exception(error)
    return format_error_for_user(classified)

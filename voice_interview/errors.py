"""
Error taxonomy for the voice interview session.

Every failure the orchestrator can surface to the user is represented
by a subclass of InterviewSessionError, so host code can catch the
whole family with one except clause.

Last Grunted: 10/19/2026
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path


__all__ = [
    "InterviewSessionError",
    "PermissionErrorKind",
    "MediaPermissionError",
    "SdkLoadTimeout",
    "ConfigurationError",
    "SdkShapeError",
    "RemoteStartError",
    "RuntimeAgentError",
    "SessionValidationError",
    "InvalidTransitionError",
    "ResumeExtractionError",
    "TranscriptWriteError",
]


class InterviewSessionError(Exception):
    """Base class for all interview session failures."""


class PermissionErrorKind(str, Enum):
    """Classification of a failed capture request."""

    DENIED = "denied"
    DEVICE_NOT_FOUND = "device_not_found"
    DEVICE_BUSY = "device_busy"
    OTHER = "other"


class MediaPermissionError(InterviewSessionError):
    """
    Raised when camera/microphone capture could not be acquired.

    Attributes:
        kind: Classified failure category.
        hint: Human-readable remediation for the user.
        cause: Original platform error, if any.
    """

    def __init__(
        self,
        kind: PermissionErrorKind,
        hint: str,
        cause: BaseException | None = None,
    ) -> None:
        self.kind = kind
        self.hint = hint
        self.cause = cause
        super().__init__(f"Could not access camera/microphone ({kind.value}): {hint}")


class SdkLoadTimeout(InterviewSessionError):
    """Raised when the voice agent SDK never became available."""

    def __init__(self, attempts: int, interval_ms: int) -> None:
        self.attempts = attempts
        self.interval_ms = interval_ms
        super().__init__(
            f"Voice agent SDK failed to load after {attempts} attempts "
            f"({attempts * interval_ms} ms). Please check your internet connection."
        )


class ConfigurationError(InterviewSessionError):
    """Raised for a missing/placeholder API key or an unusable handle."""


class SdkShapeError(InterviewSessionError):
    """Raised when the SDK matches none of the recognized export shapes."""

    def __init__(self, attempted: list[str], sdk: object) -> None:
        self.attempted = list(attempted)
        super().__init__(
            f"Unsupported voice agent SDK export shape {sdk!r}; "
            f"tried: {', '.join(self.attempted)}"
        )


class RemoteStartError(InterviewSessionError):
    """Raised when the bootstrapped handle rejected (or never finished) start."""


class RuntimeAgentError(InterviewSessionError):
    """Wraps an `error` event fired by an active agent handle."""

    def __init__(self, message: str, payload: object = None) -> None:
        self.payload = payload
        super().__init__(message)


class SessionValidationError(InterviewSessionError):
    """Raised when a start request is missing role/resume or capture support."""


class InvalidTransitionError(InterviewSessionError):
    """Raised when an operation is invoked from a state that does not allow it."""

    def __init__(self, operation: str, state: object) -> None:
        self.operation = operation
        self.state = state
        super().__init__(f"Cannot {operation} while session is {state}")


class ResumeExtractionError(InterviewSessionError):
    """Raised when text could not be extracted from an uploaded resume."""

    def __init__(self, filename: str, cause: Exception) -> None:
        self.filename = filename
        self.cause = cause
        super().__init__(f"Failed to extract text from {filename}: {cause}")


class TranscriptWriteError(InterviewSessionError):
    """Raised when writing a transcript snapshot fails."""

    def __init__(self, path: Path, cause: Exception) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to write to {path}: {cause}")

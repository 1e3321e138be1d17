from enum import StrEnum
from typing import ClassVar


class ErrorKind(StrEnum):
    NOT_FOUND = "not-found"
    PROVIDER = "provider"
    VALIDATION = "validation"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"


class SiteDeployError(Exception):
    """Base error for every failure surfaced to the lifecycle host."""

    kind: ClassVar[ErrorKind]

    def __init__(self, message: str, cause: BaseException | None = None):
        self.message = message
        self.cause = cause
        super().__init__(message)


class NotFoundError(SiteDeployError):
    """Raised when a remote resource the operation depends on cannot be found."""

    kind = ErrorKind.NOT_FOUND


class ProviderError(SiteDeployError):
    """Raised when an AWS API call fails."""

    kind = ErrorKind.PROVIDER


class ValidationError(SiteDeployError, ValueError):
    """Raised when configuration or descriptor input is invalid."""

    kind = ErrorKind.VALIDATION


class PollTimeoutError(SiteDeployError):
    """Raised when a polled resource does not reach the expected state in time."""

    kind = ErrorKind.TIMEOUT

    def __init__(self, resource_id: str, attempts: int, last_status: str | None = None):
        self.resource_id = resource_id
        self.attempts = attempts
        self.last_status = last_status
        super().__init__(
            f"Gave up waiting for '{resource_id}' after {attempts} attempts "
            f"(last status: {last_status or 'unknown'})"
        )


class OperationCancelledError(SiteDeployError):
    """Raised when a wait is interrupted through its cancel event."""

    kind = ErrorKind.CANCELLED


class SiteDeployProjectError(SiteDeployError):
    """Raised when no sitedeploy project is found in the current or parent directories."""

    kind = ErrorKind.NOT_FOUND

from __future__ import annotations

from typing import Any

GENERIC_ERROR_MESSAGE = "An error occurred"
SESSION_EXPIRED_MESSAGE = "Session expired. Please login again."


class DDMSError(Exception):
    """Base class for every error surfaced to the user."""


class IllegalTransitionError(DDMSError):
    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Cannot transition from {current} to {target}")


class PermissionDeniedError(DDMSError):
    def __init__(self, resource: str, action: str) -> None:
        self.resource = resource
        self.action = action
        super().__init__("Insufficient permissions")


class ApiError(DDMSError):
    """The backend answered with ``DDMS_status: error``."""

    def __init__(self, error_code: str | None, data: Any = None, status_code: int | None = None) -> None:
        self.error_code = error_code
        self.data = data
        self.status_code = status_code
        super().__init__(error_code or GENERIC_ERROR_MESSAGE)


class AuthenticationRequiredError(DDMSError):
    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class SessionExpiredError(AuthenticationRequiredError):
    def __init__(self, message: str = SESSION_EXPIRED_MESSAGE) -> None:
        super().__init__(message)


class TransportError(DDMSError):
    """The request never produced a usable DDMS envelope."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)

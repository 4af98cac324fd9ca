"""
Error classes for authsession.

Every error raised by the library derives from AuthError and carries a
machine-readable error code plus an optional details mapping. Exceptions
raised by strategies are never wrapped; they are reported and re-raised
as-is.
"""

from typing import Any, Dict, Optional


class AuthError(Exception):
    """Base authentication session error."""

    def __init__(self, message: str, error_code: str = None, details: dict = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or "AUTH_ERROR"
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(AuthError):
    """Invalid options."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, "CONFIGURATION_ERROR", details)


class StrategyNotFoundError(AuthError):
    """No strategy is registered under the active name."""

    def __init__(self, name: Optional[str] = None, details: dict = None):
        if name:
            message = f"No strategy registered under name: {name}"
        else:
            message = "No active strategy"
        super().__init__(message, "STRATEGY_NOT_FOUND", details)
        self.name = name


class StorageError(AuthError):
    """A persistence backend could not read or write its data."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, "STORAGE_ERROR", details)


class TransportError(AuthError):
    """The request never produced a response."""

    def __init__(self, message: str, error_code: str = None, details: dict = None):
        super().__init__(message, error_code or "TRANSPORT_ERROR", details)


class HTTPError(TransportError):
    """
    The server answered with a non-success status.

    Attributes:
        status: HTTP status code of the response
        response: The Response object, body already decoded
    """

    def __init__(self, status: int, response: Any = None, message: str = None):
        super().__init__(
            message or f"Request failed with status code {status}",
            "HTTP_ERROR",
            {"status": status},
        )
        self.status = status
        self.response = response


class CredentialRecoveryError(AuthError):
    """Stored credentials could not be recovered for the current user."""

    def __init__(self, message: str = "No user available for credential recovery",
                 details: dict = None):
        super().__init__(message, "CREDENTIAL_RECOVERY_ERROR", details)


def get_status(error: BaseException) -> Optional[int]:
    """Return the HTTP status an exception carries, if any."""
    status = getattr(error, "status", None)
    if status is None:
        response = getattr(error, "response", None)
        status = getattr(response, "status", None)
    return status


__all__ = [
    "AuthError",
    "ConfigurationError",
    "StrategyNotFoundError",
    "StorageError",
    "TransportError",
    "HTTPError",
    "CredentialRecoveryError",
    "get_status",
]

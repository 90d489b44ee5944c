"""
Base exception classes for the PracticeHub client.

Each module should define its own exceptions that inherit from these bases.
This enables consistent error handling across the application.
"""

from typing import Optional, Any


class PracticeHubError(Exception):
    """
    Base exception for all PracticeHub client errors.

    All custom exceptions should inherit from this class.
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for display or logging."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class NotFoundError(PracticeHubError):
    """Resource not found."""

    pass


class AuthenticationError(PracticeHubError):
    """Authentication failed (invalid or missing credentials)."""

    pass


class AuthorizationError(PracticeHubError):
    """Authorization failed (insufficient permissions)."""

    pass


class ExternalServiceError(PracticeHubError):
    """Error communicating with an external service."""

    def __init__(
        self,
        message: str,
        service: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, details)
        self.service = service
        self.details["service"] = service


class ApiError(ExternalServiceError):
    """
    Non-2xx response from the PracticeHub API.

    Carries the HTTP status and the decoded response body so callers can
    build user-facing messages from what the server said.
    """

    def __init__(
        self,
        status_code: int,
        message: str,
        payload: Any = None,
        method: str = "",
        path: str = "",
    ):
        super().__init__(
            message,
            service="practicehub-api",
            code=f"HTTP_{status_code}",
            details={"status_code": status_code, "method": method, "path": path},
        )
        self.status_code = status_code
        self.payload = payload
        self.method = method
        self.path = path

    @property
    def server_message(self) -> Optional[str]:
        """The server's ``message`` or ``error`` field, if it sent one."""
        if not isinstance(self.payload, dict):
            return None
        for key in ("message", "error"):
            value = self.payload.get(key)
            if isinstance(value, str) and value:
                return value
        return None

    @property
    def validation_messages(self) -> Optional[list[str]]:
        """Per-field messages from an ``errors`` array, or None if absent."""
        if not isinstance(self.payload, dict):
            return None
        errors = self.payload.get("errors")
        if not isinstance(errors, list):
            return None
        messages = []
        for item in errors:
            if isinstance(item, dict):
                text = item.get("msg") or item.get("message")
                if text:
                    messages.append(str(text))
        return messages

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code == 401


class ApiConnectionError(ApiError):
    """Raised when the API could not be reached at all."""

    def __init__(self, message: str, method: str = "", path: str = ""):
        super().__init__(0, message, payload=None, method=method, path=path)
        self.code = "CONNECTION_ERROR"

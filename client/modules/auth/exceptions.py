"""
Authentication module exceptions.

The session store itself reports failures as AuthResult values; these
exceptions are for callers that need a session and do not have one.
"""

from typing import Optional

from shared.exceptions import AuthenticationError, AuthorizationError


class NotAuthenticatedError(AuthenticationError):
    """Raised when an operation needs a signed-in user and there is none."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, code="NOT_AUTHENTICATED")


class SessionExpiredError(AuthenticationError):
    """Raised when the API rejected the stored token."""

    def __init__(self, message: str = "Session expired, please log in again"):
        super().__init__(message, code="SESSION_EXPIRED")


class InsufficientPermissionsError(AuthorizationError):
    """Raised when the signed-in role is not allowed to do something."""

    def __init__(self, required_roles: list[str], user_role: Optional[str]):
        super().__init__(
            f"Insufficient permissions. Required: {', '.join(required_roles)}, has: {user_role}",
            code="INSUFFICIENT_PERMISSIONS",
            details={"required_roles": required_roles, "user_role": user_role},
        )

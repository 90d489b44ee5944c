"""
Authentication module.

Owns the client session: login, registration, logout and lazy
revalidation of a persisted token.

Public API:
- IAuthStore: Interface for session operations
- AuthStore: Implementation backed by the API and persisted storage
- Session, SessionPhase, AuthResult: Session models
- Auth exceptions: NotAuthenticatedError, SessionExpiredError, etc.
"""

from .interfaces import IAuthStore
from .models import (
    AuthResult,
    Session,
    SessionPhase,
    TeacherRegistration,
    AdminRegistration,
    StudentRegistration,
)
from .service import AuthStore
from .exceptions import (
    NotAuthenticatedError,
    SessionExpiredError,
    InsufficientPermissionsError,
)

__all__ = [
    # Interface
    "IAuthStore",
    "AuthStore",
    # Models
    "AuthResult",
    "Session",
    "SessionPhase",
    "TeacherRegistration",
    "AdminRegistration",
    "StudentRegistration",
    # Exceptions
    "NotAuthenticatedError",
    "SessionExpiredError",
    "InsufficientPermissionsError",
]

"""
Shared infrastructure for the PracticeHub client.

This package contains cross-cutting concerns that are used by multiple modules:
- config: Centralized settings management
- exceptions: Base exception classes
- models: Role and user profile
- storage: Persisted client state
- http: API client with bearer auth and central 401 handling

Note: Feature logic should NOT go here. This is for infrastructure only.
"""

from .config import Settings, get_settings
from .exceptions import (
    PracticeHubError,
    NotFoundError,
    AuthenticationError,
    AuthorizationError,
    ExternalServiceError,
    ApiError,
    ApiConnectionError,
)
from .http import ApiClient
from .models import Role, UserProfile
from .storage import (
    Storage,
    FileStorage,
    MemoryStorage,
    PersistedSession,
    read_persisted_session,
    read_persisted_token,
    write_persisted_session,
)

__all__ = [
    "Settings",
    "get_settings",
    "PracticeHubError",
    "NotFoundError",
    "AuthenticationError",
    "AuthorizationError",
    "ExternalServiceError",
    "ApiError",
    "ApiConnectionError",
    "ApiClient",
    "Role",
    "UserProfile",
    "Storage",
    "FileStorage",
    "MemoryStorage",
    "PersistedSession",
    "read_persisted_session",
    "read_persisted_token",
    "write_persisted_session",
]

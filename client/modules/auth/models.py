"""
Authentication module data models.

These models define the session held by the client and the payloads
exchanged with the auth endpoints.
"""

from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field

from shared.models import Role, UserProfile


class SessionPhase(str, Enum):
    """Where a session stands with respect to token validation."""

    ANONYMOUS = "anonymous"  # No token
    PENDING = "pending"      # Token present, not yet verified by /auth/me
    VERIFIED = "verified"    # Login or revalidation succeeded
    INVALID = "invalid"      # Last revalidation failed; token dropped


class Session(BaseModel):
    """
    The client-held record of who is logged in and with what credential.

    Immutable: every transition builds a new Session. A session counts as
    authenticated while its token is present, including the optimistic
    window between rehydration and the first revalidation.
    """

    token: Optional[str] = Field(None, description="Opaque bearer token")
    user: Optional[UserProfile] = Field(None, description="Signed-in user")
    role: Optional[Role] = Field(None, description="Role of the signed-in user")
    phase: SessionPhase = Field(default=SessionPhase.ANONYMOUS)

    model_config = {"frozen": True}

    @property
    def is_authenticated(self) -> bool:
        return self.phase in (SessionPhase.PENDING, SessionPhase.VERIFIED)

    @property
    def user_id(self) -> Optional[str]:
        return self.user.id if self.user else None

    @classmethod
    def anonymous(cls, phase: SessionPhase = SessionPhase.ANONYMOUS) -> "Session":
        return cls(phase=phase)


class AuthResult(BaseModel):
    """Outcome of a login or registration attempt."""

    success: bool
    message: Optional[str] = None
    data: Any = None


class LoginRequest(BaseModel):
    username: str
    password: str
    role: Optional[Role] = None


class _Registration(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class TeacherRegistration(_Registration):
    username: str
    email: str
    password: str
    first_name: str = Field(..., alias="firstName")
    last_name: str = Field(..., alias="lastName")
    middle_name: Optional[str] = Field(None, alias="middleName")
    phone: Optional[str] = None


class AdminRegistration(_Registration):
    username: str
    email: str
    password: str


class StudentRegistration(_Registration):
    username: str
    email: str
    password: str
    student_id: Optional[str] = Field(None, alias="studentId")

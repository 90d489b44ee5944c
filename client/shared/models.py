"""
Shared data models used across modules.

These models are shared infrastructure, not business logic.
Module-specific models should stay in their respective module directories.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class Role(str, Enum):
    """The closed set of PracticeHub roles."""

    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"

    @classmethod
    def parse(cls, value: Any) -> Optional["Role"]:
        """Return the matching role, or None for anything unrecognised."""
        if isinstance(value, Role):
            return value
        try:
            return cls(str(value).lower()) if value else None
        except ValueError:
            return None


class UserProfile(BaseModel):
    """
    Represents the signed-in user as returned by the API.

    The session owns exactly one of these and replaces it wholesale on
    login and on revalidation; it is never patched field by field.
    Role-specific fields are optional because the server only sends
    the ones that apply (names and phone for teachers, student_id
    for students).
    """

    id: str = Field(..., description="User ID")
    role: Optional[Role] = Field(None, description="User role")
    username: Optional[str] = Field(None, description="Login name")
    email: Optional[str] = Field(None, description="Email address")

    first_name: Optional[str] = Field(None, alias="firstName")
    last_name: Optional[str] = Field(None, alias="lastName")
    middle_name: Optional[str] = Field(None, alias="middleName")
    phone: Optional[str] = None
    student_id: Optional[str] = Field(None, alias="studentId")
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        # Some endpoints return numeric ids
        return str(value) if isinstance(value, int) else value

    @field_validator("role", mode="before")
    @classmethod
    def _parse_role(cls, value: Any) -> Optional[Role]:
        return Role.parse(value)

    @property
    def display_name(self) -> str:
        if self.role is Role.TEACHER:
            full = " ".join(p for p in (self.last_name, self.first_name) if p)
            if full:
                return full
        return self.username or self.email or self.id

    def to_storage(self) -> dict[str, Any]:
        """Serialize with the API's camelCase keys for persistence."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

"""
Chat module data models.

Messages belong to a course enrollment (one student in one course).
Field names follow Python conventions; the API's camelCase keys are
accepted as aliases.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Optional
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from shared.models import Role


def _coerce_id(value: Any) -> Any:
    return str(value) if isinstance(value, int) else value


# Ids are strings; tolerate numeric ids from older endpoints
Id = Annotated[str, BeforeValidator(_coerce_id)]


class _ApiModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class SenderType(str, Enum):
    """Which side of a thread wrote a message."""

    STUDENT = "STUDENT"
    TEACHER = "TEACHER"


class EnrollmentStatus(str, Enum):
    """Approval status of a course enrollment."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


def sender_type_for(role: Optional[Role]) -> Optional[SenderType]:
    """The sender type a role writes as; admins and unknown roles have none."""
    if role is None:
        return None
    if role is Role.STUDENT:
        return SenderType.STUDENT
    if role is Role.TEACHER:
        return SenderType.TEACHER
    if role is Role.ADMIN:
        return None
    raise ValueError(f"Unhandled role {role!r}")


class ChatMessage(_ApiModel):
    """One message in an enrollment's thread. Immutable once created."""

    id: Id
    enrollment_id: Optional[Id] = Field(None, alias="enrollmentId")
    sender_type: SenderType = Field(..., alias="senderType")
    sender_id: Id = Field(..., alias="senderId")
    message: str
    created_at: datetime = Field(..., alias="createdAt")
    read_at: Optional[datetime] = Field(None, alias="readAt")

    def preview(self, length: int = 40) -> str:
        if len(self.message) <= length:
            return self.message
        return self.message[:length] + "..."


class TeacherRef(_ApiModel):
    first_name: Optional[str] = Field(None, alias="firstName")
    last_name: Optional[str] = Field(None, alias="lastName")
    username: Optional[str] = None

    @property
    def display_name(self) -> str:
        full = " ".join(p for p in (self.last_name, self.first_name) if p)
        return full or self.username or ""


class CourseRef(_ApiModel):
    id: Id
    title: Optional[str] = None
    direction: Optional[str] = None
    teacher: Optional[TeacherRef] = None


class StudentUserRef(_ApiModel):
    id: Id
    username: Optional[str] = None
    email: Optional[str] = None


class Enrollment(_ApiModel):
    """
    A student's enrollment in a course, as seen by the chat views.

    ``messages`` holds whatever the listing endpoint includes, normally
    only the latest message. ``counts`` is the server's ``_count`` block.
    """

    id: Id
    course_id: Optional[Id] = Field(None, alias="courseId")
    student_user_id: Optional[Id] = Field(None, alias="studentUserId")
    status: EnrollmentStatus = EnrollmentStatus.APPROVED
    course: Optional[CourseRef] = None
    student_user: Optional[StudentUserRef] = Field(None, alias="studentUser")
    messages: list[ChatMessage] = Field(default_factory=list)
    counts: dict[str, int] = Field(default_factory=dict, alias="_count")

    @property
    def last_message(self) -> Optional[ChatMessage]:
        return self.messages[0] if self.messages else None

    @property
    def unread_count(self) -> int:
        return self.counts.get("messages", 0)

    @property
    def student_name(self) -> str:
        if self.student_user:
            return self.student_user.username or self.student_user.email or "Student"
        return "Student"

    @property
    def course_title(self) -> str:
        return (self.course.title if self.course else None) or "Course"


class Course(_ApiModel):
    """A course with its enrollment roster, as returned by GET /courses/:id."""

    id: Id
    title: Optional[str] = None
    direction: Optional[str] = None
    enrollments: list[Enrollment] = Field(default_factory=list)

    def ref(self) -> CourseRef:
        return CourseRef(id=self.id, title=self.title, direction=self.direction)

    def find_enrollment(self, enrollment_id: str) -> Optional[Enrollment]:
        for enrollment in self.enrollments:
            if enrollment.id == enrollment_id:
                return enrollment
        return None

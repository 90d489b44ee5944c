"""
Chat module interface.

Views depend on ICourseChatService so they can be driven by a fake in tests.
"""

from typing import Optional, Protocol, runtime_checkable

from .models import ChatMessage, Course, Enrollment


@runtime_checkable
class ICourseChatService(Protocol):
    """Access to course chat threads and the enrollments they hang off."""

    async def get_messages(self, enrollment_id: str) -> list[ChatMessage]:
        """
        Get a thread's messages in the order the server returns them
        (oldest first).
        """
        ...

    async def send_message(self, enrollment_id: str, text: str) -> None:
        """Post a message to a thread."""
        ...

    async def mark_read(self, enrollment_id: str) -> None:
        """Mark the other side's messages in a thread as read."""
        ...

    async def find_student_enrollment(self, course_id: str) -> Optional[Enrollment]:
        """
        Resolve the signed-in student's enrollment for a course.

        Returns None if the student is not enrolled.
        """
        ...

    async def get_course(self, course_id: str) -> Course:
        """Get a course with its roster of enrollments (teacher side)."""
        ...

    async def list_student_chats(self) -> list[Enrollment]:
        ...

    async def list_teacher_chats(self) -> list[Enrollment]:
        ...

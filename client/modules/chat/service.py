"""
Course chat service implementation.

A thin facade over the chat and enrollment endpoints that turns JSON
payloads into chat models.
"""

from typing import Any, Optional

from shared.http import ApiClient

from .interfaces import ICourseChatService
from .models import ChatMessage, Course, Enrollment


def _thread_path(enrollment_id: str) -> str:
    return f"/course-chat/enrollment/{enrollment_id}"


def _list(data: Any, key: str) -> list[Any]:
    if isinstance(data, dict) and isinstance(data.get(key), list):
        return data[key]
    return []


class CourseChatService(ICourseChatService):
    """Chat operations against the PracticeHub API."""

    def __init__(self, api: ApiClient):
        self._api = api

    async def get_messages(self, enrollment_id: str) -> list[ChatMessage]:
        data = await self._api.get(_thread_path(enrollment_id))
        return [ChatMessage.model_validate(m) for m in _list(data, "messages")]

    async def send_message(self, enrollment_id: str, text: str) -> None:
        await self._api.post(_thread_path(enrollment_id), json={"message": text})

    async def mark_read(self, enrollment_id: str) -> None:
        await self._api.patch(f"{_thread_path(enrollment_id)}/read")

    async def find_student_enrollment(self, course_id: str) -> Optional[Enrollment]:
        data = await self._api.get("/course-enrollments")
        for course in _list(data, "courses"):
            if not isinstance(course, dict) or str(course.get("id")) != course_id:
                continue
            enrollment = course.get("enrollment")
            if not enrollment:
                return None
            enrollment = {"courseId": course_id, **enrollment}
            enrollment.setdefault("course", {"id": course_id, "title": course.get("title")})
            return Enrollment.model_validate(enrollment)
        return None

    async def get_course(self, course_id: str) -> Course:
        data = await self._api.get(f"/courses/{course_id}")
        course = Course.model_validate(data)
        # Roster entries don't carry their course; attach it for display
        ref = course.ref()
        enrollments = [
            e.model_copy(update={"course": ref, "course_id": e.course_id or course.id})
            for e in course.enrollments
        ]
        return course.model_copy(update={"enrollments": enrollments})

    async def list_student_chats(self) -> list[Enrollment]:
        data = await self._api.get("/course-chat/student")
        return [Enrollment.model_validate(e) for e in _list(data, "enrollments")]

    async def list_teacher_chats(self) -> list[Enrollment]:
        data = await self._api.get("/course-chat/teacher")
        return [Enrollment.model_validate(e) for e in _list(data, "enrollments")]

"""
Course chat module.

Per-enrollment chat threads between a student and the course teacher,
kept current by polling.

Public API:
- ICourseChatService / CourseChatService: chat API access
- PeriodicTask: cancellable fixed-interval runner
- StudentCourseChatView, TeacherCourseChatView, ChatListView: screen state
- Chat models and exceptions
"""

from .interfaces import ICourseChatService
from .models import (
    ChatMessage,
    Course,
    CourseRef,
    Enrollment,
    EnrollmentStatus,
    SenderType,
    StudentUserRef,
    TeacherRef,
    sender_type_for,
)
from .poller import PeriodicTask
from .service import CourseChatService
from .views import (
    ChatListView,
    ChatView,
    StudentCourseChatView,
    TeacherCourseChatView,
)
from .exceptions import EnrollmentNotFoundError

__all__ = [
    # Interface
    "ICourseChatService",
    "CourseChatService",
    # Models
    "ChatMessage",
    "Course",
    "CourseRef",
    "Enrollment",
    "EnrollmentStatus",
    "SenderType",
    "StudentUserRef",
    "TeacherRef",
    "sender_type_for",
    # Polling and views
    "PeriodicTask",
    "ChatView",
    "ChatListView",
    "StudentCourseChatView",
    "TeacherCourseChatView",
    # Exceptions
    "EnrollmentNotFoundError",
]

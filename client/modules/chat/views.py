"""
Chat views.

Each view owns the state of one chat screen (messages, draft, loading
and error flags) and keeps it fresh by re-fetching on a fixed interval.
The server's list is authoritative: every refresh replaces ``messages``
wholesale, so a message that was just sent and then polled is never
shown twice.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from pydantic import ValidationError

from modules.auth.interfaces import IAuthStore
from modules.routing.navigator import Navigator
from modules.routing.routes import path_for
from shared.exceptions import ApiError
from shared.models import Role

from .exceptions import EnrollmentNotFoundError
from .interfaces import ICourseChatService
from .models import ChatMessage, Course, Enrollment, sender_type_for
from .poller import PeriodicTask

logger = logging.getLogger(__name__)

# Errors that a failed fetch can produce: HTTP/transport, or a payload
# that doesn't match the models.
FETCH_ERRORS = (ApiError, ValidationError)

NOT_ENROLLED = "You are not enrolled in this course or your application has not been approved"
LOAD_CHAT_FAILED = "Failed to load chat"
LOAD_DATA_FAILED = "Failed to load data"


class ChatView:
    """
    State and behaviour shared by the student and teacher chat screens.

    Subclasses decide how the active enrollment is found; this class
    handles fetching, polling, sending and read receipts for it.
    """

    back_path = "/"

    def __init__(
        self,
        chat: ICourseChatService,
        auth: IAuthStore,
        navigator: Navigator,
        *,
        poll_interval: float = 3.0,
        alert: Optional[Callable[[str], None]] = None,
    ):
        self._chat = chat
        self._auth = auth
        self._navigator = navigator
        self._poll_interval = poll_interval
        self._alert_callback = alert

        self.messages: list[ChatMessage] = []
        self.draft = ""
        self.loading = True
        self.sending = False
        self.error: Optional[str] = None
        self.alerts: list[str] = []

        self._active_id: Optional[str] = None
        self._poller: Optional[PeriodicTask] = None
        self._background: set[asyncio.Task] = set()
        self._listeners: list[Callable[["ChatView"], None]] = []
        self._closed = False

    async def __aenter__(self) -> "ChatView":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def open(self) -> bool:
        raise NotImplementedError

    @property
    def active_enrollment_id(self) -> Optional[str]:
        return self._active_id

    @property
    def polling(self) -> bool:
        return self._poller is not None and self._poller.running

    def on_change(self, listener: Callable[["ChatView"], None]) -> None:
        self._listeners.append(listener)

    def _changed(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def _alert(self, message: str) -> None:
        self.alerts.append(message)
        if self._alert_callback is not None:
            self._alert_callback(message)

    def _fail(self, message: str) -> None:
        self.error = message
        self.loading = False
        self._alert(message)
        self._changed()

    # Ownership

    def is_own_message(self, message: ChatMessage) -> bool:
        """A message is ours only if both the sender side and the sender id match."""
        session = self._auth.session
        own_type = sender_type_for(session.role)
        if own_type is None or session.user_id is None:
            return False
        return message.sender_type is own_type and message.sender_id == session.user_id

    # Fetching

    async def refresh(self) -> bool:
        """
        Re-fetch the active thread and replace ``messages``.

        A failure leaves the current list in place. A response that
        arrives after the thread was switched or the view closed is dropped.
        """
        enrollment_id = self._active_id
        if enrollment_id is None or self._closed:
            return False
        try:
            messages = await self._chat.get_messages(enrollment_id)
        except FETCH_ERRORS as e:
            logger.warning("Refreshing chat %s failed: %s", enrollment_id, e)
            return False
        if self._closed or enrollment_id != self._active_id:
            return False
        self.messages = messages
        self._mark_read(enrollment_id)
        self._changed()
        return True

    def _mark_read(self, enrollment_id: str) -> None:
        task = asyncio.get_running_loop().create_task(self._chat.mark_read(enrollment_id))
        self._background.add(task)
        task.add_done_callback(self._background_done)

    def _background_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.debug("Marking chat read failed: %s", task.exception())

    async def _start_polling(self) -> None:
        await self._stop_polling()
        if self._closed or self._active_id is None:
            return
        self._poller = PeriodicTask(
            self._poll_interval,
            self.refresh,
            name=f"chat-poll-{self._active_id}",
        )
        self._poller.start()

    async def _stop_polling(self) -> None:
        poller, self._poller = self._poller, None
        if poller is not None:
            await poller.stop()

    # Sending

    async def send(self) -> bool:
        """
        Send the current draft.

        Blank drafts, a send already in flight, or no active thread make
        this a no-op. On success the draft is cleared and the thread is
        refreshed at once; on failure the draft is kept for a retry.
        """
        text = self.draft.strip()
        enrollment_id = self._active_id
        if not text or self.sending or enrollment_id is None:
            return False

        self.sending = True
        try:
            await self._chat.send_message(enrollment_id, text)
        except ApiError as e:
            logger.warning("Sending to chat %s failed: %s", enrollment_id, e)
            self._alert(f"Failed to send message: {e.server_message or e.message}")
            return False
        finally:
            self.sending = False

        self.draft = ""
        await self.refresh()
        return True

    async def close(self) -> None:
        """Stop polling and wait for outstanding read receipts."""
        self._closed = True
        await self._stop_polling()
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)


class StudentCourseChatView(ChatView):
    """The signed-in student's single thread for one course."""

    back_path = "/student/courses"

    def __init__(self, course_id: str, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.course_id = course_id
        self.enrollment: Optional[Enrollment] = None

    async def open(self) -> bool:
        self.loading = True
        try:
            enrollment = await self._chat.find_student_enrollment(self.course_id)
        except FETCH_ERRORS as e:
            logger.error("Loading chat for course %s failed: %s", self.course_id, e)
            self._fail(LOAD_CHAT_FAILED)
            return False

        if enrollment is None:
            self._fail(NOT_ENROLLED)
            self._navigator.navigate(self.back_path)
            return False

        self.enrollment = enrollment
        self._active_id = enrollment.id
        try:
            self.messages = await self._chat.get_messages(enrollment.id)
        except FETCH_ERRORS as e:
            logger.error("Loading messages for %s failed: %s", enrollment.id, e)
            self._fail(LOAD_CHAT_FAILED)
            return False

        self.loading = False
        self._mark_read(enrollment.id)
        self._changed()
        await self._start_polling()
        return True


class TeacherCourseChatView(ChatView):
    """
    All student threads of one course, with one of them open at a time.

    Switching threads cancels the old poller before the new one starts.
    """

    def __init__(self, course_id: str, *args, enrollment_id: Optional[str] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.course_id = course_id
        self.initial_enrollment_id = enrollment_id
        self.course: Optional[Course] = None
        self.selected: Optional[Enrollment] = None

    @property
    def back_path(self) -> str:  # type: ignore[override]
        return path_for("teacher-course", courseId=self.course_id)

    @property
    def enrollments(self) -> list[Enrollment]:
        return self.course.enrollments if self.course else []

    async def open(self) -> bool:
        self.loading = True
        try:
            self.course = await self._chat.get_course(self.course_id)
        except FETCH_ERRORS as e:
            logger.error("Loading course %s failed: %s", self.course_id, e)
            self._fail(LOAD_DATA_FAILED)
            return False

        self.loading = False
        self._changed()
        if self.initial_enrollment_id and self.course.find_enrollment(self.initial_enrollment_id):
            await self.select(self.initial_enrollment_id, navigate=False)
        return True

    async def select(self, enrollment_id: str, *, navigate: bool = True) -> None:
        enrollment = self.course.find_enrollment(enrollment_id) if self.course else None
        if enrollment is None:
            raise EnrollmentNotFoundError(enrollment_id)

        await self._stop_polling()
        self.selected = enrollment
        self._active_id = enrollment.id
        self.messages = []
        if navigate:
            self._navigator.navigate(
                path_for(
                    "teacher-course-chat-thread",
                    courseId=self.course_id,
                    enrollmentId=enrollment.id,
                )
            )
        await self.refresh()
        await self._start_polling()


class ChatListView:
    """The signed-in user's chat threads across all courses."""

    def __init__(self, chat: ICourseChatService, role: Optional[Role]):
        self._chat = chat
        self.role = role
        self.enrollments: list[Enrollment] = []
        self.loading = True
        self.error: Optional[str] = None

    async def load(self) -> list[Enrollment]:
        self.loading = True
        try:
            if self.role is Role.STUDENT:
                self.enrollments = await self._chat.list_student_chats()
            elif self.role is Role.TEACHER:
                self.enrollments = await self._chat.list_teacher_chats()
            else:
                self.enrollments = []
        except FETCH_ERRORS as e:
            logger.error("Loading chats failed: %s", e)
            self.enrollments = []
            self.error = LOAD_DATA_FAILED
        finally:
            self.loading = False
        return self.enrollments

import pytest

from modules.chat.interfaces import ICourseChatService
from modules.chat.models import SenderType
from shared.exceptions import ApiError


class TestCourseChatService:
    @pytest.mark.asyncio
    async def test_implements_interface(self, student):
        assert isinstance(student.chat, ICourseChatService)

    @pytest.mark.asyncio
    async def test_get_messages_oldest_first(self, student):
        messages = await student.chat.get_messages("e-1")
        assert [m.message for m in messages] == ["Welcome to the course!", "Thank you!"]
        assert messages[0].sender_type is SenderType.TEACHER

    @pytest.mark.asyncio
    async def test_send_message(self, student, backend):
        await student.chat.send_message("e-1", "Question about lab 2")
        last = backend.messages["e-1"][-1]
        assert last["message"] == "Question about lab 2"
        assert last["senderType"] == "STUDENT"
        assert last["senderId"] == "s-1"

    @pytest.mark.asyncio
    async def test_send_to_unapproved_enrollment(self, container, backend):
        await container.auth.login("stud3", "studpass")
        with pytest.raises(ApiError) as exc_info:
            await container.chat.send_message("e-3", "hello?")
        assert exc_info.value.status_code == 400
        assert backend.messages["e-3"] == []

    @pytest.mark.asyncio
    async def test_mark_read_marks_other_side(self, student, backend):
        await student.chat.mark_read("e-1")
        by_sender = {m["senderType"]: m["readAt"] for m in backend.messages["e-1"]}
        assert by_sender["TEACHER"] is not None
        assert by_sender["STUDENT"] is None

    @pytest.mark.asyncio
    async def test_find_student_enrollment(self, student):
        enrollment = await student.chat.find_student_enrollment("c-1")
        assert enrollment.id == "e-1"
        assert enrollment.course_id == "c-1"
        assert enrollment.course.title == "Python Practice"

    @pytest.mark.asyncio
    async def test_find_student_enrollment_not_enrolled(self, student):
        assert await student.chat.find_student_enrollment("c-2") is None

    @pytest.mark.asyncio
    async def test_find_student_enrollment_unknown_course(self, student):
        assert await student.chat.find_student_enrollment("c-404") is None

    @pytest.mark.asyncio
    async def test_get_course_attaches_course_to_roster(self, teacher):
        course = await teacher.chat.get_course("c-1")
        assert course.title == "Python Practice"
        assert [e.id for e in course.enrollments] == ["e-1", "e-2"]
        for enrollment in course.enrollments:
            assert enrollment.course.id == "c-1"
            assert enrollment.course_title == "Python Practice"
        assert course.enrollments[0].student_name == "stud1"

    @pytest.mark.asyncio
    async def test_get_course_not_found(self, teacher):
        with pytest.raises(ApiError) as exc_info:
            await teacher.chat.get_course("c-404")
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_list_student_chats_only_approved(self, student):
        chats = await student.chat.list_student_chats()
        assert [e.id for e in chats] == ["e-1"]
        assert chats[0].course.teacher.display_name == "Petrova Anna"
        assert chats[0].last_message.message == "Thank you!"

    @pytest.mark.asyncio
    async def test_list_teacher_chats(self, teacher):
        chats = await teacher.chat.list_teacher_chats()
        assert [e.id for e in chats] == ["e-1", "e-2"]
        assert chats[0].unread_count == 1

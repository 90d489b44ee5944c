import asyncio

import httpx
import pytest

from app.container import ServiceContainer
from modules.auth.models import SessionPhase
from modules.auth.service import registration_error_message
from shared.exceptions import ApiError
from shared.models import Role
from shared.storage import MemoryStorage, read_persisted_session, read_persisted_token

from tests.conftest import STORAGE_KEY, create_test_token, persisted_blob


def assert_consistent(session):
    """Authenticated exactly when a token is held."""
    assert session.is_authenticated == (session.token is not None)


class GatedMe:
    """Backend whose /auth/me answers only when released."""

    def __init__(self, me_status: int):
        self.me_status = me_status
        self.me_started = asyncio.Event()
        self.release = asyncio.Event()

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/auth/me"):
            self.me_started.set()
            await self.release.wait()
            if self.me_status == 200:
                return httpx.Response(
                    200, json={"user": {"id": "s-1", "username": "stud1", "role": "student"}}
                )
            return httpx.Response(self.me_status, json={"error": "Invalid token"})
        if request.url.path.endswith("/auth/login"):
            return httpx.Response(
                200,
                json={"token": "fresh", "user": {"id": "s-1", "username": "stud1", "role": "student"}},
            )
        return httpx.Response(404)


class TestRehydrate:
    @pytest.mark.asyncio
    async def test_empty_storage_is_anonymous(self, container):
        session = container.auth.session
        assert session.phase is SessionPhase.ANONYMOUS
        assert_consistent(session)

    @pytest.mark.asyncio
    async def test_persisted_token_is_pending(self, container, storage):
        token = create_test_token()
        storage.set_item(STORAGE_KEY, persisted_blob(
            token, user={"id": "s-1", "username": "stud1", "role": "student"}, role="student"
        ))
        session = container.auth.session
        assert session.phase is SessionPhase.PENDING
        assert session.token == token
        assert session.role is Role.STUDENT
        assert session.user.username == "stud1"
        assert container.api.bearer_token == token
        assert_consistent(session)

    @pytest.mark.asyncio
    async def test_corrupt_storage_is_anonymous(self, container, storage):
        storage.set_item(STORAGE_KEY, "{broken")
        assert container.auth.session.phase is SessionPhase.ANONYMOUS


class TestLogin:
    @pytest.mark.asyncio
    async def test_login_success(self, container, storage):
        result = await container.auth.login("stud1", "studpass")

        assert result.success
        session = container.auth.session
        assert session.phase is SessionPhase.VERIFIED
        assert session.role is Role.STUDENT
        assert session.user.id == "s-1"
        assert container.api.bearer_token == session.token
        assert_consistent(session)

        persisted = read_persisted_session(storage, STORAGE_KEY)
        assert persisted.token == session.token
        assert persisted.role is Role.STUDENT
        assert persisted.user.username == "stud1"

    @pytest.mark.asyncio
    async def test_login_with_role_hint(self, container):
        result = await container.auth.login("teach1", "teachpass", Role.TEACHER)
        assert result.success
        assert container.auth.session.role is Role.TEACHER

    @pytest.mark.asyncio
    async def test_wrong_password(self, container, storage):
        result = await container.auth.login("stud1", "nope")

        assert not result.success
        assert result.message == "Invalid credentials"
        assert container.auth.session.phase is SessionPhase.ANONYMOUS
        assert read_persisted_token(storage, STORAGE_KEY) is None
        assert_consistent(container.auth.session)

    @pytest.mark.asyncio
    async def test_wrong_role_hint(self, container):
        result = await container.auth.login("stud1", "studpass", Role.TEACHER)
        assert not result.success
        assert not container.auth.session.is_authenticated

    @pytest.mark.asyncio
    async def test_network_failure_never_raises(self, settings):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        c = ServiceContainer(settings, storage=MemoryStorage(), transport=httpx.MockTransport(refuse))
        result = await c.auth.login("stud1", "studpass")
        await c.aclose()

        assert not result.success
        assert result.message == "Login failed"

    @pytest.mark.asyncio
    async def test_response_without_token(self, settings):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, json={"user": {"id": "s-1"}})
        )
        c = ServiceContainer(settings, storage=MemoryStorage(), transport=transport)
        result = await c.auth.login("stud1", "studpass")
        await c.aclose()

        assert not result.success
        assert result.message == "Login failed"
        assert not c.auth.session.is_authenticated

    @pytest.mark.asyncio
    async def test_login_notifies_listeners(self, container):
        seen = []
        unsubscribe = container.auth.subscribe(lambda s: seen.append(s.phase))
        await container.auth.login("stud1", "studpass")
        unsubscribe()
        container.auth.logout()
        assert seen == [SessionPhase.VERIFIED]


class TestLogout:
    @pytest.mark.asyncio
    async def test_logout_clears_everything(self, student, storage):
        student.auth.logout()

        session = student.auth.session
        assert session.phase is SessionPhase.ANONYMOUS
        assert session.token is None and session.user is None and session.role is None
        assert student.api.bearer_token is None
        assert read_persisted_token(storage, STORAGE_KEY) is None

    @pytest.mark.asyncio
    async def test_logout_is_idempotent(self, student, storage):
        student.auth.logout()
        first = (student.auth.session, storage.get_item(STORAGE_KEY))
        student.auth.logout()
        assert (student.auth.session, storage.get_item(STORAGE_KEY)) == first

    @pytest.mark.asyncio
    async def test_logout_when_anonymous(self, container):
        container.auth.logout()
        assert container.auth.session.phase is SessionPhase.ANONYMOUS


class TestCheckAuth:
    @pytest.mark.asyncio
    async def test_no_token_makes_no_request(self, container, backend):
        assert await container.auth.check_auth() is False
        assert backend.calls_to("GET", "/auth/me") == 0

    @pytest.mark.asyncio
    async def test_valid_token_verifies(self, container, storage, backend):
        storage.set_item(STORAGE_KEY, persisted_blob(create_test_token()))
        container.auth.rehydrate()
        assert container.auth.session.phase is SessionPhase.PENDING

        assert await container.auth.check_auth() is True

        session = container.auth.session
        assert session.phase is SessionPhase.VERIFIED
        assert session.user.username == "stud1"
        assert session.role is Role.STUDENT
        assert read_persisted_session(storage, STORAGE_KEY).user.id == "s-1"

    @pytest.mark.asyncio
    async def test_rejected_token_logs_out(self, student, backend, storage):
        backend.revoked_tokens.add(student.auth.session.token)

        assert await student.auth.check_auth() is False

        session = student.auth.session
        assert session.phase is SessionPhase.INVALID
        assert not session.is_authenticated
        assert_consistent(session)
        assert read_persisted_token(storage, STORAGE_KEY) is None
        assert student.api.bearer_token is None
        assert student.navigator.current_path == "/login"

    @pytest.mark.asyncio
    async def test_admin_identity_under_admin_key(self, container, backend):
        backend.admin_me_key = "admin"
        await container.auth.login("admin1", "adminpass")

        assert await container.auth.check_auth() is True
        assert container.auth.session.role is Role.ADMIN
        assert container.auth.session.user.username == "admin1"

    @pytest.mark.asyncio
    async def test_unusable_me_response_logs_out(self, settings):
        storage = MemoryStorage({STORAGE_KEY: persisted_blob("tok")})
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"ok": True}))
        c = ServiceContainer(settings, storage=storage, transport=transport)

        assert await c.auth.check_auth() is False
        await c.aclose()
        assert c.auth.session.phase is SessionPhase.INVALID


class TestInitAuth:
    @pytest.mark.asyncio
    async def test_without_token_does_nothing(self, container):
        assert container.auth.init_auth() is None

    @pytest.mark.asyncio
    async def test_starts_single_background_check(self, container, storage, backend):
        storage.set_item(STORAGE_KEY, persisted_blob(create_test_token()))
        container.auth.rehydrate()

        task = container.auth.init_auth()
        assert task is not None
        assert container.auth.init_auth() is task
        assert container.auth.pending_check is task

        assert await task is True
        assert container.auth.pending_check is None
        assert backend.calls_to("GET", "/auth/me") == 1
        assert container.auth.session.phase is SessionPhase.VERIFIED

    @pytest.mark.asyncio
    async def test_stale_rejection_keeps_newer_login(self, settings):
        backend = GatedMe(401)
        storage = MemoryStorage({STORAGE_KEY: persisted_blob("stale", role="student")})
        c = ServiceContainer(
            settings,
            storage=storage,
            transport=httpx.MockTransport(backend),
            initial_path="/student/courses",
        )

        task = c.auth.init_auth()
        await backend.me_started.wait()
        assert (await c.auth.login("stud1", "studpass")).success
        backend.release.set()
        assert await task is False
        await c.aclose()

        session = c.auth.session
        assert session.token == "fresh"
        assert session.phase is SessionPhase.VERIFIED
        assert_consistent(session)
        assert read_persisted_token(storage, STORAGE_KEY) == "fresh"
        assert c.api.bearer_token == "fresh"
        assert c.navigator.current_path == "/student/courses"

    @pytest.mark.asyncio
    async def test_stale_success_does_not_restore_old_token(self, settings):
        backend = GatedMe(200)
        storage = MemoryStorage({STORAGE_KEY: persisted_blob("stale", role="student")})
        c = ServiceContainer(settings, storage=storage, transport=httpx.MockTransport(backend))

        task = c.auth.init_auth()
        await backend.me_started.wait()
        assert (await c.auth.login("stud1", "studpass")).success
        backend.release.set()
        assert await task is True
        await c.aclose()

        assert c.auth.session.token == "fresh"
        assert read_persisted_token(storage, STORAGE_KEY) == "fresh"

    @pytest.mark.asyncio
    async def test_check_resolving_after_logout_stays_logged_out(self, settings):
        backend = GatedMe(200)
        storage = MemoryStorage({STORAGE_KEY: persisted_blob("stale", role="student")})
        c = ServiceContainer(settings, storage=storage, transport=httpx.MockTransport(backend))

        task = c.auth.init_auth()
        await backend.me_started.wait()
        c.auth.logout()
        backend.release.set()
        assert await task is False
        await c.aclose()

        assert c.auth.session.phase is SessionPhase.ANONYMOUS
        assert read_persisted_token(storage, STORAGE_KEY) is None


class TestRegister:
    @pytest.mark.asyncio
    async def test_register_teacher(self, container, backend):
        result = await container.auth.register_teacher(
            "teach2", "t2@example.com", "secret1", "Ivan", "Sidorov"
        )
        assert result.success
        assert result.data["user"]["firstName"] == "Ivan"
        assert "teach2" in backend.users
        # Registering does not sign the user in
        assert not container.auth.session.is_authenticated

    @pytest.mark.asyncio
    async def test_register_student_and_admin(self, container):
        assert (await container.auth.register_student("stud9", "s9@example.com", "secret1")).success
        assert (await container.auth.register_admin("adm2", "a2@example.com", "secret1")).success

    @pytest.mark.asyncio
    async def test_validation_errors_joined(self, container):
        result = await container.auth.register_student("stud9", "bad-email", "123")
        assert not result.success
        assert result.message == "Password must be at least 6 characters, Invalid email"

    @pytest.mark.asyncio
    async def test_duplicate_username(self, container):
        result = await container.auth.register_admin("admin1", "x@example.com", "secret1")
        assert not result.success
        assert result.message == "A user with this username or email already exists"


class TestRegistrationErrorMessage:
    def test_empty_errors_array(self):
        assert registration_error_message(ApiError(400, "x", payload={"errors": []})) == "Validation error"

    def test_falls_back_to_error_message(self):
        error = ApiError(500, "Request failed: POST /auth/register/admin", payload="oops")
        assert registration_error_message(error) == "Request failed: POST /auth/register/admin"

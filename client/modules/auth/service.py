"""
Session store implementation.

Holds the bearer token and user profile, persists them between runs,
and talks to the /auth endpoints. One instance lives for the whole
process; the service container constructs it and hands it to whoever
needs it.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional

from shared.exceptions import ApiError
from shared.http import ApiClient
from shared.models import Role, UserProfile
from shared.storage import (
    PersistedSession,
    Storage,
    read_persisted_session,
    write_persisted_session,
)

from .interfaces import IAuthStore
from .models import (
    AdminRegistration,
    AuthResult,
    LoginRequest,
    Session,
    SessionPhase,
    StudentRegistration,
    TeacherRegistration,
    _Registration,
)

logger = logging.getLogger(__name__)

LOGIN_FAILED = "Login failed"
REGISTRATION_FAILED = "Registration failed"
VALIDATION_FAILED = "Validation error"


class AuthStore(IAuthStore):
    """
    Implementation of the session store.

    On construction the persisted session (if any) is rehydrated and
    treated as valid until the first revalidation says otherwise.
    """

    def __init__(self, api: ApiClient, storage: Storage, storage_key: str):
        self._api = api
        self._storage = storage
        self._storage_key = storage_key
        self._session = Session.anonymous()
        self._listeners: list[Callable[[Session], None]] = []
        self._pending_check: Optional[asyncio.Task] = None
        # Bumped by login and logout so in-flight checks can tell they are stale
        self._generation = 0
        self.rehydrate()

    @property
    def session(self) -> Session:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._session.is_authenticated

    @property
    def pending_check(self) -> Optional[asyncio.Task]:
        """The background revalidation started by init_auth, if still running."""
        return self._pending_check

    def subscribe(self, listener: Callable[[Session], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, session: Session, *, persist: bool = True) -> None:
        logger.debug("Session %s -> %s", self._session.phase.value, session.phase.value)
        self._session = session
        if persist:
            write_persisted_session(
                self._storage,
                self._storage_key,
                PersistedSession(token=session.token, user=session.user, role=session.role),
            )
        for listener in list(self._listeners):
            listener(session)

    def rehydrate(self) -> None:
        """Reload the session from persisted storage."""
        persisted = read_persisted_session(self._storage, self._storage_key)
        if persisted.token:
            self._api.set_bearer_token(persisted.token)
            session = Session(
                token=persisted.token,
                user=persisted.user,
                role=persisted.role,
                phase=SessionPhase.PENDING,
            )
        else:
            self._api.clear_bearer_token()
            session = Session.anonymous()
        self._set(session, persist=False)

    async def login(
        self,
        identifier: str,
        secret: str,
        role_hint: Optional[Role] = None,
    ) -> AuthResult:
        request = LoginRequest(username=identifier, password=secret, role=role_hint)
        try:
            data = await self._api.post("/auth/login", json=request.model_dump(mode="json"))
            token = data.get("token") if isinstance(data, dict) else None
            if not token:
                raise ValueError("login response carried no token")
            user = UserProfile.model_validate(data["user"]) if data.get("user") else None
        except ApiError as e:
            logger.warning("Login for %r failed (%s): %s", identifier, e.status_code, e.message)
            return AuthResult(success=False, message=e.server_message or LOGIN_FAILED)
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("Login for %r returned an unusable response: %s", identifier, e)
            return AuthResult(success=False, message=LOGIN_FAILED)

        self._generation += 1
        self._set(
            Session(
                token=token,
                user=user,
                role=user.role if user else None,
                phase=SessionPhase.VERIFIED,
            )
        )
        self._api.set_bearer_token(token)
        logger.debug("Logged in as %s (role=%s)", user.id if user else None, self._session.role)
        return AuthResult(success=True)

    async def _register(self, path: str, registration: _Registration) -> AuthResult:
        try:
            data = await self._api.post(path, json=registration.to_payload())
        except ApiError as e:
            logger.warning("Registration at %s failed (%s): %s", path, e.status_code, e.message)
            return AuthResult(success=False, message=registration_error_message(e))
        return AuthResult(success=True, data=data)

    async def register_teacher(
        self,
        username: str,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        middle_name: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> AuthResult:
        return await self._register(
            "/auth/register/teacher",
            TeacherRegistration(
                username=username,
                email=email,
                password=password,
                first_name=first_name,
                last_name=last_name,
                middle_name=middle_name,
                phone=phone,
            ),
        )

    async def register_admin(self, username: str, email: str, password: str) -> AuthResult:
        return await self._register(
            "/auth/register/admin",
            AdminRegistration(username=username, email=email, password=password),
        )

    async def register_student(
        self,
        username: str,
        email: str,
        password: str,
        student_id: Optional[str] = None,
    ) -> AuthResult:
        return await self._register(
            "/auth/register/student",
            StudentRegistration(
                username=username,
                email=email,
                password=password,
                student_id=student_id,
            ),
        )

    def logout(self) -> None:
        self._generation += 1
        self._set(Session.anonymous())
        self._api.clear_bearer_token()

    async def check_auth(self) -> bool:
        token = self._session.token
        generation = self._generation
        if not token:
            if self._session.phase is not SessionPhase.ANONYMOUS:
                self._set(Session.anonymous(), persist=False)
            return False

        try:
            self._api.set_bearer_token(token)
            data = await self._api.get("/auth/me")
            user, role = _identity_from_me(data)
        except Exception as e:
            if self._generation != generation:
                logger.debug("Ignoring failed revalidation of a replaced session")
                return False
            # Any failure means the token can no longer be trusted
            logger.info("Session revalidation failed, logging out: %s", e)
            self.logout()
            self._set(Session.anonymous(SessionPhase.INVALID), persist=False)
            return False

        if self._generation != generation:
            # Login or logout happened while the check was in flight
            return self._session.is_authenticated
        self._set(Session(token=token, user=user, role=role, phase=SessionPhase.VERIFIED))
        return True

    def init_auth(self) -> Optional[asyncio.Task]:
        if self._pending_check is not None and not self._pending_check.done():
            return self._pending_check
        token = self._session.token
        if not token:
            return None
        self._api.set_bearer_token(token)
        task = asyncio.get_running_loop().create_task(self.check_auth())
        task.add_done_callback(self._clear_pending)
        self._pending_check = task
        return task

    def _clear_pending(self, task: asyncio.Task) -> None:
        if self._pending_check is task:
            self._pending_check = None


def registration_error_message(error: ApiError) -> str:
    """Turn a failed registration response into one display string."""
    messages = error.validation_messages
    if messages is not None:
        return ", ".join(messages) or VALIDATION_FAILED
    if isinstance(error.payload, dict):
        message = error.payload.get("message")
        if isinstance(message, str) and message:
            return message
    return error.message or REGISTRATION_FAILED


def _identity_from_me(data: Any) -> tuple[UserProfile, Optional[Role]]:
    """Extract the user from GET /auth/me, which uses ``admin`` for admins."""
    if not isinstance(data, dict):
        raise ValueError("unexpected /auth/me response")
    raw = data.get("user") or data.get("admin")
    if not isinstance(raw, dict):
        raise ValueError("/auth/me response has no user")
    user = UserProfile.model_validate(raw)
    role = user.role
    if role is None and data.get("admin"):
        role = Role.ADMIN
    return user, role

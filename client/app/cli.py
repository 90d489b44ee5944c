"""
PracticeHub terminal client.

Sign in, inspect the session, and chat with a course teacher or students
from the command line. Protected commands go through the same route guard
as the web views, so a student cannot open a teacher's chat and an
expired session sends you back to login.

Usage:
    practicehub login stud1 --role student
    practicehub whoami
    practicehub chats
    practicehub chat student <course_id>
    practicehub chat teacher <course_id> [enrollment_id]
    practicehub logout
"""

import argparse
import asyncio
import getpass
import logging
import sys
from typing import Awaitable, Callable, Optional, TypeVar

from modules.auth.exceptions import (
    InsufficientPermissionsError,
    NotAuthenticatedError,
    SessionExpiredError,
)
from modules.auth.models import AuthResult, SessionPhase
from modules.chat.exceptions import EnrollmentNotFoundError
from modules.chat.views import (
    ChatListView,
    ChatView,
    StudentCourseChatView,
    TeacherCourseChatView,
)
from modules.routing.routes import login_redirect_path, path_for
from modules.routing.service import RouteGuard
from shared.config import get_settings
from shared.exceptions import PracticeHubError
from shared.models import Role

from .container import ServiceContainer
from .display import (
    console,
    print_error,
    render_chat_list,
    render_message,
    render_session,
)

T = TypeVar("T")

QUIT_COMMANDS = {"/quit", "/exit"}


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def guarded(container: ServiceContainer, path: str, view: Callable[[], Awaitable[T]]) -> T:
    """Run ``view`` behind the route guard for ``path``.

    Redirects are reported as exceptions so the CLI can explain them.
    """
    container.navigator.navigate(path)
    guard = RouteGuard.for_path(
        path,
        container.auth,
        container.navigator,
        login_path=container.settings.login_path,
    )
    decision, result = await guard.enter(view)
    if decision.is_render:
        return result

    console.print(f"[dim]Redirected to {decision.target}[/dim]")
    session = container.auth.session
    if decision.target == container.settings.login_path:
        raise NotAuthenticatedError("Please log in first: practicehub login <username>")
    raise InsufficientPermissionsError(
        sorted(role.value for role in guard.allowed_roles or ()),
        session.role.value if session.role else None,
    )


def _report(result: AuthResult, success_message: str) -> int:
    if result.success:
        console.print(f"[green]{success_message}[/green]")
        return 0
    print_error(result.message or "Request failed")
    return 1


async def cmd_login(container: ServiceContainer, args: argparse.Namespace) -> int:
    container.navigator.navigate(container.settings.login_path)
    password = args.password or getpass.getpass("Password: ")
    role = Role.parse(args.role)
    result = await container.auth.login(args.username, password, role)
    if result.success:
        session = container.auth.session
        container.navigator.navigate(login_redirect_path(session.role))
        console.print(render_session(session))
    return _report(result, "Logged in.")


async def cmd_logout(container: ServiceContainer, args: argparse.Namespace) -> int:
    container.auth.logout()
    console.print("Logged out.")
    return 0


async def cmd_whoami(container: ServiceContainer, args: argparse.Namespace) -> int:
    await container.auth.check_auth()
    session = container.auth.session
    if session.phase is SessionPhase.INVALID:
        raise SessionExpiredError()
    console.print(render_session(session))
    return 0 if session.is_authenticated else 1


async def cmd_register(container: ServiceContainer, args: argparse.Namespace) -> int:
    container.navigator.navigate(f"/register/{args.role}")
    password = args.password or getpass.getpass("Password: ")
    auth = container.auth
    if args.role == "teacher":
        result = await auth.register_teacher(
            args.username,
            args.email,
            password,
            args.first_name,
            args.last_name,
            middle_name=args.middle_name,
            phone=args.phone,
        )
    elif args.role == "admin":
        result = await auth.register_admin(args.username, args.email, password)
    else:
        result = await auth.register_student(
            args.username, args.email, password, student_id=args.student_id
        )
    return _report(result, "Registered. You can now log in.")


async def cmd_chats(container: ServiceContainer, args: argparse.Namespace) -> int:
    role = container.auth.session.role
    path = path_for("teacher-chats") if role is Role.TEACHER else path_for("student-chats")

    async def show() -> int:
        view = ChatListView(container.chat, container.auth.session.role)
        enrollments = await view.load()
        if view.error:
            print_error(view.error)
            return 1
        console.print(render_chat_list(enrollments, teacher_view=view.role is Role.TEACHER))
        return 0

    return await guarded(container, path, show)


class ChatPrinter:
    """Print messages the terminal hasn't shown yet each time a view changes.

    Switching to another thread starts over.
    """

    def __init__(self) -> None:
        self._thread: Optional[str] = None
        self._shown: set[str] = set()

    def __call__(self, view: ChatView) -> None:
        if view.active_enrollment_id != self._thread:
            self._thread = view.active_enrollment_id
            self._shown.clear()
        for message in view.messages:
            if message.id in self._shown:
                continue
            self._shown.add(message.id)
            console.print(render_message(message, view.is_own_message(message)))


async def _read_line(prompt: str) -> Optional[str]:
    try:
        return await asyncio.to_thread(input, prompt)
    except EOFError:
        return None


async def chat_loop(container: ServiceContainer, view: ChatView) -> int:
    """Interactive loop: lines are sent, commands start with a slash."""
    printer = ChatPrinter()
    view.on_change(printer)
    async with view:
        if view.error:
            return 1
        printer(view)
        if isinstance(view, TeacherCourseChatView):
            console.print(render_chat_list(view.enrollments, teacher_view=True))
            console.print("[dim]/switch <enrollment_id> to open a thread, /quit to leave[/dim]")
        else:
            console.print("[dim]/quit to leave[/dim]")

        while container.auth.session.is_authenticated:
            line = await _read_line("> ")
            if line is None or line.strip() in QUIT_COMMANDS:
                break
            if line.startswith("/switch ") and isinstance(view, TeacherCourseChatView):
                try:
                    await view.select(line.split(maxsplit=1)[1].strip())
                except EnrollmentNotFoundError as e:
                    print_error(e.message)
                continue
            view.draft = line
            await view.send()

    if not container.auth.session.is_authenticated:
        raise SessionExpiredError()
    return 0


async def cmd_chat(container: ServiceContainer, args: argparse.Namespace) -> int:
    settings = container.settings
    common = dict(poll_interval=settings.chat_poll_interval, alert=print_error)

    if args.side == "student":
        path = path_for("student-course-chat", courseId=args.course_id)
        view: ChatView = StudentCourseChatView(
            args.course_id, container.chat, container.auth, container.navigator, **common
        )
    else:
        if args.enrollment_id:
            path = path_for(
                "teacher-course-chat-thread",
                courseId=args.course_id,
                enrollmentId=args.enrollment_id,
            )
        else:
            path = path_for("teacher-course-chat", courseId=args.course_id)
        view = TeacherCourseChatView(
            args.course_id,
            container.chat,
            container.auth,
            container.navigator,
            enrollment_id=args.enrollment_id,
            **common,
        )

    return await guarded(container, path, lambda: chat_loop(container, view))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="practicehub", description="PracticeHub terminal client")
    parser.add_argument("--api-url", type=str, help="API base URL")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login", help="Log in")
    login.add_argument("username")
    login.add_argument("--password", help="Password (prompted if omitted)")
    login.add_argument("--role", choices=[r.value for r in Role], help="Role to log in as")
    login.set_defaults(handler=cmd_login)

    logout = sub.add_parser("logout", help="Log out")
    logout.set_defaults(handler=cmd_logout)

    whoami = sub.add_parser("whoami", help="Show and revalidate the current session")
    whoami.set_defaults(handler=cmd_whoami)

    register = sub.add_parser("register", help="Create an account")
    register.add_argument("role", choices=[r.value for r in Role])
    register.add_argument("username")
    register.add_argument("email")
    register.add_argument("--password", help="Password (prompted if omitted)")
    register.add_argument("--first-name", help="Teacher first name")
    register.add_argument("--last-name", help="Teacher last name")
    register.add_argument("--middle-name", help="Teacher middle name")
    register.add_argument("--phone", help="Teacher phone")
    register.add_argument("--student-id", help="Existing student record to link")
    register.set_defaults(handler=cmd_register)

    chats = sub.add_parser("chats", help="List your chat threads")
    chats.set_defaults(handler=cmd_chats)

    chat = sub.add_parser("chat", help="Open a course chat")
    chat_sub = chat.add_subparsers(dest="side", required=True)
    student = chat_sub.add_parser("student", help="Chat with your course teacher")
    student.add_argument("course_id")
    teacher = chat_sub.add_parser("teacher", help="Chat with students of your course")
    teacher.add_argument("course_id")
    teacher.add_argument("enrollment_id", nargs="?")
    chat.set_defaults(handler=cmd_chat)

    return parser


async def run(args: argparse.Namespace, container: Optional[ServiceContainer] = None) -> int:
    if args.command == "register" and args.role == "teacher":
        if not (args.first_name and args.last_name):
            print_error("--first-name and --last-name are required for teachers")
            return 2

    container = container or ServiceContainer(_settings_for(args))
    try:
        return await args.handler(container, args)
    except PracticeHubError as e:
        print_error(e.message)
        return 1
    finally:
        # Let a revalidation started by a guard finish before the client closes
        pending = container.auth.pending_check
        if pending is not None:
            await asyncio.gather(pending, return_exceptions=True)
        await container.aclose()


def _settings_for(args: argparse.Namespace):
    settings = get_settings()
    overrides = {}
    if args.api_url:
        overrides["api_base_url"] = args.api_url
    if args.debug:
        overrides["debug"] = True
    return settings.model_copy(update=overrides) if overrides else settings


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(_settings_for(args).effective_log_level)
    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())

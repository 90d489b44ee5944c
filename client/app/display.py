"""Rich terminal rendering for sessions, thread lists and chat messages."""

from datetime import datetime

from rich.align import Align
from rich.console import Console, Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from modules.auth.models import Session
from modules.chat.models import ChatMessage, Enrollment

console = Console()

TIMESTAMP_FORMAT = "%d.%m.%Y %H:%M"


def format_timestamp(value: datetime) -> str:
    """Format a message time as dd.MM.yyyy HH:mm in local time."""
    if value.tzinfo is not None:
        value = value.astimezone()
    return value.strftime(TIMESTAMP_FORMAT)


def render_message(message: ChatMessage, own: bool) -> RenderableType:
    """Render one message bubble.

    Own messages are right-aligned in blue, the other side's are
    left-aligned in grey.
    """
    body = Group(
        Text(message.message, overflow="fold"),
        Text(format_timestamp(message.created_at), style="dim", justify="right"),
    )
    panel = Panel(
        body,
        border_style="blue" if own else "grey50",
        expand=False,
    )
    return Align.right(panel) if own else Align.left(panel)


def render_chat_list(enrollments: list[Enrollment], teacher_view: bool = False) -> RenderableType:
    """Render a table of chat threads with their latest message."""
    if not enrollments:
        return Text("No active chats yet.", style="dim")

    table = Table(show_lines=False)
    table.add_column("Enrollment", style="dim")
    table.add_column("Course")
    table.add_column("Student" if teacher_view else "Teacher")
    table.add_column("Last message")
    table.add_column("Messages", justify="right")

    for enrollment in enrollments:
        last = enrollment.last_message
        if teacher_view:
            who = enrollment.student_name
        else:
            teacher = enrollment.course.teacher if enrollment.course else None
            who = teacher.display_name if teacher else ""
        table.add_row(
            enrollment.id,
            enrollment.course_title,
            who,
            last.preview() if last else "",
            str(enrollment.unread_count),
        )
    return table


def render_session(session: Session) -> RenderableType:
    """Describe who is signed in."""
    if not session.is_authenticated or session.user is None:
        return Text("Not logged in.", style="yellow")
    role = session.role.value if session.role else "unknown role"
    line = Text()
    line.append(session.user.display_name, style="bold")
    line.append(f" ({role})")
    line.append(f" [{session.phase.value}]", style="dim")
    return line


def print_error(message: str) -> None:
    console.print(f"[red]Error:[/red] {message}")

"""
The PracticeHub route table.

Three role sections (admin at ``/``, teacher at ``/teacher``, student at
``/student``) plus the public login and registration views.
"""

from typing import Optional

from shared.models import Role

from .exceptions import UnknownRouteError
from .models import Route, RouteMatch

LOGIN_PATH = "/login"
DEFAULT_HOME = "/"

ADMIN_ONLY = frozenset({Role.ADMIN})
TEACHER_ONLY = frozenset({Role.TEACHER})
STUDENT_ONLY = frozenset({Role.STUDENT})

PUBLIC_ROUTES = [
    Route("/login", "login"),
    Route("/register/teacher", "register-teacher"),
    Route("/register/admin", "register-admin"),
    Route("/register/student", "register-student"),
]

ADMIN_ROUTES = [
    Route("/", "admin-dashboard", ADMIN_ONLY),
    Route("/students", "admin-students", ADMIN_ONLY),
    Route("/students/new", "admin-student-new", ADMIN_ONLY),
    Route("/students/:id", "admin-student-detail", ADMIN_ONLY),
    Route("/students/:id/edit", "admin-student-edit", ADMIN_ONLY),
    Route("/institutions", "admin-institutions", ADMIN_ONLY),
    Route("/calendar", "admin-calendar", ADMIN_ONLY),
    Route("/reports", "admin-reports", ADMIN_ONLY),
    Route("/applications", "admin-applications", ADMIN_ONLY),
    Route("/notifications", "admin-notifications", ADMIN_ONLY),
]

TEACHER_ROUTES = [
    Route("/teacher", "teacher-dashboard", TEACHER_ONLY),
    Route("/teacher/students", "teacher-students", TEACHER_ONLY),
    Route("/teacher/students/:id", "teacher-student-detail", TEACHER_ONLY),
    Route("/teacher/calendar", "teacher-calendar", TEACHER_ONLY),
    Route("/teacher/applications", "teacher-applications", TEACHER_ONLY),
    Route("/teacher/notifications", "teacher-notifications", TEACHER_ONLY),
    Route("/teacher/chats", "teacher-chats", TEACHER_ONLY),
    Route("/teacher/courses/:courseId", "teacher-course", TEACHER_ONLY),
    Route("/teacher/courses/:courseId/chat", "teacher-course-chat", TEACHER_ONLY),
    Route(
        "/teacher/courses/:courseId/chat/:enrollmentId",
        "teacher-course-chat-thread",
        TEACHER_ONLY,
    ),
]

STUDENT_ROUTES = [
    Route("/student", "student-dashboard", STUDENT_ONLY),
    Route("/student/application", "student-application", STUDENT_ONLY),
    Route("/student/courses", "student-courses", STUDENT_ONLY),
    Route("/student/courses/:courseId/chat", "student-course-chat", STUDENT_ONLY),
    Route("/student/chats", "student-chats", STUDENT_ONLY),
]

ROUTES = PUBLIC_ROUTES + ADMIN_ROUTES + TEACHER_ROUTES + STUDENT_ROUTES
_BY_NAME = {route.name: route for route in ROUTES}


def home_path(role: Optional[Role]) -> str:
    """Landing view for a role; unrecognised roles get the generic default."""
    if role is None:
        return DEFAULT_HOME
    if role is Role.ADMIN:
        return "/"
    if role is Role.TEACHER:
        return "/teacher"
    if role is Role.STUDENT:
        return "/student"
    raise ValueError(f"No home view for role {role!r}")


def login_redirect_path(role: Optional[Role]) -> str:
    """Where a fresh login lands."""
    return home_path(role)


def match_route(path: str) -> Optional[RouteMatch]:
    """Resolve a concrete path against the table; None if nothing matches."""
    for route in ROUTES:
        params = route.match(path)
        if params is not None:
            return RouteMatch(route=route, params=params)
    return None


def route_named(name: str) -> Route:
    try:
        return _BY_NAME[name]
    except KeyError:
        raise UnknownRouteError(name) from None


def path_for(name: str, **params: str) -> str:
    """Build the concrete path of a named route."""
    return route_named(name).build(**params)

"""
Routing module.

Client-side navigation, the route table, and the role-based route guard.

Public API:
- Navigator: current path, history, hard-navigation listeners
- RouteGuard: authentication and role gate for protected views
- home_path, match_route, path_for: route table helpers
"""

from .models import GuardAction, GuardDecision, Route, RouteMatch
from .navigator import Navigator
from .routes import (
    LOGIN_PATH,
    ROUTES,
    home_path,
    login_redirect_path,
    match_route,
    path_for,
    route_named,
)
from .service import RouteGuard
from .exceptions import UnknownRouteError

__all__ = [
    "GuardAction",
    "GuardDecision",
    "Route",
    "RouteMatch",
    "Navigator",
    "LOGIN_PATH",
    "ROUTES",
    "home_path",
    "login_redirect_path",
    "match_route",
    "path_for",
    "route_named",
    "RouteGuard",
    "UnknownRouteError",
]

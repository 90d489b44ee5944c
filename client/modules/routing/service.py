"""
Route guard implementation.

A guard wraps one protected view. It decides from the current session
whether the view may be shown, and otherwise where the user goes instead.
"""

import logging
from typing import Awaitable, Callable, Iterable, Optional, TypeVar

from modules.auth.interfaces import IAuthStore
from shared.models import Role

from .exceptions import UnknownRouteError
from .models import GuardDecision
from .navigator import Navigator
from .routes import LOGIN_PATH, home_path, match_route

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RouteGuard:
    """
    Gate a protected view by authentication state and role.

    Decision order:
    1. not authenticated -> login
    2. allow-list given and role not in it -> the role's own home
    3. otherwise render

    The first ``mount()`` starts a background revalidation of the stored
    token, so a stale session is caught as soon as a protected view is
    entered rather than only at startup.
    """

    def __init__(
        self,
        auth: IAuthStore,
        navigator: Navigator,
        allowed_roles: Optional[Iterable[Role]] = None,
        login_path: str = LOGIN_PATH,
    ):
        self._auth = auth
        self._navigator = navigator
        self.allowed_roles = frozenset(allowed_roles) if allowed_roles is not None else None
        self._login_path = login_path
        self._mounted = False

    @classmethod
    def for_path(
        cls,
        path: str,
        auth: IAuthStore,
        navigator: Navigator,
        login_path: str = LOGIN_PATH,
    ) -> "RouteGuard":
        """Build a guard using the allow-list the route table gives ``path``."""
        match = match_route(path)
        if match is None:
            raise UnknownRouteError(path)
        return cls(auth, navigator, match.route.allowed_roles, login_path=login_path)

    @property
    def mounted(self) -> bool:
        return self._mounted

    def mount(self) -> None:
        if self._mounted:
            return
        self._mounted = True
        self._auth.init_auth()

    def evaluate(self) -> GuardDecision:
        session = self._auth.session
        if not session.is_authenticated:
            return GuardDecision.redirect(self._login_path)
        if self.allowed_roles is not None and session.role not in self.allowed_roles:
            return GuardDecision.redirect(home_path(session.role))
        return GuardDecision.render()

    async def enter(self, view: Callable[[], Awaitable[T]]) -> tuple[GuardDecision, Optional[T]]:
        """
        Mount, decide, and either run ``view`` or navigate away.

        ``view`` is only called when the decision is to render, so a
        redirected user never triggers the view's data loading.
        """
        self.mount()
        decision = self.evaluate()
        if not decision.is_render:
            logger.debug("Guard redirecting %s -> %s", self._navigator.current_path, decision.target)
            self._navigator.navigate(decision.target, replace=True)
            return decision, None
        return decision, await view()

"""
Client-side location and history.

The navigator tracks which view the user is on. A plain navigation only
changes the path; a hard navigation (``reload=True``) additionally tells
every reload listener to re-read persisted state, the way a full page
load would.
"""

import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)

AUTH_PAGE_MARKERS = ("/login", "/register")


class Navigator:
    """Current path plus a history stack."""

    def __init__(self, initial_path: str = "/"):
        self._history: list[str] = [initial_path]
        self._reload_listeners: list[Callable[[], None]] = []

    @property
    def current_path(self) -> str:
        return self._history[-1]

    @property
    def history(self) -> list[str]:
        return list(self._history)

    def is_auth_page(self, path: Optional[str] = None) -> bool:
        """True for login and registration views."""
        target = self.current_path if path is None else path
        return any(marker in target for marker in AUTH_PAGE_MARKERS)

    def on_reload(self, listener: Callable[[], None]) -> Callable[[], None]:
        self._reload_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._reload_listeners:
                self._reload_listeners.remove(listener)

        return unsubscribe

    def navigate(self, path: str, *, replace: bool = False, reload: bool = False) -> None:
        if replace:
            self._history[-1] = path
        else:
            self._history.append(path)
        logger.debug("Navigated to %s%s", path, " (reload)" if reload else "")
        if reload:
            for listener in list(self._reload_listeners):
                listener()

    def back(self) -> str:
        if len(self._history) > 1:
            self._history.pop()
        return self.current_path

"""
Service wiring for the PracticeHub client.

This module provides the "container" that wires together all module
implementations. Each module exposes its service through an interface,
and this file creates the concrete implementations.

Tests build their own container with an in-memory storage and an ASGI
transport pointing at a fake backend.
"""

from typing import TYPE_CHECKING, Optional

import httpx

from shared.config import Settings, get_settings
from shared.storage import FileStorage, Storage

# Type checking imports for interfaces (avoids circular imports)
if TYPE_CHECKING:
    from modules.auth.service import AuthStore
    from modules.chat.interfaces import ICourseChatService
    from modules.routing.navigator import Navigator
    from shared.http import ApiClient


class ServiceContainer:
    """
    Container for all service instances.

    Services are created lazily on first access and cached for the life
    of the container. The session store is created once and lives as long
    as the process; views and guards are built per use.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        storage: Optional[Storage] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        initial_path: str = "/",
    ) -> None:
        self.settings = settings or get_settings()
        self._storage = storage
        self._transport = transport
        self._initial_path = initial_path
        self._navigator: "Navigator | None" = None
        self._api: "ApiClient | None" = None
        self._auth: "AuthStore | None" = None
        self._chat: "ICourseChatService | None" = None

    @property
    def storage(self) -> Storage:
        """Get the persisted storage."""
        if self._storage is None:
            self._storage = FileStorage(self.settings.storage_path)
        return self._storage

    @property
    def navigator(self) -> "Navigator":
        """Get the navigator."""
        if self._navigator is None:
            from modules.routing.navigator import Navigator
            self._navigator = Navigator(self._initial_path)
        return self._navigator

    @property
    def api(self) -> "ApiClient":
        """Get the API client."""
        if self._api is None:
            from shared.http import ApiClient
            self._api = ApiClient(
                self.storage,
                self.navigator,
                settings=self.settings,
                transport=self._transport,
            )
        return self._api

    @property
    def auth(self) -> "AuthStore":
        """Get the session store; hard navigations make it re-read storage."""
        if self._auth is None:
            from modules.auth.service import AuthStore
            self._auth = AuthStore(self.api, self.storage, self.settings.auth_storage_key)
            self.navigator.on_reload(self._auth.rehydrate)
        return self._auth

    @property
    def chat(self) -> "ICourseChatService":
        """Get the course chat service."""
        if self._chat is None:
            from modules.chat.service import CourseChatService
            self._chat = CourseChatService(self.api)
        return self._chat

    async def aclose(self) -> None:
        """Release the HTTP client."""
        if self._api is not None:
            await self._api.aclose()


# Module-level container singleton
_container: ServiceContainer | None = None


def get_container() -> ServiceContainer:
    """Get the singleton service container."""
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def reset_container() -> None:
    """
    Reset the service container.

    The next call to get_container() will create a fresh container.
    Primarily used for testing.
    """
    global _container
    _container = None

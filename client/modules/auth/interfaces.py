"""
Authentication module interface.

Other modules should depend on IAuthStore, not the concrete implementation.
This enables testing with fakes (route guard, chat views) without a backend.
"""

import asyncio
from typing import Callable, Optional, Protocol, runtime_checkable

from shared.models import Role

from .models import AuthResult, Session


@runtime_checkable
class IAuthStore(Protocol):
    """
    Interface for the client's session store.

    The store is the only state shared between unrelated views. It is
    mutated only by login, logout and revalidation, each of which replaces
    the session wholesale.
    """

    @property
    def session(self) -> Session:
        """The current session snapshot."""
        ...

    async def login(
        self,
        identifier: str,
        secret: str,
        role_hint: Optional[Role] = None,
    ) -> AuthResult:
        """
        Authenticate against the API.

        Never raises: network and server errors come back as
        AuthResult(success=False, message=...).
        """
        ...

    def logout(self) -> None:
        """Drop the session. Safe to call repeatedly."""
        ...

    async def check_auth(self) -> bool:
        """
        Revalidate the current token with the API.

        Returns False (after a full logout) when there is no token or the
        API rejects it.
        """
        ...

    def init_auth(self) -> Optional[asyncio.Task]:
        """Start a background revalidation if a token is present."""
        ...

    def subscribe(self, listener: Callable[[Session], None]) -> Callable[[], None]:
        """Register a listener for session changes; returns an unsubscribe."""
        ...

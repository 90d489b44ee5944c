"""
HTTP client for the PracticeHub API.

Every request to the backend goes through ApiClient. It applies the
bearer token from persisted storage, turns non-2xx responses into
ApiError, and handles an expired session (401) in one place: the
persisted credential is dropped and the user is sent to the login page.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

import httpx

from .config import Settings, get_settings
from .exceptions import ApiConnectionError, ApiError
from .storage import Storage, read_persisted_token

logger = logging.getLogger(__name__)

AUTHORIZATION = "Authorization"


class Navigation(Protocol):
    """What the client needs to know about, and do to, the current location."""

    @property
    def current_path(self) -> str:
        ...

    def is_auth_page(self, path: Optional[str] = None) -> bool:
        ...

    def navigate(self, path: str, *, replace: bool = False, reload: bool = False) -> None:
        ...


def bearer(token: str) -> str:
    return f"Bearer {token}"


class ApiClient:
    """
    Thin wrapper around httpx.AsyncClient with consistent auth + error handling.

    ``default_headers`` are sent with every request; the session store puts
    the current bearer token there. Independently of that, each request
    re-reads the persisted credential so a token written by another process
    (or wiped by a forced logout) is honoured immediately.

    There is no retry policy: a failed request fails once.
    """

    def __init__(
        self,
        storage: Storage,
        navigation: Navigation,
        *,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._settings = settings or get_settings()
        self._storage = storage
        self._navigation = navigation
        self.default_headers: dict[str, str] = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        self._client = httpx.AsyncClient(
            base_url=self._settings.api_base_url.rstrip("/"),
            timeout=self._settings.request_timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # Default credential

    def set_bearer_token(self, token: str) -> None:
        self.default_headers[AUTHORIZATION] = bearer(token)

    def clear_bearer_token(self) -> None:
        self.default_headers.pop(AUTHORIZATION, None)

    @property
    def bearer_token(self) -> Optional[str]:
        value = self.default_headers.get(AUTHORIZATION)
        if value and value.startswith("Bearer "):
            return value[len("Bearer "):]
        return None

    # Requests

    def _persisted_token(self) -> Optional[str]:
        return read_persisted_token(self._storage, self._settings.auth_storage_key)

    def _build_headers(self, token: Optional[str]) -> dict[str, str]:
        headers = dict(self.default_headers)
        if token:
            headers[AUTHORIZATION] = bearer(token)
        return headers

    def _handle_unauthorized(self, sent_token: Optional[str]) -> None:
        """Forget the persisted session and go to login, unless already there."""
        if self._navigation.is_auth_page():
            return
        if sent_token and self._persisted_token() != sent_token:
            # A newer login replaced the credential this request carried
            logger.info("Ignoring 401 for a credential that is no longer stored")
            return
        logger.info(
            "Session rejected by the API on %s, redirecting to %s",
            self._navigation.current_path,
            self._settings.login_path,
        )
        self._storage.remove_item(self._settings.auth_storage_key)
        self._navigation.navigate(self._settings.login_path, reload=True)

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        json: Any = None,
    ) -> Any:
        """Send a request and return the decoded JSON body."""
        token = self._persisted_token()
        try:
            response = await self._client.request(
                method,
                path,
                params=params,
                json=json,
                headers=self._build_headers(token),
            )
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise ApiConnectionError(
                f"Could not reach the server: {e}", method=method, path=path
            ) from e

        if response.is_success:
            return self._decode(response)

        payload = self._decode(response)
        error = ApiError(
            response.status_code,
            self._error_message(method, path, payload),
            payload=payload,
            method=method,
            path=path,
        )
        logger.warning("%s %s -> %s: %s", method, path, response.status_code, error.message)

        if error.is_unauthorized:
            self._handle_unauthorized(token)
        raise error

    @staticmethod
    def _error_message(method: str, path: str, payload: Any) -> str:
        if isinstance(payload, dict):
            for key in ("message", "error"):
                value = payload.get(key)
                if isinstance(value, str) and value:
                    return value
        return f"Request failed: {method} {path}"

    async def get(self, path: str, *, params: Optional[dict[str, Any]] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None) -> Any:
        return await self.request("POST", path, json=json)

    async def put(self, path: str, json: Any = None) -> Any:
        return await self.request("PUT", path, json=json)

    async def patch(self, path: str, json: Any = None) -> Any:
        return await self.request("PATCH", path, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

"""
Persisted client state.

A small key/value store of JSON blobs that outlives the process, playing
the part local storage plays in a browser. The session store keeps its
credential blob here and the HTTP client reads it on every request.

Nothing in this module raises on bad data: a missing, unreadable or
malformed store reads as empty.
"""

from __future__ import annotations

import json
import logging
import os
import uuid
from pathlib import Path
from typing import Any, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, ValidationError

from .models import Role, UserProfile

logger = logging.getLogger(__name__)

STORAGE_VERSION = 0


@runtime_checkable
class Storage(Protocol):
    """String-keyed store of JSON values."""

    def get_item(self, key: str) -> Optional[str]:
        """Return the raw stored string for ``key``, or None."""
        ...

    def set_item(self, key: str, value: str) -> None:
        ...

    def remove_item(self, key: str) -> None:
        ...


class MemoryStorage:
    """In-process storage, for tests and throwaway sessions."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class FileStorage:
    """
    Storage backed by a single JSON object on disk.

    The file is re-read on every access so that separate processes (and a
    forced logout in one of them) are observed by the others. Writes go
    through a temp file and ``os.replace``.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path).expanduser()

    def _load(self) -> dict[str, str]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read storage file %s: %s", self.path, e)
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring corrupt storage file %s", self.path)
            return {}
        if not isinstance(data, dict):
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _write(self, items: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + f".{uuid.uuid4().hex}.tmp")
        try:
            with tmp.open("w", encoding="utf-8") as fh:
                json.dump(items, fh, ensure_ascii=False, indent=2)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp, self.path)
        finally:
            tmp.unlink(missing_ok=True)

    def get_item(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = self._load()
        items[key] = value
        self._write(items)

    def remove_item(self, key: str) -> None:
        items = self._load()
        if key in items:
            del items[key]
            self._write(items)


class PersistedSession(BaseModel):
    """The persisted part of a session: token, user and role only."""

    token: Optional[str] = None
    user: Optional[UserProfile] = None
    role: Optional[Role] = None


def read_persisted_session(storage: Storage, key: str) -> PersistedSession:
    """
    Decode the session blob stored under ``key``.

    Expected shape is ``{"state": {"token", "user", "role"}, "version": 0}``.
    Anything else, including a user that no longer validates, yields an
    empty session.
    """
    raw = storage.get_item(key)
    if not raw:
        return PersistedSession()
    try:
        blob = json.loads(raw)
    except (TypeError, ValueError):
        logger.debug("Persisted session under %r is not JSON", key)
        return PersistedSession()
    state = blob.get("state") if isinstance(blob, dict) else None
    if not isinstance(state, dict):
        return PersistedSession()

    token = state.get("token")
    if not isinstance(token, str) or not token:
        token = None

    user = None
    if isinstance(state.get("user"), dict):
        try:
            user = UserProfile.model_validate(state["user"])
        except ValidationError:
            logger.debug("Persisted user under %r failed validation", key)

    role = Role.parse(state.get("role"))
    if role is None and user is not None:
        role = user.role
    return PersistedSession(token=token, user=user, role=role)


def read_persisted_token(storage: Storage, key: str) -> Optional[str]:
    """Return the persisted bearer token, or None if there is none."""
    return read_persisted_session(storage, key).token


def write_persisted_session(storage: Storage, key: str, session: PersistedSession) -> None:
    """Persist token, user and role under ``key``."""
    state: dict[str, Any] = {
        "token": session.token,
        "user": session.user.to_storage() if session.user else None,
        "role": session.role.value if session.role else None,
    }
    storage.set_item(key, json.dumps({"state": state, "version": STORAGE_VERSION}))

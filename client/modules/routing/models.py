"""
Routing module data models.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from shared.models import Role


class GuardAction(str, Enum):
    RENDER = "render"
    REDIRECT = "redirect"


@dataclass(frozen=True)
class GuardDecision:
    """What a route guard decided for the current session."""

    action: GuardAction
    target: Optional[str] = None

    @classmethod
    def render(cls) -> "GuardDecision":
        return cls(GuardAction.RENDER)

    @classmethod
    def redirect(cls, target: str) -> "GuardDecision":
        return cls(GuardAction.REDIRECT, target)

    @property
    def is_render(self) -> bool:
        return self.action is GuardAction.RENDER


@dataclass(frozen=True)
class Route:
    """
    One entry of the route table.

    ``pattern`` uses ``:name`` segments for path parameters. Routes with
    ``allowed_roles`` of None are public.
    """

    pattern: str
    name: str
    allowed_roles: Optional[frozenset[Role]] = None

    @property
    def is_protected(self) -> bool:
        return self.allowed_roles is not None

    def match(self, path: str) -> Optional[dict[str, str]]:
        """Return path parameters if ``path`` matches this route."""
        want = _segments(self.pattern)
        got = _segments(path)
        if len(want) != len(got):
            return None
        params: dict[str, str] = {}
        for expected, actual in zip(want, got):
            if expected.startswith(":"):
                params[expected[1:]] = actual
            elif expected != actual:
                return None
        return params

    def build(self, **params: str) -> str:
        parts = []
        for segment in _segments(self.pattern):
            parts.append(params[segment[1:]] if segment.startswith(":") else segment)
        return "/" + "/".join(parts)


@dataclass(frozen=True)
class RouteMatch:
    route: Route
    params: dict[str, str] = field(default_factory=dict)


def _segments(path: str) -> list[str]:
    return [s for s in path.split("?")[0].split("/") if s]

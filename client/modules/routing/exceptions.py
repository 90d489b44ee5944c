"""
Routing module exceptions.
"""

from shared.exceptions import NotFoundError


class UnknownRouteError(NotFoundError):
    """Raised when a path or route name is not in the route table."""

    def __init__(self, route: str):
        super().__init__(
            f"Unknown route: {route}",
            code="UNKNOWN_ROUTE",
            details={"route": route},
        )

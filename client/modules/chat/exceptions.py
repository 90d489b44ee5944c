"""
Chat module exceptions.
"""

from shared.exceptions import NotFoundError


class EnrollmentNotFoundError(NotFoundError):
    """Raised when an enrollment is not part of the loaded roster."""

    def __init__(self, enrollment_id: str):
        super().__init__(
            f"Enrollment not found: {enrollment_id}",
            code="ENROLLMENT_NOT_FOUND",
            details={"enrollment_id": enrollment_id},
        )

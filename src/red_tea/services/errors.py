"""Domain errors raised by the directory, content, vote and moderation services."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from red_tea.services.moderation import CascadeReport


class RedTeaError(Exception):
    """Base exception for rejected operations."""

    default_message = "Operation rejected"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class UnauthenticatedError(RedTeaError):
    """No verifiable principal is attached to the request."""

    default_message = "Not authenticated"


class UnauthorizedError(RedTeaError):
    """The principal lacks the role or ownership an operation requires."""

    default_message = "Unauthorized"


class RecordNotFoundError(RedTeaError):
    """A referenced user, post or comment does not exist."""

    default_message = "Record not found"


class CascadeError(RedTeaError):
    """A required step of a multi-step deletion failed.

    Carries the report of which steps ran, failed or were skipped.
    """

    def __init__(self, report: "CascadeReport") -> None:
        failed = ", ".join(step.name for step in report.failed)
        super().__init__(f"Cascade '{report.name}' failed at: {failed}")
        self.report = report

"""Moderation engine: principals, authorization gates and deletion cascades.

Every privileged operation receives an explicit ``Principal`` resolved from
the request's bearer token. Because the principal is rebuilt from the
directory on each request, a demoted admin loses access on their next call.

Multi-step deletions (a user wipe, a post with its image) are expressed as a
``Cascade``: an ordered list of named steps executed one after another. Each
step's outcome is captured in a ``CascadeReport``. Best-effort steps (object
storage cleanup) may fail without stopping the cascade; a failing required
step stops it and the caller gets a ``CascadeError``.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from red_tea.models.user import Role, User
from red_tea.services.base import APIError
from red_tea.services.errors import (
    CascadeError,
    RecordNotFoundError,
    UnauthenticatedError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """The authenticated actor of a single request."""

    subject_id: str
    user_id: int | None = None
    role: Role = Role.USER
    is_banned: bool = False
    is_approved: bool = False
    email: str | None = None
    name: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


async def resolve_principal(
    db: AsyncSession,
    subject_id: str | None,
    email: str | None = None,
    name: str | None = None,
) -> Principal:
    """Build the principal for a verified token subject.

    A subject without a directory record yet (the provider's webhook has not
    arrived) resolves to a plain user principal with no ``user_id``.
    """
    if not subject_id:
        raise UnauthenticatedError()

    result = await db.execute(select(User).where(User.subject_id == subject_id))
    user = result.scalar_one_or_none()
    if user is None:
        return Principal(subject_id=subject_id, email=email, name=name)

    return Principal(
        subject_id=subject_id,
        user_id=user.id,
        role=Role(user.role),
        is_banned=user.is_banned,
        is_approved=user.is_approved,
        email=email or user.email,
        name=name or user.name,
    )


def require_admin(principal: Principal) -> None:
    """Fail closed unless the principal's directory role is admin."""
    if not principal.is_admin:
        logger.warning("Rejected admin operation by %s", principal.subject_id)
        raise UnauthorizedError("Admin access required")


def require_user(principal: Principal) -> int:
    """Return the principal's directory id, failing if it has no record."""
    if principal.user_id is None:
        raise RecordNotFoundError("User not found")
    return principal.user_id


def require_active_user(principal: Principal) -> int:
    """Like ``require_user`` but also rejects banned accounts."""
    user_id = require_user(principal)
    if principal.is_banned:
        raise UnauthorizedError("Account is banned")
    return user_id


class StepStatus(StrEnum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class CascadeStep:
    name: str
    action: Callable[[], Awaitable[Any]]
    required: bool = True


@dataclass
class StepOutcome:
    name: str
    status: StepStatus
    required: bool
    error: str | None = None
    external: bool = False


@dataclass
class CascadeReport:
    """Aggregate result of a cascade run."""

    name: str
    outcomes: list[StepOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> list[StepOutcome]:
        return [o for o in self.outcomes if o.status == StepStatus.SUCCEEDED]

    @property
    def failed(self) -> list[StepOutcome]:
        return [o for o in self.outcomes if o.status == StepStatus.FAILED]

    @property
    def skipped(self) -> list[StepOutcome]:
        return [o for o in self.outcomes if o.status == StepStatus.SKIPPED]

    @property
    def ok(self) -> bool:
        """True unless a required step failed."""
        return not any(o.required for o in self.failed)


class Cascade:
    """Ordered plan of deletion steps with per-step failure capture."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._steps: list[CascadeStep] = []

    def __len__(self) -> int:
        return len(self._steps)

    @property
    def step_names(self) -> list[str]:
        return [step.name for step in self._steps]

    def add(self, name: str, action: Callable[[], Awaitable[Any]]) -> "Cascade":
        """Append a required step; its failure stops the cascade."""
        self._steps.append(CascadeStep(name=name, action=action, required=True))
        return self

    def best_effort(self, name: str, action: Callable[[], Awaitable[Any]]) -> "Cascade":
        """Append a step whose failure is recorded but does not stop the cascade."""
        self._steps.append(CascadeStep(name=name, action=action, required=False))
        return self

    async def run(self) -> CascadeReport:
        """Execute all steps in order and report what happened."""
        report = CascadeReport(name=self.name)
        aborted = False

        for step in self._steps:
            if aborted:
                report.outcomes.append(
                    StepOutcome(name=step.name, status=StepStatus.SKIPPED, required=step.required)
                )
                continue

            try:
                await step.action()
            except Exception as exc:  # noqa: BLE001 - every failure is recorded in the report
                outcome = StepOutcome(
                    name=step.name,
                    status=StepStatus.FAILED,
                    required=step.required,
                    error=str(exc) or exc.__class__.__name__,
                    external=isinstance(exc, APIError),
                )
                report.outcomes.append(outcome)
                if step.required:
                    logger.error("Cascade %s: step %s failed: %s", self.name, step.name, outcome.error)
                    aborted = True
                else:
                    logger.warning(
                        "Cascade %s: best-effort step %s failed: %s",
                        self.name,
                        step.name,
                        outcome.error,
                    )
            else:
                report.outcomes.append(
                    StepOutcome(name=step.name, status=StepStatus.SUCCEEDED, required=step.required)
                )

        return report

    async def execute(self) -> CascadeReport:
        """Run the cascade, raising ``CascadeError`` if a required step failed."""
        report = await self.run()
        if not report.ok:
            raise CascadeError(report)
        logger.info(
            "Cascade %s finished: %d succeeded, %d best-effort failures",
            self.name,
            len(report.succeeded),
            len(report.failed),
        )
        return report

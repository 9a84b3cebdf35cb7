"""Tests for principals, authorization gates and deletion cascades."""

import pytest
from conftest import create_user
from sqlalchemy.ext.asyncio import AsyncSession

from red_tea.models.user import Role
from red_tea.services.base import APIError
from red_tea.services.errors import (
    CascadeError,
    RecordNotFoundError,
    UnauthenticatedError,
    UnauthorizedError,
)
from red_tea.services.moderation import (
    Cascade,
    Principal,
    StepStatus,
    require_active_user,
    require_admin,
    require_user,
    resolve_principal,
)


class TestResolvePrincipal:
    """Tests for building principals from token subjects."""

    async def test_missing_subject(self, db_session: AsyncSession) -> None:
        with pytest.raises(UnauthenticatedError):
            await resolve_principal(db_session, None)

    async def test_unknown_subject(self, db_session: AsyncSession) -> None:
        """A subject whose webhook has not arrived yet has no directory id."""
        principal = await resolve_principal(db_session, "new-subject", email="new@example.com")

        assert principal.subject_id == "new-subject"
        assert principal.user_id is None
        assert principal.role == Role.USER
        assert principal.email == "new@example.com"

    async def test_role_comes_from_directory(self, db_session: AsyncSession) -> None:
        admin = await create_user(db_session, "admin", role=Role.ADMIN)

        principal = await resolve_principal(db_session, "admin")

        assert principal.user_id == admin.id
        assert principal.is_admin is True
        assert principal.email == "admin@example.com"

    async def test_demotion_takes_effect_immediately(self, db_session: AsyncSession) -> None:
        admin = await create_user(db_session, "admin", role=Role.ADMIN)
        assert (await resolve_principal(db_session, "admin")).is_admin

        admin.role = Role.USER
        await db_session.flush()

        assert not (await resolve_principal(db_session, "admin")).is_admin


class TestGates:
    """Tests for authorization gates."""

    def test_require_admin_rejects_user(self) -> None:
        with pytest.raises(UnauthorizedError, match="Admin access required"):
            require_admin(Principal(subject_id="u", user_id=1))

    def test_require_admin_accepts_admin(self) -> None:
        require_admin(Principal(subject_id="a", user_id=1, role=Role.ADMIN))

    def test_require_user_without_record(self) -> None:
        with pytest.raises(RecordNotFoundError):
            require_user(Principal(subject_id="u"))

    def test_require_active_user_rejects_banned(self) -> None:
        with pytest.raises(UnauthorizedError, match="banned"):
            require_active_user(Principal(subject_id="u", user_id=3, is_banned=True))

    def test_require_active_user_returns_id(self) -> None:
        assert require_active_user(Principal(subject_id="u", user_id=3)) == 3


class TestCascade:
    """Tests for the deletion saga."""

    async def test_runs_steps_in_order(self) -> None:
        calls: list[str] = []

        async def step(name: str) -> None:
            calls.append(name)

        cascade = Cascade("test")
        cascade.add("first", lambda: step("first"))
        cascade.best_effort("second", lambda: step("second"))
        cascade.add("third", lambda: step("third"))

        report = await cascade.execute()

        assert calls == ["first", "second", "third"]
        assert cascade.step_names == ["first", "second", "third"]
        assert report.ok
        assert len(report.succeeded) == 3

    async def test_best_effort_failure_continues(self) -> None:
        calls: list[str] = []

        async def fail() -> None:
            raise APIError("storage down", status_code=503)

        async def succeed() -> None:
            calls.append("after")

        cascade = Cascade("test").best_effort("image", fail).add("record", succeed)
        report = await cascade.execute()

        assert report.ok
        assert calls == ["after"]
        (failed,) = report.failed
        assert failed.name == "image"
        assert failed.error == "storage down"
        assert failed.external is True
        assert failed.required is False

    async def test_required_failure_skips_rest(self) -> None:
        calls: list[str] = []

        async def fail() -> None:
            raise RuntimeError("database gone")

        async def succeed() -> None:
            calls.append("never")

        cascade = Cascade("test").add("first", fail).add("second", succeed)
        report = await cascade.run()

        assert not report.ok
        assert calls == []
        assert [o.status for o in report.outcomes] == [StepStatus.FAILED, StepStatus.SKIPPED]
        assert report.failed[0].external is False

    async def test_execute_raises_with_report(self) -> None:
        async def fail() -> None:
            raise APIError("provider rejected", status_code=500)

        cascade = Cascade("wipe_user:1").add("delete_identity", fail)

        with pytest.raises(CascadeError, match="delete_identity") as exc_info:
            await cascade.execute()

        report = exc_info.value.report
        assert report.name == "wipe_user:1"
        assert report.failed[0].external is True

    async def test_empty_cascade(self) -> None:
        cascade = Cascade("nothing")
        report = await cascade.execute()

        assert len(cascade) == 0
        assert report.ok
        assert report.outcomes == []

"""
Tests for the session-role guard.

These tests verify:
  - evaluate() allows a session only when the identity, its role and its
    session version still match the token and the role fits the space
  - A role change made while a session is live ends that session on its
    next request, with the role-appropriate entry point
  - Members reaching admin space (and admins reaching user space) lose
    every outstanding session, not just the offending request
"""

import uuid

from sqlalchemy import select

from netbank.models.user import User, Role
from netbank.services.session_guard import (
    RequestContext,
    ResourceClass,
    entry_point_for,
    evaluate,
)


def make_user(role: Role | None = Role.USER, session_version: int = 0, is_active: bool = True) -> User:
    return User(
        id=uuid.uuid4(),
        username="guarded",
        email="guarded@example.com",
        hashed_password="x",
        role=role,
        is_active=is_active,
        session_version=session_version,
    )


def context(role: Role | None = Role.USER, version: int = 0, space=ResourceClass.USER_SPACE):
    return RequestContext(role_snapshot=role, session_version=version, resource_class=space)


class TestEvaluate:
    """Pure decision function."""

    def test_member_in_user_space_is_allowed(self):
        decision = evaluate(context(), make_user())
        assert decision.allowed is True
        assert decision.reason is None

    def test_admin_in_admin_space_is_allowed(self):
        decision = evaluate(
            context(Role.ADMIN, space=ResourceClass.ADMIN_SPACE),
            make_user(Role.ADMIN),
        )
        assert decision.allowed is True

    def test_missing_identity(self):
        decision = evaluate(context(), None)
        assert decision.allowed is False
        assert decision.reason == "identity_unavailable"
        assert decision.redirect_to == "/auth/login?message=session_expired"

    def test_inactive_identity(self):
        decision = evaluate(context(), make_user(is_active=False))
        assert decision.reason == "identity_unavailable"

    def test_identity_without_role(self):
        decision = evaluate(context(), make_user(role=None))
        assert decision.allowed is False
        assert decision.reason == "no_role"

    def test_stale_session_version(self):
        decision = evaluate(context(version=0), make_user(session_version=1))
        assert decision.reason == "session_revoked"

    def test_role_changed_to_admin(self):
        decision = evaluate(context(Role.USER), make_user(Role.ADMIN))
        assert decision.allowed is False
        assert decision.reason == "role_changed"
        assert decision.redirect_to == "/admin/login?message=session_expired"

    def test_role_changed_to_user(self):
        decision = evaluate(
            context(Role.ADMIN, space=ResourceClass.ADMIN_SPACE),
            make_user(Role.USER),
        )
        assert decision.reason == "role_changed"
        assert decision.redirect_to == "/auth/login?message=session_expired"

    def test_member_in_admin_space(self):
        decision = evaluate(
            context(Role.USER, space=ResourceClass.ADMIN_SPACE),
            make_user(Role.USER),
        )
        assert decision.allowed is False
        assert decision.reason == "admin_space_denied"

    def test_admin_in_user_space(self):
        decision = evaluate(context(Role.ADMIN), make_user(Role.ADMIN))
        assert decision.allowed is False
        assert decision.reason == "user_space_denied"
        assert decision.redirect_to == "/admin/login?message=session_expired"

    def test_entry_point_defaults_to_user_login(self):
        assert entry_point_for(None) == "/auth/login?message=session_expired"


async def _session_version(session_factory, user_id: str) -> int:
    async with session_factory() as session:
        result = await session.execute(
            select(User.session_version).where(User.id == uuid.UUID(user_id))
        )
        return result.scalar_one()


class TestRoleChangeDuringSession:
    """A role change takes effect on the very next request."""

    async def test_promoted_member_session_expires(self, client, member, admin_headers, session_factory):
        response = await client.patch(
            f"/admin/users/{member.user_id}/role",
            json={"role": "admin"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["role"] == "admin"

        response = await client.get("/accounts", headers=member.headers)
        assert response.status_code == 401
        body = response.json()
        assert body["error_type"] == "session_expired"
        assert body["reason"] == "role_changed"
        assert body["redirect_to"] == "/admin/login?message=session_expired"
        assert await _session_version(session_factory, member.user_id) == 1

    async def test_revoked_role_session_expires(self, client, member, admin_headers):
        await client.patch(
            f"/admin/users/{member.user_id}/role",
            json={"role": None},
            headers=admin_headers,
        )

        response = await client.get("/accounts", headers=member.headers)
        assert response.status_code == 401
        assert response.json()["reason"] == "no_role"

    async def test_revoked_role_cannot_log_in(self, client, member, admin_headers):
        await client.patch(
            f"/admin/users/{member.user_id}/role",
            json={"role": None},
            headers=admin_headers,
        )

        response = await client.post(
            "/auth/login",
            json={"username": member.username, "password": member.password},
        )
        assert response.status_code == 401

    async def test_promoted_member_can_log_in_as_admin(self, client, member, admin_headers):
        await client.patch(
            f"/admin/users/{member.user_id}/role",
            json={"role": "admin"},
            headers=admin_headers,
        )

        response = await client.post(
            "/admin/login",
            json={"username": member.username, "password": member.password},
        )
        assert response.status_code == 200
        headers = {"Authorization": f"Bearer {response.json()['token']}"}
        assert (await client.get("/admin/accounts", headers=headers)).status_code == 200


class TestCrossSpaceAccess:
    """Sessions that stray into the other role's space are discarded."""

    async def test_member_token_on_admin_route(self, client, member, session_factory):
        response = await client.get("/admin/accounts", headers=member.headers)
        assert response.status_code == 401
        body = response.json()
        assert body["reason"] == "admin_space_denied"
        assert body["redirect_to"] == "/auth/login?message=session_expired"

        # The member's own space is closed to that token too
        response = await client.get("/accounts", headers=member.headers)
        assert response.status_code == 401
        assert response.json()["reason"] == "session_revoked"
        assert await _session_version(session_factory, member.user_id) >= 1

    async def test_admin_token_on_member_route(self, client, admin_headers):
        response = await client.get("/accounts", headers=admin_headers)
        assert response.status_code == 401
        body = response.json()
        assert body["reason"] == "user_space_denied"
        assert body["redirect_to"] == "/admin/login?message=session_expired"

        response = await client.get("/admin/accounts", headers=admin_headers)
        assert response.status_code == 401

    async def test_other_members_are_unaffected(self, client, member, second_member):
        await client.get("/admin/accounts", headers=member.headers)

        response = await client.get("/accounts", headers=second_member.headers)
        assert response.status_code == 200

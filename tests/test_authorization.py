"""
Tests for authorization boundaries — cross-user isolation and role enforcement.

These tests verify two critical security properties:

1. **Cross-user isolation**: A logged-in member cannot access, move money
   out of, or even detect the existence of another member's accounts,
   transactions or statements. Every attempt returns 404, exactly as if
   the resource did not exist.

2. **Role enforcement**: Member sessions never reach /admin/* endpoints and
   admin sessions never reach member endpoints. The session-role guard
   answers 401 session_expired and discards the offending session.

Together, these tests ensure that authentication alone is insufficient —
the system enforces *authorization* (who can do what) at every endpoint.
"""

import uuid

import pytest

from conftest import cash_deposit, set_pin, DEFAULT_PIN


class TestCrossUserAccountAccess:
    """A logged-in member cannot see or use another member's accounts."""

    async def test_cannot_view_other_users_balance(self, client, member, second_member):
        resp = await client.get(
            f"/accounts/{member.checking['id']}/balance", headers=second_member.headers
        )
        assert resp.status_code == 404

    async def test_not_found_is_indistinguishable(self, client, member, second_member):
        """A real foreign account and a random id produce the same kind of error."""
        foreign = await client.get(
            f"/accounts/{member.checking['id']}", headers=second_member.headers
        )
        missing = await client.get(f"/accounts/{uuid.uuid4()}", headers=second_member.headers)
        assert foreign.status_code == missing.status_code == 404
        assert foreign.json()["error_type"] == missing.json()["error_type"]

    async def test_cannot_list_other_users_transactions(self, client, member, second_member):
        await cash_deposit(client, member, member.checking["id"], 1_000)

        resp = await client.get(
            f"/accounts/{member.checking['id']}/transactions", headers=second_member.headers
        )
        assert resp.status_code == 404

    async def test_cannot_view_other_users_single_transaction(self, client, member, second_member):
        txn = await cash_deposit(client, member, member.checking["id"], 1_000)

        resp = await client.get(
            f"/accounts/{member.checking['id']}/transactions/{txn['id']}",
            headers=second_member.headers,
        )
        assert resp.status_code == 404

        # Nor through one of their own accounts
        resp = await client.get(
            f"/accounts/{second_member.checking['id']}/transactions/{txn['id']}",
            headers=second_member.headers,
        )
        assert resp.status_code == 404

    async def test_cannot_transfer_from_other_users_account(self, client, member, second_member):
        """Knowing the PIN is not enough: the source must belong to the caller."""
        await set_pin(client, member)
        await set_pin(client, second_member)
        await cash_deposit(client, member, member.checking["id"], 10_000)

        resp = await client.post(
            "/transfers",
            json={
                "from_account_id": member.checking["id"],
                "to_account_number": second_member.checking["account_number"],
                "amount_cents": 5_000,
                "transaction_pin": DEFAULT_PIN,
            },
            headers=second_member.headers,
        )
        assert resp.status_code == 404

        balance = await client.get(
            f"/accounts/{member.checking['id']}/balance", headers=member.headers
        )
        assert balance.json()["balance_cents"] == 10_000

    async def test_cannot_view_other_users_statement(self, client, member, second_member):
        resp = await client.get(
            f"/accounts/{member.checking['id']}/statements",
            params={"year": 2026, "month": 1},
            headers=second_member.headers,
        )
        assert resp.status_code == 404


ADMIN_GET_ENDPOINTS = [
    "/admin/accounts",
    "/admin/accounts/{account_id}",
    "/admin/accounts/{account_id}/balance",
    "/admin/accounts/{account_id}/transactions",
    "/admin/transactions",
    "/admin/users",
    "/admin/service-requests",
    "/admin/reports/transactions",
    "/admin/credentials",
]


class TestNonAdminBlockedFromAdminEndpoints:
    """Member sessions cannot reach any /admin/* endpoint.

    Every admin endpoint depends on `require_admin`, which runs the
    session-role guard for admin space before the handler is called.
    """

    @pytest.mark.parametrize("path", ADMIN_GET_ENDPOINTS)
    async def test_member_blocked(self, client, member, path):
        resp = await client.get(
            path.format(account_id=member.checking["id"]), headers=member.headers
        )
        assert resp.status_code == 401
        assert resp.json()["error_type"] == "session_expired"

    async def test_member_cannot_clear_checks_or_respond(self, client, member):
        fake_id = uuid.uuid4()
        resp = await client.post(
            f"/admin/service-requests/{fake_id}/respond",
            json={"response": "Approved"},
            headers=member.headers,
        )
        assert resp.status_code == 401

    async def test_member_cannot_change_roles(self, client, member):
        resp = await client.patch(
            f"/admin/users/{member.user_id}/role",
            json={"role": "admin"},
            headers=member.headers,
        )
        assert resp.status_code == 401


class TestAdminBlockedFromMemberEndpoints:
    """Administrators oversee the ledger but never act as members."""

    async def test_admin_cannot_transfer(self, client, member, admin_headers):
        resp = await client.post(
            "/transfers",
            json={
                "from_account_id": member.checking["id"],
                "to_account_number": member.savings["account_number"],
                "amount_cents": 100,
                "transaction_pin": DEFAULT_PIN,
            },
            headers=admin_headers,
        )
        assert resp.status_code == 401

    async def test_admin_cannot_deposit(self, client, member, admin_headers):
        resp = await client.post(
            "/deposits/cash",
            json={"account_id": member.checking["id"], "amount_cents": 1_000},
            headers=admin_headers,
        )
        assert resp.status_code == 401

    async def test_admin_cannot_read_member_profile(self, client, admin_headers):
        resp = await client.get("/account-holders/me", headers=admin_headers)
        assert resp.status_code == 401

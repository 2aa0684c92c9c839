"""
Tests for transaction PIN (T-PIN) management.

These tests verify:
  - Setting a T-PIN applies it to every active account at once
  - The PIN must be confirmed and meet the minimum length
  - Changing it requires the current PIN
  - The PIN hash is never exposed
"""

from conftest import set_pin, DEFAULT_PIN


class TestResetPin:
    """Tests for PUT /account-holders/me/transaction-pin."""

    async def test_applies_to_all_accounts(self, client, member):
        response = await client.put(
            "/account-holders/me/transaction-pin",
            json={"new_pin": "2468", "confirm_pin": "2468"},
            headers=member.headers,
        )
        assert response.status_code == 200
        assert response.json()["accounts_updated"] == 2

        accounts = (await client.get("/accounts", headers=member.headers)).json()
        assert all(account["has_transaction_pin"] for account in accounts)
        assert all("transaction_pin_hash" not in account for account in accounts)

    async def test_confirmation_mismatch(self, client, member):
        response = await client.put(
            "/account-holders/me/transaction-pin",
            json={"new_pin": "2468", "confirm_pin": "8642"},
            headers=member.headers,
        )
        assert response.status_code == 422
        assert "do not match" in response.json()["detail"]

    async def test_too_short(self, client, member):
        response = await client.put(
            "/account-holders/me/transaction-pin",
            json={"new_pin": "12", "confirm_pin": "12"},
            headers=member.headers,
        )
        assert response.status_code == 422

    async def test_skips_inactive_accounts(self, client, member, admin_headers):
        await client.post(f"/admin/accounts/{member.savings['id']}/deactivate", headers=admin_headers)

        response = await client.put(
            "/account-holders/me/transaction-pin",
            json={"new_pin": "2468", "confirm_pin": "2468"},
            headers=member.headers,
        )
        assert response.json()["accounts_updated"] == 1

    async def test_no_active_accounts(self, client, member, admin_headers):
        for account in (member.savings, member.checking):
            await client.post(f"/admin/accounts/{account['id']}/deactivate", headers=admin_headers)

        response = await client.put(
            "/account-holders/me/transaction-pin",
            json={"new_pin": "2468", "confirm_pin": "2468"},
            headers=member.headers,
        )
        assert response.status_code == 422
        assert response.json()["detail"] == "No active accounts found"


class TestChangePin:
    """Tests for POST /account-holders/me/transaction-pin/change."""

    async def test_change_with_current_pin(self, client, member):
        await set_pin(client, member)

        response = await client.post(
            "/account-holders/me/transaction-pin/change",
            json={"current_pin": DEFAULT_PIN, "new_pin": "9753", "confirm_pin": "9753"},
            headers=member.headers,
        )
        assert response.status_code == 200
        assert response.json()["accounts_updated"] == 2

    async def test_wrong_current_pin(self, client, member):
        await set_pin(client, member)

        response = await client.post(
            "/account-holders/me/transaction-pin/change",
            json={"current_pin": "0000", "new_pin": "9753", "confirm_pin": "9753"},
            headers=member.headers,
        )
        assert response.status_code == 422
        assert response.json()["detail"] == "Current transaction PIN is incorrect"

    async def test_change_before_any_pin_is_set(self, client, member):
        response = await client.post(
            "/account-holders/me/transaction-pin/change",
            json={"current_pin": "0000", "new_pin": "9753", "confirm_pin": "9753"},
            headers=member.headers,
        )
        assert response.status_code == 422
        assert "Please set one first" in response.json()["detail"]

    async def test_old_pin_stops_working(self, client, member, second_member):
        await set_pin(client, member)
        await client.post(
            "/deposits/cash",
            json={"account_id": member.checking["id"], "amount_cents": 5_000},
            headers=member.headers,
        )
        await client.post(
            "/account-holders/me/transaction-pin/change",
            json={"current_pin": DEFAULT_PIN, "new_pin": "9753", "confirm_pin": "9753"},
            headers=member.headers,
        )

        transfer = {
            "from_account_id": member.checking["id"],
            "to_account_number": second_member.checking["account_number"],
            "amount_cents": 1_000,
        }
        old = await client.post(
            "/transfers", json={**transfer, "transaction_pin": DEFAULT_PIN}, headers=member.headers
        )
        new = await client.post(
            "/transfers", json={**transfer, "transaction_pin": "9753"}, headers=member.headers
        )
        assert old.status_code == 422
        assert new.status_code == 201

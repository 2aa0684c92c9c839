"""
Tests for transaction history endpoints.

These tests verify:
  - Listing an account's transactions, newest first, with paging
  - Filtering by status and by type
  - Fetching a single transaction, scoped to its account
  - Admin can view all transactions org-wide and per account
"""

import uuid

from conftest import cash_deposit, set_pin, DEFAULT_PIN


async def _history(client, member, account_id, **params):
    response = await client.get(
        f"/accounts/{account_id}/transactions", params=params, headers=member.headers
    )
    assert response.status_code == 200, response.text
    return response.json()


class TestTransactionHistory:

    async def test_list_transactions(self, client, member):
        for amount in (1_000, 2_000, 3_000):
            await cash_deposit(client, member, member.savings["id"], amount)

        history = await _history(client, member, member.savings["id"])
        assert [txn["amount_cents"] for txn in history] == [3_000, 2_000, 1_000]

    async def test_paging(self, client, member):
        for amount in (1_000, 2_000, 3_000):
            await cash_deposit(client, member, member.savings["id"], amount)

        page = await _history(client, member, member.savings["id"], limit=2, offset=1)
        assert [txn["amount_cents"] for txn in page] == [2_000, 1_000]

    async def test_filter_by_type(self, client, member):
        await set_pin(client, member)
        await cash_deposit(client, member, member.checking["id"], 5_000)
        await client.post(
            "/transfers",
            json={
                "from_account_id": member.checking["id"],
                "to_account_number": member.savings["account_number"],
                "amount_cents": 1_500,
                "transaction_pin": DEFAULT_PIN,
            },
            headers=member.headers,
        )

        transfers = await _history(client, member, member.checking["id"], type="fund_transfer")
        assert len(transfers) == 1
        assert transfers[0]["amount_cents"] == 1_500

        deposits = await _history(client, member, member.checking["id"], type="cash_deposit")
        assert [txn["amount_cents"] for txn in deposits] == [5_000]

    async def test_filter_by_status(self, client, member):
        await cash_deposit(client, member, member.checking["id"], 5_000)
        await client.post(
            "/deposits/check",
            json={"account_id": member.checking["id"], "amount_cents": 8_000, "check_number": "11"},
            headers=member.headers,
        )

        pending = await _history(client, member, member.checking["id"], status="pending")
        assert [txn["type"] for txn in pending] == ["check_deposit"]

        completed = await _history(client, member, member.checking["id"], status="completed")
        assert [txn["type"] for txn in completed] == ["cash_deposit"]

    async def test_invalid_filter_value(self, client, member):
        response = await client.get(
            f"/accounts/{member.checking['id']}/transactions",
            params={"status": "approved"},
            headers=member.headers,
        )
        assert response.status_code == 422

    async def test_get_single_transaction(self, client, member):
        txn = await cash_deposit(client, member, member.savings["id"], 1_234)

        response = await client.get(
            f"/accounts/{member.savings['id']}/transactions/{txn['id']}",
            headers=member.headers,
        )
        assert response.status_code == 200
        assert response.json()["reference_number"] == txn["reference_number"]

    async def test_single_transaction_wrong_account(self, client, member):
        txn = await cash_deposit(client, member, member.savings["id"], 1_234)

        response = await client.get(
            f"/accounts/{member.checking['id']}/transactions/{txn['id']}",
            headers=member.headers,
        )
        assert response.status_code == 404
        assert response.json()["error_type"] == "transaction_not_found"

    async def test_unknown_transaction(self, client, member):
        response = await client.get(
            f"/accounts/{member.savings['id']}/transactions/{uuid.uuid4()}",
            headers=member.headers,
        )
        assert response.status_code == 404


class TestAdminTransactionViews:

    async def test_admin_can_list_all_transactions(self, client, member, second_member, admin_headers):
        await cash_deposit(client, member, member.savings["id"], 1_000)
        await cash_deposit(client, second_member, second_member.savings["id"], 2_000)

        response = await client.get("/admin/transactions", headers=admin_headers)
        assert response.status_code == 200
        assert sorted(txn["amount_cents"] for txn in response.json()) == [1_000, 2_000]

    async def test_admin_filters_pending_checks(self, client, member, admin_headers):
        await cash_deposit(client, member, member.savings["id"], 1_000)
        await client.post(
            "/deposits/check",
            json={"account_id": member.savings["id"], "amount_cents": 3_000, "check_number": "12"},
            headers=member.headers,
        )

        response = await client.get(
            "/admin/transactions",
            params={"status": "pending", "type": "check_deposit"},
            headers=admin_headers,
        )
        assert [txn["amount_cents"] for txn in response.json()] == [3_000]

    async def test_admin_can_view_account_transactions(self, client, member, admin_headers):
        txn = await cash_deposit(client, member, member.checking["id"], 4_000)

        response = await client.get(
            f"/admin/accounts/{member.checking['id']}/transactions", headers=admin_headers
        )
        assert response.status_code == 200
        assert [t["id"] for t in response.json()] == [txn["id"]]

        single = await client.get(f"/admin/transactions/{txn['id']}", headers=admin_headers)
        assert single.status_code == 200
        assert single.json()["amount_cents"] == 4_000

"""
Tests for account statement endpoints.

These tests verify:
  - Statements include aggregates (opening/closing balance, totals)
  - Statements include the full list of transactions for the period
  - Opening balance is computed from prior periods' settled effects
  - Pending and failed checks are listed but don't move balances
  - Balance effects are dated by settlement, listing by submission
  - Annual statements when the month is omitted
  - Ownership enforcement
  - Admins are kept out of statement endpoints
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import update

from netbank.models.transaction import Transaction

from conftest import cash_deposit, set_pin, DEFAULT_PIN


def _next_month(now: datetime) -> tuple[int, int]:
    return (now.year, now.month + 1) if now.month < 12 else (now.year + 1, 1)


async def _statement(client, member, account_id, **params):
    return await client.get(
        f"/accounts/{account_id}/statements", params=params, headers=member.headers
    )


class TestStatementGeneration:
    """Tests for GET /accounts/{id}/statements?year=&month=."""

    async def test_statement_with_transactions(self, client, member, second_member):
        """Statement should include aggregates and all transactions."""
        account_id = member.checking["id"]
        await set_pin(client, member)
        await cash_deposit(client, member, account_id, 10_000)
        await cash_deposit(client, member, account_id, 5_000)
        await client.post(
            "/transfers",
            json={
                "from_account_id": account_id,
                "to_account_number": second_member.checking["account_number"],
                "amount_cents": 3_000,
                "transaction_pin": DEFAULT_PIN,
            },
            headers=member.headers,
        )

        now = datetime.now(timezone.utc)
        response = await _statement(client, member, account_id, year=now.year, month=now.month)
        assert response.status_code == 200
        data = response.json()

        # Aggregates at the top
        assert data["account_id"] == account_id
        assert data["account_number"] == member.checking["account_number"]
        assert data["year"] == now.year
        assert data["month"] == now.month
        assert data["opening_balance_cents"] == 0  # No prior months
        assert data["closing_balance_cents"] == 12_000  # 10000 + 5000 - 3000
        assert data["total_credits_cents"] == 15_000
        assert data["total_debits_cents"] == 3_000
        assert data["transaction_count"] == 3

        # Full transaction list
        assert len(data["transactions"]) == 3

    async def test_recipient_statement_counts_transfer_as_credit(self, client, member, second_member):
        await set_pin(client, member)
        await cash_deposit(client, member, member.checking["id"], 10_000)
        await client.post(
            "/transfers",
            json={
                "from_account_id": member.checking["id"],
                "to_account_number": second_member.checking["account_number"],
                "amount_cents": 2_500,
                "transaction_pin": DEFAULT_PIN,
            },
            headers=member.headers,
        )

        now = datetime.now(timezone.utc)
        data = (await _statement(
            client, second_member, second_member.checking["id"], year=now.year, month=now.month
        )).json()
        assert data["total_credits_cents"] == 2_500
        assert data["total_debits_cents"] == 0
        assert data["closing_balance_cents"] == 2_500

    async def test_empty_month_statement(self, client, member):
        """Statement for a month with no transactions should have zero activity."""
        response = await _statement(client, member, member.savings["id"], year=2025, month=1)
        assert response.status_code == 200
        data = response.json()

        assert data["opening_balance_cents"] == 0
        assert data["closing_balance_cents"] == 0
        assert data["total_credits_cents"] == 0
        assert data["total_debits_cents"] == 0
        assert data["transaction_count"] == 0
        assert data["transactions"] == []

    async def test_pending_and_failed_checks_listed_not_counted(self, client, member, admin_headers):
        """Unsettled checks appear in the list but don't affect balances."""
        account_id = member.checking["id"]
        await cash_deposit(client, member, account_id, 5_000)
        await client.post(
            "/deposits/check",
            json={"account_id": account_id, "amount_cents": 10_000, "check_number": "501"},
            headers=member.headers,
        )
        bounced = await client.post(
            "/deposits/check",
            json={"account_id": account_id, "amount_cents": 7_000, "check_number": "502"},
            headers=member.headers,
        )
        await client.post(
            f"/admin/transactions/{bounced.json()['id']}/reject", json={}, headers=admin_headers
        )

        now = datetime.now(timezone.utc)
        data = (await _statement(client, member, account_id, year=now.year, month=now.month)).json()

        assert data["transaction_count"] == 3
        statuses = sorted(t["status"] for t in data["transactions"])
        assert statuses == ["completed", "failed", "pending"]

        assert data["closing_balance_cents"] == 5_000
        assert data["total_credits_cents"] == 5_000
        assert data["total_debits_cents"] == 0

    async def test_statement_transactions_ordered_chronologically(self, client, member):
        """Transactions in a statement should be ordered oldest to newest."""
        account_id = member.savings["id"]
        for description in ("First", "Second", "Third"):
            response = await client.post(
                "/deposits/cash",
                json={"account_id": account_id, "amount_cents": 1_000, "description": description},
                headers=member.headers,
            )
            assert response.status_code == 201

        now = datetime.now(timezone.utc)
        data = (await _statement(client, member, account_id, year=now.year, month=now.month)).json()

        descriptions = [t["description"] for t in data["transactions"]]
        assert descriptions == ["First", "Second", "Third"]

    async def test_annual_statement(self, client, member):
        """Omitting the month produces a statement for the whole year."""
        await cash_deposit(client, member, member.savings["id"], 4_200)

        now = datetime.now(timezone.utc)
        response = await _statement(client, member, member.savings["id"], year=now.year)
        assert response.status_code == 200
        data = response.json()
        assert data["month"] is None
        assert data["period_start"].startswith(f"{now.year}-01-01")
        assert data["period_end"].startswith(f"{now.year + 1}-01-01")
        assert data["closing_balance_cents"] == 4_200
        assert data["transaction_count"] == 1

    async def test_missing_year_rejected(self, client, member):
        response = await client.get(
            f"/accounts/{member.savings['id']}/statements", headers=member.headers
        )
        assert response.status_code == 422

    async def test_invalid_month_rejected(self, client, member):
        """Month must be 1-12."""
        for month in (0, 13):
            response = await _statement(client, member, member.savings["id"], year=2026, month=month)
            assert response.status_code == 422


class TestStatementOpeningBalance:
    """Tests that opening balance is correctly computed from prior periods."""

    async def test_opening_balance_reflects_prior_activity(self, client, member, second_member):
        """
        All test activity happens in the current month, so the next month's
        statement must see it as prior activity.
        """
        account_id = member.checking["id"]
        await set_pin(client, member)
        await cash_deposit(client, member, account_id, 20_000)
        await client.post(
            "/transfers",
            json={
                "from_account_id": account_id,
                "to_account_number": second_member.savings["account_number"],
                "amount_cents": 5_000,
                "transaction_pin": DEFAULT_PIN,
            },
            headers=member.headers,
        )

        now = datetime.now(timezone.utc)
        data = (await _statement(client, member, account_id, year=now.year, month=now.month)).json()
        assert data["opening_balance_cents"] == 0
        assert data["closing_balance_cents"] == 15_000

        year, month = _next_month(now)
        data = (await _statement(client, member, account_id, year=year, month=month)).json()
        assert data["opening_balance_cents"] == 15_000
        assert data["closing_balance_cents"] == 15_000  # No new activity
        assert data["transaction_count"] == 0

    async def test_check_cleared_next_month(self, client, member, admin_headers, session_factory):
        """Listed in the month it was deposited, counted in the month it cleared."""
        account_id = member.checking["id"]
        deposit = await client.post(
            "/deposits/check",
            json={"account_id": account_id, "amount_cents": 30_000, "check_number": "900"},
            headers=member.headers,
        )
        txn_id = deposit.json()["id"]
        await client.post(f"/admin/transactions/{txn_id}/clear", headers=admin_headers)

        now = datetime.now(timezone.utc)
        year, month = _next_month(now)
        cleared_at = datetime(year, month, 2, 9, 0, tzinfo=timezone.utc)
        async with session_factory() as session:
            await session.execute(
                update(Transaction)
                .where(Transaction.id == uuid.UUID(txn_id))
                .values(settled_at=cleared_at)
            )
            await session.commit()

        this_month = (await _statement(
            client, member, account_id, year=now.year, month=now.month
        )).json()
        assert this_month["transaction_count"] == 1
        assert this_month["total_credits_cents"] == 0
        assert this_month["closing_balance_cents"] == 0

        next_month = (await _statement(client, member, account_id, year=year, month=month)).json()
        assert next_month["transaction_count"] == 0
        assert next_month["opening_balance_cents"] == 0
        assert next_month["total_credits_cents"] == 30_000
        assert next_month["closing_balance_cents"] == 30_000


class TestStatementOwnership:
    """Tests that users can only access their own statements."""

    async def test_cannot_view_other_users_statement(self, client, member, second_member):
        """User B should not be able to view User A's statement."""
        response = await _statement(
            client, second_member, member.checking["id"], year=2026, month=1
        )
        assert response.status_code == 404


class TestAdminBlockedFromStatements:
    """Admins never use member endpoints."""

    async def test_admin_cannot_view_statements(self, client, admin_headers):
        fake_id = str(uuid.uuid4())
        response = await client.get(
            f"/accounts/{fake_id}/statements",
            params={"year": 2026, "month": 1},
            headers=admin_headers,
        )
        assert response.status_code == 401
        assert response.json()["error_type"] == "session_expired"

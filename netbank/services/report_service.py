"""
Report service — fixed administrative reports over the transaction ledger.

Only parameterized filters are accepted; there is no way to run
caller-supplied SQL.
"""

from datetime import datetime

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from netbank.exceptions import ValidationError
from netbank.models.transaction import Transaction, TransactionStatus, TransactionType


async def transaction_report(
    db: AsyncSession,
    start: datetime | None = None,
    end: datetime | None = None,
    type_filter: TransactionType | None = None,
    status_filter: TransactionStatus | None = None,
) -> dict:
    """
    [ADMIN ONLY] Count and total of transactions grouped by type and status.

    `start` is inclusive, `end` exclusive; both compare against created_at.
    """
    if start is not None and end is not None and start >= end:
        raise ValidationError("Report start must be before its end")

    query = select(
        Transaction.type,
        Transaction.status,
        func.count(Transaction.id),
        func.coalesce(func.sum(Transaction.amount_cents), 0),
    )
    if start is not None:
        query = query.where(Transaction.created_at >= start)
    if end is not None:
        query = query.where(Transaction.created_at < end)
    if type_filter:
        query = query.where(Transaction.type == type_filter)
    if status_filter:
        query = query.where(Transaction.status == status_filter)
    query = query.group_by(Transaction.type, Transaction.status).order_by(
        Transaction.type, Transaction.status
    )

    result = await db.execute(query)
    rows = [
        {
            "type": txn_type,
            "status": status,
            "count": count,
            "total_amount_cents": total,
        }
        for txn_type, status, count, total in result.all()
    ]

    return {
        "start": start,
        "end": end,
        "rows": rows,
        "total_count": sum(row["count"] for row in rows),
        "total_amount_cents": sum(row["total_amount_cents"] for row in rows),
    }

"""Transaction history persistence module.

History is a capped, newest-first list of wallet activity.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

import duckdb


class TransactionKind(str, Enum):
    """Kind of wallet activity."""

    SENT = "sent"
    RECEIVED = "received"
    AIRDROP = "airdrop"


@dataclass
class TransactionRecord:
    """A completed wallet transaction."""

    signature: str
    kind: TransactionKind
    amount: Decimal
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    recipient: str | None = None


def add_transaction(
    conn: duckdb.DuckDBPyConnection,
    record: TransactionRecord,
    limit: int | None = None,
) -> None:
    """Append a transaction and trim history to the newest `limit` records.

    Args:
        conn: Database connection.
        record: Transaction to store.
        limit: Maximum number of records to keep (None keeps everything).
    """
    timestamp = record.timestamp.astimezone(UTC).replace(tzinfo=None)
    conn.execute(
        """
        INSERT INTO transactions (signature, kind, amount, recipient, created_at)
        VALUES (?, ?, ?, ?, ?)
        """,
        [record.signature, record.kind.value, record.amount, record.recipient, timestamp],
    )

    if limit is not None:
        conn.execute(
            """
            DELETE FROM transactions
            WHERE seq NOT IN (SELECT seq FROM transactions ORDER BY seq DESC LIMIT ?)
            """,
            [limit],
        )


def get_transactions(
    conn: duckdb.DuckDBPyConnection, limit: int | None = None
) -> list[TransactionRecord]:
    """Query transactions, most recent first.

    Args:
        conn: Database connection.
        limit: Maximum number of records to return.

    Returns:
        List of TransactionRecord objects.
    """
    query = """
        SELECT signature, kind, amount, recipient, created_at
        FROM transactions
        ORDER BY seq DESC
    """
    params = []
    if limit is not None:
        query += " LIMIT ?"
        params.append(limit)

    rows = conn.execute(query, params).fetchall()
    return [
        TransactionRecord(
            signature=row[0],
            kind=TransactionKind(row[1]),
            amount=Decimal(row[2]).normalize(),
            recipient=row[3],
            timestamp=row[4].replace(tzinfo=UTC),
        )
        for row in rows
    ]

"""Tests for transaction history persistence."""

from datetime import UTC, datetime
from decimal import Decimal

from chatwallet.db.transactions import (
    TransactionKind,
    TransactionRecord,
    add_transaction,
    get_transactions,
)

ALICE = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"


def _sent(signature: str, amount: str = "1") -> TransactionRecord:
    return TransactionRecord(
        signature=signature, kind=TransactionKind.SENT, amount=Decimal(amount), recipient=ALICE
    )


def test_add_and_get_transaction(db_conn):
    when = datetime(2024, 5, 1, 12, 30, 15, tzinfo=UTC)
    add_transaction(
        db_conn,
        TransactionRecord(
            signature="sig-1",
            kind=TransactionKind.SENT,
            amount=Decimal("0.123456789"),
            timestamp=when,
            recipient=ALICE,
        ),
    )

    [record] = get_transactions(db_conn)
    assert record.signature == "sig-1"
    assert record.kind == TransactionKind.SENT
    assert record.amount == Decimal("0.123456789")
    assert record.recipient == ALICE
    assert record.timestamp == when


def test_airdrop_has_no_recipient(db_conn):
    add_transaction(
        db_conn,
        TransactionRecord(signature="sig-a", kind=TransactionKind.AIRDROP, amount=Decimal("1")),
    )

    [record] = get_transactions(db_conn)
    assert record.kind == TransactionKind.AIRDROP
    assert record.recipient is None
    assert record.timestamp.tzinfo is not None


def test_most_recent_first(db_conn):
    for i in range(3):
        add_transaction(db_conn, _sent(f"sig-{i}"))

    assert [r.signature for r in get_transactions(db_conn)] == ["sig-2", "sig-1", "sig-0"]


def test_get_transactions_limit(db_conn):
    for i in range(5):
        add_transaction(db_conn, _sent(f"sig-{i}"))

    assert [r.signature for r in get_transactions(db_conn, limit=2)] == ["sig-4", "sig-3"]


def test_history_capped_on_write(db_conn):
    """Test that 51 writes with a cap of 50 keep the newest 50."""
    for i in range(51):
        add_transaction(db_conn, _sent(f"sig-{i}"), limit=50)

    records = get_transactions(db_conn)
    assert len(records) == 50
    assert records[0].signature == "sig-50"
    assert records[-1].signature == "sig-1"


def test_amount_normalized(db_conn):
    add_transaction(db_conn, _sent("sig-1", amount="2.50"))
    assert get_transactions(db_conn)[0].amount == Decimal("2.5")

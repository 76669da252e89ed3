"""Contacts persistence module.

Maps human-readable names to recipient addresses.
"""

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime

import duckdb


@dataclass
class Contact:
    """A saved recipient."""

    id: str
    name: str
    address: str


def create_contact(
    conn: duckdb.DuckDBPyConnection,
    name: str,
    address: str,
    contact_id: str | None = None,
) -> Contact:
    """Store a new contact.

    Args:
        conn: Database connection.
        name: Display name used in chat commands (e.g., "alice").
        address: Recipient address.
        contact_id: Optional id (generated if not provided).

    Returns:
        Created Contact object.
    """
    contact = Contact(id=contact_id or str(uuid.uuid4()), name=name.strip(), address=address)
    now = datetime.now(UTC).replace(tzinfo=None)

    conn.execute(
        "INSERT INTO contacts (id, name, address, created_at) VALUES (?, ?, ?, ?)",
        [contact.id, contact.name, contact.address, now],
    )
    return contact


def get_contacts(conn: duckdb.DuckDBPyConnection) -> list[Contact]:
    """List all contacts in the order they were added."""
    rows = conn.execute(
        "SELECT id, name, address FROM contacts ORDER BY created_at, name"
    ).fetchall()
    return [Contact(id=row[0], name=row[1], address=row[2]) for row in rows]


def get_contact_by_name(conn: duckdb.DuckDBPyConnection, name: str) -> Contact | None:
    """Find a contact by case-insensitive exact name match."""
    row = conn.execute(
        "SELECT id, name, address FROM contacts WHERE lower(name) = lower(?) LIMIT 1",
        [name.strip()],
    ).fetchone()

    if not row:
        return None
    return Contact(id=row[0], name=row[1], address=row[2])


def delete_contact(conn: duckdb.DuckDBPyConnection, contact_id: str) -> bool:
    """Delete a contact.

    Returns:
        True if a contact was deleted, False if not found.
    """
    existing = conn.execute("SELECT 1 FROM contacts WHERE id = ?", [contact_id]).fetchone()
    if existing is None:
        return False

    conn.execute("DELETE FROM contacts WHERE id = ?", [contact_id])
    return True

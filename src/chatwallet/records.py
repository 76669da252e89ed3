"""Record stores for contacts and transaction history.

The engine talks to a RecordStore; the DuckDB-backed store is used by the API,
the in-memory store by tests and ephemeral deployments. Both serialize writes
so concurrent appends from different conversations never lose a record.
"""

import logging
import threading
import uuid
from abc import ABC, abstractmethod

import duckdb

from chatwallet.db import contacts as contacts_db
from chatwallet.db import transactions as transactions_db
from chatwallet.db.contacts import Contact
from chatwallet.db.transactions import TransactionRecord

logger = logging.getLogger(__name__)


class RecordStore(ABC):
    """Durable storage of contacts and transaction history."""

    @abstractmethod
    def get_contacts(self) -> list[Contact]:
        """List all contacts."""

    @abstractmethod
    def add_contact(self, name: str, address: str) -> Contact:
        """Add a contact.

        Raises:
            ValueError: If a contact with the same name (case-insensitive) exists
        """

    @abstractmethod
    def delete_contact(self, contact_id: str) -> bool:
        """Delete a contact. Returns False if it did not exist."""

    @abstractmethod
    def find_contact_by_name(self, name: str) -> Contact | None:
        """Find a contact by case-insensitive exact name match."""

    @abstractmethod
    def get_transactions(self, limit: int | None = None) -> list[TransactionRecord]:
        """List transactions, most recent first."""

    @abstractmethod
    def add_transaction(self, record: TransactionRecord, limit: int | None = None) -> None:
        """Append a transaction, keeping only the newest `limit` records."""


class InMemoryRecordStore(RecordStore):
    """Process-local record store."""

    def __init__(self) -> None:
        self._contacts: list[Contact] = []
        # Newest first
        self._transactions: list[TransactionRecord] = []
        self._lock = threading.Lock()

    def get_contacts(self) -> list[Contact]:
        with self._lock:
            return list(self._contacts)

    def add_contact(self, name: str, address: str) -> Contact:
        with self._lock:
            if any(c.name.lower() == name.strip().lower() for c in self._contacts):
                raise ValueError(f"Contact '{name}' already exists")
            contact = Contact(id=str(uuid.uuid4()), name=name.strip(), address=address)
            self._contacts.append(contact)
            return contact

    def delete_contact(self, contact_id: str) -> bool:
        with self._lock:
            remaining = [c for c in self._contacts if c.id != contact_id]
            deleted = len(remaining) != len(self._contacts)
            self._contacts = remaining
            return deleted

    def find_contact_by_name(self, name: str) -> Contact | None:
        wanted = name.strip().lower()
        with self._lock:
            for contact in self._contacts:
                if contact.name.lower() == wanted:
                    return contact
        return None

    def get_transactions(self, limit: int | None = None) -> list[TransactionRecord]:
        with self._lock:
            if limit is None:
                return list(self._transactions)
            return self._transactions[:limit]

    def add_transaction(self, record: TransactionRecord, limit: int | None = None) -> None:
        with self._lock:
            self._transactions.insert(0, record)
            if limit is not None:
                del self._transactions[limit:]


class DBRecordStore(RecordStore):
    """DuckDB-backed record store.

    A DuckDB connection must not be used from several threads at once, so every
    call holds the store lock.
    """

    def __init__(self, conn: duckdb.DuckDBPyConnection) -> None:
        self.conn = conn
        self._lock = threading.Lock()

    def get_contacts(self) -> list[Contact]:
        with self._lock:
            return contacts_db.get_contacts(self.conn)

    def add_contact(self, name: str, address: str) -> Contact:
        with self._lock:
            if contacts_db.get_contact_by_name(self.conn, name) is not None:
                raise ValueError(f"Contact '{name}' already exists")
            contact = contacts_db.create_contact(self.conn, name=name, address=address)
        logger.info("Added contact %s", contact.name)
        return contact

    def delete_contact(self, contact_id: str) -> bool:
        with self._lock:
            return contacts_db.delete_contact(self.conn, contact_id)

    def find_contact_by_name(self, name: str) -> Contact | None:
        with self._lock:
            return contacts_db.get_contact_by_name(self.conn, name)

    def get_transactions(self, limit: int | None = None) -> list[TransactionRecord]:
        with self._lock:
            return transactions_db.get_transactions(self.conn, limit=limit)

    def add_transaction(self, record: TransactionRecord, limit: int | None = None) -> None:
        with self._lock:
            transactions_db.add_transaction(self.conn, record, limit=limit)

"""Tests for per-conversation session state."""

import threading
import time
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from chatwallet.commands.session_store import PendingCommand, RedisSessionStore, SessionStore

ADDRESS = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"


@pytest.fixture
def store() -> SessionStore:
    return SessionStore(pending_ttl_seconds=60)


class TestPendingCommand:
    """Test pending command lifecycle helpers."""

    def test_create_sets_expiry(self) -> None:
        command = PendingCommand.create(Decimal("1"), ADDRESS, ttl_seconds=120)
        time_until_expiry = (command.expires_at - datetime.now(UTC)).total_seconds()
        assert 115 < time_until_expiry <= 120
        assert not command.is_expired()

    def test_expired(self) -> None:
        now = datetime.now(UTC)
        command = PendingCommand(
            amount=Decimal("1"),
            recipient=ADDRESS,
            created_at=now - timedelta(seconds=10),
            expires_at=now - timedelta(seconds=1),
        )
        assert command.is_expired()

    def test_dict_round_trip_keeps_decimal(self) -> None:
        command = PendingCommand.create(Decimal("0.1"), ADDRESS, ttl_seconds=60)
        restored = PendingCommand.from_dict(command.to_dict())
        assert restored == command
        assert restored.amount == Decimal("0.1")


class TestSessionStore:
    """Test the in-memory session store."""

    def test_idle_by_default(self, store: SessionStore) -> None:
        assert store.get_pending("conv-1") is None

    def test_set_and_get_pending(self, store: SessionStore) -> None:
        command = store.new_pending(Decimal("2"), ADDRESS)
        store.set_pending("conv-1", command)
        assert store.get_pending("conv-1") == command

    def test_conversations_are_isolated(self, store: SessionStore) -> None:
        store.set_pending("conv-1", store.new_pending(Decimal("2"), ADDRESS))
        assert store.get_pending("conv-2") is None

    def test_at_most_one_pending(self, store: SessionStore) -> None:
        store.set_pending("conv-1", store.new_pending(Decimal("1"), ADDRESS))
        second = store.new_pending(Decimal("2"), ADDRESS)
        store.set_pending("conv-1", second)
        assert store.get_pending("conv-1") == second

    def test_clear_pending(self, store: SessionStore) -> None:
        store.set_pending("conv-1", store.new_pending(Decimal("1"), ADDRESS))
        store.clear_pending("conv-1")
        assert store.get_pending("conv-1") is None

    def test_pop_pending_takes_once(self, store: SessionStore) -> None:
        command = store.new_pending(Decimal("1"), ADDRESS)
        store.set_pending("conv-1", command)

        assert store.pop_pending("conv-1") == command
        assert store.pop_pending("conv-1") is None
        assert store.get_pending("conv-1") is None

    def test_expired_pending_is_dropped(self) -> None:
        store = SessionStore(pending_ttl_seconds=1)
        store.set_pending("conv-1", store.new_pending(Decimal("1"), ADDRESS))
        time.sleep(1.1)
        assert store.get_pending("conv-1") is None

    def test_sessions_created_lazily(self, store: SessionStore) -> None:
        assert store.session_count() == 0
        store.get_pending("conv-1")
        store.get_pending("conv-2")
        store.get_pending("conv-1")
        assert store.session_count() == 2


class TestSessionLocks:
    """Test per-conversation locking."""

    def test_lock_yields_session(self, store: SessionStore) -> None:
        with store.lock("conv-1") as session:
            assert session.conversation_id == "conv-1"
            assert session.pending is None

    def test_same_conversation_is_serialized(self, store: SessionStore) -> None:
        order: list[str] = []
        entered = threading.Event()

        def first() -> None:
            with store.lock("conv-1"):
                entered.set()
                time.sleep(0.1)
                order.append("first")

        def second() -> None:
            entered.wait()
            with store.lock("conv-1"):
                order.append("second")

        threads = [threading.Thread(target=first), threading.Thread(target=second)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert order == ["first", "second"]

    def test_different_conversations_do_not_block(self, store: SessionStore) -> None:
        acquired = threading.Event()

        with store.lock("conv-1"):

            def other() -> None:
                with store.lock("conv-2"):
                    acquired.set()

            thread = threading.Thread(target=other)
            thread.start()
            assert acquired.wait(timeout=1.0)
            thread.join()


class TestRedisSessionStoreFallback:
    """Test the Redis store without a Redis server."""

    def test_falls_back_to_memory(self) -> None:
        store = RedisSessionStore(redis_client=None, pending_ttl_seconds=60)
        command = store.new_pending(Decimal("1.5"), ADDRESS)
        store.set_pending("conv-1", command)
        assert store.get_pending("conv-1") == command

        store.clear_pending("conv-1")
        assert store.get_pending("conv-1") is None

"""Per-conversation session state for the confirmation flow.

Each conversation holds at most one pending transfer awaiting a yes/no reply.
Sessions are created lazily and live for the whole process. Every session has
its own lock; callers hold it for the duration of one message so messages for
the same conversation are handled strictly in arrival order while different
conversations proceed in parallel.
"""

import json
import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Any

import redis

from chatwallet.errors import SessionStoreError
from chatwallet.logging_utils import short_id

logger = logging.getLogger(__name__)


@dataclass
class PendingCommand:
    """A transfer awaiting confirmation, with its recipient already resolved."""

    amount: Decimal
    recipient: str
    created_at: datetime
    expires_at: datetime

    @classmethod
    def create(cls, amount: Decimal, recipient: str, ttl_seconds: int) -> "PendingCommand":
        now = datetime.now(UTC)
        return cls(
            amount=amount,
            recipient=recipient,
            created_at=now,
            expires_at=now + timedelta(seconds=ttl_seconds),
        )

    def is_expired(self) -> bool:
        """Check if this command has expired."""
        return datetime.now(UTC) >= self.expires_at

    def to_dict(self) -> dict[str, Any]:
        return {
            "amount": str(self.amount),
            "recipient": self.recipient,
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PendingCommand":
        return cls(
            amount=Decimal(data["amount"]),
            recipient=data["recipient"],
            created_at=datetime.fromisoformat(data["created_at"]),
            expires_at=datetime.fromisoformat(data["expires_at"]),
        )


@dataclass
class ConversationSession:
    """State for one conversation."""

    conversation_id: str
    pending: PendingCommand | None = None
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


class SessionStore:
    """In-memory session store keyed by conversation id.

    get_pending/set_pending/clear_pending/pop_pending are expected to be called
    while holding lock(conversation_id).
    """

    def __init__(self, pending_ttl_seconds: int = 300) -> None:
        """Initialize the store.

        Args:
            pending_ttl_seconds: Time until an unanswered confirmation expires (default: 300s)
        """
        self.pending_ttl_seconds = pending_ttl_seconds
        self._sessions: dict[str, ConversationSession] = {}
        # Guards only the session map itself, never held while handling a message
        self._registry_lock = threading.Lock()

    def _session(self, conversation_id: str) -> ConversationSession:
        with self._registry_lock:
            session = self._sessions.get(conversation_id)
            if session is None:
                session = ConversationSession(conversation_id=conversation_id)
                self._sessions[conversation_id] = session
            return session

    @contextmanager
    def lock(self, conversation_id: str) -> Iterator[ConversationSession]:
        """Hold the conversation's lock for the duration of the block."""
        session = self._session(conversation_id)
        with session.lock:
            yield session

    def new_pending(self, amount: Decimal, recipient: str) -> PendingCommand:
        """Build a pending command using the store's expiry policy."""
        return PendingCommand.create(amount, recipient, self.pending_ttl_seconds)

    def get_pending(self, conversation_id: str) -> PendingCommand | None:
        """Get the conversation's pending command, or None if idle or expired."""
        session = self._session(conversation_id)
        pending = session.pending
        if pending is not None and pending.is_expired():
            logger.info("Pending transfer expired for conversation %s", short_id(conversation_id))
            session.pending = None
            return None
        return pending

    def set_pending(self, conversation_id: str, command: PendingCommand) -> None:
        self._session(conversation_id).pending = command

    def clear_pending(self, conversation_id: str) -> None:
        self._session(conversation_id).pending = None

    def pop_pending(self, conversation_id: str) -> PendingCommand | None:
        """Take the pending command, leaving the conversation idle."""
        pending = self.get_pending(conversation_id)
        self._session(conversation_id).pending = None
        return pending


    def session_count(self) -> int:
        with self._registry_lock:
            return len(self._sessions)


class RedisSessionStore(SessionStore):
    """Session store that keeps pending commands in Redis.

    This implementation provides:
    - Pending confirmations that survive process restarts
    - Automatic expiration via Redis TTL
    - Fallback to in-memory if Redis unavailable

    Locks remain in-process, so per-conversation ordering holds within one worker.
    Redis failures on set, clear and pop raise SessionStoreError.
    """

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        pending_ttl_seconds: int = 300,
        key_prefix: str = "chatwallet:pending:",
    ) -> None:
        """Initialize the Redis-backed store.

        Args:
            redis_client: Redis client instance (None to use in-memory fallback)
            pending_ttl_seconds: Time until an unanswered confirmation expires
            key_prefix: Prefix for Redis keys
        """
        super().__init__(pending_ttl_seconds=pending_ttl_seconds)
        self.redis = redis_client
        self.key_prefix = key_prefix

        if self.redis is None:
            logger.warning("Redis not available, using in-memory fallback for pending transfers")
        else:
            logger.info("Using Redis-backed pending transfer storage")

    def _make_redis_key(self, conversation_id: str) -> str:
        return f"{self.key_prefix}{conversation_id}"

    def get_pending(self, conversation_id: str) -> PendingCommand | None:
        if self.redis is None:
            return super().get_pending(conversation_id)

        key = self._make_redis_key(conversation_id)
        try:
            data = self.redis.get(key)
            if data is None:
                return None

            if isinstance(data, bytes):
                data = data.decode()

            pending = PendingCommand.from_dict(json.loads(data))
            if pending.is_expired():
                self.redis.delete(key)
                return None
            return pending
        except redis.RedisError as e:
            logger.error("Redis error retrieving pending transfer: %s", e)
            return None
        except (json.JSONDecodeError, KeyError, ValueError) as e:
            logger.error("Error deserializing pending transfer: %s", e)
            return None

    def pop_pending(self, conversation_id: str) -> PendingCommand | None:
        """Atomically take the pending command, deleting it in the same transaction.

        Raises:
            SessionStoreError: If Redis fails, in which case nothing was taken
        """
        if self.redis is None:
            return super().pop_pending(conversation_id)

        try:
            pipe = self.redis.pipeline(transaction=True)
            pipe.get(self._make_redis_key(conversation_id))
            pipe.delete(self._make_redis_key(conversation_id))
            data, _ = pipe.execute()
        except redis.RedisError as e:
            logger.error("Redis error taking pending transfer: %s", e)
            raise SessionStoreError() from e

        if data is None:
            return None
        if isinstance(data, bytes):
            data = data.decode()

        try:
            pending = PendingCommand.from_dict(json.loads(data))
        except (json.JSONDecodeError, KeyError, ValueError) as e:
            logger.error("Error deserializing pending transfer: %s", e)
            return None

        if pending.is_expired():
            return None
        return pending

    def set_pending(self, conversation_id: str, command: PendingCommand) -> None:
        if self.redis is None:
            super().set_pending(conversation_id, command)
            return

        ttl = max(1, int((command.expires_at - datetime.now(UTC)).total_seconds()))
        try:
            self.redis.setex(
                self._make_redis_key(conversation_id), ttl, json.dumps(command.to_dict())
            )
        except redis.RedisError as e:
            logger.error("Redis error storing pending transfer: %s", e)
            raise SessionStoreError() from e
        logger.debug("Stored pending transfer for %s with TTL %ds", short_id(conversation_id), ttl)

    def clear_pending(self, conversation_id: str) -> None:
        if self.redis is None:
            super().clear_pending(conversation_id)
            return

        try:
            self.redis.delete(self._make_redis_key(conversation_id))
        except redis.RedisError as e:
            logger.error("Redis error clearing pending transfer: %s", e)
            raise SessionStoreError() from e

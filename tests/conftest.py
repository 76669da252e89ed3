"""pytest configuration for chatwallet tests."""

import os
import sys
from decimal import Decimal
from pathlib import Path

import pytest
import redis

# Add src directory to path so tests can import chatwallet
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

# Set DUCKDB_PATH to :memory: for all tests to ensure test isolation
os.environ["DUCKDB_PATH"] = ":memory:"

# Pending confirmations stay in-process unless a test opts into Redis
os.environ["REDIS_ENABLED"] = "false"

from chatwallet.records import InMemoryRecordStore  # noqa: E402
from chatwallet.wallet.stub_service import StubValueTransferService  # noqa: E402

# Well-known program addresses; valid 32-byte base58 keys free of intent keywords
ALICE_ADDRESS = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
BOB_ADDRESS = "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL"
SYSTEM_ADDRESS = "11111111111111111111111111111111"


@pytest.fixture
def alice_address() -> str:
    return ALICE_ADDRESS


@pytest.fixture
def bob_address() -> str:
    return BOB_ADDRESS


@pytest.fixture
def wallet() -> StubValueTransferService:
    """A funded stub wallet."""
    return StubValueTransferService(initial_balance=Decimal("10"))


@pytest.fixture
def records() -> InMemoryRecordStore:
    return InMemoryRecordStore()


class FlakyRedis:
    """Dict-backed stand-in for redis.Redis whose listed commands raise ConnectionError."""

    def __init__(self) -> None:
        self.data: dict[str, bytes] = {}
        self.failing: set[str] = set()

    def check(self, command: str) -> None:
        if command in self.failing:
            raise redis.ConnectionError(f"{command}: connection reset by peer")

    def get(self, key):
        self.check("get")
        return self.data.get(key)

    def setex(self, key, ttl, value):
        self.check("setex")
        self.data[key] = value.encode() if isinstance(value, str) else value
        return True

    def delete(self, key):
        self.check("delete")
        return 1 if self.data.pop(key, None) is not None else 0

    def pipeline(self, transaction=True):
        return FlakyPipeline(self)


class FlakyPipeline:
    """MULTI/EXEC pipeline: queued commands apply all together or not at all."""

    def __init__(self, client: FlakyRedis) -> None:
        self.client = client
        self.commands: list[tuple[str, str]] = []

    def get(self, key):
        self.commands.append(("get", key))
        return self

    def delete(self, key):
        self.commands.append(("delete", key))
        return self

    def execute(self):
        for command, _ in self.commands:
            self.client.check(command)
        return [getattr(self.client, command)(key) for command, key in self.commands]


@pytest.fixture
def flaky_redis() -> FlakyRedis:
    return FlakyRedis()

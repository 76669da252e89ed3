"""Stub value-transfer service for fixture-first development and testing."""

import hashlib
import logging
import secrets
import threading
from decimal import Decimal

from chatwallet.errors import AirdropFailed, TransferFailed
from chatwallet.logging_utils import short_id
from chatwallet.wallet.addresses import b58encode, is_valid_address
from chatwallet.wallet.service import ValueTransferService

logger = logging.getLogger(__name__)


class StubValueTransferService(ValueTransferService):
    """In-memory wallet that behaves like a devnet account.

    Balances are tracked locally and signatures are random 64-byte values
    encoded like real transaction signatures. No network access.
    """

    def __init__(
        self,
        seed: str = "chatwallet-dev",
        initial_balance: Decimal = Decimal("0"),
        airdrop_amount: Decimal = Decimal("1"),
        airdrop_enabled: bool = True,
    ) -> None:
        """Initialize the stub wallet.

        Args:
            seed: Seed for the deterministic wallet address
            initial_balance: Starting balance
            airdrop_amount: Amount credited by each airdrop
            airdrop_enabled: Whether airdrops succeed (False simulates a busy faucet)
        """
        self._address = b58encode(hashlib.sha256(seed.encode()).digest())
        self._balance = Decimal(initial_balance)
        self.airdrop_amount = Decimal(airdrop_amount)
        self.airdrop_enabled = airdrop_enabled
        self._lock = threading.Lock()

    @staticmethod
    def _new_signature() -> str:
        return b58encode(secrets.token_bytes(64))

    def balance(self) -> Decimal:
        with self._lock:
            return self._balance

    def address(self) -> str:
        return self._address

    def airdrop(self) -> str:
        if not self.airdrop_enabled:
            raise AirdropFailed()

        with self._lock:
            self._balance += self.airdrop_amount
        signature = self._new_signature()
        logger.info("Stub airdrop of %s (sig=%s)", self.airdrop_amount, short_id(signature))
        return signature

    def transfer(self, address: str, amount: Decimal) -> str:
        if not self.is_valid_address(address):
            raise TransferFailed("Invalid recipient address")
        if amount <= 0:
            raise TransferFailed("Amount must be positive")

        with self._lock:
            if amount > self._balance:
                raise TransferFailed(f"Insufficient funds: balance is {self._balance}")
            self._balance -= amount

        signature = self._new_signature()
        logger.info(
            "Stub transfer of %s to %s (sig=%s)", amount, short_id(address), short_id(signature)
        )
        return signature

    def is_valid_address(self, address: str) -> bool:
        return is_valid_address(address)

"""Value-transfer service interface."""

from abc import ABC, abstractmethod
from decimal import Decimal


class ValueTransferService(ABC):
    """Abstract base class for custodial wallet backends.

    Implementations hold the signing material; callers only see addresses,
    balances and receipt ids.
    """

    @abstractmethod
    def balance(self) -> Decimal:
        """Return the wallet balance in whole currency units.

        Raises:
            WalletError: If the backend cannot be reached
        """

    @abstractmethod
    def address(self) -> str:
        """Return the wallet's public address."""

    @abstractmethod
    def airdrop(self) -> str:
        """Request test funds for the wallet.

        Returns:
            Receipt id (transaction signature) of the airdrop

        Raises:
            AirdropFailed: If the backend is unavailable or rate-limited
        """

    @abstractmethod
    def transfer(self, address: str, amount: Decimal) -> str:
        """Transfer funds to an address.

        Args:
            address: Recipient address
            amount: Positive amount in whole currency units

        Returns:
            Receipt id (transaction signature) of the transfer

        Raises:
            TransferFailed: With the backend-provided reason when available
        """

    @abstractmethod
    def is_valid_address(self, address: str) -> bool:
        """Check whether a string is a well-formed recipient address."""

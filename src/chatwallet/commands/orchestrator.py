"""Transfer execution and recording.

Turns a confirmed transfer into a backend call plus a history record. Every
collaborator error is converted to TransferFailed/AirdropFailed here, so
nothing above this layer sees raw backend exceptions.
"""

import logging
from decimal import Decimal

from chatwallet.db.transactions import TransactionKind, TransactionRecord
from chatwallet.errors import AirdropFailed, TransferFailed, WalletError
from chatwallet.logging_utils import log_error, log_info, short_id
from chatwallet.records import RecordStore
from chatwallet.wallet.service import ValueTransferService

logger = logging.getLogger(__name__)

MAX_TRANSACTIONS = 50
RECEIPT_PREFIX_LENGTH = 12


def format_amount(amount: Decimal) -> str:
    """Format an amount without trailing zeros or exponent notation."""
    return f"{amount.normalize():f}"


def preview_address(address: str, length: int = 6) -> str:
    """Truncate an address for display in chat."""
    return f"{address[:length]}..."


class TransferOrchestrator:
    """Execute transfers and airdrops against the wallet backend.

    A transaction is recorded only after the backend returns a receipt, and
    failed attempts are never recorded. There is no timeout here: a hung
    backend call surfaces as whatever error the backend client raises.
    """

    def __init__(
        self,
        wallet: ValueTransferService,
        records: RecordStore,
        currency: str = "SOL",
        max_transactions: int = MAX_TRANSACTIONS,
        airdrop_amount: Decimal = Decimal("1"),
    ) -> None:
        self.wallet = wallet
        self.records = records
        self.currency = currency
        self.max_transactions = max_transactions
        self.airdrop_amount = airdrop_amount

    def _record(self, record: TransactionRecord) -> None:
        # Funds have already moved here; recording errors are logged, not raised
        try:
            self.records.add_transaction(record, limit=self.max_transactions)
        except Exception as e:
            logger.error(
                "Could not record %s transaction %s: %s",
                record.kind.value,
                record.signature,
                e,
                exc_info=True,
            )

    def execute(self, recipient: str, amount: Decimal) -> str:
        """Transfer `amount` to `recipient` and record it.

        Returns:
            Receipt id reported by the backend

        Raises:
            TransferFailed: On any backend error, with its reason when available
        """
        try:
            receipt = self.wallet.transfer(recipient, amount)
        except TransferFailed as e:
            log_error(logger, "Transfer failed", recipient=short_id(recipient), reason=e.reason)
            raise
        except WalletError as e:
            log_error(logger, "Transfer failed", recipient=short_id(recipient), reason=e.reason)
            raise TransferFailed(e.reason) from e
        except Exception as e:
            logger.error(
                "Unexpected error from wallet backend during transfer: %s", e, exc_info=True
            )
            raise TransferFailed("Unexpected error from the wallet backend") from e

        if not receipt:
            raise TransferFailed("Wallet backend returned no receipt")

        self._record(
            TransactionRecord(
                signature=receipt,
                kind=TransactionKind.SENT,
                amount=amount,
                recipient=recipient,
            )
        )
        log_info(
            logger,
            "Transfer completed",
            amount=format_amount(amount),
            recipient=short_id(recipient),
            receipt=short_id(receipt),
        )
        return receipt

    def airdrop(self) -> str:
        """Request an airdrop and record it.

        Raises:
            AirdropFailed: If the backend is unavailable or rate-limited
        """
        try:
            receipt = self.wallet.airdrop()
        except AirdropFailed:
            raise
        except WalletError as e:
            raise AirdropFailed() from e
        except Exception as e:
            logger.error(
                "Unexpected error from wallet backend during airdrop: %s", e, exc_info=True
            )
            raise AirdropFailed() from e

        if not receipt:
            raise AirdropFailed("Wallet backend returned no airdrop receipt")

        self._record(
            TransactionRecord(
                signature=receipt,
                kind=TransactionKind.AIRDROP,
                amount=self.airdrop_amount,
            )
        )
        log_info(logger, "Airdrop completed", receipt=short_id(receipt))
        return receipt

    def success_message(self, receipt: str, recipient: str, amount: Decimal) -> str:
        return (
            f"Transaction sent! {format_amount(amount)} {self.currency} to "
            f"{preview_address(recipient)}\nSignature: {receipt[:RECEIPT_PREFIX_LENGTH]}..."
        )

    def failure_message(self, error: TransferFailed) -> str:
        return f"Transaction failed: {error.reason}"

    def airdrop_message(self, receipt: str) -> str:
        return (
            f"Airdrop received! {format_amount(self.airdrop_amount)} {self.currency} "
            f"is on its way.\nSignature: {receipt[:RECEIPT_PREFIX_LENGTH]}..."
        )

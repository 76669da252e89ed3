"""Conversation engine: routes chat messages through the confirmation state machine."""

import logging
import time
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

from chatwallet.commands.contacts import ContactResolver
from chatwallet.commands.intent_parser import Intent, IntentKind, IntentParser
from chatwallet.commands.orchestrator import TransferOrchestrator, format_amount, preview_address
from chatwallet.commands.session_store import PendingCommand, SessionStore
from chatwallet.db.transactions import TransactionKind
from chatwallet.errors import (
    AddressNotFound,
    AirdropFailed,
    InvalidRecipient,
    SessionStoreError,
    TransferFailed,
    WalletError,
)
from chatwallet.logging_utils import log_info, short_id
from chatwallet.metrics import MetricsCollector
from chatwallet.records import RecordStore
from chatwallet.wallet.service import ValueTransferService

logger = logging.getLogger(__name__)

HELP_TEXT = (
    "I can help you manage your wallet!\n\n"
    "Try saying:\n"
    "- 'Balance'\n"
    "- 'Address'\n"
    "- 'History'\n"
    "- 'Airdrop'\n"
    "- 'Send 0.1 to [address or contact name]'"
)
BACKEND_UNAVAILABLE_TEXT = "Sorry, I couldn't reach your wallet right now. Please try again."
HISTORY_UNAVAILABLE_TEXT = "Sorry, I couldn't load your transaction history right now."


class ReplyStatus(str, Enum):
    """Outcome of handling one message."""

    OK = "ok"
    NEEDS_CONFIRMATION = "needs_confirmation"
    ERROR = "error"
    SILENT = "silent"


@dataclass(frozen=True)
class SideEffect:
    """A balance-affecting action that happened while handling a message."""

    kind: TransactionKind
    amount: Decimal
    receipt_id: str

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "amount": str(self.amount), "receipt_id": self.receipt_id}


@dataclass(frozen=True)
class EngineReply:
    """Result of handling one message. reply_text is None when the bot stays silent."""

    reply_text: str | None
    intent: Intent
    status: ReplyStatus
    side_effect: SideEffect | None = None


class ConversationEngine:
    """Route chat messages to wallet actions, one pending confirmation per conversation.

    States per conversation are IDLE (nothing pending) and AWAITING_CONFIRMATION
    (one pending transfer). While awaiting, only yes/no resolve the pending
    transfer; any other message, including a new transfer, gets a reminder.
    Unrecognized messages while idle get no reply so the bot stays quiet in
    shared chats.
    """

    def __init__(
        self,
        wallet: ValueTransferService,
        records: RecordStore,
        sessions: SessionStore | None = None,
        currency: str = "SOL",
        history_limit: int = 5,
        max_transactions: int = 50,
        airdrop_amount: Decimal = Decimal("1"),
        metrics: MetricsCollector | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            wallet: Value-transfer backend
            records: Contact and transaction storage
            sessions: Per-conversation state (default: in-memory SessionStore)
            currency: Currency unit shown in replies
            history_limit: Number of transactions listed by the history reply
            max_transactions: Maximum transaction history kept on write
            airdrop_amount: Amount credited by one airdrop
            metrics: Optional metrics collector
        """
        self.wallet = wallet
        self.records = records
        self.sessions = sessions or SessionStore()
        self.currency = currency
        self.history_limit = history_limit
        self.metrics = metrics

        self.parser = IntentParser(currency=currency)
        self.resolver = ContactResolver(records, wallet, currency=currency)
        self.orchestrator = TransferOrchestrator(
            wallet,
            records,
            currency=currency,
            max_transactions=max_transactions,
            airdrop_amount=airdrop_amount,
        )

    def handle(self, conversation_id: str, text: str) -> EngineReply:
        """Handle one inbound message and produce the outbound reply.

        Messages for the same conversation are processed one at a time in
        arrival order; the conversation lock is held for the whole message,
        including any backend transfer.

        Args:
            conversation_id: Stable identifier of the chat
            text: Raw message text

        Returns:
            EngineReply with the reply text (None for silence) and any side effect
        """
        started = time.monotonic()
        intent = self.parser.parse(text)

        with self.sessions.lock(conversation_id):
            pending = self.sessions.get_pending(conversation_id)
            if pending is not None:
                reply = self._handle_awaiting(conversation_id, pending, intent)
            else:
                reply = self._handle_idle(conversation_id, text, intent)

        if self.metrics is not None:
            latency_ms = (time.monotonic() - started) * 1000
            self.metrics.record_message(reply.intent.kind.value, reply.status.value, latency_ms)

        return reply

    def _handle_awaiting(
        self, conversation_id: str, pending: PendingCommand, intent: Intent
    ) -> EngineReply:
        """Resolve or re-prompt a pending transfer."""
        if intent.kind == IntentKind.CONFIRM_YES:
            # Taken before executing whatever the outcome; failed transfers are not retried
            try:
                taken = self.sessions.pop_pending(conversation_id)
            except SessionStoreError as e:
                logger.warning("Could not take pending transfer: %s", e.reason)
                return EngineReply(BACKEND_UNAVAILABLE_TEXT, intent, ReplyStatus.ERROR)
            if taken is None:
                # Consumed or expired since it was read
                return EngineReply(None, intent, ReplyStatus.SILENT)
            return self._execute_pending(conversation_id, taken, intent)

        if intent.kind == IntentKind.CONFIRM_NO:
            try:
                self.sessions.clear_pending(conversation_id)
            except SessionStoreError as e:
                logger.warning("Could not cancel pending transfer: %s", e.reason)
                return EngineReply(BACKEND_UNAVAILABLE_TEXT, intent, ReplyStatus.ERROR)
            self._record_transfer_outcome("cancelled")
            log_info(logger, "Pending transfer cancelled", conversation=short_id(conversation_id))
            return EngineReply("Transaction cancelled.", intent, ReplyStatus.OK)

        return EngineReply(
            f"You have a pending transfer of {format_amount(pending.amount)} {self.currency} "
            f"to {preview_address(pending.recipient)}. "
            "Please reply 'yes' to confirm or 'no' to cancel.",
            intent,
            ReplyStatus.NEEDS_CONFIRMATION,
        )

    def _execute_pending(
        self, conversation_id: str, pending: PendingCommand, intent: Intent
    ) -> EngineReply:
        try:
            receipt = self.orchestrator.execute(pending.recipient, pending.amount)
        except TransferFailed as e:
            self._record_transfer_outcome("failed")
            return EngineReply(self.orchestrator.failure_message(e), intent, ReplyStatus.ERROR)

        self._record_transfer_outcome("ok")
        log_info(
            logger,
            "Confirmed transfer executed",
            conversation=short_id(conversation_id),
            receipt=short_id(receipt),
        )
        return EngineReply(
            self.orchestrator.success_message(receipt, pending.recipient, pending.amount),
            intent,
            ReplyStatus.OK,
            side_effect=SideEffect(TransactionKind.SENT, pending.amount, receipt),
        )

    def _handle_idle(self, conversation_id: str, text: str, intent: Intent) -> EngineReply:
        """Route a message when nothing is pending."""
        if intent.kind == IntentKind.UNKNOWN:
            # Transfers to contact names only parse once the name is replaced by its address
            try:
                rewritten = self.resolver.rewrite(text)
            except (AddressNotFound, InvalidRecipient) as e:
                return EngineReply(self._recipient_error_text(e), intent, ReplyStatus.ERROR)
            if rewritten != text:
                intent = self.parser.parse(rewritten)

        if intent.kind == IntentKind.SEND:
            return self._handle_send(conversation_id, intent)
        elif intent.kind == IntentKind.BALANCE:
            return self._handle_balance(intent)
        elif intent.kind == IntentKind.ADDRESS:
            return self._handle_address(intent)
        elif intent.kind == IntentKind.HELP:
            return EngineReply(HELP_TEXT, intent, ReplyStatus.OK)
        elif intent.kind == IntentKind.HISTORY:
            return self._handle_history(intent)
        elif intent.kind == IntentKind.AIRDROP:
            return self._handle_airdrop(intent)

        # UNKNOWN, or a yes/no with nothing pending (e.g. the confirmation was lost or expired)
        return EngineReply(None, intent, ReplyStatus.SILENT)

    def _handle_send(self, conversation_id: str, intent: Intent) -> EngineReply:
        """Validate the recipient and start a pending transfer."""
        try:
            recipient = self.resolver.resolve(intent.recipient)
            if recipient is None:
                raise InvalidRecipient(intent.recipient)
            if not self.wallet.is_valid_address(recipient):
                raise InvalidRecipient(recipient)
        except InvalidRecipient as e:
            return EngineReply(self._recipient_error_text(e), intent, ReplyStatus.ERROR)

        pending = self.sessions.new_pending(intent.amount, recipient)
        try:
            self.sessions.set_pending(conversation_id, pending)
        except SessionStoreError as e:
            logger.warning("Could not store pending transfer: %s", e.reason)
            return EngineReply(BACKEND_UNAVAILABLE_TEXT, intent, ReplyStatus.ERROR)
        log_info(
            logger,
            "Transfer awaiting confirmation",
            conversation=short_id(conversation_id),
            amount=format_amount(intent.amount),
            recipient=short_id(recipient),
        )

        resolved = Intent(kind=IntentKind.SEND, amount=intent.amount, recipient=recipient)
        return EngineReply(
            f"Are you sure you want to send {format_amount(intent.amount)} {self.currency} "
            f"to {preview_address(recipient)}? (yes/no)",
            resolved,
            ReplyStatus.NEEDS_CONFIRMATION,
        )

    def _handle_balance(self, intent: Intent) -> EngineReply:
        try:
            balance = self.wallet.balance()
        except WalletError as e:
            logger.warning("Balance query failed: %s", e.reason)
            return EngineReply(BACKEND_UNAVAILABLE_TEXT, intent, ReplyStatus.ERROR)
        except Exception as e:
            logger.error("Unexpected error querying balance: %s", e, exc_info=True)
            return EngineReply(BACKEND_UNAVAILABLE_TEXT, intent, ReplyStatus.ERROR)
        return EngineReply(
            f"Your current balance is {balance:.4f} {self.currency}.", intent, ReplyStatus.OK
        )

    def _handle_address(self, intent: Intent) -> EngineReply:
        try:
            address = self.wallet.address()
        except WalletError as e:
            logger.warning("Address query failed: %s", e.reason)
            return EngineReply(BACKEND_UNAVAILABLE_TEXT, intent, ReplyStatus.ERROR)
        except Exception as e:
            logger.error("Unexpected error querying address: %s", e, exc_info=True)
            return EngineReply(BACKEND_UNAVAILABLE_TEXT, intent, ReplyStatus.ERROR)
        return EngineReply(f"Your wallet address is:\n{address}", intent, ReplyStatus.OK)

    def _handle_history(self, intent: Intent) -> EngineReply:
        try:
            records = self.records.get_transactions(limit=self.history_limit)
        except Exception as e:
            logger.error("Failed to load transaction history: %s", e, exc_info=True)
            return EngineReply(HISTORY_UNAVAILABLE_TEXT, intent, ReplyStatus.ERROR)
        if not records:
            return EngineReply("No transactions yet.", intent, ReplyStatus.OK)

        lines = [f"Your last {len(records)} transactions:"]
        for record in records:
            amount = f"{format_amount(record.amount)} {self.currency}"
            when = record.timestamp.strftime("%Y-%m-%d %H:%M")
            if record.kind == TransactionKind.SENT:
                line = f"- Sent {amount} to {preview_address(record.recipient or '')}"
            elif record.kind == TransactionKind.AIRDROP:
                line = f"- Airdrop of {amount}"
            else:
                line = f"- Received {amount}"
            lines.append(f"{line} ({when} UTC)")
        return EngineReply("\n".join(lines), intent, ReplyStatus.OK)

    def _handle_airdrop(self, intent: Intent) -> EngineReply:
        try:
            receipt = self.orchestrator.airdrop()
        except AirdropFailed as e:
            return EngineReply(e.reason, intent, ReplyStatus.ERROR)

        return EngineReply(
            self.orchestrator.airdrop_message(receipt),
            intent,
            ReplyStatus.OK,
            side_effect=SideEffect(
                TransactionKind.AIRDROP, self.orchestrator.airdrop_amount, receipt
            ),
        )

    def _recipient_error_text(self, error: WalletError) -> str:
        if isinstance(error, AddressNotFound):
            return (
                f"Contact '{error.name}' not found. "
                "Add them to your contacts or send to an address."
            )
        return f"{error.reason}. Please check the recipient and try again."

    def _record_transfer_outcome(self, outcome: str) -> None:
        if self.metrics is not None:
            self.metrics.record_transfer(outcome)

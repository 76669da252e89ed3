"""Pydantic models for the chat wallet HTTP API."""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field


class ReplyStatus(str, Enum):
    """Reply status."""

    OK = "ok"
    NEEDS_CONFIRMATION = "needs_confirmation"
    ERROR = "error"
    SILENT = "silent"


class MessageRequest(BaseModel):
    """Inbound chat message."""

    conversation_id: str = Field(..., min_length=1, max_length=256, examples=["15551234567@chat"])
    text: str = Field(..., max_length=4096, examples=["Send 0.1 to alice"])


class ParsedIntent(BaseModel):
    """Parsed intent."""

    kind: str = Field(..., examples=["send"])
    amount: Decimal | None = None
    recipient: str | None = None


class SideEffectKind(str, Enum):
    """Balance-affecting action kind."""

    SENT = "sent"
    AIRDROP = "airdrop"


class SideEffect(BaseModel):
    """Balance-affecting action that happened while handling a message."""

    kind: SideEffectKind
    amount: Decimal
    receipt_id: str


class MessageResponse(BaseModel):
    """Outbound reply. reply_text is null when the bot stays silent."""

    status: ReplyStatus
    reply_text: str | None = None
    intent: ParsedIntent
    side_effect: SideEffect | None = None


class WalletResponse(BaseModel):
    """Wallet summary."""

    address: str
    balance: Decimal
    currency: str = "SOL"


class AirdropResponse(BaseModel):
    """Airdrop result."""

    signature: str
    amount: Decimal


class CreateContactRequest(BaseModel):
    """Request to save a contact."""

    name: str = Field(..., min_length=1, max_length=64, examples=["alice"])
    address: str = Field(..., min_length=32, max_length=44)


class ContactResponse(BaseModel):
    """Saved contact."""

    id: str
    name: str
    address: str


class ContactsListResponse(BaseModel):
    """List of contacts."""

    contacts: list[ContactResponse]


class TransactionKind(str, Enum):
    """Transaction kind."""

    SENT = "sent"
    RECEIVED = "received"
    AIRDROP = "airdrop"


class TransactionResponse(BaseModel):
    """Transaction history entry."""

    signature: str
    kind: TransactionKind
    amount: Decimal
    timestamp: datetime
    recipient: str | None = None


class TransactionsListResponse(BaseModel):
    """Transaction history, most recent first."""

    transactions: list[TransactionResponse]


class DependencyStatus(BaseModel):
    """Status of a single dependency."""

    name: str = Field(..., description="Dependency name (e.g., 'duckdb', 'wallet')")
    status: str = Field(..., description="Status: ok, degraded, or unavailable")
    message: str | None = Field(default=None, description="Optional status message")


class StatusResponse(BaseModel):
    """Service status response."""

    status: str = Field(..., description="Overall service status: ok, degraded, or unavailable")
    version: str | None = Field(default=None, description="Service version if available")
    timestamp: datetime = Field(..., description="Current server time")
    dependencies: list[DependencyStatus] = Field(
        default_factory=list, description="Dependency readiness"
    )

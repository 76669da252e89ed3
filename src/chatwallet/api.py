"""FastAPI backend for the chat wallet.

Chat transports post inbound messages to /v1/messages and relay the reply text;
the remaining endpoints back a small dashboard.
"""

import logging
from datetime import UTC, datetime

from fastapi import FastAPI, Header, HTTPException, Response, status

from chatwallet import __version__
from chatwallet.commands.engine import ConversationEngine
from chatwallet.commands.session_store import RedisSessionStore
from chatwallet.config import load_config
from chatwallet.db import init_db
from chatwallet.errors import AirdropFailed, WalletError
from chatwallet.logging_utils import clear_request_id, log_info, set_request_id, short_id
from chatwallet.metrics import get_metrics_collector, is_metrics_enabled
from chatwallet.models import (
    AirdropResponse,
    ContactResponse,
    ContactsListResponse,
    CreateContactRequest,
    DependencyStatus,
    MessageRequest,
    MessageResponse,
    ParsedIntent,
    SideEffect,
    StatusResponse,
    TransactionResponse,
    TransactionsListResponse,
    WalletResponse,
)
from chatwallet.records import DBRecordStore, RecordStore
from chatwallet.redis_client import get_redis_client
from chatwallet.wallet import ValueTransferService, get_wallet_service

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)
app = FastAPI(
    title="Chat Wallet API",
    version=__version__,
    description="Conversational wallet engine for chat transports",
)

# Initialized lazily
_db_conn = None
_wallet_service: ValueTransferService | None = None
_record_store: RecordStore | None = None
_engine: ConversationEngine | None = None


def get_db():
    """Get or initialize database connection.

    Uses DUCKDB_PATH environment variable or defaults to data/chatwallet.db.
    Tests set DUCKDB_PATH=:memory: in conftest.py for isolation.
    """
    global _db_conn
    if _db_conn is None:
        _db_conn = init_db()
    return _db_conn


def get_wallet() -> ValueTransferService:
    """Get or initialize the value-transfer backend."""
    global _wallet_service
    if _wallet_service is None:
        _wallet_service = get_wallet_service()
    return _wallet_service


def get_record_store() -> RecordStore:
    """Get or initialize the DuckDB-backed record store."""
    global _record_store
    if _record_store is None:
        _record_store = DBRecordStore(get_db())
    return _record_store


def get_engine() -> ConversationEngine:
    """Get or initialize the conversation engine."""
    global _engine
    if _engine is None:
        config = load_config()
        _engine = ConversationEngine(
            wallet=get_wallet(),
            records=get_record_store(),
            sessions=RedisSessionStore(
                get_redis_client(), pending_ttl_seconds=config.pending_ttl_seconds
            ),
            currency=config.currency,
            history_limit=config.history_limit,
            max_transactions=config.max_transactions,
            airdrop_amount=config.airdrop_amount,
            metrics=get_metrics_collector() if is_metrics_enabled() else None,
        )
    return _engine


@app.get("/health")
def health():
    """Liveness check."""
    return {"status": "ok"}


@app.get("/v1/status", response_model=StatusResponse)
def get_status():
    """Get service status and dependency readiness.

    Does not expose configuration values or wallet addresses.
    """
    dependencies = []

    try:
        get_db().execute("SELECT 1").fetchone()
        dependencies.append(
            DependencyStatus(name="duckdb", status="ok", message="Database connection healthy")
        )
    except Exception as e:
        logger.warning("DuckDB health check failed: %s", e)
        dependencies.append(
            DependencyStatus(
                name="duckdb", status="unavailable", message="Database connection failed"
            )
        )

    try:
        get_wallet().balance()
        dependencies.append(
            DependencyStatus(name="wallet", status="ok", message="Wallet backend reachable")
        )
    except WalletError as e:
        logger.warning("Wallet health check failed: %s", e.reason)
        dependencies.append(
            DependencyStatus(
                name="wallet", status="unavailable", message="Wallet backend unreachable"
            )
        )

    sessions = get_engine().sessions
    if isinstance(sessions, RedisSessionStore) and sessions.redis is None:
        # Pending confirmations still work, they just do not survive a restart
        dependencies.append(
            DependencyStatus(
                name="redis", status="degraded", message="Using in-memory pending transfers"
            )
        )
    else:
        dependencies.append(DependencyStatus(name="redis", status="ok"))

    overall_status = "ok"
    if any(dep.status == "unavailable" for dep in dependencies):
        overall_status = "degraded"
    elif any(dep.status == "degraded" for dep in dependencies):
        overall_status = "degraded"

    return StatusResponse(
        status=overall_status,
        version=app.version,
        timestamp=datetime.now(UTC),
        dependencies=dependencies,
    )


@app.post("/v1/messages", response_model=MessageResponse)
def handle_message(
    request: MessageRequest,
    response: Response,
    x_request_id: str | None = Header(default=None, alias="X-Request-Id"),
):
    """Handle one inbound chat message.

    reply_text is null when the message was not meant for the bot; the
    transport should send nothing in that case.
    """
    request_id = set_request_id(x_request_id or None)
    response.headers["X-Request-Id"] = request_id
    try:
        log_info(logger, "Inbound message", conversation=short_id(request.conversation_id))
        reply = get_engine().handle(request.conversation_id, request.text)
    finally:
        clear_request_id()

    side_effect = None
    if reply.side_effect is not None:
        side_effect = SideEffect(**reply.side_effect.to_dict())

    return MessageResponse(
        status=reply.status.value,
        reply_text=reply.reply_text,
        intent=ParsedIntent(
            kind=reply.intent.kind.value,
            amount=reply.intent.amount,
            recipient=reply.intent.recipient,
        ),
        side_effect=side_effect,
    )


@app.get("/v1/wallet", response_model=WalletResponse)
def get_wallet_summary():
    """Get the wallet address and current balance."""
    wallet = get_wallet()
    try:
        address = wallet.address()
        balance = wallet.balance()
    except WalletError as e:
        logger.warning("Wallet summary failed: %s", e.reason)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Wallet backend unavailable",
        ) from e
    return WalletResponse(address=address, balance=balance, currency=get_engine().currency)


@app.post("/v1/airdrop", response_model=AirdropResponse)
def request_airdrop():
    """Request an airdrop and record it in the transaction history."""
    orchestrator = get_engine().orchestrator
    try:
        signature = orchestrator.airdrop()
    except AirdropFailed as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=e.reason,
        ) from e
    return AirdropResponse(signature=signature, amount=orchestrator.airdrop_amount)


@app.get("/v1/contacts", response_model=ContactsListResponse)
def list_contacts():
    """List saved contacts."""
    contacts = get_record_store().get_contacts()
    return ContactsListResponse(
        contacts=[ContactResponse(id=c.id, name=c.name, address=c.address) for c in contacts]
    )


@app.post("/v1/contacts", response_model=ContactResponse, status_code=status.HTTP_201_CREATED)
def create_contact(request: CreateContactRequest):
    """Save a contact.

    Returns 422 if the address is not valid for the wallet backend and 409 if a
    contact with the same name (case-insensitive) already exists.
    """
    name = request.name.strip()
    if not name:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Contact name must not be blank",
        )
    if not get_wallet().is_valid_address(request.address):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"'{request.address}' is not a valid address",
        )

    try:
        contact = get_record_store().add_contact(name, request.address)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e

    return ContactResponse(id=contact.id, name=contact.name, address=contact.address)


@app.delete("/v1/contacts/{contact_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_contact(contact_id: str):
    """Delete a contact."""
    if not get_record_store().delete_contact(contact_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Contact not found",
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.get("/v1/transactions", response_model=TransactionsListResponse)
def list_transactions():
    """List recorded transactions, most recent first."""
    records = get_record_store().get_transactions()
    return TransactionsListResponse(
        transactions=[
            TransactionResponse(
                signature=r.signature,
                kind=r.kind.value,
                amount=r.amount,
                timestamp=r.timestamp,
                recipient=r.recipient,
            )
            for r in records
        ]
    )


@app.get("/v1/metrics")
def get_metrics():
    """Get a snapshot of in-process metrics.

    Returns 404 unless CHATWALLET_ENABLE_METRICS is set.
    """
    if not is_metrics_enabled():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Metrics are disabled",
        )
    return get_metrics_collector().get_snapshot()

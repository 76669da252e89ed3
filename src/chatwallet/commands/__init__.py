"""Conversational command engine for the chat wallet.

This module implements:
- Intent parsing from chat messages
- Contact name resolution for transfers
- Per-conversation pending transfer confirmation
- Transfer execution and recording
"""

from .contacts import ContactResolver
from .engine import ConversationEngine, EngineReply, ReplyStatus, SideEffect
from .intent_parser import Intent, IntentKind, IntentParser
from .orchestrator import TransferOrchestrator
from .session_store import PendingCommand, RedisSessionStore, SessionStore

__all__ = [
    "ContactResolver",
    "ConversationEngine",
    "EngineReply",
    "ReplyStatus",
    "SideEffect",
    "Intent",
    "IntentKind",
    "IntentParser",
    "TransferOrchestrator",
    "PendingCommand",
    "SessionStore",
    "RedisSessionStore",
]

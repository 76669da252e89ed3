"""Intent parser for converting chat messages to structured intents."""

import re
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

# Address-like token: 32-44 alphanumeric characters (base58 public keys fall in this range)
ADDRESS_TOKEN = r"[a-zA-Z0-9]{32,44}"
_ADDRESS_SHAPE = re.compile(ADDRESS_TOKEN)


class IntentKind(str, Enum):
    """Classified meaning of a chat message."""

    SEND = "send"
    BALANCE = "balance"
    ADDRESS = "address"
    HELP = "help"
    HISTORY = "history"
    AIRDROP = "airdrop"
    CONFIRM_YES = "confirm_yes"
    CONFIRM_NO = "confirm_no"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Intent:
    """Structured representation of a parsed chat message.

    Only SEND carries an amount and recipient.
    """

    kind: IntentKind
    amount: Decimal | None = None
    recipient: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "kind": self.kind.value,
            "amount": str(self.amount) if self.amount is not None else None,
            "recipient": self.recipient,
        }


def looks_like_address(token: str) -> bool:
    """Check whether a token has the shape of an address (not whether it is valid)."""
    return bool(_ADDRESS_SHAPE.fullmatch(token.strip()))


def parse_amount(raw: str) -> Decimal | None:
    """Parse a positive finite decimal amount, or None if it is not one."""
    try:
        amount = Decimal(raw)
    except InvalidOperation:
        return None
    if not amount.is_finite() or amount <= 0:
        return None
    return amount


def transfer_pattern(currency: str = "SOL") -> re.Pattern[str]:
    """Build the `(send|transfer|pay) <amount> [<currency>] [to] <address>` pattern."""
    unit = re.escape(currency.lower())
    return re.compile(
        r"\b(?:send|transfer|pay)\s+(?P<amount>\d+(?:\.\d+)?)"
        rf"(?:\s*{unit}\b)?\s*(?:to\s+)?(?P<recipient>{ADDRESS_TOKEN})\b",
        re.IGNORECASE,
    )


class IntentParser:
    """Parse chat messages into intents using an ordered list of pattern rules.

    The first rule that matches wins, so list order is precedence: exact
    confirmation words, then keyword intents, then the transfer pattern.
    Parsing is total: anything unmatched is UNKNOWN.
    """

    def __init__(self, currency: str = "SOL") -> None:
        """Initialize the intent parser with pattern rules.

        Args:
            currency: Currency unit accepted after the amount (default: "SOL")
        """
        # Pattern rules: (regex, intent kind, entity extractors)
        self.patterns: list[tuple[re.Pattern[str], IntentKind, dict[str, Callable]]] = [
            # Confirmation words must be the entire message
            (re.compile(r"^(?:yes|y|confirm)$", re.IGNORECASE), IntentKind.CONFIRM_YES, {}),
            (re.compile(r"^(?:no|n|cancel)$", re.IGNORECASE), IntentKind.CONFIRM_NO, {}),
            # Keyword intents (substring match)
            (re.compile(r"balance|how much", re.IGNORECASE), IntentKind.BALANCE, {}),
            (re.compile(r"address|key|wallet", re.IGNORECASE), IntentKind.ADDRESS, {}),
            (re.compile(r"help", re.IGNORECASE), IntentKind.HELP, {}),
            (re.compile(r"history|transactions", re.IGNORECASE), IntentKind.HISTORY, {}),
            (re.compile(r"airdrop", re.IGNORECASE), IntentKind.AIRDROP, {}),
            # Transfer to an address
            (
                transfer_pattern(currency),
                IntentKind.SEND,
                {
                    "amount": lambda m: parse_amount(m.group("amount")),
                    "recipient": lambda m: m.group("recipient"),
                },
            ),
        ]

    def parse(self, text: str) -> Intent:
        """Parse a chat message into an intent.

        Args:
            text: Raw message text

        Returns:
            Intent; UNKNOWN when no rule matches
        """
        text = (text or "").strip()

        for pattern, kind, entity_extractors in self.patterns:
            match = pattern.search(text)
            if not match:
                continue

            entities = {key: extractor(match) for key, extractor in entity_extractors.items()}
            # A rule whose entities cannot be extracted (e.g. a zero amount) does not match
            if any(value is None for value in entities.values()):
                continue

            return Intent(kind=kind, **entities)

        return Intent(kind=IntentKind.UNKNOWN)

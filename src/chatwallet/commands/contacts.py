"""Contact resolution for transfer commands that name a recipient."""

import logging
import re

from chatwallet.commands.intent_parser import looks_like_address
from chatwallet.errors import AddressNotFound, InvalidRecipient
from chatwallet.records import RecordStore
from chatwallet.wallet.service import ValueTransferService

logger = logging.getLogger(__name__)


def transfer_command_pattern(currency: str = "SOL") -> re.Pattern[str]:
    """Build the pattern for a message that starts with a transfer to any target."""
    unit = re.escape(currency.lower())
    return re.compile(
        r"^\s*(?:send|transfer|pay)\s+\d+(?:\.\d+)?"
        rf"(?:\s*{unit}\b)?\s+(?:to\s+)?(?P<target>\S.*?)[\s.!?]*$",
        re.IGNORECASE,
    )


class ContactResolver:
    """Resolve contact names to addresses via the record store.

    Name-based transfers ("send 1 to alice") are rewritten into address-based
    text so the intent parser keeps a single transfer rule.
    """

    def __init__(
        self,
        records: RecordStore,
        wallet: ValueTransferService,
        currency: str = "SOL",
    ) -> None:
        self.records = records
        self.wallet = wallet
        self._command = transfer_command_pattern(currency)

    def resolve(self, name_or_address: str) -> str | None:
        """Resolve a name or address to an address.

        Valid addresses are returned unchanged without a lookup; anything else
        is looked up as a contact name (case-insensitive exact match).

        Returns:
            The address, or None if no contact matches
        """
        candidate = name_or_address.strip()
        if self.wallet.is_valid_address(candidate):
            return candidate

        contact = self.records.find_contact_by_name(candidate)
        if contact is None:
            return None
        return contact.address

    def rewrite(self, text: str) -> str:
        """Substitute a resolved address for the contact name in a transfer command.

        Text that is not a transfer command, or already targets a valid
        address, is returned unchanged.

        Raises:
            InvalidRecipient: If the target looks like an address but is not valid
            AddressNotFound: If the target is a name with no matching contact
        """
        match = self._command.match(text)
        if not match:
            return text

        target = match.group("target")
        address = self.resolve(target)
        if address is None:
            if looks_like_address(target):
                raise InvalidRecipient(target)
            logger.info("No contact named %r", target)
            raise AddressNotFound(target)

        if address == target:
            return text

        start, end = match.span("target")
        return f"{text[:start]}{address}{text[end:]}"

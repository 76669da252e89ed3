"""Errors raised by wallet collaborators and the command engine."""


class WalletError(Exception):
    """Base class for user-visible wallet errors."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class AddressNotFound(WalletError):
    """A recipient name did not match any saved contact."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Contact '{name}' not found")
        self.name = name


class InvalidRecipient(WalletError):
    """A recipient looked like an address but failed validation."""

    def __init__(self, address: str) -> None:
        super().__init__(f"'{address}' is not a valid address")
        self.address = address


class TransferFailed(WalletError):
    """The value-transfer backend rejected or failed a transfer."""


class AirdropFailed(WalletError):
    """The backend could not fund the wallet (unavailable or rate-limited)."""

    def __init__(self, reason: str = "Airdrop failed. The network might be busy.") -> None:
        super().__init__(reason)


class SessionStoreError(WalletError):
    """Pending transfer state could not be read, written or cleared."""

    def __init__(self, reason: str = "Pending transfer store unavailable") -> None:
        super().__init__(reason)

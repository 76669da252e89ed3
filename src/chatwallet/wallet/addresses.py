"""Base58 address helpers.

Addresses are base58-encoded 32-byte public keys.
"""

BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_BASE58_INDEX = {char: index for index, char in enumerate(BASE58_ALPHABET)}

PUBLIC_KEY_LENGTH = 32


def b58encode(data: bytes) -> str:
    """Encode bytes as a base58 string."""
    num = int.from_bytes(data, "big")
    encoded = ""
    while num > 0:
        num, remainder = divmod(num, 58)
        encoded = BASE58_ALPHABET[remainder] + encoded

    # Each leading zero byte is written as "1"
    leading_zeros = len(data) - len(data.lstrip(b"\x00"))
    return "1" * leading_zeros + encoded


def b58decode(value: str) -> bytes:
    """Decode a base58 string.

    Raises:
        ValueError: If the string contains characters outside the alphabet
    """
    num = 0
    for char in value:
        if char not in _BASE58_INDEX:
            raise ValueError(f"Invalid base58 character: {char!r}")
        num = num * 58 + _BASE58_INDEX[char]

    body = num.to_bytes((num.bit_length() + 7) // 8, "big") if num else b""
    leading_ones = len(value) - len(value.lstrip("1"))
    return b"\x00" * leading_ones + body


def is_valid_address(address: str | None) -> bool:
    """Check that a string decodes to a 32-byte public key."""
    if not address or not isinstance(address, str):
        return False
    if not 32 <= len(address) <= 44:
        return False
    try:
        return len(b58decode(address)) == PUBLIC_KEY_LENGTH
    except ValueError:
        return False

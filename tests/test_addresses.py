"""Tests for base58 address helpers."""

import pytest

from chatwallet.wallet.addresses import b58decode, b58encode, is_valid_address


@pytest.mark.parametrize(
    "address",
    [
        "11111111111111111111111111111111",
        "So11111111111111111111111111111111111111112",
        "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA",
        "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL",
    ],
)
def test_known_addresses_are_valid(address):
    assert is_valid_address(address)
    assert len(b58decode(address)) == 32


@pytest.mark.parametrize(
    "address",
    [
        "",
        None,
        "alice",
        "0" * 40,  # '0' is not in the alphabet
        "O" * 40,
        "l" * 40,
        "1" * 31,
        "1" * 45,
        "z" * 44,  # decodes to more than 32 bytes
    ],
)
def test_invalid_addresses(address):
    assert not is_valid_address(address)


def test_encode_keeps_leading_zero_bytes():
    assert b58encode(b"\x00\x00\x01") == "112"
    assert b58decode("112") == b"\x00\x00\x01"


def test_encode_known_value():
    assert b58encode(b"hello world") == "StV1DL6CwTryKyV"
    assert b58decode("StV1DL6CwTryKyV") == b"hello world"


def test_decode_rejects_bad_character():
    with pytest.raises(ValueError):
        b58decode("0abc")

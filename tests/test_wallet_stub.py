"""Tests for the stub value-transfer service."""

from decimal import Decimal

import pytest

from chatwallet.config import WalletConfig
from chatwallet.errors import AirdropFailed, TransferFailed
from chatwallet.wallet import get_wallet_service
from chatwallet.wallet.addresses import b58decode, is_valid_address
from chatwallet.wallet.http_service import HttpValueTransferService
from chatwallet.wallet.stub_service import StubValueTransferService

ALICE = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"


def test_address_is_deterministic():
    assert StubValueTransferService().address() == StubValueTransferService().address()
    assert StubValueTransferService(seed="a").address() != StubValueTransferService().address()
    assert is_valid_address(StubValueTransferService().address())


def test_airdrop_credits_balance():
    wallet = StubValueTransferService(airdrop_amount=Decimal("2"))

    signature = wallet.airdrop()

    assert len(b58decode(signature)) == 64
    assert wallet.balance() == Decimal("2")


def test_airdrop_disabled():
    wallet = StubValueTransferService(airdrop_enabled=False)
    with pytest.raises(AirdropFailed):
        wallet.airdrop()
    assert wallet.balance() == Decimal("0")


def test_transfer_debits_balance():
    wallet = StubValueTransferService(initial_balance=Decimal("1"))

    first = wallet.transfer(ALICE, Decimal("0.4"))
    second = wallet.transfer(ALICE, Decimal("0.6"))

    assert first != second
    assert wallet.balance() == Decimal("0")


def test_transfer_insufficient_funds():
    wallet = StubValueTransferService(initial_balance=Decimal("1"))
    with pytest.raises(TransferFailed) as exc_info:
        wallet.transfer(ALICE, Decimal("1.5"))
    assert exc_info.value.reason == "Insufficient funds: balance is 1"
    assert wallet.balance() == Decimal("1")


def test_transfer_invalid_address():
    wallet = StubValueTransferService(initial_balance=Decimal("1"))
    with pytest.raises(TransferFailed):
        wallet.transfer("0" * 40, Decimal("0.5"))


def test_transfer_non_positive_amount():
    wallet = StubValueTransferService(initial_balance=Decimal("1"))
    with pytest.raises(TransferFailed):
        wallet.transfer(ALICE, Decimal("0"))


def test_factory_defaults_to_stub():
    wallet = get_wallet_service(WalletConfig(airdrop_amount=Decimal("3")))
    assert isinstance(wallet, StubValueTransferService)
    assert wallet.airdrop_amount == Decimal("3")


def test_factory_http_provider(monkeypatch):
    monkeypatch.setenv("CHATWALLET_WALLET_API_TOKEN", "test-token")
    wallet = get_wallet_service(
        WalletConfig(wallet_provider="http", wallet_api_url="http://wallet.test")
    )
    try:
        assert isinstance(wallet, HttpValueTransferService)
    finally:
        wallet.close()

"""Value-transfer backends for the chat wallet."""

import logging
import os

from chatwallet.config import WalletConfig, load_config
from chatwallet.wallet.service import ValueTransferService
from chatwallet.wallet.stub_service import StubValueTransferService

logger = logging.getLogger(__name__)

__all__ = ["ValueTransferService", "StubValueTransferService", "get_wallet_service"]


def get_wallet_service(config: WalletConfig | None = None) -> ValueTransferService:
    """Get the configured value-transfer service.

    - wallet_provider "stub" (default): in-memory StubValueTransferService
    - wallet_provider "http": HttpValueTransferService against wallet_api_url

    Environment variables:
        CHATWALLET_WALLET_PROVIDER: Provider type (via config)
        CHATWALLET_WALLET_API_TOKEN: Optional bearer token for the http provider

    Returns:
        A ValueTransferService instance
    """
    config = config or load_config()

    if config.wallet_provider == "http":
        from chatwallet.wallet.http_service import HttpValueTransferService

        logger.info("Using HTTP wallet backend at %s", config.wallet_api_url)
        return HttpValueTransferService(
            base_url=config.wallet_api_url,
            token=os.environ.get("CHATWALLET_WALLET_API_TOKEN"),
            timeout=config.wallet_api_timeout,
        )

    logger.info("Using stub wallet backend")
    return StubValueTransferService(airdrop_amount=config.airdrop_amount)

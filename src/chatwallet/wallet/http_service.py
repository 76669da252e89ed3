"""HTTP client for a custodial wallet backend.

The backend holds the keypair and signs transfers; this client only asks it to
report balances, request airdrops and submit transfers. Uses httpx with timeouts.
Network errors are mapped to wallet errors rather than raised raw.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from chatwallet.errors import AirdropFailed, TransferFailed, WalletError
from chatwallet.logging_utils import short_id
from chatwallet.wallet.addresses import is_valid_address
from chatwallet.wallet.service import ValueTransferService

logger = logging.getLogger(__name__)


def _error_reason(response: httpx.Response) -> str:
    """Extract the backend's error message from a non-2xx response."""
    try:
        data = response.json()
    except ValueError:
        return f"Wallet backend returned HTTP {response.status_code}"

    if isinstance(data, dict):
        for key in ("error", "message", "detail"):
            if isinstance(data.get(key), str) and data[key]:
                return data[key]
    return f"Wallet backend returned HTTP {response.status_code}"


def _json_object(response: httpx.Response, error_cls: type[WalletError]) -> dict[str, Any]:
    """Decode a successful response body, which must be a JSON object."""
    try:
        data = response.json()
    except ValueError as e:
        logger.error("Wallet backend returned a non-JSON body (HTTP %d)", response.status_code)
        raise error_cls("Wallet backend returned an invalid response") from e

    if not isinstance(data, dict):
        logger.error("Wallet backend returned %s instead of an object", type(data).__name__)
        raise error_cls("Wallet backend returned an invalid response")
    return data


class HttpValueTransferService(ValueTransferService):
    """Value-transfer service backed by a custodial wallet REST API.

    Endpoints:
        GET  /wallet            -> {"address": str, "balance": str}
        GET  /wallet/balance    -> {"balance": str}
        POST /wallet/airdrop    -> {"signature": str}
        POST /wallet/transfers  -> {"signature": str}   body: {"to": str, "amount": str}
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Backend base URL (e.g., "http://localhost:8899")
            token: Optional bearer token for the backend
            timeout: Request timeout in seconds (default: 30.0)
            client: Optional preconfigured httpx client (for tests)
        """
        headers = {"User-Agent": "chatwallet/0.1", "Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._client = client or httpx.Client(
            base_url=base_url.rstrip("/"), headers=headers, timeout=timeout
        )
        self._address: str | None = None

    def close(self) -> None:
        self._client.close()

    def _get_json(self, path: str) -> dict[str, Any]:
        try:
            response = self._client.get(path)
        except httpx.HTTPError as e:
            logger.error("Wallet backend request GET %s failed: %s", path, e)
            raise WalletError("Wallet backend unavailable") from e

        if not response.is_success:
            raise WalletError(_error_reason(response))
        return _json_object(response, WalletError)

    def balance(self) -> Decimal:
        data = self._get_json("/wallet/balance")
        try:
            return Decimal(str(data["balance"]))
        except (KeyError, InvalidOperation) as e:
            raise WalletError("Wallet backend returned an invalid balance") from e

    def address(self) -> str:
        if self._address is None:
            data = self._get_json("/wallet")
            address = data.get("address")
            if not isinstance(address, str) or not address:
                raise WalletError("Wallet backend returned no address")
            self._address = address
        return self._address

    def airdrop(self) -> str:
        try:
            response = self._client.post("/wallet/airdrop")
        except httpx.HTTPError as e:
            logger.error("Airdrop request failed: %s", e)
            raise AirdropFailed() from e

        if not response.is_success:
            logger.warning(
                "Airdrop rejected (HTTP %d): %s", response.status_code, _error_reason(response)
            )
            raise AirdropFailed()

        signature = _json_object(response, AirdropFailed).get("signature")
        if not isinstance(signature, str) or not signature:
            raise AirdropFailed("Wallet backend returned no airdrop signature")
        return signature

    def transfer(self, address: str, amount: Decimal) -> str:
        payload = {"to": address, "amount": str(amount)}
        logger.info("Submitting transfer of %s to %s", amount, short_id(address))

        try:
            response = self._client.post("/wallet/transfers", json=payload)
        except httpx.TimeoutException as e:
            logger.error("Transfer to %s timed out: %s", short_id(address), e)
            raise TransferFailed("Timed out waiting for the network") from e
        except httpx.HTTPError as e:
            logger.error("Transfer to %s failed: %s", short_id(address), e)
            raise TransferFailed("Wallet backend unavailable") from e

        if not response.is_success:
            reason = _error_reason(response)
            logger.warning("Transfer rejected (HTTP %d): %s", response.status_code, reason)
            raise TransferFailed(reason)

        signature = _json_object(response, TransferFailed).get("signature")
        if not isinstance(signature, str) or not signature:
            raise TransferFailed("Wallet backend returned no signature")
        return signature

    def is_valid_address(self, address: str) -> bool:
        return is_valid_address(address)

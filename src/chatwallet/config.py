"""Wallet engine configuration.

Loads settings from an optional YAML file with environment overrides and safe defaults.
"""

import os
from dataclasses import dataclass, fields
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

WALLET_PROVIDERS = ("stub", "http")


@dataclass
class WalletConfig:
    """Settings for the conversational wallet engine."""

    currency: str = "SOL"
    pending_ttl_seconds: int = 300
    history_limit: int = 5
    max_transactions: int = 50
    airdrop_amount: Decimal = Decimal("1")
    wallet_provider: str = "stub"
    wallet_api_url: str = "http://localhost:8899"
    wallet_api_timeout: float = 30.0


# Environment variable -> config field
_ENV_OVERRIDES = {
    "CHATWALLET_CURRENCY": "currency",
    "CHATWALLET_PENDING_TTL_SECONDS": "pending_ttl_seconds",
    "CHATWALLET_HISTORY_LIMIT": "history_limit",
    "CHATWALLET_AIRDROP_AMOUNT": "airdrop_amount",
    "CHATWALLET_WALLET_PROVIDER": "wallet_provider",
    "CHATWALLET_WALLET_API_URL": "wallet_api_url",
    "CHATWALLET_WALLET_API_TIMEOUT": "wallet_api_timeout",
}


def _coerce(name: str, value: Any) -> Any:
    """Convert a raw YAML/env value to the type of the named field.

    Raises:
        ValueError: If the value cannot be converted or is out of range.
    """
    if name in ("pending_ttl_seconds", "history_limit", "max_transactions"):
        try:
            result = int(value)
        except (TypeError, ValueError):
            raise ValueError(f"Field '{name}' must be an integer") from None
        if result < 1:
            raise ValueError(f"Field '{name}' must be positive")
        return result

    if name == "wallet_api_timeout":
        try:
            result = float(value)
        except (TypeError, ValueError):
            raise ValueError(f"Field '{name}' must be a number") from None
        if result <= 0:
            raise ValueError(f"Field '{name}' must be positive")
        return result

    if name == "airdrop_amount":
        try:
            result = Decimal(str(value))
        except InvalidOperation:
            raise ValueError(f"Field '{name}' must be a decimal number") from None
        if not result.is_finite() or result <= 0:
            raise ValueError(f"Field '{name}' must be a positive number")
        return result

    if name == "wallet_provider":
        provider = str(value).lower()
        if provider not in WALLET_PROVIDERS:
            raise ValueError(f"Field '{name}' must be one of {', '.join(WALLET_PROVIDERS)}")
        return provider

    return str(value)


def load_config(config_path: str | None = None) -> WalletConfig:
    """Load wallet configuration.

    Values are layered: defaults, then the YAML file, then environment variables.

    Args:
        config_path: Path to a YAML config file. If None, uses CHATWALLET_CONFIG,
                     falling back to config/wallet.yaml under the project root.

    Returns:
        WalletConfig with validated values.

    Raises:
        ValueError: If the file or an override contains an invalid value.
    """
    if config_path is None:
        project_root = Path(__file__).parent.parent.parent
        config_path = os.environ.get(
            "CHATWALLET_CONFIG", os.path.join(project_root, "config", "wallet.yaml")
        )

    values: dict[str, Any] = {}
    known = {f.name for f in fields(WalletConfig)}

    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError("Config file must contain a YAML dictionary")
        for key, value in data.items():
            if key not in known:
                raise ValueError(f"Unknown config field: {key}")
            values[key] = _coerce(key, value)

    for env_name, field_name in _ENV_OVERRIDES.items():
        raw = os.environ.get(env_name)
        if raw is not None and raw != "":
            values[field_name] = _coerce(field_name, raw)

    return WalletConfig(**values)

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict

from dotenv import load_dotenv

from .addresses import is_valid_address
from .project_constants import (
    DEFAULT_HOST,
    DEFAULT_MIN_BALANCE,
    DEFAULT_PORT,
    DEFAULT_RPC_TIMEOUT_S,
    DEFAULT_RPC_URL,
    DEFAULT_TRANSACTION_AMOUNT,
    DEFAULT_TRANSACTION_RECIPIENT,
)


def _env(name: str) -> str:
    return os.getenv(name, "").strip()


def _env_int(name: str, default: int) -> int:
    raw = _env(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}.") from None


def _env_float(name: str, default: float) -> float:
    raw = _env(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be a number, got {raw!r}.") from None


def _env_decimal(name: str, default: str) -> Decimal:
    raw = _env(name) or default
    try:
        value = Decimal(raw)
    except InvalidOperation:
        raise RuntimeError(f"{name} must be a decimal amount, got {raw!r}.") from None
    if not value.is_finite() or value <= 0:
        raise RuntimeError(f"{name} must be a positive amount, got {raw!r}.")
    return value


def _env_flag(name: str) -> bool:
    return _env(name).lower() in ("1", "true", "yes", "on")


def _resolve_rpc_url() -> str:
    env_rpc = _env("RPC_URL")
    if env_rpc:
        return env_rpc

    helius_key = _env("HELIUS_API_KEY")
    if helius_key:
        return f"https://mainnet.helius-rpc.com/?api-key={helius_key}"

    return DEFAULT_RPC_URL


@dataclass(frozen=True)
class Settings:
    rpc_url: str
    network: str
    rpc_timeout_s: float = DEFAULT_RPC_TIMEOUT_S
    default_min_balance: int = DEFAULT_MIN_BALANCE
    transaction_confirmation: bool = False
    transaction_amount: Decimal = Decimal(DEFAULT_TRANSACTION_AMOUNT)
    transaction_recipient: str = DEFAULT_TRANSACTION_RECIPIENT
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    @staticmethod
    def from_env(rpc_url_override: str | None = None, timeout_override: float | None = None) -> "Settings":
        load_dotenv()

        # If user provides --rpc-url, trust it.
        rpc_url = rpc_url_override or _resolve_rpc_url()

        recipient = _env("TRANSACTION_RECIPIENT") or DEFAULT_TRANSACTION_RECIPIENT
        if not is_valid_address(recipient):
            raise RuntimeError(f"TRANSACTION_RECIPIENT is not a valid Solana address: {recipient!r}")

        return Settings(
            rpc_url=rpc_url,
            # Sent to browsers by GET /config.
            network=_env("PUBLIC_RPC_URL") or rpc_url,
            rpc_timeout_s=timeout_override or _env_float("RPC_TIMEOUT", DEFAULT_RPC_TIMEOUT_S),
            default_min_balance=_env_int("DEFAULT_MIN_BALANCE", DEFAULT_MIN_BALANCE),
            transaction_confirmation=_env_flag("TRANSACTION_CONFIRMATION"),
            transaction_amount=_env_decimal("TRANSACTION_AMOUNT", DEFAULT_TRANSACTION_AMOUNT),
            transaction_recipient=recipient,
            host=_env("HOST") or DEFAULT_HOST,
            port=_env_int("PORT", DEFAULT_PORT),
        )

    def public_config(self) -> Dict[str, Any]:
        return {
            "defaultMinBalance": self.default_min_balance,
            "transactionConfirmation": self.transaction_confirmation,
            "network": self.network,
            "receiverPublicKey": self.transaction_recipient,
            "solAmount": float(self.transaction_amount),
        }

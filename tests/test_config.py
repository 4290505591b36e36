"""Tests for environment-driven settings."""

from decimal import Decimal

import pytest

from random_holder.config import Settings
from random_holder.project_constants import DEFAULT_RPC_URL, DEFAULT_TRANSACTION_RECIPIENT

ENV_VARS = (
    "RPC_URL",
    "HELIUS_API_KEY",
    "PUBLIC_RPC_URL",
    "RPC_TIMEOUT",
    "DEFAULT_MIN_BALANCE",
    "TRANSACTION_CONFIRMATION",
    "TRANSACTION_AMOUNT",
    "TRANSACTION_RECIPIENT",
    "HOST",
    "PORT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # Keep a developer's .env out of the picture.
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("random_holder.config.load_dotenv", lambda: False)


class TestSettingsFromEnv:
    def test_defaults(self):
        s = Settings.from_env()
        assert s.rpc_url == DEFAULT_RPC_URL
        assert s.network == DEFAULT_RPC_URL
        assert s.rpc_timeout_s == 5.0
        assert s.default_min_balance == 1_000_000
        assert s.transaction_confirmation is False
        assert s.transaction_amount == Decimal("0.1")
        assert s.transaction_recipient == DEFAULT_TRANSACTION_RECIPIENT
        assert (s.host, s.port) == ("127.0.0.1", 3000)

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("RPC_URL", "https://rpc.example")
        monkeypatch.setenv("PUBLIC_RPC_URL", "https://public.example")
        monkeypatch.setenv("RPC_TIMEOUT", "2.5")
        monkeypatch.setenv("DEFAULT_MIN_BALANCE", "42")
        monkeypatch.setenv("TRANSACTION_CONFIRMATION", "1")
        monkeypatch.setenv("TRANSACTION_AMOUNT", "0.25")
        monkeypatch.setenv("PORT", "8080")

        s = Settings.from_env()
        assert s.rpc_url == "https://rpc.example"
        assert s.network == "https://public.example"
        assert s.rpc_timeout_s == 2.5
        assert s.default_min_balance == 42
        assert s.transaction_confirmation is True
        assert s.transaction_amount == Decimal("0.25")
        assert s.port == 8080

    def test_helius_key(self, monkeypatch):
        monkeypatch.setenv("HELIUS_API_KEY", "abc")
        assert Settings.from_env().rpc_url == "https://mainnet.helius-rpc.com/?api-key=abc"

    def test_cli_override_wins(self, monkeypatch):
        monkeypatch.setenv("RPC_URL", "https://rpc.example")
        s = Settings.from_env(rpc_url_override="https://cli.example", timeout_override=9.0)
        assert s.rpc_url == "https://cli.example"
        assert s.rpc_timeout_s == 9.0

    @pytest.mark.parametrize("flag", ["0", "", "no", "false"])
    def test_confirmation_off(self, monkeypatch, flag):
        monkeypatch.setenv("TRANSACTION_CONFIRMATION", flag)
        assert Settings.from_env().transaction_confirmation is False

    @pytest.mark.parametrize(
        "name, value",
        [
            ("DEFAULT_MIN_BALANCE", "lots"),
            ("RPC_TIMEOUT", "soon"),
            ("TRANSACTION_AMOUNT", "abc"),
            ("TRANSACTION_AMOUNT", "-1"),
            ("TRANSACTION_RECIPIENT", "not-an-address"),
        ],
    )
    def test_invalid_values(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)
        with pytest.raises(RuntimeError, match=name):
            Settings.from_env()

    def test_public_config(self):
        assert Settings.from_env().public_config() == {
            "defaultMinBalance": 1_000_000,
            "transactionConfirmation": False,
            "network": DEFAULT_RPC_URL,
            "receiverPublicKey": DEFAULT_TRANSACTION_RECIPIENT,
            "solAmount": 0.1,
        }

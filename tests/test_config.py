"""Tests for tbachat.config: environment loading and validation."""

import os

import pytest
from eth_account import Account

from tbachat.config import DEFAULT_BRIDGE_URL, ReconnectPolicy, load_settings
from tbachat.errors import ConfigError

WALLET_KEY = "0x" + "ab" * 32
ENV = {
    "WALLET_KEY": WALLET_KEY,
    "ENCRYPTION_KEY": "cd" * 32,
    "XMTP_ENV": "dev",
    "NETWORK_ID": "base-sepolia",
}


class TestLoadSettings:
    def test_minimal(self):
        settings = load_settings(ENV)

        assert settings.wallet_key == WALLET_KEY
        assert settings.encryption_key == "0x" + "cd" * 32
        assert settings.xmtp_env == "dev"
        assert settings.network_id == "base-sepolia"
        assert settings.bridge_url == DEFAULT_BRIDGE_URL
        assert settings.rpc_url is None
        assert settings.reconnect == ReconnectPolicy()
        assert settings.log_level == "INFO"

    def test_agent_address_derived_from_wallet_key(self):
        assert load_settings(ENV).agent_address == Account.from_key(WALLET_KEY).address

    def test_missing_variables_are_all_named(self):
        with pytest.raises(ConfigError) as exc:
            load_settings({"XMTP_ENV": "dev", "NETWORK_ID": "  "})
        assert exc.value.missing == ["WALLET_KEY", "ENCRYPTION_KEY", "NETWORK_ID"]

    def test_bad_env(self):
        with pytest.raises(ConfigError, match="XMTP_ENV"):
            load_settings({**ENV, "XMTP_ENV": "staging"})

    @pytest.mark.parametrize("name,value", [
        ("WALLET_KEY", "0x1234"),
        ("ENCRYPTION_KEY", "zz" * 32),
    ])
    def test_malformed_keys(self, name, value):
        with pytest.raises(ConfigError, match=name):
            load_settings({**ENV, name: value})

    @pytest.mark.parametrize("value", ["00" * 32, "0x" + "ff" * 32])
    def test_wallet_key_outside_curve_order(self, value):
        with pytest.raises(ConfigError, match="WALLET_KEY is not a valid"):
            load_settings({**ENV, "WALLET_KEY": value})

    def test_optional_values(self):
        settings = load_settings({
            **ENV,
            "RPC_URL": "http://localhost:8545",
            "BRIDGE_URL": "ws://bridge:9000",
            "PAYMASTER_URL": "https://relay.example",
            "RECONNECT_DELAY": "2.5",
            "RECONNECT_BACKOFF": "2",
            "RECONNECT_MAX_DELAY": "30",
            "RECONNECT_MAX_ATTEMPTS": "10",
            "LOG_LEVEL": "debug",
        })

        assert settings.rpc_url == "http://localhost:8545"
        assert settings.bridge_url == "ws://bridge:9000"
        assert settings.paymaster_url == "https://relay.example"
        assert settings.reconnect == ReconnectPolicy(delay=2.5, backoff=2.0, max_delay=30.0, max_attempts=10)
        assert settings.log_level == "DEBUG"

    @pytest.mark.parametrize("name,value", [("RECONNECT_DELAY", "soon"), ("RECONNECT_MAX_ATTEMPTS", "-1")])
    def test_bad_numbers(self, name, value):
        with pytest.raises(ConfigError, match=name):
            load_settings({**ENV, name: value})

    def test_repr_hides_keys(self):
        text = repr(load_settings(ENV))
        assert "ab" * 32 not in text
        assert "cd" * 32 not in text

    def test_env_file_is_loaded(self, tmp_path, monkeypatch):
        for name in ENV:
            monkeypatch.delenv(name, raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("".join(f"{k}={v}\n" for k, v in ENV.items()))

        try:
            settings = load_settings(env_file=str(env_file))
        finally:
            for name in ENV:
                os.environ.pop(name, None)

        assert settings.network_id == "base-sepolia"


class TestReconnectPolicy:
    def test_fixed_delay_by_default(self):
        policy = ReconnectPolicy()
        assert [policy.delay_for(n) for n in (1, 2, 10)] == [5.0, 5.0, 5.0]
        assert not policy.exhausted(1000)

    def test_bounded(self):
        policy = ReconnectPolicy(max_attempts=3)
        assert not policy.exhausted(3)
        assert policy.exhausted(4)

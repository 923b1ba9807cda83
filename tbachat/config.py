"""Environment configuration for the agent.

Values come from the process environment, optionally seeded from a ``.env``
file. ``load_settings`` fails with ``ConfigError`` before anything connects.
"""

import os
import re
from dataclasses import dataclass

from dotenv import load_dotenv
from eth_account import Account

from .errors import ConfigError
from .types import XmtpEnv

REQUIRED_VARS = ("WALLET_KEY", "ENCRYPTION_KEY", "XMTP_ENV", "NETWORK_ID")
XMTP_ENVS = ("local", "dev", "production")

DEFAULT_BRIDGE_URL = "ws://localhost:8787"
DEFAULT_RECONNECT_DELAY = 5.0
DEFAULT_RECONNECT_MAX_DELAY = 60.0

_HEX32 = re.compile(r"^(0x)?[0-9a-fA-F]{64}$")


@dataclass(frozen=True)
class ReconnectPolicy:
    """How the listen loop recovers from a broken message stream.

    ``max_attempts`` of 0 retries forever; ``backoff`` multiplies the delay
    after each consecutive failure, up to ``max_delay``.
    """
    delay: float = DEFAULT_RECONNECT_DELAY
    backoff: float = 1.0
    max_delay: float = DEFAULT_RECONNECT_MAX_DELAY
    max_attempts: int = 0

    def delay_for(self, attempt: int) -> float:
        """Delay before reconnect number ``attempt`` (1-based)."""
        return min(self.delay * (self.backoff ** (attempt - 1)), max(self.max_delay, self.delay))

    def exhausted(self, attempt: int) -> bool:
        return self.max_attempts > 0 and attempt > self.max_attempts


@dataclass(frozen=True)
class Settings:
    wallet_key: str
    encryption_key: str
    xmtp_env: XmtpEnv
    network_id: str
    rpc_url: str | None = None
    bridge_url: str = DEFAULT_BRIDGE_URL
    paymaster_url: str | None = None
    reconnect: ReconnectPolicy = ReconnectPolicy()
    log_level: str = "INFO"

    @property
    def agent_address(self) -> str:
        return Account.from_key(self.wallet_key).address

    def __repr__(self) -> str:
        return (f"Settings(xmtp_env={self.xmtp_env!r}, network_id={self.network_id!r}, "
                f"bridge_url={self.bridge_url!r}, rpc_url={self.rpc_url!r})")


def _normalize_key(name: str, value: str) -> str:
    value = value.strip()
    if not _HEX32.match(value):
        raise ConfigError(f"{name} must be a 32-byte hex string")
    return value if value.startswith("0x") else "0x" + value


def _number(environ, name: str, default, cast):
    raw = environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None
    if value < 0:
        raise ConfigError(f"{name} must not be negative")
    return value


def load_settings(environ=None, env_file: str | None = None) -> Settings:
    """
    Build Settings from the environment.

    Args:
        environ: Mapping to read instead of ``os.environ`` (the .env file is
            not loaded when given)
        env_file: Path of a .env file to load first (default: ./.env)

    Raises:
        ConfigError: a required variable is missing or malformed
    """
    if environ is None:
        load_dotenv(env_file, override=False)
        environ = os.environ

    missing = [name for name in REQUIRED_VARS if not environ.get(name, "").strip()]
    if missing:
        raise ConfigError(f"Missing environment variables: {', '.join(missing)}", missing=missing)

    xmtp_env = environ["XMTP_ENV"].strip()
    if xmtp_env not in XMTP_ENVS:
        raise ConfigError(f"XMTP_ENV must be one of {', '.join(XMTP_ENVS)}, got {xmtp_env!r}")

    reconnect = ReconnectPolicy(
        delay=_number(environ, "RECONNECT_DELAY", DEFAULT_RECONNECT_DELAY, float),
        backoff=max(_number(environ, "RECONNECT_BACKOFF", 1.0, float), 1.0),
        max_delay=_number(environ, "RECONNECT_MAX_DELAY", DEFAULT_RECONNECT_MAX_DELAY, float),
        max_attempts=_number(environ, "RECONNECT_MAX_ATTEMPTS", 0, int),
    )

    wallet_key = _normalize_key("WALLET_KEY", environ["WALLET_KEY"])
    try:
        Account.from_key(wallet_key)
    except ValueError as exc:
        raise ConfigError("WALLET_KEY is not a valid secp256k1 private key") from exc

    return Settings(
        wallet_key=wallet_key,
        encryption_key=_normalize_key("ENCRYPTION_KEY", environ["ENCRYPTION_KEY"]),
        xmtp_env=xmtp_env,
        network_id=environ["NETWORK_ID"].strip(),
        rpc_url=environ.get("RPC_URL", "").strip() or None,
        bridge_url=environ.get("BRIDGE_URL", "").strip() or DEFAULT_BRIDGE_URL,
        paymaster_url=environ.get("PAYMASTER_URL", "").strip() or None,
        reconnect=reconnect,
        log_level=environ.get("LOG_LEVEL", "").strip().upper() or "INFO",
    )

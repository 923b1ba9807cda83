"""Generate agent keys and write them to a .env file."""

import secrets
from datetime import datetime, timezone
from pathlib import Path

from eth_account import Account


def generate_keys() -> dict[str, str]:
    account = Account.create()
    return {
        "WALLET_KEY": "0x" + bytes(account.key).hex(),
        "ENCRYPTION_KEY": secrets.token_hex(32),
        "ADDRESS": account.address,
    }


def env_block(keys: dict[str, str], xmtp_env: str = "dev", network_id: str = "base-sepolia") -> str:
    stamp = datetime.now(timezone.utc).isoformat()
    return (
        f"# Generated XMTP keys - {stamp}\n"
        f"WALLET_KEY={keys['WALLET_KEY']}\n"
        f"ENCRYPTION_KEY={keys['ENCRYPTION_KEY']}\n"
        f"XMTP_ENV={xmtp_env}\n"
        f"NETWORK_ID={network_id}\n"
    )


def write_env_file(path: str | Path, block: str) -> bool:
    """Append ``block`` to ``path``; returns True when the file already existed."""
    path = Path(path)
    existed = path.exists()
    with path.open("a") as f:
        f.write("\n" + block if existed else block)
    path.chmod(0o600)
    return existed

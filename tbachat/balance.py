"""Token balance lookups against the chain RPC endpoint"""

import logging

from eth_utils import to_checksum_address

from .errors import ChainQueryFailed
from .types import TokenConfig

log = logging.getLogger(__name__)

# Minimal ERC-20 ABI
ERC20_ABI = [
    {
        "constant": True,
        "inputs": [{"name": "account", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function"
    }
]


def format_units(amount: int, decimals: int) -> str:
    """
    Render a raw integer amount in human units.

    Trailing zeros of the fraction are trimmed; no other rounding is applied.

    Args:
        amount: Raw amount in base units
        decimals: Token decimal precision

    Returns:
        Decimal string, e.g. ``format_units(1500000, 6) == "1.5"``
    """
    if amount < 0:
        return "-" + format_units(-amount, decimals)
    if decimals <= 0:
        return str(amount)
    s = str(amount).rjust(decimals + 1, "0")
    whole = s[:-decimals]
    frac = s[-decimals:].rstrip("0")
    if not frac:
        return whole
    return f"{whole}.{frac}"


async def fetch_raw_balance(w3, address: str, token: TokenConfig) -> int:
    """
    Read the raw balance of ``address`` for ``token``.

    Args:
        w3: AsyncWeb3 instance connected to the network's RPC endpoint
        address: Holder address
        token: Token to read (native sentinel or ERC-20 contract)

    Returns:
        Balance in base units

    Raises:
        ChainQueryFailed: the RPC call failed
    """
    holder = to_checksum_address(address)
    try:
        if token.is_native:
            return int(await w3.eth.get_balance(holder))

        contract = w3.eth.contract(
            address=to_checksum_address(token.address),
            abi=ERC20_ABI
        )
        return int(await contract.functions.balanceOf(holder).call())
    except Exception as e:
        log.warning("Balance query for %s %s failed: %s", token.symbol, holder, e)
        raise ChainQueryFailed(f"Failed to fetch {token.symbol} balance: {e}") from e


async def query_balance(w3, address: str, token: TokenConfig) -> str:
    """Human-readable balance of ``address`` in ``token``."""
    raw = await fetch_raw_balance(w3, address, token)
    log.debug("Raw %s balance for %s: %d", token.symbol, address, raw)
    return format_units(raw, token.decimals)

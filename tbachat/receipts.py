"""Acknowledgements for transaction references shared by users."""

import logging
from decimal import Decimal

from .calls import decimal_text
from .tokens import NETWORKS
from .types import NetworkConfig, TransactionReference

log = logging.getLogger(__name__)

DEFAULT_EXPLORER_URL = "https://etherscan.io/tx/"
MAX_DECIMALS = 255

_KNOWN_METADATA = ("transactionType", "fromAddress", "currency", "amount", "decimals", "toAddress")


def _explorer_bases() -> dict[str, str]:
    bases = {}
    for network in NETWORKS.values():
        bases[network.id] = network.explorer_url
        bases[str(int(network.chain_id, 16))] = network.explorer_url
    return bases


_EXPLORER_BASES = _explorer_bases()


def explorer_url(tx_hash: str | None, network_id: str | int | None) -> str:
    """Explorer link for a transaction; accepts network ids and decimal or hex chain ids."""
    key = str(network_id or "").strip().lower()
    if key.startswith("0x"):
        try:
            key = str(int(key, 16))
        except ValueError:
            pass
    base = _EXPLORER_BASES.get(key)
    if base is None:
        log.info("Unknown network ID %r, defaulting to etherscan", network_id)
        base = DEFAULT_EXPLORER_URL
    return f"{base}{tx_hash}"


def _display_amount(amount, decimals) -> str | None:
    try:
        decimals = int(decimals)
        if not 0 <= decimals <= MAX_DECIMALS:
            return None
        value = Decimal(str(amount)) / (Decimal(10) ** decimals)
        if not value.is_finite() or abs(value.adjusted()) > MAX_DECIMALS:
            return None
    except (ArithmeticError, ValueError, TypeError):
        return None
    return decimal_text(value)


def format_receipt(reference: TransactionReference, sender_address: str, network: NetworkConfig) -> str:
    metadata = reference.metadata
    tx_type = metadata.get("transactionType") if metadata else None
    from_address = metadata.get("fromAddress") if metadata else None

    lines = [
        "📋 Transaction Reference Received",
        "",
        "TRANSACTION DETAILS:",
        f"• Transaction Hash: {reference.reference}",
        f"• Network ID: {reference.network_id}",
        f"• Transaction Type: {tx_type or 'Unknown'}",
        f"• From Address: {from_address or sender_address}",
        f"• Current Network: {network.name} ({network.id})",
    ]

    if metadata:
        lines += ["", "ADDITIONAL INFO:"]
        currency = metadata.get("currency")
        amount = metadata.get("amount")
        decimals = metadata.get("decimals")
        if currency is not None and amount is not None and decimals is not None:
            display = _display_amount(amount, decimals)
            if display is not None:
                lines.append(f"• Amount: {display} {currency}")
        if metadata.get("toAddress"):
            lines.append(f"• To Address: {metadata['toAddress']}")
        for key, value in metadata.items():
            if key not in _KNOWN_METADATA and value is not None:
                lines.append(f"• {key}: {value}")

    lines += [
        "",
        "🔗 View on explorer:",
        explorer_url(reference.reference, reference.network_id or network.id),
        "",
        "✅ Thank you for sharing the transaction details!",
    ]
    return "\n".join(lines)

"""Build wallet send-calls payloads for token transfers."""

import re
from decimal import ROUND_FLOOR, Decimal, InvalidOperation, Overflow, localcontext

from eth_abi import encode
from eth_utils import function_signature_to_4byte_selector, to_checksum_address

from .errors import InvalidCommandFormat
from .types import TransferRequest

CALLS_VERSION = "1.0"
TRANSFER_SELECTOR = "0x" + function_signature_to_4byte_selector("transfer(address,uint256)").hex()
MAX_UINT256 = 2**256 - 1

HOSTNAME = "tba.chat"
FAVICON_URL = "https://www.google.com/s2/favicons?sz=256&domain_url=https%3A%2F%2Fwww.coinbase.com%2Fwallet"
TITLE = "TBA Chat Agent"
DEFAULT_PAYMASTER_URL = "https://api.developer.coinbase.com/rpc/v1/base"

INVALID_AMOUNT = "Invalid amount. Please provide a positive number."
AMOUNT_TOO_LARGE = "Amount is too large (exceeds uint256)."
AMOUNT_TOO_SMALL = "Amount is below the smallest token unit."

# uint256 max is about 1.16e77
MAX_AMOUNT_EXPONENT = 77

_AMOUNT_RE = re.compile(r"(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


def check_amount(value: Decimal) -> Decimal:
    """Reject amounts that are not positive and finite, or whose exponent is out of uint256 range."""
    if not value.is_finite() or value <= 0:
        raise InvalidCommandFormat(INVALID_AMOUNT)
    if value.adjusted() > MAX_AMOUNT_EXPONENT:
        raise InvalidCommandFormat(AMOUNT_TOO_LARGE)
    if value.adjusted() < -MAX_AMOUNT_EXPONENT:
        raise InvalidCommandFormat(AMOUNT_TOO_SMALL)
    return value


def parse_amount(raw: str) -> Decimal:
    """Parse a user supplied amount: plain decimal or exponent text only."""
    text = str(raw).strip()
    if not _AMOUNT_RE.fullmatch(text):
        raise InvalidCommandFormat(INVALID_AMOUNT)
    try:
        value = Decimal(text)
    except InvalidOperation as exc:
        raise InvalidCommandFormat(INVALID_AMOUNT) from exc
    return check_amount(value)


def scale_amount(amount: Decimal, decimals: int) -> int:
    """Convert a human amount to base units, truncating sub-unit fractions.

    ``scale_amount(Decimal("0.0055"), 6) == 5500``
    """
    if amount.adjusted() + decimals > MAX_AMOUNT_EXPONENT:
        raise InvalidCommandFormat(AMOUNT_TOO_LARGE)
    with localcontext() as ctx:
        ctx.prec = 100
        ctx.traps[Overflow] = True
        try:
            scaled = (amount * Decimal(10) ** decimals).to_integral_value(rounding=ROUND_FLOOR)
        except Overflow as exc:
            raise InvalidCommandFormat(AMOUNT_TOO_LARGE) from exc
    return int(scaled)


def decimal_text(value: Decimal) -> str:
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


def encode_transfer_data(recipient: str, amount: int) -> str:
    """ERC-20 ``transfer(address,uint256)`` call data as a 0x-prefixed hex string."""
    args = encode(["address", "uint256"], [to_checksum_address(recipient), amount])
    return TRANSFER_SELECTOR + args.hex()


def build_transfer_call(request: TransferRequest, registry, paymaster_url: str = DEFAULT_PAYMASTER_URL) -> dict:
    """
    Build an unsigned wallet send-calls payload for one transfer.

    Native assets (zero sentinel address) become a value transfer to the
    recipient; contract assets become a ``transfer`` call on the token
    contract.

    Args:
        request: Validated transfer request
        registry: Registry used to resolve the network and token
        paymaster_url: Relay endpoint advertised when ``use_paymaster`` is set

    Returns:
        The payload dict, ready to send with the wallet send-calls content type

    Raises:
        UnknownNetwork, UnsupportedToken, InvalidCommandFormat
    """
    network = registry.resolve_network(request.network_id)
    token = registry.resolve_token(network, request.token)

    amount = check_amount(Decimal(str(request.amount)))
    scaled = scale_amount(amount, token.decimals)
    if scaled <= 0:
        raise InvalidCommandFormat(
            f"Amount {decimal_text(amount)} {token.symbol} is below the smallest unit ({token.decimals} decimals)."
        )
    if scaled > MAX_UINT256:
        raise InvalidCommandFormat(AMOUNT_TOO_LARGE)

    metadata = {
        "description": f"Transfer {decimal_text(amount)} {token.symbol} on {network.name}",
        "transactionType": "transfer",
        "currency": token.symbol,
        "amount": scaled,
        "decimals": token.decimals,
        "networkId": network.id,
    }
    # The relay flow always carries presentation metadata, even when the caller did not ask for it
    if request.include_metadata or request.use_paymaster:
        metadata.update({"hostname": HOSTNAME, "faviconUrl": FAVICON_URL, "title": TITLE})

    if token.is_native:
        call = {"to": request.recipient, "value": hex(scaled), "data": "0x", "metadata": metadata}
    else:
        call = {"to": token.address, "data": encode_transfer_data(request.recipient, scaled), "metadata": metadata}

    payload = {
        "version": CALLS_VERSION,
        "from": request.sender,
        "chainId": network.chain_id,
    }
    if request.use_paymaster:
        payload["capabilities"] = {"paymasterService": {"url": paymaster_url, "optional": True}}
    payload["calls"] = [call]
    return payload

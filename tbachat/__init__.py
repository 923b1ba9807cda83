"""TBA Chat agent - wallet transfer requests over chat"""

from .calls import build_transfer_call
from .commands import Router, intent_to_command, parse_command
from .receipts import explorer_url, format_receipt
from .tokens import NETWORKS, Registry, TokenHandler
from .types import NetworkConfig, TokenConfig, TransactionReference, TransferRequest

__version__ = "1.0.0"
__all__ = [
    "NETWORKS", "Registry", "TokenHandler", "build_transfer_call", "Router", "parse_command",
    "intent_to_command", "format_receipt", "explorer_url", "NetworkConfig", "TokenConfig",
    "TransactionReference", "TransferRequest",
]

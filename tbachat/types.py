from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Literal, Mapping

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

XmtpEnv = Literal["local", "dev", "production"]
ActionStyle = Literal["primary", "secondary", "danger"]

CONTENT_TEXT = "text"
CONTENT_TRANSACTION_REFERENCE = "transactionReference"
CONTENT_INTENT = "intent"
CONTENT_WALLET_SEND_CALLS = "walletSendCalls"
CONTENT_ACTIONS = "actions"


@dataclass(frozen=True)
class TokenConfig:
    symbol: str
    name: str
    address: str
    decimals: int
    networks: tuple[str, ...] = ()

    @property
    def is_native(self) -> bool:
        return self.address == ZERO_ADDRESS


@dataclass(frozen=True)
class NetworkConfig:
    id: str
    name: str
    chain_id: str
    native_token: str
    tokens: Mapping[str, TokenConfig]
    rpc_url: str = ""
    explorer_url: str = ""


@dataclass
class TransferRequest:
    sender: str
    recipient: str
    amount: Decimal
    token: str
    network_id: str
    include_metadata: bool = False
    use_paymaster: bool = False


@dataclass
class TransactionReference:
    reference: str | None = None
    network_id: str | None = None
    metadata: dict[str, Any] | None = None

    @classmethod
    def from_content(cls, content: dict[str, Any]) -> "TransactionReference":
        # Some clients nest the payload under "transactionReference"
        data = content.get("transactionReference") or content
        metadata = data.get("metadata")
        return cls(
            reference=data.get("reference"),
            network_id=data.get("networkId"),
            metadata=dict(metadata) if metadata else None,
        )


@dataclass
class Intent:
    id: str
    action_id: str
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_content(cls, content: dict[str, Any]) -> "Intent":
        return cls(
            id=str(content.get("id", "")),
            action_id=str(content.get("actionId", "")),
            metadata=dict(content.get("metadata") or {}),
        )


@dataclass
class Action:
    id: str
    label: str
    style: ActionStyle = "primary"
    image_url: str | None = None

    def to_dict(self) -> dict[str, str]:
        data = {"id": self.id, "label": self.label, "style": self.style}
        if self.image_url:
            data["imageUrl"] = self.image_url
        return data


@dataclass
class ActionsContent:
    id: str
    description: str
    actions: list[Action]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "actions": [action.to_dict() for action in self.actions],
        }


@dataclass
class InboundMessage:
    id: str
    conversation_id: str
    sender_inbox_id: str
    content_type: str
    content: Any
    sender_address: str | None = None

"""Command parsing and routing for inbound chat messages."""

import dataclasses
import logging
from dataclasses import dataclass
from decimal import Decimal

from .actions import actions_content, actions_with_images_content, help_content
from .calls import decimal_text, parse_amount
from .errors import InvalidCommandFormat, SendFailed, UnknownIntentAction
from .receipts import format_receipt
from .types import (
    CONTENT_ACTIONS,
    CONTENT_WALLET_SEND_CALLS,
    Intent,
    TransactionReference,
    TransferRequest,
)

log = logging.getLogger(__name__)

SEND_USAGE = "Invalid format\n\nUse: /send <AMOUNT> <TOKEN>\nExample: /send 0.1 USDC"
BALANCE_USAGE = "Invalid format\n\nUse: /balance <TOKEN>\nExample: /balance USDC"

CONTENT_TYPE_NAMES = [
    "Wallet Send Calls (EIP-5792)",
    "Transaction Reference",
    "Inline Actions",
]


@dataclass(frozen=True)
class Help:
    pass


@dataclass(frozen=True)
class ShowActions:
    with_images: bool = False


@dataclass(frozen=True)
class Send:
    amount: Decimal
    token: str
    include_metadata: bool = False


@dataclass(frozen=True)
class Balance:
    token: str


@dataclass(frozen=True)
class Info:
    pass


Command = Help | ShowActions | Send | Balance | Info

# Intent action id -> (canonical command text, include rich metadata)
INTENT_COMMANDS = {
    "show-actions": ("/actions", False),
    "show-actions-with-images": ("/actions-with-images", False),
    "transaction-with-metadata": ("/send 0.005 USDC", True),
    "check-balance": ("/balance USDC", False),
    "more-info": ("/info", False),
    "send-small": ("/send 0.005 USDC", False),
    "send-large": ("/send 1 USDC", False),
}


def parse_command(text: str) -> Command | None:
    """
    Classify a text message.

    Returns None for text that is not a command. Raises InvalidCommandFormat
    when a recognised command has the wrong shape.
    """
    command = (text or "").strip().lower()
    parts = command.split()
    head = parts[0] if parts else ""

    if command in ("/help", "gm"):
        return Help()
    if command.startswith("/actions-with-images"):
        return ShowActions(with_images=True)
    if command.startswith("/actions"):
        return ShowActions()
    if head == "/send":
        if len(parts) != 3:
            raise InvalidCommandFormat(SEND_USAGE)
        return Send(amount=parse_amount(parts[1]), token=parts[2].upper())
    if head == "/balance":
        if len(parts) != 2:
            raise InvalidCommandFormat(BALANCE_USAGE)
        return Balance(token=parts[1].upper())
    if command == "/info":
        return Info()
    return None


def intent_to_command(intent: Intent) -> Command:
    try:
        text, include_metadata = INTENT_COMMANDS[intent.action_id]
    except KeyError:
        raise UnknownIntentAction(intent.action_id) from None
    command = parse_command(text)
    if include_metadata:
        command = dataclasses.replace(command, include_metadata=True)
    return command


class Router:
    """Turns inbound events into replies on the originating conversation."""

    def __init__(self, token_handler, agent_address: str):
        self.tokens = token_handler
        self.agent_address = agent_address

    async def handle_text(self, conversation, text: str, sender_address: str) -> None:
        try:
            command = parse_command(text)
        except InvalidCommandFormat as e:
            await self._reply_error(conversation, str(e))
            return
        if command is None:
            return
        await self.execute(conversation, command, sender_address)

    async def handle_intent(self, conversation, intent: Intent, sender_address: str) -> None:
        log.info("Processing intent %s for actions %s", intent.action_id, intent.id)
        try:
            command = intent_to_command(intent)
        except UnknownIntentAction as e:
            log.info("Unknown action ID: %s", intent.action_id)
            await self._reply_error(conversation, str(e))
            return
        except Exception as e:
            log.exception("Error processing intent %s", intent.action_id)
            await self._reply_error(conversation, f"Error processing action: {e}")
            return
        await self.execute(conversation, command, sender_address)

    async def handle_transaction_reference(self, conversation, content: dict, sender_address: str) -> None:
        reference = TransactionReference.from_content(content)
        log.info("Processing transaction reference %s on %s", reference.reference, reference.network_id)
        log.debug("Transaction reference metadata: %s", reference.metadata)
        await conversation.send(format_receipt(reference, sender_address, self.tokens.network))

    async def execute(self, conversation, command: Command, sender_address: str) -> None:
        try:
            if isinstance(command, Help):
                await self._send_help(conversation)
            elif isinstance(command, ShowActions):
                await self._send_actions(conversation, command.with_images)
            elif isinstance(command, Send):
                await self._send_transfer(conversation, command, sender_address)
            elif isinstance(command, Balance):
                await self._send_balance(conversation, command)
            elif isinstance(command, Info):
                await self._send_info(conversation)
            else:
                raise TypeError(f"Unhandled command: {command!r}")
        except SendFailed:
            raise
        except Exception as e:
            log.warning("Command %r failed: %s", command, e)
            await self._reply_error(conversation, str(e))

    async def _reply_error(self, conversation, message: str) -> None:
        try:
            await conversation.send(f"❌ {message}")
        except SendFailed as e:
            log.error("Failed to send error message to conversation %s: %s", conversation.id, e)

    async def _send_help(self, conversation) -> None:
        content = help_content(self.tokens.network.name)
        await conversation.send(content.to_dict(), CONTENT_ACTIONS)

    async def _send_actions(self, conversation, with_images: bool) -> None:
        content = actions_with_images_content() if with_images else actions_content()
        await conversation.send(content.to_dict(), CONTENT_ACTIONS)

    async def _send_transfer(self, conversation, command: Send, sender_address: str) -> None:
        network = self.tokens.network
        request = TransferRequest(
            sender=sender_address,
            recipient=self.agent_address,
            amount=command.amount,
            token=command.token,
            network_id=network.id,
            include_metadata=command.include_metadata,
        )
        calls = self.tokens.create_token_transfer_calls(request)
        amount = decimal_text(command.amount)
        log.info("Created transfer request: %s %s from %s", amount, command.token, sender_address)

        await conversation.send(calls, CONTENT_WALLET_SEND_CALLS)
        await conversation.send(
            "✅ Transaction request created!\n\n"
            "DETAILS:\n"
            f"• Amount: {amount} {command.token}\n"
            f"• To: {self.agent_address}\n"
            f"• Network: {network.name}\n\n"
            "💡 Please approve the transaction in your wallet.\n"
            "📋 Optionally share the transaction reference when complete."
        )

    async def _send_balance(self, conversation, command: Balance) -> None:
        balance = await self.tokens.get_token_balance(self.agent_address, command.token)
        await conversation.send(
            "💰 Bot Balance\n\n"
            f"Token: {command.token}\n"
            f"Balance: {balance} {command.token}\n"
            f"Network: {self.tokens.network.name}"
        )

    async def _send_info(self, conversation) -> None:
        info = self.tokens.get_network_info()
        tokens = "\n".join(f"• {token}" for token in info["supportedTokens"])
        networks = "\n".join(f"• {net}" for net in self.tokens.registry.list_networks())
        content_types = "\n".join(f"• {name}" for name in CONTENT_TYPE_NAMES)
        await conversation.send(
            "ℹ️ Network Information\n\n"
            "CURRENT NETWORK:\n"
            f"• Name: {info['name']}\n"
            f"• ID: {info['id']}\n"
            f"• Chain ID: {info['chainId']}\n\n"
            f"SUPPORTED TOKENS:\n{tokens}\n\n"
            f"AVAILABLE NETWORKS:\n{networks}\n\n"
            f"CONTENT TYPES:\n{content_types}\n\n"
            "🔗 Test at: https://xmtp.chat"
        )

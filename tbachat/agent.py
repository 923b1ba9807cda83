"""Listen loop: pull messages off the stream and hand them to the router."""

import asyncio
import logging

from .commands import Router
from .config import ReconnectPolicy, Settings
from .errors import StreamFailed
from .messaging import MessagingClient, WSMessagingClient
from .tokens import TokenHandler
from .types import (
    CONTENT_INTENT,
    CONTENT_TEXT,
    CONTENT_TRANSACTION_REFERENCE,
    InboundMessage,
    Intent,
)

log = logging.getLogger(__name__)


class Agent:
    def __init__(self, client: MessagingClient, router: Router, reconnect: ReconnectPolicy | None = None,
                 sleep=asyncio.sleep):
        self.client = client
        self.router = router
        self.reconnect = reconnect or ReconnectPolicy()
        self._sleep = sleep

    def _is_own_message(self, message: InboundMessage) -> bool:
        inbox_id = self.client.inbox_id or ""
        return message.sender_inbox_id.lower() == inbox_id.lower()

    async def handle_message(self, message: InboundMessage | None) -> None:
        if message is None or self._is_own_message(message):
            return

        log.info("Received %s from %s", message.content_type, message.sender_inbox_id)
        try:
            conversation = await self.client.get_conversation_by_id(message.conversation_id)
            if conversation is None:
                log.info("Unable to find conversation %s, skipping", message.conversation_id)
                return

            sender_address = await self.client.get_sender_address(message)
            if not sender_address:
                log.info("Unable to find sender address for %s, skipping", message.sender_inbox_id)
                return

            if message.content_type == CONTENT_TEXT:
                await self.router.handle_text(conversation, str(message.content or ""), sender_address)
            elif message.content_type == CONTENT_TRANSACTION_REFERENCE:
                log.debug("Raw transaction reference: %s", message.content)
                await self.router.handle_transaction_reference(conversation, message.content or {}, sender_address)
            elif message.content_type == CONTENT_INTENT:
                log.debug("Raw intent: %s", message.content)
                await self.router.handle_intent(conversation, Intent.from_content(message.content or {}), sender_address)
        except Exception as e:
            log.error("Error processing message %s: %s", message.id, e)
            await self._report_error(message, e)

    async def _report_error(self, message: InboundMessage, error: Exception) -> None:
        try:
            conversation = await self.client.get_conversation_by_id(message.conversation_id)
            if conversation is not None:
                await conversation.send(f"❌ Error processing message: {error}")
        except Exception as send_error:
            log.error("Failed to send error message to conversation %s: %s", message.conversation_id, send_error)

    async def run(self) -> None:
        """
        Process messages until the process is stopped.

        A broken stream is reopened after a delay and a conversation resync.
        Raises StreamFailed once the reconnect policy gives up.
        """
        log.info("Syncing conversations...")
        await self.client.sync()
        log.info("Listening for messages...")

        failures = 0
        while True:
            try:
                async for message in self.client.stream_all_messages():
                    failures = 0
                    await self.handle_message(message)
                reason = "stream ended"
            except Exception as e:
                reason = str(e)
            log.error("Stream error occurred: %s", reason)

            failures += 1
            if self.reconnect.exhausted(failures):
                raise StreamFailed(f"Giving up after {failures - 1} reconnect attempts: {reason}")

            delay = self.reconnect.delay_for(failures)
            log.info("Attempting to reconnect in %.1f seconds...", delay)
            await self._sleep(delay)
            try:
                await self.client.sync()
                log.info("Conversations re-synced successfully")
            except Exception as e:
                log.error("Failed to sync conversations: %s", e)


def build_agent(settings: Settings) -> tuple[Agent, WSMessagingClient]:
    """Wire the agent from settings; raises UnknownNetwork for a bad NETWORK_ID."""
    tokens = TokenHandler(settings.network_id, rpc_url=settings.rpc_url, paymaster_url=settings.paymaster_url)
    log.info("Connected to network: %s", tokens.network.name)
    log.info("Supported tokens: %s", ", ".join(tokens.get_supported_tokens()))

    agent_address = settings.agent_address
    client = WSMessagingClient(settings.bridge_url, agent_address, settings.xmtp_env, settings.encryption_key)
    router = Router(tokens, agent_address)
    return Agent(client, router, settings.reconnect), client


async def run_agent(settings: Settings) -> None:
    agent, client = build_agent(settings)
    log.info("Agent address: %s", agent.router.agent_address)
    try:
        await client.connect()
        await agent.run()
    finally:
        await client.close()

"""Messaging layer the agent talks through.

The agent only relies on the two small protocols below. ``WSMessagingClient``
implements them against a bridge process that owns the messaging network
session and relays JSON frames over a websocket:

    -> {"type": "hello", "address": ..., "env": ..., "dbEncryptionKey": ...}
    <- {"type": "ready", "inboxId": ...}
    -> {"type": "sync"}
    <- {"type": "synced"}
    <- {"type": "message", "id", "conversationId", "senderInboxId",
        "senderAddress", "contentType", "content"}
    -> {"type": "send", "conversationId", "contentType", "content"}
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, AsyncIterator, Protocol

from .errors import SendFailed, StreamFailed
from .types import CONTENT_TEXT, InboundMessage

log = logging.getLogger(__name__)


class Conversation(Protocol):
    id: str

    async def send(self, content: Any, content_type: str = CONTENT_TEXT) -> None:
        """Deliver one message; raises SendFailed."""


class MessagingClient(Protocol):
    inbox_id: str

    async def sync(self) -> None: ...

    def stream_all_messages(self) -> AsyncIterator[InboundMessage]: ...

    async def get_conversation_by_id(self, conversation_id: str) -> Conversation | None: ...

    async def get_sender_address(self, message: InboundMessage) -> str | None: ...


def parse_message_frame(frame: dict[str, Any]) -> InboundMessage:
    return InboundMessage(
        id=str(frame.get("id", "")),
        conversation_id=str(frame.get("conversationId", "")),
        sender_inbox_id=str(frame.get("senderInboxId", "")),
        content_type=str(frame.get("contentType", "")),
        content=frame.get("content"),
        sender_address=frame.get("senderAddress"),
    )


def _decode_frame(raw) -> dict[str, Any] | None:
    try:
        frame = json.loads(raw)
    except ValueError:
        log.warning("Skipping malformed frame from bridge: %.200r", raw)
        return None
    if not isinstance(frame, dict):
        log.warning("Skipping non-object frame from bridge: %.200r", raw)
        return None
    return frame


class WSConversation:
    def __init__(self, client: WSMessagingClient, conversation_id: str):
        self._client = client
        self.id = conversation_id

    async def send(self, content: Any, content_type: str = CONTENT_TEXT) -> None:
        await self._client.send_frame({
            "type": "send",
            "conversationId": self.id,
            "contentType": content_type,
            "content": content,
        })


class WSMessagingClient:
    """Websocket client for the messaging bridge."""

    HANDSHAKE_TIMEOUT = 10

    def __init__(self, url: str, address: str, env: str = "dev", encryption_key: str | None = None):
        self._url = url
        self._address = address
        self._env = env
        self._encryption_key = encryption_key
        self._ws = None
        self._pending: list[dict[str, Any]] = []
        self.inbox_id = ""

    async def connect(self) -> None:
        from websockets.asyncio.client import connect
        from websockets.exceptions import WebSocketException
        try:
            self._ws = await connect(self._url, open_timeout=30, ping_interval=30, ping_timeout=120)
            hello = {"type": "hello", "address": self._address, "env": self._env}
            if self._encryption_key:
                hello["dbEncryptionKey"] = self._encryption_key
            await self._ws.send(json.dumps(hello))
            frame = await self._wait_for("ready")
        except (WebSocketException, OSError, ValueError, asyncio.TimeoutError) as exc:
            self._ws = None
            raise StreamFailed(f"Could not connect to messaging bridge at {self._url}: {exc}") from exc
        self.inbox_id = frame.get("inboxId", "")
        log.info("Connected to messaging bridge %s as inbox %s", self._url, self.inbox_id)

    async def _wait_for(self, frame_type: str) -> dict[str, Any]:
        # Messages that arrive during a handshake are kept for the next stream
        while True:
            raw = await asyncio.wait_for(self._ws.recv(), timeout=self.HANDSHAKE_TIMEOUT)
            frame = _decode_frame(raw)
            if frame is None:
                continue
            if frame.get("type") == frame_type:
                return frame
            if frame.get("type") == "error":
                raise StreamFailed(f"Bridge error: {frame.get('message', frame)}")
            if frame.get("type") == "message":
                self._pending.append(frame)

    async def sync(self) -> None:
        from websockets.exceptions import ConnectionClosed
        if self._ws is None:
            await self.connect()
        try:
            await self._ws.send(json.dumps({"type": "sync"}))
            await self._wait_for("synced")
        except (ConnectionClosed, OSError, ValueError, asyncio.TimeoutError) as exc:
            self._ws = None
            raise StreamFailed(f"Conversation sync failed: {exc}") from exc

    async def stream_all_messages(self) -> AsyncIterator[InboundMessage]:
        from websockets.exceptions import ConnectionClosed
        if self._ws is None:
            await self.connect()
        while self._pending:
            yield parse_message_frame(self._pending.pop(0))
        try:
            async for raw in self._ws:
                frame = _decode_frame(raw)
                if frame is None:
                    continue
                if frame.get("type") == "message":
                    yield parse_message_frame(frame)
        except (ConnectionClosed, OSError) as exc:
            self._ws = None
            raise StreamFailed(f"Message stream broke: {exc}") from exc
        self._ws = None
        raise StreamFailed("Message stream closed by bridge")

    async def get_conversation_by_id(self, conversation_id: str) -> WSConversation | None:
        if not conversation_id:
            return None
        return WSConversation(self, conversation_id)

    async def get_sender_address(self, message: InboundMessage) -> str | None:
        return message.sender_address

    async def send_frame(self, frame: dict[str, Any]) -> None:
        from websockets.exceptions import ConnectionClosed
        if self._ws is None:
            raise SendFailed("Not connected to messaging bridge")
        try:
            await self._ws.send(json.dumps(frame))
        except (ConnectionClosed, OSError, TypeError, ValueError) as exc:
            raise SendFailed(f"Failed to send message: {exc}") from exc

    async def close(self) -> None:
        if self._ws is not None:
            await self._ws.close()
            self._ws = None

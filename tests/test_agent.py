"""Tests for tbachat.agent: the listen loop."""

import asyncio

import pytest

from tbachat.agent import Agent, build_agent
from tbachat.commands import Router
from tbachat.config import ReconnectPolicy, load_settings
from tbachat.errors import StreamFailed, UnknownNetwork
from tbachat.types import InboundMessage

from conftest import AGENT_ADDRESS, USER_ADDRESS, FakeClient, FakeConversation


def _message(content, content_type="text", sender_inbox="user-inbox", conversation_id="conv-1",
             sender_address=USER_ADDRESS):
    return InboundMessage(
        id="m1",
        conversation_id=conversation_id,
        sender_inbox_id=sender_inbox,
        content_type=content_type,
        content=content,
        sender_address=sender_address,
    )


class _Sleeper:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


def _agent(client, tokens, policy=None):
    sleeper = _Sleeper()
    agent = Agent(client, Router(tokens, AGENT_ADDRESS), policy or ReconnectPolicy(max_attempts=1), sleep=sleeper)
    return agent, sleeper


class TestHandleMessage:
    def test_text_command_is_answered(self, tokens, conversation):
        client = FakeClient([], conversations={"conv-1": conversation})
        agent, _ = _agent(client, tokens)

        asyncio.run(agent.handle_message(_message("/info")))

        assert conversation.texts[0].startswith("ℹ️ Network Information")

    def test_own_messages_are_skipped(self, tokens, conversation):
        client = FakeClient([], inbox_id="Agent-Inbox", conversations={"conv-1": conversation})
        agent, _ = _agent(client, tokens)

        asyncio.run(agent.handle_message(_message("/info", sender_inbox="agent-inbox")))

        assert conversation.sent == []

    def test_unknown_conversation_is_skipped(self, tokens):
        client = FakeClient([])
        agent, _ = _agent(client, tokens)

        asyncio.run(agent.handle_message(_message("/info", conversation_id="missing")))

    def test_missing_sender_address_is_skipped(self, tokens, conversation):
        client = FakeClient([], conversations={"conv-1": conversation})
        agent, _ = _agent(client, tokens)

        asyncio.run(agent.handle_message(_message("/info", sender_address=None)))

        assert conversation.sent == []

    def test_other_content_types_are_ignored(self, tokens, conversation):
        client = FakeClient([], conversations={"conv-1": conversation})
        agent, _ = _agent(client, tokens)

        asyncio.run(agent.handle_message(_message({"url": "x"}, content_type="remoteAttachment")))

        assert conversation.sent == []

    def test_intent_and_receipt_are_dispatched(self, tokens, conversation):
        client = FakeClient([], conversations={"conv-1": conversation})
        agent, _ = _agent(client, tokens)

        asyncio.run(agent.handle_message(_message({"id": "help-1", "actionId": "frobnicate"}, content_type="intent")))
        asyncio.run(agent.handle_message(_message({"reference": "0xabc", "networkId": "base-sepolia"},
                                                  content_type="transactionReference")))

        assert conversation.texts[0] == "❌ Unknown action: frobnicate"
        assert "0xabc" in conversation.texts[1]

    def test_unexpected_error_is_reported(self, tokens, conversation):
        client = FakeClient([], conversations={"conv-1": conversation})
        agent, _ = _agent(client, tokens)

        async def boom(*args):
            raise RuntimeError("kaboom")

        agent.router.handle_text = boom
        asyncio.run(agent.handle_message(_message("/info")))

        assert conversation.texts == ["❌ Error processing message: kaboom"]

    def test_send_failure_while_reporting_is_swallowed(self, tokens):
        conversation = FakeConversation(fail=True)
        client = FakeClient([], conversations={"conv-1": conversation})
        agent, _ = _agent(client, tokens)

        asyncio.run(agent.handle_message(_message("/info")))


class TestRun:
    def test_reconnects_and_resyncs_until_policy_gives_up(self, tokens, conversation):
        streams = [[_message("/info")], [], []]
        client = FakeClient(streams, conversations={"conv-1": conversation})
        agent, sleeper = _agent(client, tokens, ReconnectPolicy(delay=5, max_attempts=2))

        with pytest.raises(StreamFailed, match="Giving up after 2 reconnect attempts"):
            asyncio.run(agent.run())

        assert len(conversation.texts) == 1
        assert sleeper.delays == [5, 5]
        assert client.sync_calls == 3

    def test_backoff_grows_and_is_capped(self, tokens):
        client = FakeClient([[], [], [], []])
        policy = ReconnectPolicy(delay=2, backoff=3, max_delay=10, max_attempts=3)
        agent, sleeper = _agent(client, tokens, policy)

        with pytest.raises(StreamFailed):
            asyncio.run(agent.run())

        assert sleeper.delays == [2, 6, 10]

    def test_message_resets_failure_count(self, tokens, conversation):
        streams = [[], [_message("/info")], [], []]
        client = FakeClient(streams, conversations={"conv-1": conversation})
        agent, sleeper = _agent(client, tokens, ReconnectPolicy(delay=1, backoff=2, max_delay=60, max_attempts=2))

        with pytest.raises(StreamFailed):
            asyncio.run(agent.run())

        assert sleeper.delays == [1, 1, 2]

    def test_failed_resync_does_not_stop_the_loop(self, tokens):
        client = FakeClient([[], [], []], sync_error=StreamFailed("sync broke"))
        agent, sleeper = _agent(client, tokens, ReconnectPolicy(delay=1, max_attempts=2))

        with pytest.raises(StreamFailed, match="Giving up"):
            asyncio.run(agent.run())

        assert sleeper.delays == [1, 1]


class TestBuildAgent:
    ENV = {
        "WALLET_KEY": "0x" + "11" * 32,
        "ENCRYPTION_KEY": "22" * 32,
        "XMTP_ENV": "dev",
        "NETWORK_ID": "base-mainnet",
    }

    def test_wires_router_to_configured_network(self):
        agent, client = build_agent(load_settings(self.ENV))

        assert agent.router.tokens.network.id == "base-mainnet"
        assert agent.router.agent_address == load_settings(self.ENV).agent_address
        assert client.inbox_id == ""

    def test_unknown_network_is_fatal(self):
        with pytest.raises(UnknownNetwork):
            build_agent(load_settings({**self.ENV, "NETWORK_ID": "solana"}))

"""Shared fakes: no test touches a real RPC endpoint or messaging bridge."""

import logging

import pytest

from tbachat.errors import SendFailed, StreamFailed
from tbachat.tokens import TokenHandler
from tbachat.types import CONTENT_TEXT

AGENT_ADDRESS = "0x1111111111111111111111111111111111111111"
USER_ADDRESS = "0x2222222222222222222222222222222222222222"


class FakeConversation:
    def __init__(self, conversation_id="conv-1", fail=False):
        self.id = conversation_id
        self.sent = []
        self.fail = fail

    async def send(self, content, content_type=CONTENT_TEXT):
        if self.fail:
            raise SendFailed("bridge down")
        self.sent.append((content_type, content))

    @property
    def texts(self):
        return [content for content_type, content in self.sent if content_type == CONTENT_TEXT]


class _Call:
    def __init__(self, value):
        self._value = value

    async def call(self):
        if isinstance(self._value, Exception):
            raise self._value
        return self._value


class _Functions:
    def __init__(self, contract):
        self._contract = contract

    def balanceOf(self, holder):
        self._contract.eth.calls.append(("balanceOf", self._contract.address, holder))
        balances = {k.lower(): v for k, v in self._contract.eth.token_balances.items()}
        return _Call(balances.get(self._contract.address.lower(), 0))


class _Contract:
    def __init__(self, eth, address):
        self.eth = eth
        self.address = address
        self.functions = _Functions(self)


class _FakeEth:
    def __init__(self, native_balance=0, token_balances=None):
        self.native_balance = native_balance
        self.token_balances = token_balances or {}
        self.calls = []

    async def get_balance(self, address):
        self.calls.append(("get_balance", address))
        if isinstance(self.native_balance, Exception):
            raise self.native_balance
        return self.native_balance

    def contract(self, address, abi):
        return _Contract(self, address)


class FakeWeb3:
    def __init__(self, native_balance=0, token_balances=None):
        self.eth = _FakeEth(native_balance, token_balances)


class FakeClient:
    """Messaging client that replays scripted streams.

    Each entry of ``streams`` is a list of messages; after it is exhausted the
    stream fails the way a dropped connection would.
    """

    def __init__(self, streams, inbox_id="agent-inbox", conversations=None, sync_error=None):
        self.inbox_id = inbox_id
        self._streams = list(streams)
        self.conversations = conversations or {}
        self.sync_calls = 0
        self.sync_error = sync_error

    async def sync(self):
        self.sync_calls += 1
        if self.sync_error and self.sync_calls > 1:
            raise self.sync_error

    async def stream_all_messages(self):
        messages = self._streams.pop(0) if self._streams else []
        for message in messages:
            yield message
        raise StreamFailed("connection dropped")

    async def get_conversation_by_id(self, conversation_id):
        return self.conversations.get(conversation_id)

    async def get_sender_address(self, message):
        return message.sender_address


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    logger = logging.getLogger("tbachat")
    logger.handlers.clear()
    logger.propagate = True


@pytest.fixture
def web3():
    return FakeWeb3()


@pytest.fixture
def tokens(web3):
    return TokenHandler("base-sepolia", web3=web3)


@pytest.fixture
def conversation():
    return FakeConversation()

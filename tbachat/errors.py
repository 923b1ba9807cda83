"""Exceptions raised by the agent.

Everything a single command can raise derives from ``AgentError`` so the
router can turn it into a reply instead of letting it reach the listen loop.
"""


class AgentError(Exception):
    """Base class for agent errors."""


class ConfigError(AgentError):
    """Required configuration is missing or malformed."""

    def __init__(self, message: str, missing: list[str] | None = None):
        super().__init__(message)
        self.missing = missing or []


class UnknownNetwork(AgentError):
    def __init__(self, network_id: str):
        self.network_id = network_id
        super().__init__(f"Network configuration not found for: {network_id}")


class UnsupportedToken(AgentError):
    def __init__(self, symbol: str, network_name: str):
        self.symbol = symbol
        self.network_name = network_name
        super().__init__(f"Token {symbol} not supported on {network_name}")


class InvalidCommandFormat(AgentError):
    """Wrong argument count or an amount that does not parse."""

    def __init__(self, message: str, usage: str | None = None):
        super().__init__(message)
        self.usage = usage


class ChainQueryFailed(AgentError):
    """A read against the chain RPC endpoint failed."""


class UnknownIntentAction(AgentError):
    def __init__(self, action_id: str):
        self.action_id = action_id
        super().__init__(f"Unknown action: {action_id}")


class SendFailed(AgentError):
    """Outbound message could not be delivered."""


class StreamFailed(AgentError):
    """The inbound message stream broke."""

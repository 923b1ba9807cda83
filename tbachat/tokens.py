"""Network and token registry."""

from types import MappingProxyType

from .balance import query_balance
from .calls import build_transfer_call
from .errors import UnknownNetwork, UnsupportedToken
from .types import NetworkConfig, TokenConfig, TransferRequest, ZERO_ADDRESS


def _network(
    network_id: str,
    name: str,
    chain_id: int,
    rpc_url: str,
    explorer_url: str,
    usdc: str | None = None,
) -> NetworkConfig:
    tokens = {}
    if usdc:
        tokens["USDC"] = TokenConfig("USDC", "USD Coin", usdc, 6, (network_id,))
    tokens["ETH"] = TokenConfig("ETH", "Ethereum", ZERO_ADDRESS, 18, (network_id,))
    return NetworkConfig(
        id=network_id,
        name=name,
        chain_id=hex(chain_id),
        native_token="ETH",
        tokens=MappingProxyType(tokens),
        rpc_url=rpc_url,
        explorer_url=explorer_url,
    )


NETWORKS = MappingProxyType({
    "base-sepolia": _network(
        "base-sepolia", "Base Sepolia", 84532,
        "https://sepolia.base.org",
        "https://sepolia.basescan.org/tx/",
        usdc="0x036CbD53842c5426634e7929541eC2318f3dCF7e",
    ),
    "base-mainnet": _network(
        "base-mainnet", "Base Mainnet", 8453,
        "https://mainnet.base.org",
        "https://basescan.org/tx/",
        usdc="0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
    ),
    "ethereum-sepolia": _network(
        "ethereum-sepolia", "Ethereum Sepolia", 11155111,
        "https://ethereum-sepolia-rpc.publicnode.com",
        "https://sepolia.etherscan.io/tx/",
    ),
    "ethereum-mainnet": _network(
        "ethereum-mainnet", "Ethereum Mainnet", 1,
        "https://ethereum-rpc.publicnode.com",
        "https://etherscan.io/tx/",
        usdc="0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
    ),
})


class Registry:
    """Read-only lookups over a fixed table of networks."""

    def __init__(self, networks=NETWORKS):
        self._networks = MappingProxyType(dict(networks))

    def resolve_network(self, network_id: str) -> NetworkConfig:
        config = self._networks.get(network_id)
        if config is None:
            raise UnknownNetwork(network_id)
        return config

    def resolve_token(self, network: NetworkConfig, symbol: str) -> TokenConfig:
        token = network.tokens.get(symbol.upper())
        if token is None:
            raise UnsupportedToken(symbol.upper(), network.name)
        return token

    def list_networks(self) -> list[str]:
        return list(self._networks.keys())

    def is_supported(self, network_id: str) -> bool:
        return network_id in self._networks


class TokenHandler:
    """Registry bound to the network the agent was started on."""

    def __init__(self, network_id: str, registry: Registry | None = None, rpc_url: str | None = None,
                 paymaster_url: str | None = None, web3=None):
        self.registry = registry or Registry()
        self.network = self.registry.resolve_network(network_id)
        self.rpc_url = rpc_url or self.network.rpc_url
        self.paymaster_url = paymaster_url
        self._web3 = web3

    @property
    def web3(self):
        if self._web3 is None:
            from web3 import AsyncWeb3
            self._web3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(self.rpc_url))
        return self._web3

    def get_token_config(self, symbol: str) -> TokenConfig:
        return self.registry.resolve_token(self.network, symbol)

    def get_supported_tokens(self) -> list[str]:
        return list(self.network.tokens.keys())

    def get_network_info(self) -> dict:
        return {
            "id": self.network.id,
            "name": self.network.name,
            "chainId": self.network.chain_id,
            "supportedTokens": self.get_supported_tokens(),
        }

    def create_token_transfer_calls(self, request: TransferRequest) -> dict:
        kwargs = {}
        if self.paymaster_url:
            kwargs["paymaster_url"] = self.paymaster_url
        return build_transfer_call(request, self.registry, **kwargs)

    async def get_token_balance(self, address: str, symbol: str) -> str:
        token = self.get_token_config(symbol)
        return await query_balance(self.web3, address, token)

from typing import Optional

import attr

PRIVATE_KEY_ENV = "ACCOUNT_PRIVATE_KEY"
DEFAULT_JSONRPC = "http://127.0.0.1:8545"


@attr.s(auto_attribs=True, frozen=True)
class NetworkConfig:
    name: str
    jsonrpc: str


NETWORKS = {
    network.name: network
    for network in [
        NetworkConfig(name="localhost", jsonrpc=DEFAULT_JSONRPC),
        NetworkConfig(name="matic", jsonrpc="https://rpc-amoy.polygon.technology"),
    ]
}


def resolve_jsonrpc(network: Optional[str] = None, jsonrpc: Optional[str] = None) -> str:
    """An explicitly given url wins over the named network"""
    if jsonrpc:
        return jsonrpc
    if network:
        try:
            return NETWORKS[network].jsonrpc
        except KeyError as e:
            raise ValueError(
                f"Unknown network {network!r}, known networks: {', '.join(sorted(NETWORKS))}"
            ) from e
    return DEFAULT_JSONRPC

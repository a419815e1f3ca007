import logging
from typing import Optional, Sequence

import attr
import click
from eth_utils import to_checksum_address

from gbdeploy.client import ChainClient
from gbdeploy.erc1967 import resolve
from gbdeploy.models import DeploymentResult, ProxyHandle

logger = logging.getLogger(__name__)


@attr.s(auto_attribs=True, frozen=True)
class BridgeDeployment:
    contract_name: str
    token_address: str
    chain_param: int = 1

    def init_params(self):
        return (to_checksum_address(self.token_address), self.chain_param)


GINI_BRIDGE_PROXY = BridgeDeployment(
    contract_name="GiniBridgeProxy",
    token_address="0x5FbDB2315678afecb367f032d93F642f64180aa3",
)
KALP_BRIDGE = BridgeDeployment(
    contract_name="KalpBridge",
    token_address="0x7E0a4b485aB538ED0dE3273B5bc5c81E8dfc6966",
)


def deploy_proxy(
    contract_name: str,
    init_params: Sequence = (),
    *,
    client: ChainClient,
    initializer: Optional[str] = "initialize",
) -> ProxyHandle:
    """Deploy `contract_name` behind an ERC-1967 proxy initialized with `init_params`.

    Blocks until the proxy deployment is confirmed and returns the confirmed handle.
    Raises a `DeploymentError` if anything fails, no handle is returned then.
    """
    factory = client.get_factory(contract_name)

    click.secho(f"Deploying upgradeable contract {contract_name}...", fg="blue")
    logger.info("Deploying %s with init params %s", contract_name, list(init_params))
    handle = client.deploy_proxy(factory, init_params, initializer=initializer)
    client.wait_for_confirmation(handle)

    logger.info("Proxy for %s confirmed at %s", contract_name, handle.address)
    return handle


def deploy(
    contract_name: str,
    init_params: Sequence = (),
    *,
    client: ChainClient,
    initializer: Optional[str] = "initialize",
) -> DeploymentResult:
    handle = deploy_proxy(
        contract_name, init_params, client=client, initializer=initializer
    )
    return resolve(handle, client=client)


def deploy_bridge(
    bridge: BridgeDeployment, *, client: ChainClient
) -> DeploymentResult:
    return deploy(bridge.contract_name, bridge.init_params(), client=client)

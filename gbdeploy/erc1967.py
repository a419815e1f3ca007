"""Read the ERC-1967 storage slots of upgradeable proxies.

Proxies following ERC-1967 keep the address of their logic contract at
``keccak256("eip1967.proxy.implementation") - 1``, the admin at
``keccak256("eip1967.proxy.admin") - 1`` and, for beacon proxies, the beacon at
``keccak256("eip1967.proxy.beacon") - 1``.
"""
from typing import Optional

from eth_utils import to_checksum_address

from gbdeploy.client import ChainClient
from gbdeploy.exceptions import HandleNotConfirmed, StorageSlotUnreadable
from gbdeploy.models import DeploymentResult, ProxyHandle

IMPLEMENTATION_SLOT = 0x360894A13BA1A3210667C828492DB98DCA3E2076CC3735A920A3CA505D382BBC
ADMIN_SLOT = 0xB53127684A568B3173AE13B9F8A6016E243E63B6E8EE1178D6A717850B5D6103
BEACON_SLOT = 0xA3F0AD74E5423AEBFD80D3EF4346578335A9A72AEAEE59FF6CB3582B35133D50

ZERO_ADDRESS = "0x" + "0" * 40


def address_from_slot(value: bytes) -> Optional[str]:
    """The address stored in the low 20 bytes of a slot, None if the slot is empty"""
    address = to_checksum_address(bytes(value)[-20:].rjust(20, b"\x00"))
    if address == ZERO_ADDRESS:
        return None
    return address


def _read_address(address: str, slot: int, *, client: ChainClient) -> Optional[str]:
    return address_from_slot(client.read_storage_slot(address, slot))


def get_implementation_address(proxy_address: str, *, client: ChainClient) -> str:
    implementation_address = _read_address(
        proxy_address, IMPLEMENTATION_SLOT, client=client
    )
    if implementation_address is None:
        raise StorageSlotUnreadable(
            f"{proxy_address} has no implementation in the ERC-1967 slot"
        )
    return implementation_address


def get_admin_address(proxy_address: str, *, client: ChainClient) -> Optional[str]:
    return _read_address(proxy_address, ADMIN_SLOT, client=client)


def get_beacon_address(proxy_address: str, *, client: ChainClient) -> Optional[str]:
    return _read_address(proxy_address, BEACON_SLOT, client=client)


def resolve(
    handle: ProxyHandle, *, client: ChainClient, upgradeable: bool = True
) -> DeploymentResult:
    """Resolve the proxy and current implementation address of a confirmed deployment.

    Does not modify the handle. Set `upgradeable` to False to accept a proxy that
    points to itself.
    """
    if handle.pending_deployment:
        raise HandleNotConfirmed(
            f"Deployment of {handle.contract_name} has not been confirmed yet"
        )

    implementation_address = get_implementation_address(handle.address, client=client)
    return DeploymentResult(
        proxy_address=handle.address,
        implementation_address=implementation_address,
        upgradeable=upgradeable,
    )

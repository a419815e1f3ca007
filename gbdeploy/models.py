from typing import Any, Dict, List, Optional, Tuple

import attr
from eth_utils import is_checksum_address


@attr.s(auto_attribs=True, frozen=True)
class ContractFactory:
    """The compiled interface of a contract, able to deploy new instances"""

    name: str
    abi: List[Dict[str, Any]] = attr.ib(repr=False)
    bytecode: str = attr.ib(repr=False)

    def has_function(self, function_name: str) -> bool:
        return any(
            entry.get("type") == "function" and entry.get("name") == function_name
            for entry in self.abi
        )


def _frozen_once_confirmed(instance, attribute, value):
    if not instance.pending_deployment:
        raise attr.exceptions.FrozenAttributeError(
            f"Cannot set {attribute.name}, the proxy handle is confirmed"
        )
    return value


@attr.s(auto_attribs=True, on_setattr=_frozen_once_confirmed)
class ProxyHandle:
    """A proxy deployment. Pending until `confirm` is called with the proxy address,
    immutable afterwards.

    A pending handle belongs to the client that created it, only that client confirms it.
    """

    contract_name: str
    init_params: Tuple = attr.ib(converter=tuple, default=())
    transaction_hash: Optional[bytes] = None
    implementation_deploy_address: Optional[str] = None
    address: Optional[str] = None
    pending_deployment: bool = True

    def confirm(self, address: str) -> None:
        if not self.pending_deployment:
            raise RuntimeError(
                f"Proxy handle for {self.contract_name} has already been confirmed"
            )
        self.address = address
        self.pending_deployment = False


def _validate_address(instance, attribute, value):
    if not value or not is_checksum_address(value):
        raise ValueError(f"{attribute.name} is not a valid checksum address: {value!r}")


@attr.s(auto_attribs=True, frozen=True)
class DeploymentResult:
    proxy_address: str = attr.ib(validator=_validate_address)
    implementation_address: str = attr.ib(validator=_validate_address)
    upgradeable: bool = attr.ib(default=True, kw_only=True, repr=False)

    def __attrs_post_init__(self):
        if self.upgradeable and self.proxy_address == self.implementation_address:
            raise ValueError(
                f"Proxy and implementation resolve to the same address {self.proxy_address}"
            )

    def as_dict(self):
        return {
            "proxy": self.proxy_address,
            "implementation": self.implementation_address,
        }

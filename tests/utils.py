import copy
import itertools
from pathlib import Path

from eth_utils import to_checksum_address

from gbdeploy.client import ChainClient
from gbdeploy.erc1967 import IMPLEMENTATION_SLOT
from gbdeploy.exceptions import (
    FactoryNotFound,
    InitializationReverted,
    StorageSlotUnreadable,
)
from gbdeploy.models import ContractFactory, ProxyHandle

TEST_CONTRACTS_JSON = Path(__file__).parent / "contracts.json"
TOKEN_ADDRESS = "0x5FbDB2315678afecb367f032d93F642f64180aa3"


class FakeChainClient(ChainClient):
    """In memory chain: proxies are entries in `storage`, snapshots are copies of the state"""

    def __init__(self, factories=None, *, revert_discards_later_snapshots=False):
        if factories is None:
            factories = {}
        self.factories = factories
        self.state = {"balances": {}, "storage": {}}
        self._snapshots = {}
        self._snapshot_ids = itertools.count()
        self._addresses = itertools.count(1)
        self.fail_storage_reads = False
        self.snapshot_calls = 0
        self.revert_calls = 0
        self.revert_discards_later_snapshots = revert_discards_later_snapshots

    def _next_address(self):
        return to_checksum_address(next(self._addresses).to_bytes(20, "big"))

    def get_factory(self, contract_name):
        try:
            abi = self.factories[contract_name]
        except KeyError as e:
            raise FactoryNotFound(contract_name) from e
        return ContractFactory(name=contract_name, abi=abi, bytecode="0x00")

    def deploy_proxy(self, factory, init_params, *, initializer="initialize"):
        for entry in factory.abi:
            if entry["name"] == initializer and len(entry["inputs"]) != len(init_params):
                raise InitializationReverted(f"{initializer} expects {len(entry['inputs'])} args")
        implementation_address = self._next_address()
        return ProxyHandle(
            contract_name=factory.name,
            init_params=init_params,
            transaction_hash=b"\x01" * 32,
            implementation_deploy_address=implementation_address,
        )

    def wait_for_confirmation(self, handle):
        proxy_address = self._next_address()
        slot_value = bytes.fromhex(handle.implementation_deploy_address[2:]).rjust(32, b"\x00")
        self.state["storage"][(proxy_address, IMPLEMENTATION_SLOT)] = slot_value
        handle.confirm(proxy_address)
        return handle

    def snapshot(self):
        self.snapshot_calls += 1
        snapshot_id = next(self._snapshot_ids)
        self._snapshots[snapshot_id] = copy.deepcopy(self.state)
        return snapshot_id

    def revert_to_snapshot(self, snapshot_id):
        self.revert_calls += 1
        # snapshots are consumed like on json rpc nodes
        self.state = self._snapshots.pop(snapshot_id)
        if self.revert_discards_later_snapshots:
            for later_id in [i for i in self._snapshots if i > snapshot_id]:
                del self._snapshots[later_id]

    def read_storage_slot(self, address, slot):
        if self.fail_storage_reads:
            raise StorageSlotUnreadable(f"Could not read {hex(slot)} of {address}")
        return self.state["storage"].get((address, slot), bytes(32))


BRIDGE_ABI = [
    {
        "type": "function",
        "name": "initialize",
        "inputs": [
            {"name": "tokenAddress", "type": "address"},
            {"name": "chainParam", "type": "uint256"},
        ],
    }
]



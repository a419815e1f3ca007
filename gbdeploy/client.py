import abc
import logging
from typing import Dict, Optional, Sequence

from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted, Web3Exception
from web3.providers.eth_tester import EthereumTesterProvider

from gbdeploy.exceptions import (
    FactoryNotFound,
    ImplementationDeploymentFailed,
    InitializationReverted,
    NetworkTimeout,
    SnapshotError,
    StorageSlotUnreadable,
)
from gbdeploy.load_contracts import PROXY_CONTRACT_NAME
from gbdeploy.load_contracts import contracts as packaged_contracts
from gbdeploy.models import ContractFactory, ProxyHandle
from gbdeploy.transact import (
    TransactionFailed,
    increase_transaction_options_nonce,
    send_transaction,
    wait_for_successful_transaction_receipt,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 180


class ChainClient(abc.ABC):
    """The blockchain primitives the deployment workflow and the fixtures are built on"""

    # reverting to a snapshot drops all snapshots taken after it, as on hardhat nodes
    revert_discards_later_snapshots = True

    @abc.abstractmethod
    def get_factory(self, contract_name: str) -> ContractFactory:
        pass

    @abc.abstractmethod
    def deploy_proxy(
        self,
        factory: ContractFactory,
        init_params: Sequence,
        *,
        initializer: Optional[str] = "initialize",
    ) -> ProxyHandle:
        """Deploy an implementation and submit the proxy pointing to it.
        The returned handle is still pending."""

    @abc.abstractmethod
    def wait_for_confirmation(self, handle: ProxyHandle) -> ProxyHandle:
        pass

    @abc.abstractmethod
    def snapshot(self):
        pass

    @abc.abstractmethod
    def revert_to_snapshot(self, snapshot_id) -> None:
        pass

    @abc.abstractmethod
    def read_storage_slot(self, address: str, slot: int) -> bytes:
        pass


class Web3ChainClient(ChainClient):
    def __init__(
        self,
        web3: Web3,
        *,
        contracts=None,
        private_key: bytes = None,
        transaction_options: Dict = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        if contracts is None:
            contracts = packaged_contracts
        if transaction_options is None:
            transaction_options = {}

        self.web3 = web3
        self.contracts = contracts
        self.private_key = private_key
        self.transaction_options = transaction_options
        self.timeout = timeout

    @property
    def uses_eth_tester(self) -> bool:
        return isinstance(self.web3.provider, EthereumTesterProvider)

    @property
    def revert_discards_later_snapshots(self) -> bool:
        return not self.uses_eth_tester

    def _revert_errors(self):
        if self.uses_eth_tester:
            # the tester provider raises its own exception for reverts
            from eth_tester.exceptions import TransactionFailed as TesterTransactionFailed

            return ContractLogicError, TesterTransactionFailed
        return (ContractLogicError,)

    def get_factory(self, contract_name: str) -> ContractFactory:
        try:
            interface = self.contracts[contract_name]
        except KeyError as e:
            raise FactoryNotFound(
                f"No compiled contract named {contract_name!r}"
            ) from e

        bytecode = interface.get("bytecode") or ""
        if bytecode in ("", "0x"):
            raise FactoryNotFound(f"Contract {contract_name!r} has no deployable bytecode")
        return ContractFactory(name=contract_name, abi=interface["abi"], bytecode=bytecode)

    def _send(self, transaction_builder):
        tx_hash = send_transaction(
            transaction_builder,
            web3=self.web3,
            transaction_options=self.transaction_options,
            private_key=self.private_key,
        )
        increase_transaction_options_nonce(self.transaction_options)
        return tx_hash

    def _deploy_implementation(self, factory: ContractFactory) -> str:
        contract = self.web3.eth.contract(abi=factory.abi, bytecode=factory.bytecode)
        try:
            tx_hash = self._send(contract.constructor())
            receipt = wait_for_successful_transaction_receipt(
                self.web3, tx_hash, timeout=self.timeout
            )
        except (TimeExhausted, OSError) as e:
            raise NetworkTimeout(
                f"Timed out deploying the implementation of {factory.name}"
            ) from e
        except (TransactionFailed, *self._revert_errors()) as e:
            raise ImplementationDeploymentFailed(
                f"Deployment of the implementation of {factory.name} failed: {e}"
            ) from e

        implementation_address = receipt["contractAddress"]
        logger.info(
            "Deployed implementation of %s at %s", factory.name, implementation_address
        )
        return implementation_address

    def _initializer_data(
        self, factory: ContractFactory, init_params: Sequence, initializer: Optional[str]
    ) -> bytes:
        if initializer is None:
            return b""
        if not factory.has_function(initializer) and not init_params:
            return b""

        contract = self.web3.eth.contract(abi=factory.abi)
        try:
            return HexBytes(contract.encode_abi(initializer, args=list(init_params)))
        except (Web3Exception, TypeError, ValueError) as e:
            raise InitializationReverted(
                f"{factory.name}.{initializer} rejected the parameters {list(init_params)}: {e}"
            ) from e

    def deploy_proxy(
        self,
        factory: ContractFactory,
        init_params: Sequence,
        *,
        initializer: Optional[str] = "initialize",
    ) -> ProxyHandle:
        init_params = tuple(init_params)
        data = self._initializer_data(factory, init_params, initializer)
        implementation_address = self._deploy_implementation(factory)

        proxy_factory = self.get_factory(PROXY_CONTRACT_NAME)
        proxy = self.web3.eth.contract(abi=proxy_factory.abi, bytecode=proxy_factory.bytecode)
        try:
            tx_hash = self._send(proxy.constructor(implementation_address, data))
        except self._revert_errors() as e:
            raise InitializationReverted(
                f"{factory.name}.{initializer} reverted: {e}"
            ) from e
        except OSError as e:
            raise NetworkTimeout(f"Could not submit the proxy for {factory.name}") from e

        logger.debug("Submitted proxy for %s in %s", factory.name, Web3.to_hex(tx_hash))
        return ProxyHandle(
            contract_name=factory.name,
            init_params=init_params,
            transaction_hash=tx_hash,
            implementation_deploy_address=implementation_address,
        )

    def wait_for_confirmation(self, handle: ProxyHandle) -> ProxyHandle:
        try:
            receipt = wait_for_successful_transaction_receipt(
                self.web3, handle.transaction_hash, timeout=self.timeout
            )
        except (TimeExhausted, OSError) as e:
            raise NetworkTimeout(
                f"Timed out waiting for the proxy of {handle.contract_name}"
            ) from e
        except TransactionFailed as e:
            raise InitializationReverted(
                f"Initialization of {handle.contract_name} reverted in {Web3.to_hex(e.tx_hash)}"
            ) from e

        handle.confirm(receipt["contractAddress"])
        return handle

    def _rpc(self, method, params):
        response = self.web3.provider.make_request(method, params)
        if "error" in response:
            raise SnapshotError(f"{method} failed: {response['error']}")
        return response["result"]

    def snapshot(self):
        if self.uses_eth_tester:
            return self.web3.provider.ethereum_tester.take_snapshot()
        return self._rpc("evm_snapshot", [])

    def revert_to_snapshot(self, snapshot_id) -> None:
        if self.uses_eth_tester:
            self.web3.provider.ethereum_tester.revert_to_snapshot(snapshot_id)
            return
        if not self._rpc("evm_revert", [snapshot_id]):
            raise SnapshotError(f"Could not revert to snapshot {snapshot_id}")

    def read_storage_slot(self, address: str, slot: int) -> bytes:
        try:
            value = self.web3.eth.get_storage_at(address, slot)
        except (Web3Exception, OSError, ValueError) as e:
            raise StorageSlotUnreadable(
                f"Could not read slot {hex(slot)} of {address}: {e}"
            ) from e
        return bytes(value).rjust(32, b"\x00")

import eth_tester
import pytest
from web3 import Web3
from web3.providers.eth_tester import EthereumTesterProvider

from gbdeploy.client import Web3ChainClient
from gbdeploy.fixtures import FixtureManager
from gbdeploy.load_contracts import load_contracts_json, load_packaged_contracts
from tests.utils import BRIDGE_ABI, TEST_CONTRACTS_JSON, FakeChainClient

DEPLOYER_KEY = b"\x04HR\xb2\xa6p\xad\xe5@~x\xfb(c\xc5\x1d\xe9\xfc\xb9eB\xa0q\x86\xfe:\xed\xa6\xbb\x8a\x11m"


@pytest.fixture(scope="session")
def ethereum_tester_session():
    """Returns an instance of an Ethereum tester"""
    return eth_tester.EthereumTester(eth_tester.PyEVMBackend())


@pytest.fixture
def ethereum_tester(ethereum_tester_session):
    tester = ethereum_tester_session
    snapshot = tester.take_snapshot()
    yield tester
    tester.revert_to_snapshot(snapshot)


@pytest.fixture()
def web3(ethereum_tester):
    web3 = Web3(EthereumTesterProvider(ethereum_tester))
    web3.eth.default_account = web3.eth.accounts[0]
    return web3


@pytest.fixture(scope="session")
def contract_assets():
    return {**load_packaged_contracts(), **load_contracts_json(TEST_CONTRACTS_JSON)}


@pytest.fixture()
def client(web3, contract_assets):
    return Web3ChainClient(web3, contracts=contract_assets)


@pytest.fixture()
def deployer_key(web3):
    """A funded key, not managed by the node"""
    address = web3.eth.account.from_key(DEPLOYER_KEY).address
    tx_hash = web3.eth.send_transaction(
        {"from": web3.eth.accounts[0], "to": address, "value": 10 ** 18}
    )
    web3.eth.wait_for_transaction_receipt(tx_hash)
    return DEPLOYER_KEY


@pytest.fixture()
def fixture_manager(client):
    return FixtureManager(client)


@pytest.fixture()
def fake_client():
    return FakeChainClient(
        factories={"GiniBridgeProxy": BRIDGE_ABI, "KalpBridge": BRIDGE_ABI}
    )

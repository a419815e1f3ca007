# The transaction helpers in this file have been adapted from the
# contract-deploy-tools project (deploy_tools.transact). It does not support
# current web3 versions, so they are written here on top of web3 directly.
from typing import Dict

from web3 import Web3


class TransactionFailed(Exception):
    def __init__(self, tx_hash, receipt):
        super().__init__(f"Transaction {Web3.to_hex(tx_hash)} failed")
        self.tx_hash = tx_hash
        self.receipt = receipt


def build_transaction_options(*, gas=None, gas_price=None, nonce=None):
    transaction_options = {}

    if gas is not None:
        transaction_options["gas"] = gas
    if gas_price is not None:
        transaction_options["gasPrice"] = gas_price
    if nonce is not None:
        transaction_options["nonce"] = nonce

    return transaction_options


def increase_transaction_options_nonce(transaction_options: Dict) -> None:
    if "nonce" in transaction_options:
        transaction_options["nonce"] = transaction_options["nonce"] + 1


def get_nonce(*, web3: Web3, nonce=None, private_key: bytes = None):
    """Return the nonce to start with: the given one, or the pending
    transaction count of the signing account"""
    if nonce is not None:
        return nonce
    if private_key is None:
        return None
    address = web3.eth.account.from_key(private_key).address
    return web3.eth.get_transaction_count(address, "pending")


def send_transaction(
    transaction_builder,
    *,
    web3: Web3,
    transaction_options: Dict = None,
    private_key: bytes = None,
):
    """Send a contract constructor or function call, either signed locally with
    `private_key` or from the node's default account. Returns the tx hash."""
    if transaction_options is None:
        transaction_options = {}

    if private_key is None:
        return transaction_builder.transact(dict(transaction_options))

    account = web3.eth.account.from_key(private_key)
    options = dict(transaction_options)
    options["from"] = account.address
    if "nonce" not in options:
        options["nonce"] = web3.eth.get_transaction_count(account.address, "pending")
    transaction = transaction_builder.build_transaction(options)
    signed_transaction = account.sign_transaction(transaction)
    return web3.eth.send_raw_transaction(signed_transaction.raw_transaction)


def wait_for_successful_transaction_receipt(web3: Web3, tx_hash, timeout=180):
    receipt = web3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout)
    if receipt.get("status", None) == 0:
        raise TransactionFailed(tx_hash, receipt)
    return receipt

import logging
from importlib import metadata

import attr
import click
from dotenv import load_dotenv
from eth_account import Account
from eth_utils import decode_hex, is_address, to_checksum_address
from web3 import Web3

from gbdeploy.client import DEFAULT_TIMEOUT, Web3ChainClient
from gbdeploy.config import NETWORKS, PRIVATE_KEY_ENV, resolve_jsonrpc
from gbdeploy.core import GINI_BRIDGE_PROXY, KALP_BRIDGE, deploy, deploy_bridge
from gbdeploy.erc1967 import (
    get_admin_address,
    get_beacon_address,
    get_implementation_address,
)
from gbdeploy.load_contracts import CONTRACTS_JSON_ENV, LazyContractsLoader
from gbdeploy.report import DeploymentReporter
from gbdeploy.transact import build_transaction_options, get_nonce


def report_version():
    dist = "gini-bridge-deploy"
    click.echo("{} {}".format(dist, metadata.version(dist)))


def connect_to_json_rpc(jsonrpc: str) -> Web3:
    return Web3(Web3.HTTPProvider(jsonrpc))


def retrieve_private_key(keystore=None, private_key=None):
    if keystore is not None:
        with open(keystore) as keyfile:
            encrypted_key = keyfile.read()
        password = click.prompt(
            "Please enter the password to decrypt the keystore",
            type=str,
            hide_input=True,
        )
        return bytes(Account.decrypt(encrypted_key, password))
    if private_key:
        return decode_hex(private_key)
    return None


@click.group(invoke_without_command=True)
@click.option("--version", help="Prints the version of the software", is_flag=True)
@click.option("--verbose", "-v", help="Log what is being deployed", is_flag=True)
@click.pass_context
def cli(ctx, version, verbose):
    """Commandline tool to deploy upgradeable bridge contracts"""
    load_dotenv()
    if verbose:
        logging.basicConfig(level=logging.INFO)
    if version:
        report_version()
    elif ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit()


network_option = click.option(
    "--network",
    help="Name of a configured network",
    type=click.Choice(sorted(NETWORKS)),
    default=None,
)
jsonrpc_option = click.option(
    "--jsonrpc",
    help="JsonRPC URL of the ethereum client, takes precedence over --network",
    default=None,
    metavar="URL",
)
keystore_option = click.option(
    "--keystore",
    help="Path to the encrypted keystore used to sign the transactions",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
)
private_key_option = click.option(
    "--private-key",
    help="Hex encoded private key used to sign the transactions",
    envvar=PRIVATE_KEY_ENV,
    default=None,
    metavar="KEY",
)
gas_option = click.option(
    "--gas", help="Gas of the transactions to be sent", type=int, default=None
)
gas_price_option = click.option(
    "--gas-price", help="Gas price of the transactions to be sent", type=int, default=None
)
nonce_option = click.option(
    "--nonce", help="Nonce of the first transaction to be sent", type=int, default=None
)
timeout_option = click.option(
    "--timeout",
    help="Seconds to wait for a transaction to be mined",
    type=float,
    default=DEFAULT_TIMEOUT,
    show_default=True,
)
contracts_json_option = click.option(
    "--contracts-json",
    help="Compiled contracts json file or hardhat artifacts directory",
    envvar=CONTRACTS_JSON_ENV,
    type=click.Path(exists=True),
    default=None,
)
file_option = click.option(
    "--file",
    help="Output file for the addresses in json",
    default="",
    type=click.Path(dir_okay=False, writable=True),
)


def transaction_options(function):
    for option in reversed(
        [
            network_option,
            jsonrpc_option,
            keystore_option,
            private_key_option,
            gas_option,
            gas_price_option,
            nonce_option,
            timeout_option,
            contracts_json_option,
        ]
    ):
        function = option(function)
    return function


def build_client(
    *,
    network,
    jsonrpc,
    keystore,
    private_key,
    gas,
    gas_price,
    nonce,
    timeout,
    contracts_json,
) -> Web3ChainClient:
    web3 = connect_to_json_rpc(resolve_jsonrpc(network, jsonrpc))
    key = retrieve_private_key(keystore, private_key)
    nonce = get_nonce(web3=web3, nonce=nonce, private_key=key)
    return Web3ChainClient(
        web3,
        contracts=LazyContractsLoader(contracts_json),
        private_key=key,
        transaction_options=build_transaction_options(
            gas=gas, gas_price=gas_price, nonce=nonce
        ),
        timeout=timeout,
    )


def coerce_init_arg(abi_type: str, value: str):
    if abi_type == "address":
        if not is_address(value):
            raise click.BadParameter(f"{value} is not a valid address.")
        return to_checksum_address(value)
    if abi_type.startswith(("uint", "int")):
        try:
            return int(value, 0)
        except ValueError as e:
            raise click.BadParameter(f"{value} is not an integer.") from e
    if abi_type == "bool":
        if value.lower() not in ("true", "false", "1", "0"):
            raise click.BadParameter(f"{value} is not a boolean.")
        return value.lower() in ("true", "1")
    if abi_type.startswith("bytes"):
        return decode_hex(value)
    return value


def coerce_init_args(factory, initializer, raw_args):
    """Convert the command line arguments to the input types of the initializer"""
    candidates = [
        entry["inputs"]
        for entry in factory.abi
        if entry.get("type") == "function"
        and entry.get("name") == initializer
        and len(entry["inputs"]) == len(raw_args)
    ]
    if initializer is None or not candidates:
        return tuple(raw_args)
    return tuple(
        coerce_init_arg(abi_input["type"], raw_arg)
        for abi_input, raw_arg in zip(candidates[0], raw_args)
    )


@cli.command(name="deploy", short_help="Deploy a contract behind an upgradeable proxy.")
@click.argument("contract_name", type=str)
@click.argument("init_args", nargs=-1, type=str)
@click.option(
    "--initializer",
    help="Name of the initializer function called through the proxy",
    default="initialize",
    show_default=True,
)
@click.option(
    "--no-initializer",
    help="Do not call an initializer when deploying the proxy",
    is_flag=True,
    default=False,
)
@file_option
@transaction_options
@click.pass_context
def deploy_contract(
    ctx, contract_name, init_args, initializer, no_initializer, file, **client_options
):
    """Deploy the implementation of CONTRACT_NAME and an ERC-1967 proxy pointing to it,
    calling the initializer with INIT_ARGS"""
    if no_initializer:
        if init_args:
            raise click.BadParameter("Init args given, but --no-initializer is set.")
        initializer = None

    def deploy_fn():
        client = build_client(**client_options)
        factory = client.get_factory(contract_name)
        init_params = coerce_init_args(factory, initializer, init_args)
        return deploy(
            contract_name, init_params, client=client, initializer=initializer
        )

    ctx.exit(DeploymentReporter(file).run(deploy_fn))


def bridge_command(bridge):
    @click.option(
        "--token-address",
        help="Address of the ERC 20 token bridged by the contract",
        default=bridge.token_address,
        show_default=True,
        metavar="ADDRESS",
    )
    @click.option(
        "--chain-param",
        help="Second initializer argument of the bridge",
        type=int,
        default=bridge.chain_param,
        show_default=True,
    )
    @file_option
    @transaction_options
    @click.pass_context
    def command(ctx, token_address, chain_param, file, **client_options):
        if not is_address(token_address):
            raise click.BadParameter(f"{token_address} is not a valid address.")

        def deploy_fn():
            client = build_client(**client_options)
            return deploy_bridge(
                attr.evolve(bridge, token_address=token_address, chain_param=chain_param),
                client=client,
            )

        ctx.exit(DeploymentReporter(file).run(deploy_fn))

    command.__doc__ = f"Deploy {bridge.contract_name} behind an upgradeable proxy."
    return command


cli.command(name="gini-bridge-proxy", short_help="Deploy the GiniBridgeProxy contract.")(
    bridge_command(GINI_BRIDGE_PROXY)
)
cli.command(name="kalp-bridge", short_help="Deploy the KalpBridge contract.")(
    bridge_command(KALP_BRIDGE)
)


@cli.command(short_help="Show the ERC-1967 slots of a proxy.")
@click.argument("proxy_address", type=str)
@network_option
@jsonrpc_option
@click.pass_context
def inspect(ctx, proxy_address, network, jsonrpc):
    """Print the implementation, admin and beacon addresses stored in the proxy at PROXY_ADDRESS"""
    if not is_address(proxy_address):
        raise click.BadParameter(f"{proxy_address} is not a valid address.")
    proxy_address = to_checksum_address(proxy_address)

    try:
        client = Web3ChainClient(connect_to_json_rpc(resolve_jsonrpc(network, jsonrpc)))
        implementation_address = get_implementation_address(proxy_address, client=client)
        admin_address = get_admin_address(proxy_address, client=client)
        beacon_address = get_beacon_address(proxy_address, client=client)
    except Exception as e:
        click.secho(f"Inspection failed: {e}", fg="red", err=True)
        ctx.exit(1)

    click.echo(f"implementation: {implementation_address}")
    click.echo(f"admin: {admin_address}")
    click.echo(f"beacon: {beacon_address}")

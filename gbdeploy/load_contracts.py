import collections
import json
import os
from importlib import resources
from pathlib import Path

CONTRACTS_JSON_ENV = "GB_CONTRACTS_JSON"
PROXY_CONTRACT_NAME = "ERC1967Proxy"


def load_packaged_contracts():
    """Load the contract artifacts that ship with this package."""
    contracts = {}
    for entry in resources.files(__package__).joinpath("contracts").iterdir():
        if entry.name.endswith(".json"):
            artifact = json.loads(entry.read_text(encoding="utf-8"))
            contracts[artifact["contractName"]] = artifact
    return contracts


def load_contracts_json(path):
    """Load artifacts from a combined json file `{name: {abi, bytecode}}`
    or from a hardhat `artifacts` directory"""
    path = Path(path)
    if path.is_dir():
        return load_hardhat_artifacts(path)
    with open(path, encoding="utf-8") as file:
        return json.load(file)


def load_hardhat_artifacts(artifacts_dir):
    contracts = {}
    for artifact_path in sorted(Path(artifacts_dir).glob("**/*.json")):
        if artifact_path.name.endswith(".dbg.json") or "build-info" in artifact_path.parts:
            continue
        with open(artifact_path, encoding="utf-8") as file:
            artifact = json.load(file)
        if "abi" not in artifact or "contractName" not in artifact:
            continue
        contracts[artifact["contractName"]] = artifact
    return contracts


# lazily load the contracts, so the tests have a chance to set
# GB_CONTRACTS_JSON before the first lookup
class LazyContractsLoader(collections.UserDict):
    def __init__(self, path=None):
        super().__init__()
        self.path = path

    def _load(self):
        contracts = load_packaged_contracts()
        path = self.path or os.environ.get(CONTRACTS_JSON_ENV)
        if path:
            contracts.update(load_contracts_json(path))
        self.data = contracts

    def __getitem__(self, key):
        if not self.data:
            self._load()
        return super().__getitem__(key)

    def __contains__(self, key):
        if not self.data:
            self._load()
        return super().__contains__(key)


contracts = LazyContractsLoader()

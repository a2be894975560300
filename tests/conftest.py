import json
import logging
import os
import sys

import pytest


TESTS_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(TESTS_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from deploytasks.engines.provider import (  # noqa: E402
    ContractFactory,
    ContractProvider,
    DeployedContract,
    Verifier,
)


class FakeDeployed(DeployedContract):
    def __init__(self, address):
        self.address = address
        self.waited = False

    async def wait_for_deployment(self):
        self.waited = True

    async def get_address(self):
        return self.address


class FakeFactory(ContractFactory):
    def __init__(self, name, constructor_types, address):
        self.name = name
        self._constructor_types = list(constructor_types)
        self.address = address
        self.deploy_calls = []
        self.encoded_calls = []
        self.deployed = []

    @property
    def constructor_types(self):
        return self._constructor_types

    def encode_function_data(self, function_name, args):
        self.encoded_calls.append((function_name, list(args)))
        return "0x" + f"{function_name}({','.join(args)})".encode().hex()

    def encode_deploy(self, args):
        return "0x" + "".join(f"{len(str(a)):064x}" for a in args)

    async def deploy(self, *args):
        self.deploy_calls.append(list(args))
        deployed = FakeDeployed(self.address)
        self.deployed.append(deployed)
        return deployed


class FakeProvider(ContractProvider):
    def __init__(self, factories=None):
        self.factories = factories or {}
        self.requested = []

    def add(self, name, constructor_types=(), address="0x" + "11" * 20):
        factory = FakeFactory(name, constructor_types, address)
        self.factories[name] = factory
        return factory

    async def get_contract_factory(self, name):
        self.requested.append(name)
        if name not in self.factories:
            raise KeyError(name)
        return self.factories[name]


class FlakyVerifier(Verifier):
    """Fails a given number of times before succeeding."""

    def __init__(self, failures=0, error=RuntimeError("not indexed yet")):
        self.failures = failures
        self.error = error
        self.calls = []

    async def verify(self, address, constructor_arguments):
        self.calls.append((address, list(constructor_arguments)))
        if len(self.calls) <= self.failures:
            raise self.error
        return "verified"


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo CLI logging setup so caplog keeps seeing package records."""
    yield
    package_logger = logging.getLogger("deploytasks")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def build_info_dir(tmp_path):
    """Hardhat-style artifacts directory with one build-info file."""
    artifacts = tmp_path / "artifacts"
    build_info = artifacts / "build-info"
    build_info.mkdir(parents=True)
    payload = {
        "_format": "hh-sol-build-info-1",
        "solcVersion": "0.8.17",
        "solcLongVersion": "0.8.17+commit.8df45f5f",
        "input": {
            "language": "Solidity",
            "sources": {"contracts/Token.sol": {"content": "contract Token {}"}},
            "settings": {"optimizer": {"enabled": True, "runs": 200}},
        },
        "output": {
            "contracts": {
                "contracts/Token.sol": {"Token": {"abi": []}},
                "contracts/proxy/Proxy.sol": {"TransparentUpgradeableProxy": {"abi": []}},
            }
        },
    }
    (build_info / "a1b2c3.json").write_text(json.dumps(payload), encoding="utf-8")
    return artifacts

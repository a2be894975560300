"""
Contract provider interfaces.

The tool never compiles, signs or talks to a node itself. A provider plugged in
with ``--provider package.module:attribute`` does that work behind these
interfaces.
"""

import importlib
import logging
from abc import ABC, abstractmethod
from typing import Any, List, Sequence

from .errors import DeployToolError

logger = logging.getLogger(__name__)


class ProviderLoadError(DeployToolError):
    """Raised when a provider import string cannot be resolved."""


class DeployedContract(ABC):
    """A contract whose deployment transaction has been sent."""

    @abstractmethod
    async def wait_for_deployment(self) -> None:
        """Wait until the deployment is mined."""

    @abstractmethod
    async def get_address(self) -> str:
        """Address of the deployed contract."""


class ContractFactory(ABC):
    """Deploys one compiled contract and encodes calls against its ABI."""

    @property
    @abstractmethod
    def constructor_types(self) -> List[str]:
        """Solidity types of the constructor parameters, in order."""

    @abstractmethod
    def encode_function_data(self, function_name: str, args: Sequence[Any]) -> str:
        """Hex encoded calldata for ``function_name(args)``."""

    @abstractmethod
    def encode_deploy(self, args: Sequence[Any]) -> str:
        """Hex encoded constructor arguments, as explorers expect them."""

    @abstractmethod
    async def deploy(self, *args: Any) -> DeployedContract:
        """Send the deployment transaction."""


class ContractProvider(ABC):
    """Entry point into the contract interaction library."""

    @abstractmethod
    async def get_contract_factory(self, name: str) -> ContractFactory:
        """Factory for the contract called ``name`` (not the file name)."""


class Verifier(ABC):
    """Verifies deployed source code on a block explorer."""

    @abstractmethod
    async def verify(self, address: str, constructor_arguments: Sequence[Any]) -> Any:
        """Verify the contract at ``address`` deployed with ``constructor_arguments``."""


def load_provider(spec: str) -> ContractProvider:
    """
    Resolve a provider from a ``package.module:attribute`` import string.

    Classes and other callables are called without arguments; anything else is
    used as-is.

    Raises:
        ProviderLoadError: If the string is malformed, the import fails or the
            resolved object is not a ContractProvider
    """
    module_name, sep, attr_path = spec.partition(":")
    if not sep or not module_name or not attr_path:
        raise ProviderLoadError(f"Provider must look like 'package.module:attribute', got {spec!r}")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ProviderLoadError(f"Cannot import provider module {module_name!r}: {e}") from e

    target: Any = module
    for part in attr_path.split("."):
        try:
            target = getattr(target, part)
        except AttributeError:
            raise ProviderLoadError(
                f"Module {module_name!r} has no attribute {attr_path!r}"
            ) from None

    provider = target() if callable(target) else target
    if not isinstance(provider, ContractProvider):
        raise ProviderLoadError(
            f"{spec!r} resolved to {type(provider).__name__}, not a ContractProvider"
        )
    logger.debug("Loaded contract provider %s from %s", type(provider).__name__, spec)
    return provider

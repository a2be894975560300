"""Smart contract deploy tasks with explorer verification.

Public symbols are exposed lazily so importing `deploytasks` does not eagerly
import network dependencies (for example `aiohttp` via the explorer client).
"""

from __future__ import annotations

import importlib
from typing import Dict, Tuple

__version__ = "0.1.0"

__all__ = [
    # Retry
    "backoff_retry",
    "execute",
    "RetryPolicy",
    "ExponentialBackoff",
    "ConfigurationError",
    "RetryCancelledError",
    # Arguments
    "StringArrayArgumentType",
    "ArgumentValidationError",
    "parse_argument",
    "parse_constructor_arguments",
    # Provider interfaces
    "ContractProvider",
    "ContractFactory",
    "DeployedContract",
    "Verifier",
    "load_provider",
    # Explorer
    "EtherscanVerifier",
    "VerificationResult",
    "ExplorerAPIError",
    # Config
    "DeployToolConfig",
    "DEFAULT_CONFIG",
    # Tasks
    "TaskEnvironment",
    "REGISTRY",
    "task",
]


_EXPORT_TO_SOURCE: Dict[str, Tuple[str, str]] = {}


def _register(module: str, names: list[str]) -> None:
    for name in names:
        _EXPORT_TO_SOURCE[name] = (module, name)


_register(
    ".utils.retry",
    [
        "backoff_retry",
        "execute",
        "RetryPolicy",
        "ExponentialBackoff",
        "ConfigurationError",
        "RetryCancelledError",
    ],
)
_register(
    ".engines.arguments",
    [
        "StringArrayArgumentType",
        "ArgumentValidationError",
        "parse_argument",
        "parse_constructor_arguments",
    ],
)
_register(
    ".engines.provider",
    ["ContractProvider", "ContractFactory", "DeployedContract", "Verifier", "load_provider"],
)
_register(".engines.explorer", ["EtherscanVerifier", "VerificationResult", "ExplorerAPIError"])
_register(".engines.config", ["DeployToolConfig", "DEFAULT_CONFIG"])
_register(".tasks", ["TaskEnvironment", "REGISTRY", "task"])


_missing_exports = [name for name in __all__ if name not in _EXPORT_TO_SOURCE]
if _missing_exports:
    raise RuntimeError(f"Lazy export map incomplete: {_missing_exports}")


def __getattr__(name: str):
    if name not in _EXPORT_TO_SOURCE:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    module_name, symbol_name = _EXPORT_TO_SOURCE[name]
    module = importlib.import_module(module_name, __name__)
    value = getattr(module, symbol_name)

    # Cache resolved symbol on module globals for subsequent fast access.
    globals()[name] = value
    return value


def __dir__() -> list[str]:
    return sorted(set(globals()) | set(__all__))

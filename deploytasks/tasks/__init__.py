"""Deploy tasks. Importing this package registers every task."""

from . import deploy_proxy, deploy_smart_contract, verify  # noqa: F401
from .registry import (
    REGISTRY,
    ParamDefinition,
    TaskDefinition,
    TaskEnvironment,
    TaskError,
    TaskRegistry,
    etherscan_verifier,
    task,
)
from .verify import verify_with_retry

__all__ = [
    "REGISTRY",
    "ParamDefinition",
    "TaskDefinition",
    "TaskEnvironment",
    "TaskError",
    "TaskRegistry",
    "etherscan_verifier",
    "task",
    "verify_with_retry",
]

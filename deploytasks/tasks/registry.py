"""
Task registry and runtime environment.

Tasks are registered once at import time:

    >>> @task("deploy-smart-contract", "Deploy a smart contract from a local file")
    ... async def deploy(args, env):
    ...     ...
    >>> deploy.add_param("name", "Contract name").add_flag("verify", "Verify afterwards")

and run by name through a TaskEnvironment, which also carries the contract
provider and builds verifiers.
"""

import argparse
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterator, List, Optional

from ..engines.arguments import StringArgumentType
from ..engines.build_info import find_contract_source
from ..engines.config import DeployToolConfig
from ..engines.errors import DeployToolError
from ..engines.explorer import EtherscanVerifier
from ..engines.provider import ContractFactory, ContractProvider, Verifier

logger = logging.getLogger(__name__)

TaskAction = Callable[[argparse.Namespace, "TaskEnvironment"], Awaitable[Any]]
VerifierFactory = Callable[[str, ContractFactory, DeployToolConfig], Verifier]


class TaskError(DeployToolError):
    """Raised for unknown tasks, duplicate registrations and missing parameters."""


@dataclass
class ParamDefinition:
    """One task parameter."""

    name: str
    description: str
    default: Any = None
    type: Any = StringArgumentType
    optional: bool = False
    is_flag: bool = False
    hidden: bool = False  # Programmatic only, not exposed on the command line

    @property
    def cli_name(self) -> str:
        return "--" + self.name.replace("_", "-")


class TaskDefinition:
    """A named task with its parameters and async action."""

    def __init__(self, name: str, description: str, action: TaskAction):
        self.name = name
        self.description = description
        self.action = action
        self.params: Dict[str, ParamDefinition] = {}

    def _add(self, param: ParamDefinition) -> "TaskDefinition":
        if param.name in self.params:
            raise TaskError(f"Task {self.name} already has a parameter {param.name}")
        self.params[param.name] = param
        return self

    def add_param(
        self,
        name: str,
        description: str,
        default: Any = None,
        type: Any = StringArgumentType,
        optional: bool = False,
        hidden: bool = False,
    ) -> "TaskDefinition":
        return self._add(
            ParamDefinition(
                name=name,
                description=description,
                default=default,
                type=type,
                optional=optional or default is not None,
                hidden=hidden,
            )
        )

    def add_flag(self, name: str, description: str) -> "TaskDefinition":
        return self._add(
            ParamDefinition(
                name=name, description=description, default=False, optional=True, is_flag=True
            )
        )

    def resolve(self, params: Dict[str, Any]) -> argparse.Namespace:
        """Apply defaults, validate values and reject unknown or missing parameters."""
        unknown = sorted(set(params) - set(self.params))
        if unknown:
            raise TaskError(f"Unknown parameter(s) for task {self.name}: {', '.join(unknown)}")

        resolved: Dict[str, Any] = {}
        for param in self.params.values():
            value = params.get(param.name)
            if value is None:
                if not param.optional:
                    raise TaskError(f"Missing required parameter {param.name} for task {self.name}")
                # Fresh copy so list defaults are never shared between runs
                value = list(param.default) if isinstance(param.default, list) else param.default
            elif not param.is_flag and not param.hidden:
                param.type.validate(param.name, value)
            resolved[param.name] = value
        return argparse.Namespace(**resolved)


class TaskRegistry:
    """Name -> TaskDefinition mapping."""

    def __init__(self):
        self._tasks: Dict[str, TaskDefinition] = {}

    def task(self, name: str, description: str, action: Optional[TaskAction] = None):
        """Register ``action`` under ``name``; usable directly or as a decorator."""

        def register(func: TaskAction) -> TaskDefinition:
            if name in self._tasks:
                raise TaskError(f"Task {name} is already registered")
            definition = TaskDefinition(name, description, func)
            self._tasks[name] = definition
            return definition

        if action is not None:
            return register(action)
        return register

    def get(self, name: str) -> TaskDefinition:
        try:
            return self._tasks[name]
        except KeyError:
            raise TaskError(f"Unknown task: {name}") from None

    def names(self) -> List[str]:
        return sorted(self._tasks)

    def __iter__(self) -> Iterator[TaskDefinition]:
        return iter(self._tasks.values())

    def __contains__(self, name: str) -> bool:
        return name in self._tasks


REGISTRY = TaskRegistry()
task = REGISTRY.task


def etherscan_verifier(
    name: str, factory: ContractFactory, config: DeployToolConfig
) -> Verifier:
    """Default verifier: compiler input from Hardhat build info, submitted to Etherscan."""
    source = find_contract_source(config.artifacts_dir, name)
    return EtherscanVerifier(source, factory.encode_deploy, config.explorer)


class TaskEnvironment:
    """Everything a running task can reach."""

    def __init__(
        self,
        provider: ContractProvider,
        config: Optional[DeployToolConfig] = None,
        verbose: bool = False,
        verifier_factory: VerifierFactory = etherscan_verifier,
        registry: Optional[TaskRegistry] = None,
    ):
        self.provider = provider
        self.config = config or DeployToolConfig()
        self.verbose = verbose
        self._verifier_factory = verifier_factory
        self._verifiers: Dict[str, Verifier] = {}
        self.registry = registry or REGISTRY

    async def verifier_for(self, name: str) -> Verifier:
        """Verifier for contract ``name``, built once per environment."""
        if name not in self._verifiers:
            factory = await self.provider.get_contract_factory(name)
            self._verifiers[name] = self._verifier_factory(name, factory, self.config)
        return self._verifiers[name]

    async def run(self, task_name: str, **params: Any) -> Any:
        definition = self.registry.get(task_name)
        task_args = definition.resolve(params)
        logger.debug("Running task %s", task_name)
        return await definition.action(task_args, self)

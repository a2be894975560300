"""deploy-smart-contract task."""

import argparse
import logging

from ..engines.arguments import StringArrayArgumentType, parse_constructor_arguments
from .registry import TaskEnvironment, task
from .verify import verify_with_retry

logger = logging.getLogger(__name__)


@task("deploy-smart-contract", "Deploy a smart contract from a local file")
async def deploy_smart_contract(task_args: argparse.Namespace, env: TaskEnvironment) -> str:
    name = task_args.name
    factory = await env.provider.get_contract_factory(name)
    parsed_arguments = parse_constructor_arguments(task_args.arguments, factory.constructor_types)

    if env.verbose:
        logger.info("Deploying smart contract %s with arguments %s", name, parsed_arguments)
    deployed = await factory.deploy(*parsed_arguments)
    await deployed.wait_for_deployment()
    address = await deployed.get_address()
    if env.verbose:
        logger.info("Deployed smart contract to address %s", address)

    if task_args.verify:
        await verify_with_retry(env, address, name, parsed_arguments)
    return address


deploy_smart_contract.add_param(
    "name",
    "The name of the smart contract (not the filename but the name of the contract itself)",
).add_param(
    "arguments",
    "The constructor argument values for the smart contract to be deployed, comma separated. "
    "If an argument is an array itself, provide the values semicolon separated.",
    [],
    StringArrayArgumentType,
    True,
).add_flag(
    "verify", "Set to true if the smart contract should be verified after being deployed"
)

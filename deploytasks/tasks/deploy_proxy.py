"""deploy-proxy task."""

import argparse
import logging

from ..engines.arguments import StringArrayArgumentType
from .registry import TaskEnvironment, task
from .verify import verify_with_retry

logger = logging.getLogger(__name__)


@task("deploy-proxy", "Deploy a proxy to a smart contract from a local file")
async def deploy_proxy(task_args: argparse.Namespace, env: TaskEnvironment) -> str:
    implementation = await env.provider.get_contract_factory(task_args.name)
    if env.verbose:
        logger.info(
            "Deploying proxy to smart contract %s at %s with initializer function %s and arguments %s",
            task_args.name,
            task_args.address,
            task_args.initializer_function,
            task_args.arguments,
        )
    initializer_data = implementation.encode_function_data(
        task_args.initializer_function, task_args.arguments
    )

    proxy_factory = await env.provider.get_contract_factory(task_args.proxy_name)
    proxy_arguments = [task_args.address, task_args.proxy_owner, initializer_data]
    proxy = await proxy_factory.deploy(*proxy_arguments)
    await proxy.wait_for_deployment()
    address = await proxy.get_address()
    if env.verbose:
        logger.info("Deployed proxy to address %s", address)

    if task_args.verify:
        await verify_with_retry(env, address, task_args.proxy_name, proxy_arguments)
    return address


deploy_proxy.add_param(
    "proxy_owner", "Address owning the proxy and can change the implementation"
).add_param(
    "name",
    "The name of the smart contract to proxy to (not the filename but the name of the contract itself)",
).add_param(
    "proxy_name",
    "The name of the proxy smart contract (defaults to TransparentUpgradeableProxy)",
    "TransparentUpgradeableProxy",
).add_param(
    "address", "The address of the smart contract to proxy to"
).add_param(
    "initializer_function",
    "The name of the initializer function in the contract to proxy to",
).add_param(
    "arguments",
    "The initializer arguments for the proxied contract, comma separated",
    [],
    StringArrayArgumentType,
    True,
).add_flag(
    "verify", "Set to true if the proxy should be verified after being deployed"
)

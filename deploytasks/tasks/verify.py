"""Source verification task and the retrying wrapper the deploy tasks use."""

import argparse
import logging
import shlex
from typing import Any, Optional, Sequence

from ..engines.arguments import (
    ArgumentValidationError,
    StringArrayArgumentType,
    parse_constructor_arguments,
)
from ..engines.explorer import VerificationFailedError
from ..utils.retry import backoff_retry
from .registry import TaskEnvironment, TaskError, task

logger = logging.getLogger(__name__)

# Retrying these cannot change the outcome
PERMANENT_VERIFICATION_ERRORS = (VerificationFailedError, ArgumentValidationError, TaskError)


def format_cli_arguments(values: Sequence[Any]) -> str:
    """Render constructor values back into the comma/semicolon CLI syntax."""
    rendered = []
    for value in values:
        if isinstance(value, (list, tuple)):
            rendered.append(";".join(str(item) for item in value))
        else:
            rendered.append(str(value))
    return ",".join(rendered)


@task("verify", "Verify the source of a deployed smart contract on a block explorer")
async def verify(task_args: argparse.Namespace, env: TaskEnvironment) -> Any:
    verifier = await env.verifier_for(task_args.name)

    constructor_arguments = task_args.constructor_arguments
    if constructor_arguments is None:
        factory = await env.provider.get_contract_factory(task_args.name)
        constructor_arguments = parse_constructor_arguments(
            task_args.arguments, factory.constructor_types
        )

    return await verifier.verify(task_args.address, constructor_arguments)


verify.add_param(
    "address", "Address of the deployed contract"
).add_param(
    "name",
    "The name of the deployed smart contract (not the filename but the name of the contract itself)",
).add_param(
    "arguments",
    "The constructor argument values the contract was deployed with, comma separated. "
    "If an argument is an array itself, provide the values semicolon separated.",
    [],
    StringArrayArgumentType,
    True,
).add_param(
    "constructor_arguments",
    "Already parsed constructor arguments",
    optional=True,
    hidden=True,
)


async def verify_with_retry(
    env: TaskEnvironment,
    address: str,
    name: str,
    constructor_arguments: Sequence[Any],
) -> Optional[Any]:
    """
    Run the verify task, retrying while the explorer catches up.

    Explorers do not see a contract right after deployment, so the first
    attempt is delayed and failures are retried with exponential backoff.
    Rejections by the explorer and bad arguments are permanent and are not
    retried. If verification still fails, the command to retry it later is
    logged before the error is re-raised.
    """
    # Build the verifier up front so missing build info fails before any waiting
    await env.verifier_for(name)

    async def attempt() -> Any:
        # Always log this, it's not considered verbose
        logger.info("Verifying deployed smart contract (potentially a retry)")
        return await env.run(
            "verify",
            address=address,
            name=name,
            constructor_arguments=list(constructor_arguments),
        )

    schedule = env.config.verify
    try:
        return await backoff_retry(
            attempt,
            schedule.backoff,
            schedule.retries,
            schedule.initial_delay,
            giveup=PERMANENT_VERIFICATION_ERRORS,
            name=f"verification of {address}",
        )
    except Exception:
        command = ["deploytasks", "verify", "--address", address, "--name", name]
        if constructor_arguments:
            command += ["--arguments", format_cli_arguments(constructor_arguments)]
        logger.error(
            "Verification of %s did not succeed. Once the explorer has indexed the "
            "contract, retry with:\n    %s",
            address,
            " ".join(shlex.quote(part) for part in command),
        )
        raise

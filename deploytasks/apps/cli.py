#!/usr/bin/env python3
"""
Deploy Tool - Entry Point.
One sub-command per registered task, e.g.

    deploytasks --provider myproject.chain:Provider deploy-smart-contract \\
        --name Token --arguments "My Token,MTK,1000000" --verify
"""

import argparse
import asyncio
import logging
import os
import sys
from typing import Any, Callable, List, Optional

from deploytasks.display import Colors, paint
from deploytasks.engines.arguments import ArgumentValidationError
from deploytasks.engines.config import DeployToolConfig
from deploytasks.engines.errors import DeployToolError
from deploytasks.engines.explorer import VerificationResult
from deploytasks.engines.provider import load_provider
from deploytasks.logging_config import configure_cli_logging, log_exception
from deploytasks.tasks import REGISTRY, ParamDefinition, TaskEnvironment, TaskRegistry
from deploytasks.utils.retry import ConfigurationError, RetryCancelledError

logger = logging.getLogger(__name__)


def _converter(param: ParamDefinition) -> Callable[[str], Any]:
    def convert(value: str) -> Any:
        try:
            return param.type.parse(param.name, value)
        except ArgumentValidationError as e:
            raise argparse.ArgumentTypeError(str(e)) from e

    convert.__name__ = param.type.name
    return convert


def build_parser(registry: TaskRegistry = REGISTRY) -> argparse.ArgumentParser:
    """Build the argument parser from the registered tasks."""
    parser = argparse.ArgumentParser(
        prog="deploytasks",
        description="Deploy smart contracts and proxies, optionally verifying them afterwards",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Log deployment details and debug output"
    )
    parser.add_argument(
        "--provider",
        default=os.getenv("DEPLOYTASKS_PROVIDER"),
        help="Contract provider as 'package.module:attribute' (default: $DEPLOYTASKS_PROVIDER)",
    )
    parser.add_argument(
        "--artifacts",
        default=None,
        help="Hardhat artifacts directory (default: $DEPLOYTASKS_ARTIFACTS or 'artifacts')",
    )

    subparsers = parser.add_subparsers(dest="task", metavar="TASK")
    subparsers.required = True
    for definition in registry:
        task_parser = subparsers.add_parser(
            definition.name, help=definition.description, description=definition.description
        )
        for param in definition.params.values():
            if param.hidden:
                continue
            if param.is_flag:
                task_parser.add_argument(
                    param.cli_name, dest=param.name, action="store_true", help=param.description
                )
                continue
            task_parser.add_argument(
                param.cli_name,
                dest=param.name,
                type=_converter(param),
                required=not param.optional,
                default=None,
                help=param.description,
            )
    return parser


def _print_result(result: Any) -> None:
    if result is None:
        return
    if isinstance(result, VerificationResult):
        print(f"{result.address}: {result.message}")
    else:
        print(result)


def main(argv: Optional[List[str]] = None, registry: TaskRegistry = REGISTRY) -> int:
    """Main entry point."""
    parser = build_parser(registry)
    args = parser.parse_args(argv)

    configure_cli_logging(args.verbose)
    if not args.provider:
        parser.error("a contract provider is required (--provider or DEPLOYTASKS_PROVIDER)")

    definition = registry.get(args.task)
    params = {
        name: getattr(args, name) for name, param in definition.params.items() if not param.hidden
    }

    try:
        provider = load_provider(args.provider)
        logger.debug("Running %s with provider %s", args.task, type(provider).__name__)
        env = TaskEnvironment(
            provider,
            config=DeployToolConfig.from_env(artifacts_dir=args.artifacts),
            verbose=args.verbose,
            registry=registry,
        )
        result = asyncio.run(env.run(args.task, **params))
    except KeyboardInterrupt:
        print(paint("Cancelled.", Colors.YELLOW, sys.stderr), file=sys.stderr)
        return 130
    except (DeployToolError, ConfigurationError, RetryCancelledError) as e:
        if args.verbose:
            log_exception(logger, e, f"Task {args.task} failed")
        print(paint(f"Error: {e}", Colors.RED, sys.stderr), file=sys.stderr)
        return 1

    _print_result(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())

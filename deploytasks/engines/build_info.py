"""
Hardhat build-info reader.

Explorers verify a contract from the exact compiler input that produced it.
Hardhat keeps that input in ``artifacts/build-info/<id>.json`` next to the
compiler output, so the source of a contract is found by scanning those files.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Tuple, Union

from .errors import DeployToolError

logger = logging.getLogger(__name__)


class BuildInfoError(DeployToolError):
    """Raised when the compiler input for a contract cannot be found."""


@dataclass
class ContractSource:
    """Compiler input needed to verify one contract."""

    fully_qualified_name: str  # e.g. contracts/Token.sol:Token
    compiler_version: str  # e.g. v0.8.17+commit.8df45f5f
    standard_json_input: Dict[str, Any]

    @property
    def source_name(self) -> str:
        return self.fully_qualified_name.rpartition(":")[0]

    @property
    def contract_name(self) -> str:
        return self.fully_qualified_name.rpartition(":")[2]


def _load_build_info(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)
    except (OSError, json.JSONDecodeError) as e:
        raise BuildInfoError(f"Cannot read build info {path}: {e}") from e


def _matches(name: str, source_name: str, contract_name: str) -> bool:
    if ":" in name:
        return name == f"{source_name}:{contract_name}"
    return name == contract_name


def find_contract_source(artifacts_dir: Union[str, Path], name: str) -> ContractSource:
    """
    Find the compiler input that produced contract ``name``.

    Args:
        artifacts_dir: Hardhat artifacts directory
        name: Contract name, bare (``Token``) or fully qualified
            (``contracts/Token.sol:Token``)

    Returns:
        ContractSource for the first build defining the contract

    Raises:
        BuildInfoError: If nothing defines the contract or a bare name is ambiguous
    """
    build_info_dir = Path(artifacts_dir) / "build-info"
    if not build_info_dir.is_dir():
        raise BuildInfoError(f"No build info directory at {build_info_dir}. Compile first.")

    for path in sorted(build_info_dir.glob("*.json")):
        build_info = _load_build_info(path)
        contracts = build_info.get("output", {}).get("contracts", {})

        found: List[Tuple[str, str]] = [
            (source_name, contract_name)
            for source_name, source_contracts in contracts.items()
            for contract_name in source_contracts
            if _matches(name, source_name, contract_name)
        ]
        if not found:
            continue
        if len(found) > 1:
            candidates = ", ".join(f"{s}:{c}" for s, c in found)
            raise BuildInfoError(
                f"Contract name {name!r} is ambiguous, use one of: {candidates}"
            )

        source_name, contract_name = found[0]
        long_version = build_info.get("solcLongVersion") or build_info.get("solcVersion")
        if not long_version:
            raise BuildInfoError(f"Build info {path} has no compiler version")

        logger.debug("Found %s:%s in %s", source_name, contract_name, path.name)
        return ContractSource(
            fully_qualified_name=f"{source_name}:{contract_name}",
            compiler_version=f"v{long_version}",
            standard_json_input=build_info.get("input", {}),
        )

    raise BuildInfoError(f"Contract {name!r} not found in {build_info_dir}")

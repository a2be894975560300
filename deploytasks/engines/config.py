"""
Deploy Tool Configuration Module
Centralizes retry timings, explorer endpoints and artifact locations.

Defaults can be overridden from the environment with DeployToolConfig.from_env().
"""

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

# =============================================================================
# VERIFICATION RETRY
# =============================================================================


@dataclass
class VerifyRetryConfig:
    """Retry schedule for verifying a freshly deployed contract."""

    # Block explorers take a long time to see a new contract (notably on testnets)
    initial_delay: float = 10.0  # Seconds before the first verification attempt
    backoff: float = 5.0  # Base backoff in seconds (backoff * 2^attempt)
    retries: int = 10  # Retries after the first failed attempt


# =============================================================================
# EXPLORER API
# =============================================================================


@dataclass
class ExplorerConfig:
    """Configuration for the Etherscan-compatible verification API."""

    api_url: str = "https://api.etherscan.io/api"
    api_key: str = field(default="", repr=False)
    timeout_total: float = 30.0  # Total request timeout in seconds
    timeout_connect: float = 10.0  # Connection timeout in seconds
    poll_backoff: float = 2.0  # Base backoff while a verification job is queued
    poll_retries: int = 8  # Status checks after the first one


@dataclass
class DeployToolConfig:
    """Top level configuration passed to the task environment."""

    verify: VerifyRetryConfig = field(default_factory=VerifyRetryConfig)
    explorer: ExplorerConfig = field(default_factory=ExplorerConfig)
    artifacts_dir: str = "artifacts"

    @classmethod
    def from_env(
        cls, environ: Optional[Mapping[str, str]] = None, **overrides
    ) -> "DeployToolConfig":
        """
        Build a config from environment variables.

        Reads:
        - ETHERSCAN_API_KEY: Explorer API key (default: empty)
        - ETHERSCAN_API_URL: Explorer API endpoint
        - DEPLOYTASKS_ARTIFACTS: Hardhat artifacts directory (default: artifacts)

        Keyword overrides with a value other than None win over the environment.
        """
        env = os.environ if environ is None else environ
        explorer = ExplorerConfig(
            api_url=env.get("ETHERSCAN_API_URL", ExplorerConfig.api_url),
            api_key=env.get("ETHERSCAN_API_KEY", ""),
        )
        config = cls(
            explorer=explorer,
            artifacts_dir=env.get("DEPLOYTASKS_ARTIFACTS", "artifacts"),
        )
        for key, value in overrides.items():
            if value is None:
                continue
            if not hasattr(config, key):
                raise TypeError(f"Unknown config field: {key}")
            setattr(config, key, value)
        return config


DEFAULT_CONFIG = DeployToolConfig()

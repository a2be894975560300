"""
Etherscan-compatible Verification Client
Submits standard-json-input verification jobs and polls their status.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence

import aiohttp

from ..utils.retry import backoff_retry
from .build_info import ContractSource
from .config import ExplorerConfig
from .errors import DeployToolError
from .provider import Verifier

logger = logging.getLogger(__name__)


# =============================================================================
# CUSTOM EXCEPTIONS
# =============================================================================


class ExplorerAPIError(DeployToolError):
    """Base exception for explorer API errors."""

    def __init__(self, status_code: int, message: str, response_text: str = ""):
        self.status_code = status_code
        self.message = message
        self.response_text = response_text
        super().__init__(f"Explorer API error {status_code}: {message}")


class ExplorerTimeoutError(ExplorerAPIError):
    """Raised when request times out."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(0, f"Request timed out after {timeout}s")


class ExplorerConnectionError(ExplorerAPIError):
    """Raised when connection fails."""

    def __init__(self, original_error: Exception):
        self.original_error = original_error
        super().__init__(0, f"Connection error: {original_error}")


class ContractNotIndexedError(ExplorerAPIError):
    """The explorer has not seen the deployed bytecode yet."""

    def __init__(self, address: str, message: str):
        self.address = address
        super().__init__(200, message)


class VerificationPendingError(ExplorerAPIError):
    """The verification job is still queued."""

    def __init__(self, guid: str):
        self.guid = guid
        super().__init__(200, f"Verification {guid} is pending")


class VerificationFailedError(ExplorerAPIError):
    """The explorer rejected the submission or the submitted source."""

    def __init__(self, message: str):
        super().__init__(200, message)


# =============================================================================
# RESULT
# =============================================================================


@dataclass
class VerificationResult:
    """Outcome of a successful verification."""

    address: str
    guid: Optional[str]  # None when the contract was already verified
    message: str

    @property
    def already_verified(self) -> bool:
        return self.guid is None


def _is_already_verified(result: str) -> bool:
    return "already verified" in result.lower()


def _is_not_indexed(result: str) -> bool:
    lowered = result.lower()
    return "unable to locate contractcode" in lowered or "does not have bytecode" in lowered


class EtherscanVerifier(Verifier):
    """
    Verifies one contract's source on an Etherscan-compatible explorer.

    Usable as an async context manager. Without one, ``verify`` opens and
    closes its own session.
    """

    PENDING = "pending in queue"
    PASSED = "pass - verified"

    def __init__(
        self,
        source: ContractSource,
        encode_deploy: Callable[[Sequence[Any]], str],
        config: Optional[ExplorerConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self._source = source
        self._encode_deploy = encode_deploy
        self._config = config or ExplorerConfig()
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self):
        if self._session is None:
            timeout = aiohttp.ClientTimeout(
                total=self._config.timeout_total, connect=self._config.timeout_connect
            )
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._owns_session and self._session:
            await self._session.close()
            self._session = None

    async def _request(
        self, method: str, params: Dict[str, str], form: Optional[Dict[str, str]] = None
    ) -> Dict[str, Any]:
        """
        Send one API request and return the decoded JSON body.

        Raises:
            ExplorerAPIError: For non-200 responses or malformed bodies
            ExplorerTimeoutError: When the request times out
            ExplorerConnectionError: When the connection fails
        """
        if self._session is None:
            raise RuntimeError(
                "Session not initialized. Use 'async with EtherscanVerifier(...)' "
                "or pass a session to __init__."
            )

        # Never log the query itself, it carries the API key
        logger.debug(
            "%s %s module=%s action=%s",
            method,
            self._config.api_url,
            (form or params).get("module"),
            (form or params).get("action"),
        )
        try:
            async with self._session.request(
                method, self._config.api_url, params=params, data=form
            ) as response:
                text = await response.text()
                if response.status != 200:
                    raise ExplorerAPIError(response.status, text, text)
                try:
                    payload = json.loads(text)
                except json.JSONDecodeError:
                    raise ExplorerAPIError(response.status, "Response is not JSON", text) from None
        except asyncio.TimeoutError:
            raise ExplorerTimeoutError(self._config.timeout_total) from None
        except aiohttp.ClientError as e:
            raise ExplorerConnectionError(e) from e

        if not isinstance(payload, dict) or "result" not in payload:
            raise ExplorerAPIError(200, "Unexpected response shape", text)
        return payload

    async def submit(self, address: str, constructor_arguments: Sequence[Any]) -> Optional[str]:
        """
        Submit a verification job.

        Returns:
            The job guid, or None if the explorer says the contract is already verified

        Raises:
            ContractNotIndexedError: If the explorer has not indexed the contract yet
            VerificationFailedError: For any other rejection, such as a bad API key
        """
        encoded = self._encode_deploy(list(constructor_arguments))
        if encoded.startswith("0x"):
            encoded = encoded[2:]

        form = {
            "apikey": self._config.api_key,
            "module": "contract",
            "action": "verifysourcecode",
            "contractaddress": address,
            "sourceCode": json.dumps(self._source.standard_json_input),
            "codeformat": "solidity-standard-json-input",
            "contractname": self._source.fully_qualified_name,
            "compilerversion": self._source.compiler_version,
            # Misspelling is part of the Etherscan API
            "constructorArguements": encoded,
        }
        payload = await self._request("POST", {}, form)
        result = str(payload["result"])

        if str(payload.get("status")) == "1":
            logger.info("Submitted verification for %s (guid %s)", address, result)
            return result
        if _is_already_verified(result):
            return None
        if _is_not_indexed(result):
            raise ContractNotIndexedError(address, result)
        raise VerificationFailedError(result)

    async def check_status(self, guid: str) -> str:
        """
        Check a verification job once.

        Raises:
            VerificationPendingError: While the job is queued
            VerificationFailedError: If the explorer rejected the source
        """
        params = {
            "apikey": self._config.api_key,
            "module": "contract",
            "action": "checkverifystatus",
            "guid": guid,
        }
        payload = await self._request("GET", params)
        result = str(payload["result"])
        lowered = result.lower()

        if lowered.startswith(self.PENDING):
            raise VerificationPendingError(guid)
        if lowered.startswith(self.PASSED) or _is_already_verified(result):
            return result
        raise VerificationFailedError(result)

    async def _wait_for_result(self, guid: str) -> str:
        # Rejections are final, only a queued job or a flaky connection is retried
        return await backoff_retry(
            lambda: self.check_status(guid),
            self._config.poll_backoff,
            self._config.poll_retries,
            exceptions=(VerificationPendingError, ExplorerTimeoutError, ExplorerConnectionError),
        )

    async def verify(
        self, address: str, constructor_arguments: Sequence[Any]
    ) -> VerificationResult:
        """Submit the source for ``address`` and wait for the explorer's verdict."""
        if self._session is None:
            async with self:
                return await self.verify(address, constructor_arguments)

        guid = await self.submit(address, constructor_arguments)
        if guid is None:
            logger.info("Contract %s is already verified", address)
            return VerificationResult(address=address, guid=None, message="Already Verified")

        message = await self._wait_for_result(guid)
        logger.info("Verified %s: %s", address, message)
        return VerificationResult(address=address, guid=guid, message=message)

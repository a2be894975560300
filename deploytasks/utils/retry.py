"""
Retry utilities with exponential backoff for slow-to-settle operations.

Used for operations that are safe to run again from scratch, mainly:
- Block explorer verification right after a deployment (indexing lag)
- Polling an explorer for the outcome of a queued verification job
"""

import asyncio
import logging
import math
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ConfigurationError(ValueError):
    """Raised when a retry policy is given invalid values."""


class RetryCancelledError(Exception):
    """Raised when a retry loop is stopped through its cancel event."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Retry loop cancelled after {attempts} attempt(s)")


class ExponentialBackoff:
    """
    Exponential backoff calculator.

    Growth is unbounded and deterministic by default. A cap and jitter can be
    switched on for callers that retry many times or run many loops at once.

    Args:
        base: Base delay in seconds (default: 0.25)
        multiplier: Exponential growth factor (default: 2.0)
        max_delay: Maximum delay cap in seconds (default: None, no cap)
        jitter: Add random jitter to delays (default: False)

    Example:
        >>> backoff = ExponentialBackoff(base=0.25)
        >>> backoff.calculate(attempt=0)  # First retry
        0.25
        >>> backoff.calculate(attempt=2)  # Third retry
        1.0
    """

    def __init__(
        self,
        base: float = 0.25,
        multiplier: float = 2.0,
        max_delay: Optional[float] = None,
        jitter: bool = False,
    ):
        self.base = base
        self.multiplier = multiplier
        self.max_delay = max_delay
        self.jitter = jitter

    def calculate(self, attempt: int) -> float:
        """
        Calculate delay for given retry attempt.

        Args:
            attempt: Retry attempt number (0-indexed)

        Returns:
            Delay in seconds
        """
        delay = self.base * (self.multiplier**attempt)
        if self.max_delay is not None:
            delay = min(delay, self.max_delay)

        if self.jitter:
            # Add up to ±25% jitter
            jitter_amount = delay * 0.25
            delay += random.uniform(-jitter_amount, jitter_amount)

        return max(0.0, delay)


@dataclass(frozen=True)
class RetryPolicy:
    """
    Validated retry settings for a single invocation.

    Attributes:
        backoff: Base delay in seconds, doubled after every failed attempt
        retries: Retries allowed after the first failed attempt
        initial_delay: Delay in seconds before the first attempt only
        max_delay: Optional cap for a single backoff delay
        jitter: Randomize each backoff delay by up to ±25%
    """

    backoff: float = 0.25
    retries: int = 5
    initial_delay: float = 0.0
    max_delay: Optional[float] = None
    jitter: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.retries, bool) or not isinstance(self.retries, int):
            raise ConfigurationError(f"retries must be an integer, got {self.retries!r}")
        if self.retries < 0:
            raise ConfigurationError(f"retries must be >= 0, got {self.retries}")
        for field_name in ("backoff", "initial_delay", "max_delay"):
            value = getattr(self, field_name)
            if value is None and field_name == "max_delay":
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigurationError(f"{field_name} must be a number, got {value!r}")
            if not math.isfinite(value):
                raise ConfigurationError(f"{field_name} must be finite, got {value}")
            if value < 0:
                raise ConfigurationError(f"{field_name} must be >= 0, got {value}")

    @property
    def max_attempts(self) -> int:
        """Total executions allowed, including the first one."""
        return self.retries + 1

    def backoff_calculator(self) -> ExponentialBackoff:
        return ExponentialBackoff(
            base=self.backoff, multiplier=2.0, max_delay=self.max_delay, jitter=self.jitter
        )


def _check_cancelled(cancel_event: Optional[asyncio.Event], attempts: int) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise RetryCancelledError(attempts)


async def execute(
    fn: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    giveup: Tuple[Type[Exception], ...] = (),
    on_retry: Optional[Callable[[Exception, int], Any]] = None,
    cancel_event: Optional[asyncio.Event] = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    name: Optional[str] = None,
) -> T:
    """
    Run ``fn`` under ``policy``, retrying with exponential backoff.

    The exception raised by the final permitted attempt is re-raised as-is.
    Only errors matching ``exceptions`` and not matching ``giveup`` are
    retried. Anything else, including task cancellation, propagates
    immediately.
    """
    backoff = policy.backoff_calculator()
    fn_name = name or getattr(fn, "__name__", repr(fn))

    if policy.initial_delay > 0:
        _check_cancelled(cancel_event, 0)
        logger.debug(f"Waiting {policy.initial_delay:.2f}s before first attempt of {fn_name}")
        await sleep(policy.initial_delay)

    for attempt in range(policy.max_attempts):
        _check_cancelled(cancel_event, attempt)
        try:
            return await fn()
        except exceptions as e:
            if giveup and isinstance(e, giveup):
                logger.error(f"{fn_name} failed with a permanent error, not retrying: {e}")
                raise
            if attempt == policy.retries:
                logger.error(
                    f"{fn_name} failed after {policy.max_attempts} attempts. Last error: {e}"
                )
                raise

            logger.warning(f"Attempt {attempt + 1}/{policy.max_attempts} failed for {fn_name}: {e}")

            if on_retry:
                on_retry(e, attempt)

            delay = backoff.calculate(attempt)
            _check_cancelled(cancel_event, attempt + 1)
            logger.info(f"Retrying in {delay:.2f} seconds...")
            await sleep(delay)


async def backoff_retry(
    fn: Callable[[], Awaitable[T]],
    backoff: float = 0.25,
    retries: int = 5,
    initial_delay: float = 0.0,
    *,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    giveup: Tuple[Type[Exception], ...] = (),
    max_delay: Optional[float] = None,
    jitter: bool = False,
    on_retry: Optional[Callable[[Exception, int], Any]] = None,
    cancel_event: Optional[asyncio.Event] = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    name: Optional[str] = None,
) -> T:
    """
    Execute an async function, retrying with exponential backoff on failure.

    Args:
        fn: Zero-argument callable returning an awaitable
        backoff: Base backoff in seconds, used as ``backoff * 2 ** attempt``
        retries: Maximum amount of retries after the first failure
        initial_delay: Delay in seconds before the first execution only
        exceptions: Exception types that trigger a retry; others propagate
        giveup: Subtypes of ``exceptions`` that are permanent and propagate at once
        max_delay: Optional cap for a single backoff delay
        jitter: Randomize each backoff delay by up to ±25%
        on_retry: Optional callback called before each retry (exception, attempt)
        cancel_event: Stops the loop with RetryCancelledError once set
        sleep: Awaitable sleep used for every wait
        name: Label for log lines (default: ``fn.__name__``)

    Returns:
        Whatever ``fn`` produced on its first successful attempt

    Raises:
        ConfigurationError: If the policy values are invalid (before any attempt)
        RetryCancelledError: If ``cancel_event`` was set
        Exception: The error raised by the last permitted attempt, unchanged

    Example:
        >>> await backoff_retry(lambda: verifier.verify(address, args), 5.0, 10, 10.0)
    """
    policy = RetryPolicy(
        backoff=backoff,
        retries=retries,
        initial_delay=initial_delay,
        max_delay=max_delay,
        jitter=jitter,
    )
    return await execute(
        fn,
        policy,
        exceptions=exceptions,
        giveup=giveup,
        on_retry=on_retry,
        cancel_event=cancel_event,
        sleep=sleep,
        name=name,
    )

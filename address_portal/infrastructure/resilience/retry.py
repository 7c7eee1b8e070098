"""
Retry and circuit breaker patterns for the remote address API.

This module provides retry with exponential backoff and a circuit breaker
that wrap every outbound HTTP call. Retry is the outer policy and the
circuit breaker the inner one, so every attempt is counted by the breaker
and an open circuit stops the remaining retries.
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, Optional
from enum import Enum
from dataclasses import dataclass

import httpx
import structlog

from address_portal.shared.exceptions import CircuitBreakerOpenError
from address_portal.shared.types import DelaySeconds

logger = structlog.get_logger(__name__)

# 408 Request Timeout plus every 5xx
REQUEST_TIMEOUT_STATUS = 408


def transient_failure_reason(response: httpx.Response) -> Optional[str]:
    """Return a reason string if the response is a transient failure, else None."""
    if response.status_code >= 500 or response.status_code == REQUEST_TIMEOUT_STATUS:
        return f"HTTP {response.status_code}"
    return None


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""
    max_retries: int = 3
    base_delay: float = 2.0  # seconds
    max_delay: float = 60.0  # seconds
    retryable_exceptions: tuple = (httpx.TransportError,)

    def calculate_delay(self, attempt: int) -> DelaySeconds:
        """Calculate delay before the given retry (1-based): base_delay ** attempt."""
        delay = self.base_delay ** attempt
        return DelaySeconds(max(0.0, min(delay, self.max_delay)))


class CircuitBreakerState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class CircuitBreakerConfig:
    """Configuration for circuit breaker."""
    failure_threshold: int = 5  # Consecutive handled failures before opening
    break_duration_seconds: float = 30.0


class CircuitBreaker:
    """
    Circuit breaker shared by every request that uses the same client.

    before_call() tells the caller whether it was admitted as the half-open
    trial. The caller passes that flag back with the outcome; while half-open
    only the trial's outcome moves the breaker.
    """

    def __init__(
        self,
        name: str,
        config: CircuitBreakerConfig,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize circuit breaker.

        Args:
            name: Identifier for this circuit breaker
            config: Circuit breaker configuration
            clock: Monotonic time source in seconds
        """
        self.name = name
        self.config = config
        self.state = CircuitBreakerState.CLOSED
        self.failure_count = 0
        self.opened_at: Optional[float] = None
        self._clock = clock
        self._trial_in_flight = False
        self._lock = asyncio.Lock()

    async def before_call(self) -> bool:
        """
        Admit or reject a call.

        Returns:
            True if the call is the half-open trial

        Raises:
            CircuitBreakerOpenError: If the circuit is open, or half-open
                with a trial call already in flight
        """
        async with self._lock:
            if self.state == CircuitBreakerState.OPEN:
                remaining = self._remaining_break()
                if remaining > 0:
                    logger.warning(
                        "Circuit breaker open, call rejected",
                        name=self.name,
                        retry_after_seconds=round(remaining, 3)
                    )
                    raise CircuitBreakerOpenError(self.name, retry_after_seconds=remaining)

                self.state = CircuitBreakerState.HALF_OPEN
                logger.info("Circuit breaker half-open", name=self.name)

            if self.state == CircuitBreakerState.HALF_OPEN:
                if self._trial_in_flight:
                    raise CircuitBreakerOpenError(self.name)
                self._trial_in_flight = True
                return True

            return False

    async def record_success(self, trial: bool = False) -> None:
        """Record a call whose outcome was not a handled failure."""
        async with self._lock:
            if trial:
                self._trial_in_flight = False
                if self.state == CircuitBreakerState.HALF_OPEN:
                    self.state = CircuitBreakerState.CLOSED
                    self.opened_at = None
                    logger.info("Circuit breaker reset", name=self.name)
            elif self.state == CircuitBreakerState.HALF_OPEN:
                # Calls admitted before the circuit opened do not decide the trial
                return
            self.failure_count = 0

    async def record_failure(self, reason: str, trial: bool = False) -> None:
        """Record a handled (transient) failure."""
        async with self._lock:
            if trial:
                self._trial_in_flight = False
            elif self.state == CircuitBreakerState.HALF_OPEN:
                return

            self.failure_count += 1

            if self.state == CircuitBreakerState.HALF_OPEN:
                self._open(reason)
            elif self.state == CircuitBreakerState.CLOSED and self.failure_count >= self.config.failure_threshold:
                self._open(reason)

    def release(self, trial: bool) -> None:
        """End a call whose outcome the breaker does not handle."""
        if trial:
            self._trial_in_flight = False

    def _open(self, reason: str) -> None:
        self.state = CircuitBreakerState.OPEN
        self.opened_at = self._clock()
        logger.warning(
            "Circuit breaker opened",
            name=self.name,
            break_duration_seconds=self.config.break_duration_seconds,
            failure_count=self.failure_count,
            reason=reason
        )

    def _remaining_break(self) -> float:
        if self.opened_at is None:
            return 0.0
        elapsed = self._clock() - self.opened_at
        return self.config.break_duration_seconds - elapsed

    def get_status(self) -> Dict[str, Any]:
        """Get current circuit breaker status."""
        return {
            "name": self.name,
            "state": self.state.value,
            "failure_count": self.failure_count,
            "failure_threshold": self.config.failure_threshold,
            "break_duration_seconds": self.config.break_duration_seconds,
        }


class ResiliencePolicy:
    """Retry policy wrapped around a circuit breaker for outbound HTTP calls."""

    def __init__(
        self,
        name: str,
        retry_config: Optional[RetryConfig] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    ):
        """
        Initialize resilience policy.

        Args:
            name: Policy identifier used in log events
            retry_config: Retry configuration
            circuit_breaker: Breaker shared across requests, if any
            sleep: Awaitable used to wait between retries
        """
        self.name = name
        self.retry_config = retry_config or RetryConfig()
        self.circuit_breaker = circuit_breaker
        self._sleep = sleep

    async def execute(self, send: Callable[[], Awaitable[httpx.Response]]) -> httpx.Response:
        """
        Execute an HTTP call with retry and circuit breaker protection.

        Args:
            send: Zero-argument coroutine function performing one attempt

        Returns:
            The first non-transient response, or the last response once
            retries are exhausted

        Raises:
            CircuitBreakerOpenError: If the circuit rejects an attempt
            Exception: The last transport error once retries are exhausted,
                or any non-retryable error immediately
        """
        retries = 0

        while True:
            try:
                response = await self._execute_with_circuit_breaker(send)
            except Exception as e:
                if not self._is_retryable(e) or retries >= self.retry_config.max_retries:
                    raise
                reason = str(e) or type(e).__name__
            else:
                reason = transient_failure_reason(response)
                if reason is None or retries >= self.retry_config.max_retries:
                    return response

            retries += 1
            delay = self.retry_config.calculate_delay(retries)
            logger.warning(
                "Retrying request",
                policy=self.name,
                attempt=retries,
                delay_seconds=delay,
                reason=reason
            )
            await self._sleep(delay)

    async def _execute_with_circuit_breaker(self, send: Callable[[], Awaitable[httpx.Response]]) -> httpx.Response:
        """Execute one attempt through the circuit breaker if configured."""
        if self.circuit_breaker is None:
            return await send()

        breaker = self.circuit_breaker
        trial = await breaker.before_call()

        try:
            response = await send()
        except Exception as e:
            if self._is_retryable(e):
                await breaker.record_failure(str(e) or type(e).__name__, trial=trial)
            else:
                breaker.release(trial)
            raise
        except BaseException:
            # Cancelled attempts must not hold the half-open trial
            breaker.release(trial)
            raise

        reason = transient_failure_reason(response)
        if reason is None:
            await breaker.record_success(trial=trial)
        else:
            await breaker.record_failure(reason, trial=trial)
        return response

    def _is_retryable(self, exception: Exception) -> bool:
        """Check if exception is retryable."""
        if isinstance(exception, CircuitBreakerOpenError):
            return False

        return isinstance(exception, self.retry_config.retryable_exceptions)


class CircuitBreakerRegistry:
    """Process-wide registry so every client with the same name shares one breaker."""

    def __init__(self):
        """Initialize registry."""
        self._breakers: Dict[str, CircuitBreaker] = {}

    def get_or_create(
        self,
        name: str,
        config: Optional[CircuitBreakerConfig] = None,
        clock: Callable[[], float] = time.monotonic
    ) -> CircuitBreaker:
        """Return the breaker registered under name, creating it on first use."""
        breaker = self._breakers.get(name)
        if breaker is None:
            breaker = CircuitBreaker(name, config or CircuitBreakerConfig(), clock=clock)
            self._breakers[name] = breaker
        return breaker

    def get_all_status(self) -> Dict[str, Dict[str, Any]]:
        """Get status of all registered circuit breakers."""
        return {
            name: breaker.get_status()
            for name, breaker in self._breakers.items()
        }

    def clear(self) -> None:
        """Forget every registered breaker."""
        self._breakers.clear()


# Global registry instance
circuit_breaker_registry = CircuitBreakerRegistry()

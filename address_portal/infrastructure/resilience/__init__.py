"""
Resilience patterns for calls to the remote address API.

This module provides retry with exponential backoff and a circuit breaker
that compose into a single policy applied to every outbound request.
"""

from .retry import (
    RetryConfig,
    CircuitBreakerState,
    CircuitBreakerConfig,
    CircuitBreaker,
    ResiliencePolicy,
    CircuitBreakerRegistry,
    circuit_breaker_registry,
    transient_failure_reason
)

__all__ = [
    "RetryConfig",
    "CircuitBreakerState",
    "CircuitBreakerConfig",
    "CircuitBreaker",
    "ResiliencePolicy",
    "CircuitBreakerRegistry",
    "circuit_breaker_registry",
    "transient_failure_reason"
]

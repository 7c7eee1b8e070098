"""
Custom exceptions for the Address Portal application.

This module defines the exception hierarchy used by the resilience layer
and the web shell. Expected API failures never travel as exceptions to
controllers; they are converted to Result values at the service boundary.
"""

from typing import Optional, Dict, Any


class AddressPortalError(Exception):
    """Base exception for all Address Portal errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, error_code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.error_code = error_code


class ConfigurationError(AddressPortalError):
    """Raised when there are configuration or setup issues."""
    pass


class CircuitBreakerOpenError(AddressPortalError):
    """Raised when a call is rejected because the circuit is open."""

    def __init__(self, service: str, retry_after_seconds: Optional[float] = None, **kwargs):
        super().__init__(f"Circuit breaker open for service: {service}", **kwargs)
        self.service = service
        self.retry_after_seconds = retry_after_seconds


# Exception mapping for HTTP status codes
EXCEPTION_STATUS_MAP = {
    ConfigurationError: 500,
    CircuitBreakerOpenError: 503,
}


def get_http_status_code(exception: Exception) -> int:
    """Get appropriate HTTP status code for an exception."""
    exception_type = type(exception)
    return EXCEPTION_STATUS_MAP.get(exception_type, 500)


def should_log_error(exception: Exception) -> bool:
    """Determine if an error should be logged; rejected calls are logged by the breaker."""
    return not isinstance(exception, CircuitBreakerOpenError)

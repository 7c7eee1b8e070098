"""
Client for the remote Address API.
"""

from .client import (
    AddressApiService,
    build_resilience_policy,
    error_message_for,
    CLIENT_NAME,
    NOT_FOUND_MESSAGE,
    BAD_REQUEST_MESSAGE
)
from .dependency import create_http_client, get_address_service

__all__ = [
    "AddressApiService",
    "build_resilience_policy",
    "error_message_for",
    "CLIENT_NAME",
    "NOT_FOUND_MESSAGE",
    "BAD_REQUEST_MESSAGE",
    "create_http_client",
    "get_address_service"
]

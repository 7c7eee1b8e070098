"""
Address API dependency injection.

This module builds the shared HTTP client and exposes the address service
to FastAPI routes through Depends.
"""

from typing import Optional

import httpx
import structlog
from fastapi import Request

from address_portal.application.models import AppConfig
from address_portal.core.services.address_service import AddressService

logger = structlog.get_logger(__name__)


def create_http_client(config: AppConfig, transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    """
    Create the HTTP client shared by every request.

    Args:
        config: Application configuration
        transport: Replacement transport, used by tests

    Returns:
        Configured async HTTP client
    """
    logger.info(
        "Creating address API client",
        base_url=config.api_base_url,
        timeout_seconds=config.api_timeout_seconds
    )
    return httpx.AsyncClient(
        timeout=config.api_timeout_seconds,
        headers={"Accept": "application/json"},
        transport=transport,
    )


def get_address_service(request: Request) -> AddressService:
    """Get the address service created during application startup."""
    service = getattr(request.app.state, "address_service", None)

    if service is None:
        raise RuntimeError("Address service not initialized")

    return service

"""
HTTP implementation of the address service.

Every call goes through the resilience policy and every outcome, including
exceptions, is normalized into a Result so controllers never handle errors
from this layer.
"""

import asyncio
import time
from typing import Any, Callable, Dict, List, Optional

import httpx
import structlog
from pydantic import TypeAdapter

from address_portal.application.models import Address, CreateAddressInput, UpdateAddressInput
from address_portal.core.services.address_service import AddressService
from address_portal.infrastructure.resilience import (
    CircuitBreakerConfig,
    ResiliencePolicy,
    RetryConfig,
    circuit_breaker_registry
)
from address_portal.shared.result import Failure, Result, Success
from address_portal.shared.types import AddressID

logger = structlog.get_logger(__name__)

CLIENT_NAME = "AddressApi"
ADDRESSES_PATH = "/api/addresses"

NOT_FOUND_MESSAGE = "The requested address was not found."
BAD_REQUEST_MESSAGE = "Bad request."

_ADDRESS_LIST = TypeAdapter(List[Address])


def error_message_for(response: httpx.Response) -> str:
    """Map a non-success response to the message shown to the user."""
    if response.status_code == 404:
        return NOT_FOUND_MESSAGE

    if response.status_code == 400:
        return response.text or BAD_REQUEST_MESSAGE

    return f"Request failed with status code: {response.status_code}"


def parse_address(response: httpx.Response) -> Address:
    return Address.model_validate_json(response.content)


def parse_address_list(response: httpx.Response) -> List[Address]:
    """Parse a list body; an absent body or JSON null means no addresses."""
    if not response.content.strip():
        return []

    data = response.json()
    if data is None:
        return []
    return _ADDRESS_LIST.validate_python(data)


def build_resilience_policy(
    name: str = CLIENT_NAME,
    retry_config: Optional[RetryConfig] = None,
    circuit_breaker_config: Optional[CircuitBreakerConfig] = None,
    sleep: Callable[[float], Any] = asyncio.sleep,
    clock: Callable[[], float] = time.monotonic
) -> ResiliencePolicy:
    """
    Build the retry + circuit breaker policy for a named client.

    The breaker comes from the process-wide registry, so every service
    built for the same name shares its open/closed state.
    """
    breaker = circuit_breaker_registry.get_or_create(name, circuit_breaker_config, clock=clock)
    return ResiliencePolicy(name, retry_config or RetryConfig(), breaker, sleep=sleep)


class AddressApiService(AddressService):
    """Address service backed by the remote Address API."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        policy: Optional[ResiliencePolicy] = None
    ):
        """
        Initialize the service.

        Args:
            client: Shared HTTP client; its transport is replaceable in tests
            base_url: Root URL of the remote API, without the /api prefix
            policy: Resilience policy; defaults to the shared AddressApi policy
        """
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.policy = policy or build_resilience_policy()

    async def list_addresses(self) -> Result[List[Address]]:
        return await self._execute(
            "list_addresses", "GET", self._url(), parse_address_list
        )

    async def get_address(self, address_id: AddressID) -> Result[Address]:
        return await self._execute(
            "get_address", "GET", self._url(address_id), parse_address,
            address_id=str(address_id)
        )

    async def create_address(self, data: CreateAddressInput) -> Result[Address]:
        return await self._execute(
            "create_address", "POST", self._url(), parse_address,
            payload=data.to_payload()
        )

    async def update_address(self, address_id: AddressID, data: UpdateAddressInput) -> Result[Address]:
        return await self._execute(
            "update_address", "PUT", self._url(address_id), parse_address,
            payload=data.to_payload(), address_id=str(address_id)
        )

    async def delete_address(self, address_id: AddressID) -> Result[None]:
        return await self._execute(
            "delete_address", "DELETE", self._url(address_id), lambda response: None,
            address_id=str(address_id)
        )

    def _url(self, address_id: Optional[AddressID] = None) -> str:
        url = f"{self.base_url}{ADDRESSES_PATH}"
        if address_id is not None:
            url += f"/{address_id}"
        return url

    async def _execute(
        self,
        operation: str,
        method: str,
        url: str,
        parse: Callable[[httpx.Response], Any],
        payload: Optional[Dict[str, Any]] = None,
        **log_context: Any
    ) -> Result:
        """
        Send one logical request and normalize its outcome.

        Args:
            operation: Name used in log events
            method: HTTP method
            url: Absolute request URL
            parse: Converts a success response into the Result value
            payload: JSON body, if any
            **log_context: Extra structured fields for log events

        Returns:
            Success with the parsed value, or Failure with a user message
        """
        log = logger.bind(operation=operation, method=method, **log_context)

        async def send() -> httpx.Response:
            return await self.client.request(method, url, json=payload)

        try:
            log.info("Calling address API")
            response = await self.policy.execute(send)

            if response.is_success:
                value = parse(response)
                if isinstance(value, list):
                    log.info("Address API call succeeded", status_code=response.status_code, count=len(value))
                else:
                    log.info("Address API call succeeded", status_code=response.status_code)
                return Success(value)

            error = error_message_for(response)
            log.warning("Address API call failed", status_code=response.status_code, error=error)
            return Failure(error)

        except Exception as e:
            log.error("Address API call raised", error=str(e), error_type=type(e).__name__, exc_info=True)
            return Failure(f"An error occurred: {e}")

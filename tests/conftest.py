"""
Global pytest configuration and fixtures for Address Portal tests.
"""
import json
from typing import Callable, List, Optional
from uuid import uuid4

import httpx
import pytest

from address_portal.application.models import Address, CreateAddressInput
from address_portal.infrastructure.address_api.client import AddressApiService
from address_portal.infrastructure.resilience import (
    CircuitBreaker,
    CircuitBreakerConfig,
    ResiliencePolicy,
    RetryConfig,
    circuit_breaker_registry
)
from address_portal.shared.types import AddressID

BASE_URL = "http://address-api.test"


class FakeSleep:
    """Records requested delays instead of waiting."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingHandler:
    """MockTransport handler that records requests and replays scripted outcomes.

    Each outcome is an httpx.Response or an exception instance; the last
    outcome repeats once the script runs out.
    """

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        index = min(len(self.requests), len(self.outcomes)) - 1
        outcome = self.outcomes[index]
        if isinstance(outcome, Exception):
            raise outcome
        # Fresh response per request so scripted outcomes can repeat
        return httpx.Response(outcome.status_code, content=outcome.content, headers=outcome.headers)

    @property
    def call_count(self) -> int:
        return len(self.requests)


def json_response(status_code: int, body) -> httpx.Response:
    return httpx.Response(status_code, content=json.dumps(body).encode(), headers={"Content-Type": "application/json"})


@pytest.fixture(autouse=True)
def clear_circuit_breakers():
    """Each test starts with no shared breaker state."""
    circuit_breaker_registry.clear()
    yield
    circuit_breaker_registry.clear()


@pytest.fixture
def fake_sleep() -> FakeSleep:
    return FakeSleep()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sample_address_id() -> AddressID:
    """Sample address ID for testing."""
    return AddressID(uuid4())


@pytest.fixture
def sample_address_json(sample_address_id: AddressID) -> dict:
    """Address body as the remote API returns it."""
    return {
        "id": str(sample_address_id),
        "street": "221B Baker Street",
        "city": "London",
        "state": "Greater London",
        "postalCode": "NW1 6XE",
        "country": "United Kingdom",
    }


@pytest.fixture
def sample_address(sample_address_json: dict) -> Address:
    return Address.model_validate(sample_address_json)


@pytest.fixture
def sample_create_input() -> CreateAddressInput:
    return CreateAddressInput(
        street="742 Evergreen Terrace",
        city="Springfield",
        state="Oregon",
        postal_code="97403",
        country="United States",
    )


@pytest.fixture
def make_service(fake_sleep: FakeSleep, fake_clock: FakeClock) -> Callable[..., AddressApiService]:
    """Build an AddressApiService over a MockTransport with fake sleep and clock."""

    def factory(
        handler: RecordingHandler,
        retry_config: Optional[RetryConfig] = None,
        circuit_breaker_config: Optional[CircuitBreakerConfig] = None
    ) -> AddressApiService:
        breaker = CircuitBreaker("AddressApiTest", circuit_breaker_config or CircuitBreakerConfig(), clock=fake_clock)
        policy = ResiliencePolicy(
            "AddressApiTest",
            retry_config or RetryConfig(),
            breaker,
            sleep=fake_sleep
        )
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return AddressApiService(client, BASE_URL, policy=policy)

    return factory



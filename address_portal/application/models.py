"""
Pydantic models for the Address Portal.

These models provide validation and serialization at the two boundaries of
the application: HTML forms submitted by the user and JSON exchanged with the
remote address API. Field names from the API are matched case-insensitively.
"""

import os
from datetime import datetime
from typing import Optional, List, Dict, Any
from urllib.parse import urlparse
from uuid import UUID
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from address_portal.shared.exceptions import ConfigurationError
from address_portal.shared.types import Environment

DEFAULT_API_BASE_URL = "https://localhost:7208"
DEFAULT_SESSION_SECRET = "address-portal-development-secret"


# Configuration models
class AppConfig(BaseModel):
    """Configuration for the web application and its outbound API client."""
    title: str = "Address Portal"
    version: str = "1.0.0"
    description: str = "Manage addresses stored by the remote Address API"
    api_base_url: str = DEFAULT_API_BASE_URL
    api_timeout_seconds: float = 30.0
    session_secret_key: str = DEFAULT_SESSION_SECRET
    session_https_only: bool = False
    environment: Environment = Environment.PRODUCTION
    log_level: str = "INFO"
    log_format: str = "console"

    @property
    def is_development(self) -> bool:
        return self.environment == Environment.DEVELOPMENT

    @classmethod
    def from_env(cls) -> "AppConfig":
        """
        Build configuration from environment variables.

        Raises:
            ConfigurationError: If a variable holds an unusable value
        """
        base_url = os.getenv("ADDRESS_API_BASE_URL") or DEFAULT_API_BASE_URL
        parsed = urlparse(base_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigurationError(f"Invalid address API base URL: {base_url}")

        try:
            timeout = float(os.getenv("ADDRESS_API_TIMEOUT", "30"))
        except ValueError as e:
            raise ConfigurationError(f"ADDRESS_API_TIMEOUT must be a number: {e}")
        if timeout <= 0:
            raise ConfigurationError(f"ADDRESS_API_TIMEOUT must be positive, got: {timeout}")

        try:
            environment = Environment(os.getenv("APP_ENV", "production").lower())
        except ValueError:
            raise ConfigurationError(f"Unknown APP_ENV: {os.getenv('APP_ENV')}")

        return cls(
            api_base_url=base_url.rstrip("/"),
            api_timeout_seconds=timeout,
            session_secret_key=os.getenv("SESSION_SECRET_KEY", DEFAULT_SESSION_SECRET),
            session_https_only=os.getenv("SESSION_HTTPS_ONLY", "false").lower() == "true",
            environment=environment,
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_format=os.getenv("LOG_FORMAT", "console").lower(),
        )


# Status and Health models
class HealthStatus(str, Enum):
    """Health status enumeration."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class DependencyStatus(BaseModel):
    """Status of a remote dependency as seen by its circuit breaker."""
    name: str
    status: HealthStatus
    details: Optional[Dict[str, Any]] = None


class HealthResponse(BaseModel):
    """Health check response model."""
    status: HealthStatus
    timestamp: datetime
    version: str
    dependencies: List[DependencyStatus]


# Address models
class AddressFields(BaseModel):
    """Common address fields; accepts API field names in any letter case."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    @model_validator(mode="before")
    @classmethod
    def match_field_names_case_insensitively(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        lookup = {}
        for name, field in cls.model_fields.items():
            lookup[name.lower()] = name
            lookup[name.replace("_", "").lower()] = name
            if field.alias:
                lookup[field.alias.lower()] = name

        return {lookup.get(str(key).lower(), key): value for key, value in data.items()}


class Address(AddressFields):
    """Address record as returned by the remote API."""
    id: UUID
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None


class CreateAddressInput(AddressFields):
    """Outbound payload for creating an address."""
    street: str = Field(..., min_length=1, max_length=200)
    city: str = Field(..., min_length=1, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    postal_code: str = Field(..., min_length=1, max_length=20)
    country: str = Field(..., min_length=1, max_length=100)

    def to_payload(self) -> Dict[str, Any]:
        """Serialize to the JSON body the remote API expects."""
        return self.model_dump(by_alias=True, mode="json")


class UpdateAddressInput(CreateAddressInput):
    """Outbound payload for updating an address; the id travels in the path."""
    pass


# Labels used when reporting form errors
FIELD_LABELS = {
    "street": "Street",
    "city": "City",
    "state": "State / Region",
    "postal_code": "Postal code",
    "country": "Country",
}

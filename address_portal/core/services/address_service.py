"""
Address service interface.

This abstract interface defines the contract controllers depend on. Every
operation returns a Result; implementations never raise for expected or
unexpected failures.
"""

from abc import ABC, abstractmethod
from typing import List

from address_portal.application.models import Address, CreateAddressInput, UpdateAddressInput
from address_portal.shared.result import Result
from address_portal.shared.types import AddressID


class AddressService(ABC):
    """Service interface for address records owned by the remote API."""

    @abstractmethod
    async def list_addresses(self) -> Result[List[Address]]:
        """Retrieve every address. An empty collection is a success."""
        pass

    @abstractmethod
    async def get_address(self, address_id: AddressID) -> Result[Address]:
        """Retrieve a single address by its ID."""
        pass

    @abstractmethod
    async def create_address(self, data: CreateAddressInput) -> Result[Address]:
        """Create an address and return the stored record."""
        pass

    @abstractmethod
    async def update_address(self, address_id: AddressID, data: UpdateAddressInput) -> Result[Address]:
        """Replace the fields of an existing address."""
        pass

    @abstractmethod
    async def delete_address(self, address_id: AddressID) -> Result[None]:
        """Delete an address. Success carries no payload."""
        pass

"""
Application services.

Services expose the operations the presentation layer needs and hide the
transport used to fulfil them.
"""

from .address_service import AddressService

__all__ = [
    "AddressService"
]

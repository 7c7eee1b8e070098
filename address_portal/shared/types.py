"""
Type definitions for the Address Portal.

This module contains the custom type definitions shared across layers.
"""

from typing import NewType
from uuid import UUID
from enum import Enum

# Identifier assigned by the remote address API
AddressID = NewType('AddressID', UUID)

DelaySeconds = NewType('DelaySeconds', float)


class Environment(str, Enum):
    """Deployment environments recognised by the web shell."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class NoticeLevel(str, Enum):
    """Categories of one-shot flash notices."""
    SUCCESS = "success"
    ERROR = "error"

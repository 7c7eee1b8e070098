"""
Result type returned by every service operation.

A Result is either Success carrying a value or Failure carrying a
user-presentable message. Expected failure paths are values, not exceptions,
so callers branch on the variant instead of catching.

Usage:
    result = await service.get_address(address_id)
    if isinstance(result, Failure):
        show_error(result.message)
    else:
        render(result.value)
"""

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar('T')


@dataclass(frozen=True)
class Success(Generic[T]):
    """Successful outcome. Operations without a payload carry None."""
    value: T = None

    @property
    def is_success(self) -> bool:
        return True

    @property
    def is_failure(self) -> bool:
        return False


@dataclass(frozen=True)
class Failure:
    """Failed outcome with the message to show the user."""
    message: str

    @property
    def is_success(self) -> bool:
        return False

    @property
    def is_failure(self) -> bool:
        return True


Result = Union[Success[T], Failure]

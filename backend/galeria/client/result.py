"""Explicit success/failure values returned by the API client."""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """A successful call and its value."""

    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    """A failed call: a readable reason and the HTTP status when there was one."""

    reason: str
    status_code: Optional[int] = None

    @property
    def ok(self) -> bool:
        return False


Result = Union[Ok[T], Err]


def unwrap_or(result: "Result[T]", default: T) -> T:
    """Return the value of an Ok, or `default` for an Err."""
    return result.value if isinstance(result, Ok) else default

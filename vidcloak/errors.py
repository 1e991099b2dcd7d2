"""Failure kinds and the result type threaded through the proxy stages."""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class FailureKind(Enum):
    """Every way a proxied request can fail, with its HTTP status and public message."""

    MISSING_TOKEN = (400, "Missing video ID")
    INVALID_TOKEN = (400, "Invalid video ID")
    INVALID_URL = (400, "Invalid URL")
    UNAUTHORIZED_DOMAIN = (403, "Unauthorized domain")
    SERVER_ERROR = (500, "Server error")

    def __init__(self, status: int, message: str) -> None:
        self.status = status
        self.message = message


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful stage result."""

    value: T


@dataclass(frozen=True)
class Err:
    """Failed stage result."""

    kind: FailureKind
    detail: str | None = None


Result = Ok[T] | Err


class OriginUnreachableError(Exception):
    """Raised by a fetcher when the origin cannot be reached (DNS, connect, TLS, timeout)."""

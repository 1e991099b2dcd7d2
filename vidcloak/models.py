"""Data models for VidCloak."""

from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass, field
from typing import Annotated, Protocol

from pydantic import BaseModel, Field, field_validator


class IncomingRequest(BaseModel):
    """Client request as seen by the proxy core."""

    method: Annotated[str, Field(description="HTTP method")]
    query: Annotated[dict[str, str], Field(description="Query parameters (first value wins)")] = {}
    headers: Annotated[dict[str, str], Field(description="Request headers, keys lower-cased")] = {}

    @field_validator("method")
    @classmethod
    def _upper_method(cls, value: str) -> str:
        return value.upper()

    @field_validator("headers", mode="before")
    @classmethod
    def _lower_header_names(cls, value: Mapping[str, str]) -> dict[str, str]:
        headers: dict[str, str] = {}
        for name, header_value in value.items():
            headers.setdefault(name.lower(), header_value)
        return headers

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        return self.headers.get(name.lower())


class OutgoingRequest(BaseModel):
    """Request sent to the origin."""

    method: Annotated[str, Field(description="HTTP method, mirrors the client's")]
    url: Annotated[str, Field(description="Decoded origin URL")]
    headers: Annotated[dict[str, str], Field(description="Exact header set sent upstream")] = {}

    def __repr__(self) -> str:
        # The origin URL must not end up in logs or tracebacks
        return f"OutgoingRequest(method={self.method!r}, headers={self.headers!r})"

    __str__ = __repr__


class ErrorResponse(BaseModel):
    """JSON body returned for every failure."""

    error: Annotated[str, Field(description="Public error message")]
    message: Annotated[str | None, Field(description="Underlying error detail")] = None


class OriginResponse(Protocol):
    """Response from the origin; the relay owns it until it is closed."""

    status: int
    headers: Mapping[str, str]

    def iter_chunks(self) -> AsyncIterator[bytes]: ...

    def close(self) -> None: ...


@dataclass
class ProxyResponse:
    """Terminal artifact of the pipeline: a JSON error or a relayed origin stream."""

    status: int
    headers: dict[str, str] = field(default_factory=dict)
    error: ErrorResponse | None = None
    origin: OriginResponse | None = None

    @property
    def is_stream(self) -> bool:
        return self.origin is not None

    async def iter_body(self) -> AsyncIterator[bytes]:
        """Yield the relayed body chunk by chunk."""
        if self.origin is None:
            return
        async for chunk in self.origin.iter_chunks():
            yield chunk

    def close(self) -> None:
        """Release the origin stream, if any. Safe to call more than once."""
        if self.origin is not None:
            self.origin.close()

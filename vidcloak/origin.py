"""Outbound side of the proxy: request building and the origin transport."""

import asyncio
import os
import socket
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Mapping

import aiohttp
from yarl import URL

from .errors import OriginUnreachableError
from .logging import get_logger
from .models import IncomingRequest, OriginResponse, OutgoingRequest

logger = get_logger(__name__)

USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
ACCEPT_LANGUAGE = "en-US,en;q=0.9"
DEFAULT_ACCEPT = "*/*"


def build_origin_request(url: URL, incoming: IncomingRequest) -> OutgoingRequest:
    """
    Build the outbound request for a validated origin URL.

    Only Accept and Range are taken from the client; cookies, auth and every
    other inbound header stay behind.
    """
    return OutgoingRequest(
        method=incoming.method,
        url=str(url),
        headers={
            "User-Agent": USER_AGENT,
            "Accept": incoming.header("Accept") or DEFAULT_ACCEPT,
            "Accept-Language": ACCEPT_LANGUAGE,
            "Range": incoming.header("Range") or "",
        },
    )


class OriginFetcher(ABC):
    """Abstract interface for fetching from the origin."""

    @abstractmethod
    async def fetch(self, request: OutgoingRequest) -> OriginResponse:
        """
        Send a request to the origin and return once headers have arrived.

        Args:
            request: Request to send

        Returns:
            Origin response; the caller owns it and must close it

        Raises:
            OriginUnreachableError: If the origin cannot be reached
        """
        pass


class AiohttpOriginResponse:
    """Origin response backed by an aiohttp ClientResponse."""

    def __init__(self, response: aiohttp.ClientResponse, chunk_size: int):
        self._response = response
        self._chunk_size = chunk_size
        self._consumed = False
        self.status: int = response.status
        self.headers: Mapping[str, str] = response.headers

    async def iter_chunks(self) -> AsyncIterator[bytes]:
        async for chunk in self._response.content.iter_chunked(self._chunk_size):
            yield chunk
        self._consumed = True

    def close(self) -> None:
        if self._consumed:
            # Fully read: hand the connection back to the pool
            self._response.release()
        else:
            self._response.close()


class AiohttpOriginFetcher(OriginFetcher):
    """aiohttp-based implementation of the origin transport."""

    def __init__(self, session: aiohttp.ClientSession, chunk_size: int = 64 * 1024):
        """
        Initialize the fetcher.

        Args:
            session: Open client session, owned by the application lifecycle
            chunk_size: Size of the chunks handed to the relay
        """
        self._session = session
        self._chunk_size = chunk_size

    async def fetch(self, request: OutgoingRequest) -> AiohttpOriginResponse:
        logger.debug(f"Fetching origin with method {request.method}")

        try:
            response = await self._session.request(
                request.method,
                URL(request.url, encoded=True),
                headers=request.headers,
                allow_redirects=True,
            )
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as exc:
            raise OriginUnreachableError(describe_failure(exc)) from exc

        logger.debug(f"Origin answered with status {response.status}")

        return AiohttpOriginResponse(response, self._chunk_size)


def describe_failure(exc: BaseException) -> str:
    """
    Short text for an origin failure.

    aiohttp messages embed the request URL or the host and port, so the text
    is rebuilt from the exception type and errno only.
    """
    if isinstance(exc, aiohttp.TooManyRedirects):
        return "Too many redirects"
    if isinstance(exc, aiohttp.ClientSSLError):
        return "TLS handshake with origin failed"
    if isinstance(exc, aiohttp.ClientConnectorError):
        os_error = exc.os_error
        if isinstance(os_error, socket.gaierror):
            return "Cannot resolve origin host"
        if os_error.errno:
            return f"Cannot connect to origin: {os.strerror(os_error.errno)}"
        return "Cannot connect to origin"
    if isinstance(exc, asyncio.TimeoutError):
        return "Origin request timed out"
    if isinstance(exc, aiohttp.ClientResponseError):
        return f"Origin response error: status {exc.status}"
    return exc.__class__.__name__


def create_origin_session(timeout: float | None = None) -> aiohttp.ClientSession:
    """
    Create the shared client session used for origin requests.

    Bodies are relayed byte-for-byte, so the session neither decompresses nor
    asks for compression on its own.
    """
    kwargs = {}
    if timeout is not None:
        kwargs["timeout"] = aiohttp.ClientTimeout(total=timeout)

    return aiohttp.ClientSession(
        auto_decompress=False,
        skip_auto_headers=("Accept-Encoding",),
        **kwargs,
    )

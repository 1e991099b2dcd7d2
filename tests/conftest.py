import pytest
from multidict import CIMultiDict

from vidcloak.config import Settings
from vidcloak.models import OutgoingRequest
from vidcloak.origin import OriginFetcher


class FakeOriginResponse:
    """In-memory origin response that remembers whether it was closed."""

    def __init__(self, status: int = 200, headers: dict | None = None, chunks: list[bytes] | None = None):
        self.status = status
        self.headers = CIMultiDict(headers or {})
        self.chunks = chunks if chunks is not None else [b"video-bytes"]
        self.closed = False

    async def iter_chunks(self):
        for chunk in self.chunks:
            yield chunk

    def close(self) -> None:
        self.closed = True


class RecordingFetcher(OriginFetcher):
    """Fetcher that records outgoing requests and replays a canned response."""

    def __init__(self, response: FakeOriginResponse | None = None, error: Exception | None = None):
        self.response = response or FakeOriginResponse()
        self.error = error
        self.requests: list[OutgoingRequest] = []

    async def fetch(self, request: OutgoingRequest) -> FakeOriginResponse:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def fetcher():
    return RecordingFetcher()


@pytest.fixture
def settings():
    return Settings(allowed_domains=[], expose_error_detail=True)

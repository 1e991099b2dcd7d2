"""Request translation and response relay core.

``translate`` is pure: token -> validated URL -> outbound request, with each
stage returning ``Ok`` or ``Err``. ``ProxyPipeline`` adds the origin fetch
and turns the outcome into a ``ProxyResponse``.
"""

from .errors import Err, FailureKind, Ok, OriginUnreachableError, Result
from .logging import get_logger
from .models import ErrorResponse, IncomingRequest, OriginResponse, OutgoingRequest, ProxyResponse
from .origin import OriginFetcher, build_origin_request
from .tokens import decode_token
from .validation import AllowlistPolicy, validate_origin_url

logger = get_logger(__name__)

TOKEN_PARAM = "vid"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, HEAD, OPTIONS",
    "Access-Control-Allow-Headers": "Range, Content-Type",
}

CACHE_CONTROL = "public, max-age=3600"
DEFAULT_CONTENT_TYPE = "video/mp4"
DEFAULT_ACCEPT_RANGES = "bytes"

# Forwarded only when the origin sends them
PASSTHROUGH_HEADERS = ("Content-Length", "Content-Range")


def is_preflight(method: str) -> bool:
    return method.upper() == "OPTIONS"


def preflight_response() -> ProxyResponse:
    """CORS preflight answer: 200, no body, no outbound I/O."""
    return ProxyResponse(status=200, headers=dict(CORS_HEADERS))


def translate(incoming: IncomingRequest, policy: AllowlistPolicy) -> Result[OutgoingRequest]:
    """Turn a client request into the origin request, or the reason it can't be."""
    decoded = decode_token(incoming.query.get(TOKEN_PARAM))
    if isinstance(decoded, Err):
        return decoded

    validated = validate_origin_url(decoded.value, policy)
    if isinstance(validated, Err):
        return validated

    return Ok(build_origin_request(validated.value, incoming))


def error_response(failure: Err, expose_detail: bool = True) -> ProxyResponse:
    """Render a failure as the JSON error response."""
    payload = ErrorResponse(error=failure.kind.message)
    if expose_detail and failure.detail is not None:
        payload.message = failure.detail

    return ProxyResponse(
        status=failure.kind.status,
        headers={"Content-Type": "application/json"},
        error=payload,
    )


def relay_headers(origin: OriginResponse) -> dict[str, str]:
    """Assemble the client-facing headers for a relayed origin response."""
    headers = {
        "Content-Type": origin.headers.get("Content-Type") or DEFAULT_CONTENT_TYPE,
        "Accept-Ranges": origin.headers.get("Accept-Ranges") or DEFAULT_ACCEPT_RANGES,
        **CORS_HEADERS,
        "Cache-Control": CACHE_CONTROL,
    }

    for name in PASSTHROUGH_HEADERS:
        value = origin.headers.get(name)
        if value is not None:
            headers[name] = value

    return headers


class ProxyPipeline:
    """
    Runs one proxied request end to end.

    Holds no per-request state; a single instance serves every request.
    """

    def __init__(
        self,
        policy: AllowlistPolicy,
        fetcher: OriginFetcher,
        expose_error_detail: bool = True,
    ) -> None:
        self.policy = policy
        self.fetcher = fetcher
        self.expose_error_detail = expose_error_detail

    def fail(self, kind: FailureKind, detail: str | None = None) -> ProxyResponse:
        return error_response(Err(kind, detail), self.expose_error_detail)

    async def handle(self, incoming: IncomingRequest) -> ProxyResponse:
        """Translate, fetch and relay. The origin stream is owned by the returned response."""
        if is_preflight(incoming.method):
            return preflight_response()

        outcome = translate(incoming, self.policy)
        if isinstance(outcome, Err):
            logger.info(f"Rejected {incoming.method} request: {outcome.kind.name}")
            return error_response(outcome, self.expose_error_detail)

        try:
            origin = await self.fetcher.fetch(outcome.value)
        except OriginUnreachableError as exc:
            logger.warning(f"Origin unreachable: {exc.__class__.__name__}")
            return self.fail(FailureKind.SERVER_ERROR, str(exc))

        logger.info(f"Relaying origin status {origin.status} for {incoming.method} request")

        return ProxyResponse(
            status=origin.status,
            headers=relay_headers(origin),
            origin=origin,
        )

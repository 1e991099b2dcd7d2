"""Middleware for CORS preflight."""

from aiohttp import web
from aiohttp.typedefs import Handler

from .logging import get_logger
from .pipeline import is_preflight, preflight_response

logger = get_logger(__name__)


@web.middleware
async def preflight_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    """Answer OPTIONS on any path before routing; never touches the origin."""
    if is_preflight(request.method):
        logger.debug(f"Preflight for path {request.path}")
        preflight = preflight_response()
        return web.Response(status=preflight.status, headers=preflight.headers)

    return await handler(request)

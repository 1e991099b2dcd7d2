"""HTTP request handlers."""

import uuid

import aiohttp
from aiohttp import web

from .errors import FailureKind
from .logging import get_logger
from .models import IncomingRequest, ProxyResponse
from .pipeline import ProxyPipeline

logger = get_logger(__name__)


pipeline_key = web.AppKey("pipeline", ProxyPipeline)


class ProxyHandlers:
    """Adapts aiohttp requests to the proxy pipeline and writes its responses."""

    def _get_pipeline(self, request: web.Request) -> ProxyPipeline:
        """Get the pipeline from the application state."""
        pipeline = request.app.get(pipeline_key)
        if pipeline is None:
            raise RuntimeError("Proxy pipeline is not initialized")
        return pipeline

    async def handle_proxied_request(self, request: web.Request) -> web.StreamResponse:
        """Handle GET/HEAD requests carrying a token."""
        request_id = str(uuid.uuid4())
        pipeline = self._get_pipeline(request)
        logger.info(f"Incoming {request.method} request {request_id}")

        try:
            incoming = self._build_incoming_request(request)
            proxy_response = await pipeline.handle(incoming)
        except Exception as exc:
            # exception text may carry request data; log the type only
            logger.error(f"Request {request_id} failed due to unexpected error: {exc.__class__.__name__}")
            proxy_response = pipeline.fail(FailureKind.SERVER_ERROR, str(exc))

        if proxy_response.error is not None:
            return web.json_response(
                proxy_response.error.model_dump(exclude_none=True),
                status=proxy_response.status,
            )

        return await self._relay(request, request_id, proxy_response)

    def _build_incoming_request(self, request: web.Request) -> IncomingRequest:
        """Convert aiohttp request -> IncomingRequest."""
        query = {}
        for name, value in request.query.items():
            query.setdefault(name, value)

        return IncomingRequest(
            method=request.method,
            query=query,
            headers=request.headers,
        )

    async def _relay(
        self,
        request: web.Request,
        request_id: str,
        proxy_response: ProxyResponse,
    ) -> web.StreamResponse:
        """
        Stream the origin body to the client.

        The origin response is closed on every exit path, including the
        cancellation aiohttp raises when the client goes away.
        """
        response = web.StreamResponse(status=proxy_response.status, headers=proxy_response.headers)
        sent = 0

        try:
            await response.prepare(request)

            if request.method != "HEAD":
                async for chunk in proxy_response.iter_body():
                    await response.write(chunk)
                    sent += len(chunk)

            await response.write_eof()
        except ConnectionResetError:
            logger.info(f"Client went away during request {request_id} after {sent} bytes")
            raise
        except aiohttp.ClientError as exc:
            logger.warning(f"Origin stream broke during request {request_id}: {exc.__class__.__name__}")
            raise
        finally:
            proxy_response.close()

        logger.debug(f"Request {request_id} relayed {sent} bytes")
        return response

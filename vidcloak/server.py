"""
VidCloak Server - streaming media proxy
Relays media from origins whose URLs are carried as opaque tokens.
"""

import asyncio
from collections.abc import AsyncIterator

import uvloop
from aiohttp import web

from .config import Settings, get_settings
from .handlers import ProxyHandlers, pipeline_key
from .logging import get_logger, setup_logging
from .middleware import preflight_middleware
from .origin import AiohttpOriginFetcher, OriginFetcher, create_origin_session
from .pipeline import ProxyPipeline
from .validation import AllowlistPolicy

logger = get_logger(__name__)


class VidCloakServer:
    """Main server class wiring the proxy pipeline into an aiohttp application."""

    def __init__(self, settings: Settings | None = None, fetcher: OriginFetcher | None = None) -> None:
        """
        Args:
            settings: Application settings (default: loaded from the environment)
            fetcher: Origin transport; when omitted an aiohttp session is
                opened on startup and closed on cleanup
        """
        self.settings = settings or get_settings()
        self.policy = AllowlistPolicy.from_settings(self.settings)
        self.fetcher = fetcher
        self.handlers = ProxyHandlers()

    async def origin_context(self, app: web.Application) -> AsyncIterator[None]:
        """Manage the origin session and pipeline lifecycle (startup/shutdown)."""
        session = None
        fetcher = self.fetcher
        if fetcher is None:
            session = create_origin_session(self.settings.origin_timeout)
            fetcher = AiohttpOriginFetcher(session, chunk_size=self.settings.chunk_size)

        app[pipeline_key] = ProxyPipeline(
            self.policy,
            fetcher,
            expose_error_detail=self.settings.expose_error_detail,
        )
        logger.info(f"Allowlist entries: {len(self.policy.entries) or 'none (all hosts allowed)'}")

        yield

        if session is not None:
            await session.close()
            logger.info("Origin session closed")

    def setup_routes(self, app: web.Application) -> None:
        """Configure application routes. GET routes also answer HEAD."""
        app.router.add_get("/{tail:.*}", self.handlers.handle_proxied_request)

    def create_app(self) -> web.Application:
        """Create and configure the proxy application."""
        app = web.Application(middlewares=[preflight_middleware])
        self.setup_routes(app)
        app.cleanup_ctx.append(self.origin_context)
        return app

    async def start(self) -> None:
        """Start the VidCloak server."""
        app = self.create_app()

        runner = web.AppRunner(app, access_log=None)
        await runner.setup()

        site = web.TCPSite(runner, self.settings.host, self.settings.port)
        await site.start()

        logger.info(f"VidCloak server started on http://{self.settings.host}:{self.settings.port}")

        # Keep running
        try:
            await asyncio.Event().wait()
        finally:
            await runner.cleanup()


def create_app(settings: Settings | None = None, fetcher: OriginFetcher | None = None) -> web.Application:
    """Build the application without starting a listener (tests, external runners)."""
    return VidCloakServer(settings, fetcher).create_app()


def main() -> None:
    """Entry point for the server."""
    # Install uvloop as the default event loop
    uvloop.install()

    settings = get_settings()
    setup_logging(settings.log_level)
    server = VidCloakServer(settings)

    try:
        asyncio.run(server.start())
    except KeyboardInterrupt:
        logger.info("Server stopped by user")


if __name__ == "__main__":
    main()

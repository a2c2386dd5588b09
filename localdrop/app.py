"""
LocalDrop — FastAPI application factory.

Wires the routes and the CORS/error boundary to a session context, resolves
the device address in the background and keeps the LAN advertisement in step
with the server and with every later address change.
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from localdrop.api import middleware
from localdrop.api.routes import router
from localdrop.config import APP_NAME
from localdrop.context import SessionContext
from localdrop.discovery.coordinator import DiscoveryCoordinator

logger = logging.getLogger(__name__)


async def _resolve_address(ctx: SessionContext) -> None:
    ctx.set_ip(await asyncio.to_thread(ctx.resolve_ip))


def create_app(ctx: SessionContext) -> FastAPI:
    coordinator = None
    if ctx.advertiser is not None:
        coordinator = DiscoveryCoordinator(ctx.advertiser, port=ctx.address.port)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Start/stop address resolution and discovery."""
        logger.info(f"Starting {APP_NAME} on port {ctx.address.port}")
        loop = asyncio.get_running_loop()

        # set_ip may be called from any thread; the coordinator lives on this loop
        def on_address(ip: str | None) -> None:
            asyncio.run_coroutine_threadsafe(coordinator.address_changed(ip), loop)

        resolver = None
        try:
            if coordinator:
                await coordinator.address_changed(ctx.address.ip)
                await coordinator.server_started()
                ctx.add_address_listener(on_address)
            if ctx.address.ip is None:
                resolver = asyncio.create_task(_resolve_address(ctx))

            yield

        finally:
            logger.info(f"Shutting down {APP_NAME}")
            if resolver:
                resolver.cancel()
            if coordinator:
                ctx.remove_address_listener(on_address)
                await coordinator.server_stopped()

    app = FastAPI(
        title=APP_NAME,
        version="1.0.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.context = ctx

    middleware.install(app)
    app.include_router(router)
    return app

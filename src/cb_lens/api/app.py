"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from cb_lens.api.engagement import router as engagement_router
from cb_lens.api.progress import router as progress_router
from cb_lens.api.scans import router as scans_router
from cb_lens.app_logging import configure_logging
from cb_lens.containers import AppContainer
from cb_lens.domain.errors import CbLensError


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(CbLensError)
    async def handle_core_error(request: Request, exc: CbLensError) -> JSONResponse:
        logger.warning("Rejected %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=422,
            content={"detail": str(exc), "error": type(exc).__name__},
        )

    app.include_router(scans_router)
    app.include_router(progress_router)
    app.include_router(engagement_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app

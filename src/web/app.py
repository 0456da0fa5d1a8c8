"""
FastAPI application factory for the QR scan monitor.

Routes:
- /api/health -> liveness and warnings
- /api/scan/* -> start / stop / reset and read-only snapshots
- /api/viewport -> container size reports from the display client
- /api/config -> effective configuration
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pipeline.engine import ScanOrchestrator
from .routes import api

logger = logging.getLogger(__name__)


def create_app(orchestrator: ScanOrchestrator, autostart: bool = False) -> FastAPI:
    """
    Create the FastAPI app around an orchestrator.

    The orchestrator is opened on startup (capture source + memory reaper)
    and closed on shutdown, on the server's event loop.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            await orchestrator.open()
        except RuntimeError as e:
            # Keep serving so /api/health can report the camera as offline.
            logger.error(f"Failed to open capture source: {e}")
        else:
            if autostart:
                orchestrator.start()
        try:
            yield
        finally:
            await orchestrator.close()

    app = FastAPI(
        title="QR Scan Monitor",
        version="0.1.0",
        description="Deduplicated barcode scanning over a live video feed",
        lifespan=lifespan,
    )
    app.state.orchestrator = orchestrator

    # CORS for development (Vite dev server)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api.router, prefix="/api")
    logger.debug("API routes registered")
    return app

# src/veltis/main.py
"""Main entry point for the VELTIS authentication API."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from veltis import __version__
from veltis.api.v1 import auth_router, users_router
from veltis.core.settings import settings
from veltis.services.nonce_store import VolatileNonceStore

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Wallet-signature authentication API",
    version=__version__,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(auth_router, prefix="/api/v1")
app.include_router(users_router, prefix="/api/v1")


@app.on_event("startup")
async def on_startup() -> None:
    store = VolatileNonceStore(sweep_interval_seconds=settings.nonce_sweep_interval_seconds)
    await store.start()
    app.state.volatile_nonce_store = store
    logger.info("%s started", settings.app_name)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    store: VolatileNonceStore | None = getattr(app.state, "volatile_nonce_store", None)
    if store:
        await store.stop()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": __version__,
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("veltis.main:app", host="0.0.0.0", port=8000, reload=settings.debug)

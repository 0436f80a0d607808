"""FastAPI application for the Podium athlete registry.

Provides REST API endpoints wrapping the podium package for:
- Athlete registration and lookup
- Achievement recording
- Owner verification of athletes and achievements
- The notification log
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from podium import __version__
from podium.config import get_settings
from podium.log import configure_logging
from podium.registry.errors import RegistryError
from web.backend.app.routers import athletes, events

configure_logging(get_settings().LOG_LEVEL)

app = FastAPI(
    title="Podium API",
    description=(
        "REST API for the Podium athlete registry. "
        "Callers identify themselves with the X-Caller-Id header."
    ),
    version=__version__,
)

# ---------------------------------------------------------------------------
# CORS middleware (allow all origins for development)
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Include routers
# ---------------------------------------------------------------------------
app.include_router(athletes.router)
app.include_router(events.router)


# ---------------------------------------------------------------------------
# Registry errors
# ---------------------------------------------------------------------------


@app.exception_handler(RegistryError)
async def registry_error_handler(request: Request, exc: RegistryError):
    logger.debug("{} {} -> {} {}", request.method, request.url.path, exc.status_code, exc.kind)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# ---------------------------------------------------------------------------
# Root and health-check endpoints
# ---------------------------------------------------------------------------


@app.get("/", tags=["meta"])
async def root():
    """Return basic API information."""
    return {
        "name": "Podium API",
        "version": __version__,
        "description": "Athlete achievement registry REST API",
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


@app.get("/health", tags=["meta"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}

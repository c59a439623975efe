"""FastAPI application for the modrisk admin API.

Provides REST endpoints wrapping the modrisk package for:
- Banned keyword management
- Content submission and flag review
- Company risk assessments and the high-risk sweep
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from modrisk import __version__
from modrisk.errors import (
    ConflictError,
    InvalidTransitionError,
    ModRiskError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from web.backend.app.routers import moderation, risk

logger = logging.getLogger(__name__)

app = FastAPI(
    title="modrisk API",
    description=(
        "Admin REST API for content moderation and company risk scoring. "
        "Admin routes expect the acting admin id in the X-Admin-Id header."
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
# Error mapping
# ---------------------------------------------------------------------------

_STATUS_FOR_ERROR: list[tuple[type[ModRiskError], int]] = [
    (ValidationError, 422),
    (NotFoundError, 404),
    (InvalidTransitionError, 409),
    (ConflictError, 409),
    (StorageError, 500),
]


@app.exception_handler(ModRiskError)
async def modrisk_error_handler(request: Request, exc: ModRiskError) -> JSONResponse:
    status_code = next((code for cls, code in _STATUS_FOR_ERROR if isinstance(exc, cls)), 400)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    body = {"detail": exc.message, "error": type(exc).__name__, "status_code": status_code}
    if isinstance(exc, InvalidTransitionError):
        body["current_status"] = exc.current_status
        body["reviewed_by"] = exc.reviewed_by
        body["reviewed_at"] = exc.reviewed_at
    return JSONResponse(status_code=status_code, content=body)


# ---------------------------------------------------------------------------
# Include routers
# ---------------------------------------------------------------------------
app.include_router(moderation.router)
app.include_router(risk.router)


# ---------------------------------------------------------------------------
# Root and health-check endpoints
# ---------------------------------------------------------------------------


@app.get("/", tags=["meta"])
async def root():
    """Return basic API information."""
    return {
        "name": "modrisk API",
        "version": __version__,
        "description": "Content moderation and company risk scoring",
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


@app.get("/health", tags=["meta"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}

"""FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from red_tea import __version__
from red_tea.api import api_router
from red_tea.config import get_settings
from red_tea.database import create_tables
from red_tea.schemas.admin import CascadeReportResponse
from red_tea.services.base import APIError, NotFoundError, RateLimitError
from red_tea.services.errors import (
    CascadeError,
    RecordNotFoundError,
    UnauthenticatedError,
    UnauthorizedError,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan - runs on startup and shutdown."""
    # Startup
    logger.info("Starting %s v%s", settings.app_name, __version__)
    logger.info("Debug mode: %s", settings.debug)
    logger.info("Database: %s", settings.database_url.split("///")[-1])  # Hide path details
    logger.info(
        "Identity provider API: %s",
        "configured" if settings.identity_api_secret_key else "NOT CONFIGURED",
    )
    logger.info("File storage: %s", "configured" if settings.storage_base_url else "NOT CONFIGURED")

    # Validate and log warnings
    warnings = settings.validate_runtime_config()
    if warnings:
        logger.warning("Configuration warnings:")
        for warning in warnings:
            logger.warning("  - %s", warning)
    else:
        logger.info("Configuration validation passed - no warnings")

    if settings.debug:
        await create_tables()
        logger.info("Database tables created")

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Application shutting down")


app = FastAPI(
    title=settings.app_name,
    version=__version__,
    debug=settings.debug,
    lifespan=lifespan,
)


@app.exception_handler(UnauthenticatedError)
async def unauthenticated_error_handler(
    _request: Request, exc: UnauthenticatedError
) -> JSONResponse:
    """Handle requests without a verifiable principal."""
    return JSONResponse(
        status_code=401,
        content={"detail": str(exc)},
        headers={"WWW-Authenticate": "Bearer"},
    )


@app.exception_handler(UnauthorizedError)
async def unauthorized_error_handler(_request: Request, exc: UnauthorizedError) -> JSONResponse:
    """Handle principals lacking the required role, approval or ownership."""
    return JSONResponse(status_code=403, content={"detail": str(exc)})


@app.exception_handler(RecordNotFoundError)
async def record_not_found_error_handler(
    _request: Request, exc: RecordNotFoundError
) -> JSONResponse:
    """Handle references to missing users, posts or comments."""
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(CascadeError)
async def cascade_error_handler(_request: Request, exc: CascadeError) -> JSONResponse:
    """Handle a deletion that stopped at a required step.

    A failure at an external service (identity provider, storage) is a 502;
    anything else is a 500. The body carries the per-step report.
    """
    external = any(outcome.external for outcome in exc.report.failed if outcome.required)
    return JSONResponse(
        status_code=502 if external else 500,
        content={
            "detail": str(exc),
            "report": CascadeReportResponse.from_report(exc.report).model_dump(),
        },
    )


@app.exception_handler(NotFoundError)
async def not_found_error_handler(_request: Request, exc: NotFoundError) -> JSONResponse:
    """Handle NotFoundError exceptions globally."""
    return JSONResponse(
        status_code=404,
        content={"detail": str(exc) or "Resource not found"},
    )


@app.exception_handler(RateLimitError)
async def rate_limit_error_handler(_request: Request, exc: RateLimitError) -> JSONResponse:
    """Handle RateLimitError exceptions globally."""
    headers = {}
    if exc.retry_after:
        headers["Retry-After"] = str(exc.retry_after)
    return JSONResponse(
        status_code=429,
        content={"detail": str(exc) or "Rate limit exceeded"},
        headers=headers,
    )


@app.exception_handler(APIError)
async def api_error_handler(_request: Request, exc: APIError) -> JSONResponse:
    """Handle APIError exceptions globally."""
    return JSONResponse(
        status_code=exc.status_code or 500,
        content={"detail": str(exc) or "External API error"},
    )


# Include API router
app.include_router(api_router)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the API is running."""
    return {"status": "healthy", "version": __version__}

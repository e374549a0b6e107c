"""FastAPI application for the StayHub booking engine.

This package provides REST endpoints for:
- Health checks
- Property calendars, overrides, quotes and alternative dates
- Booking creation and lifecycle

Runs under uvicorn locally and under AWS Lambda through Mangum.
"""

from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from mangum import Mangum

from stayhub import __version__
from stayhub.config import get_settings
from stayhub.utils.logging import configure_logging
from stayhub_api.exceptions import register_exception_handlers
from stayhub_api.middleware.correlation import CORRELATION_ID_HEADER, CorrelationIdMiddleware
from stayhub_api.routes.availability import router as availability_router
from stayhub_api.routes.bookings import router as bookings_router

settings = get_settings()
configure_logging(settings.log_level)

app = FastAPI(
    title="StayHub Booking API",
    description="Availability and booking engine for vacation rentals",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[CORRELATION_ID_HEADER],
)
app.add_middleware(CorrelationIdMiddleware)

# Register exception handlers for consistent error responses
register_exception_handlers(app)

app.include_router(availability_router, prefix="/api")
app.include_router(bookings_router, prefix="/api")


@app.get("/health")
async def health() -> dict[str, Any]:
    """Liveness check."""
    return {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat(),
        "service": "stayhub-api",
    }


@app.get("/api")
async def api_root() -> dict[str, Any]:
    """API index."""
    return {
        "message": "StayHub API",
        "version": __version__,
        "environment": get_settings().environment,
    }


# Lambda handler - Mangum wraps FastAPI for AWS Lambda + API Gateway
handler = Mangum(app, lifespan="off")


def run_server(host: str = "0.0.0.0", port: int | None = None, reload: bool = False) -> None:
    """Run the FastAPI server.

    Args:
        host: Host to bind to (default: 0.0.0.0)
        port: Port to listen on (default: PORT, 8000)
        reload: Enable hot reload for development (default: False)
    """
    import uvicorn

    port = port or get_settings().port
    if reload:
        # Use string reference for reload mode (uvicorn requirement)
        uvicorn.run("stayhub_api.main:app", host=host, port=port, reload=True, reload_dirs=["src"])
    else:
        uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()

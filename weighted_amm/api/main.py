"""FastAPI application serving weighted pool quotes."""

import os

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from weighted_amm import __version__
from weighted_amm.api.endpoints import router
from weighted_amm.errors import PoolError
from weighted_amm.models.quotes import ErrorResponse

# Configuration from environment variables with sensible defaults
HOST = os.environ.get("WAMM_HOST", "0.0.0.0")
PORT = int(os.environ.get("WAMM_PORT", "8000"))
DEBUG = os.environ.get("WAMM_DEBUG", "false").lower() in ("true", "1", "yes")

# Maximum request body size (64 KB); quote requests are a handful of integers
MAX_REQUEST_SIZE = 64 * 1024

structlog.configure(
    processors=[
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(),
    ],
)

logger = structlog.get_logger()

app = FastAPI(
    title="Weighted AMM",
    description="Quotes from the weighted constant-value bonding curve",
    version=__version__,
)


@app.middleware("http")
async def limit_request_size(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Reject requests with body larger than MAX_REQUEST_SIZE."""
    content_length = request.headers.get("content-length")
    if content_length and int(content_length) > MAX_REQUEST_SIZE:
        return JSONResponse(status_code=413, content={"detail": "Request too large"})
    return await call_next(request)


@app.exception_handler(PoolError)
async def pool_error_handler(request: Request, exc: PoolError) -> JSONResponse:
    """Report curve math failures as 422 with the error class name."""
    logger.info("quote_rejected", path=request.url.path, error=type(exc).__name__)
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(error=type(exc).__name__, detail=str(exc)).model_dump(),
    )


app.include_router(router)


@app.get("/health")
async def health() -> dict[str, object]:
    """Health check endpoint."""
    return {"status": "ok", "version": __version__}


def run() -> None:
    """Run the quote API server.

    Configuration via environment variables:
    - WAMM_HOST: Host to bind to (default: 0.0.0.0)
    - WAMM_PORT: Port to bind to (default: 8000)
    - WAMM_DEBUG: Enable debug/reload mode (default: false)
    """
    uvicorn.run(
        "weighted_amm.api.main:app",
        host=HOST,
        port=PORT,
        reload=DEBUG,
    )


if __name__ == "__main__":
    run()

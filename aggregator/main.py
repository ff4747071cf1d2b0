"""
FastAPI application main module.
Middleware (request context, CORS), error translation and lifespan wiring of
the shared upstream HTTP client and the campaign aggregator.
"""
from fastapi import FastAPI, Request, Response
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import time
from contextlib import asynccontextmanager
from typing import Dict, Optional
from aggregator.api.v1 import api_router
from aggregator.config import (
    CORS_ALLOW_HEADERS,
    CORS_ALLOW_METHODS,
    CORS_ORIGINS,
    LOG_FILE,
    LOG_LEVEL,
    SERVICE_NAME,
    SERVICE_VERSION,
    load_aggregator_config,
)
from aggregator.errors import AggregatorError
from aggregator.integrations.http import UpstreamClient
from aggregator.services.campaign_aggregator import build_aggregator
from aggregator.utils import setup_logging, get_logger
from aggregator.utils.observability import REQUEST_ID_HEADER, ensure_request_id

# Setup logging before creating the app
setup_logging(
    log_level=LOG_LEVEL,
    log_file=LOG_FILE,
    enable_console=True
)

logger = get_logger(__name__)


def cors_headers(origin: Optional[str] = None) -> Dict[str, str]:
    """CORS headers for a response to ``origin``.

    ``*`` in the allow-list wins; otherwise an allowed origin is reflected and
    anything else gets the first configured origin.
    """
    if "*" in CORS_ORIGINS:
        allow_origin = "*"
    elif origin and origin in CORS_ORIGINS:
        allow_origin = origin
    else:
        allow_origin = CORS_ORIGINS[0]
    return {
        "Access-Control-Allow-Origin": allow_origin,
        "Access-Control-Allow-Methods": CORS_ALLOW_METHODS,
        "Access-Control-Allow-Headers": CORS_ALLOW_HEADERS,
        "Vary": "Origin",
    }


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Loads account configuration and opens the shared upstream client.
    """
    logger.info("Application startup initiated")
    http = UpstreamClient()
    try:
        config = load_aggregator_config()
        app.state.aggregator = build_aggregator(config, http)
        logger.info(
            "Campaign aggregator ready",
            accounts={platform: len(accts) for platform, accts in config.accounts.items()}
        )
        yield
    except Exception as e:  # pragma: no cover
        logger.error("Application startup failed", error=str(e), exc_info=True)
        raise
    finally:
        logger.info("Application shutdown initiated")
        await http.close()
        logger.info("Application shutdown completed")

app = FastAPI(
    title="Campaign Aggregator API",
    description="""
    Lists advertising campaigns from Meta, Snapchat and NewsBreak ad accounts.

    ## Usage
    `GET /api/campaigns?platform=snap` returns every ACTIVE or PAUSED campaign
    of every configured Snapchat ad account. Add `status=all` to include every
    status. Accounts that fail upstream are reported inline with an `error`.
    """,
    version=SERVICE_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

# Compression middleware for large campaign listings
app.add_middleware(GZipMiddleware, minimum_size=1000)

@app.middleware("http")
async def cors_middleware(request: Request, call_next):
    """Answer preflight requests and add CORS headers to every response."""
    origin = request.headers.get("Origin")
    if request.method.upper() == "OPTIONS":
        return Response(status_code=204, headers=cors_headers(origin))
    response = await call_next(request)
    for key, value in cors_headers(origin).items():
        response.headers[key] = value
    return response

# Request ID and request/response logging middleware
@app.middleware("http")
async def add_request_context_and_logging(request: Request, call_next):
    """
    Add request ID and timing, log request start and completion.
    """
    request_id = ensure_request_id(request.headers)
    request.state.request_id = request_id
    request.state.start_time = time.time()

    logger.info(
        "Request started",
        method=request.method,
        url=str(request.url),
        user_agent=request.headers.get("User-Agent"),
        remote_addr=request.client.host if request.client else "unknown",
        request_id=request_id
    )

    response = await call_next(request)

    process_time = time.time() - request.state.start_time
    response.headers[REQUEST_ID_HEADER] = request_id
    response.headers["X-Process-Time"] = str(round(process_time * 1000, 2))
    response.headers["X-Content-Type-Options"] = "nosniff"

    logger.info(
        "Request completed",
        method=request.method,
        url=str(request.url),
        status_code=response.status_code,
        process_time_ms=round(process_time * 1000, 2),
        request_id=request_id
    )

    return response

# Exception handlers: every error body is {"error": <message>}
@app.exception_handler(AggregatorError)
async def aggregator_exception_handler(request: Request, exc: AggregatorError):
    """Platform-level aggregation failures (unsupported platform, credentials)."""
    request_id = getattr(request.state, "request_id", "unknown")
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "Aggregation request failed",
        error=exc.message,
        error_type=type(exc).__name__,
        platform=exc.platform,
        status_code=exc.status_code,
        request_id=request_id
    )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle query validation errors."""
    request_id = getattr(request.state, "request_id", "unknown")
    errors = exc.errors()
    logger.warning(
        "Request validation failed",
        errors=errors,
        request_id=request_id,
        url=str(request.url),
        method=request.method
    )
    first = errors[0].get("msg") if errors else "Invalid request"
    return JSONResponse(status_code=400, content={"error": f"Invalid request: {first}"})

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions."""
    request_id = getattr(request.state, "request_id", "unknown")
    logger.warning(
        "HTTP exception",
        status_code=exc.status_code,
        detail=exc.detail,
        request_id=request_id,
        url=str(request.url),
        method=request.method
    )
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    request_id = getattr(request.state, "request_id", "unknown")
    logger.error(
        "Unhandled exception",
        error=str(exc),
        error_type=type(exc).__name__,
        request_id=request_id,
        url=str(request.url),
        method=request.method,
        exc_info=True
    )
    return JSONResponse(status_code=500, content={"error": str(exc) or "Internal server error"})

@app.get("/health", tags=["health"], summary="Basic health check")
async def health_check():
    """Liveness probe; never touches upstream platforms."""
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "timestamp": time.time(),
        "aggregator_ready": getattr(app.state, "aggregator", None) is not None,
    }

@app.get("/", tags=["root"])
async def root():
    """API root endpoint with basic information."""
    return {
        "message": "Campaign Aggregator API",
        "version": SERVICE_VERSION,
        "documentation": "/docs",
        "health_check": "/health",
        "api_base": "/api"
    }

app.include_router(api_router, prefix="/api")
# Versioned alias of the same routes
app.include_router(api_router, prefix="/api/v1", include_in_schema=False)

if __name__ == "__main__":
    import uvicorn

    logger.info("Starting development server")

    uvicorn.run(
        "aggregator.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        reload_dirs=["aggregator"],
        log_level="info",
        access_log=True
    )

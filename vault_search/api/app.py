"""FastAPI application entry point.

Configures the application with logging, exception handling, metrics and
health checks around a shared ``SearchContext``.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from vault_search import __version__
from vault_search.api.routes import router
from vault_search.config import get_settings
from vault_search.context import SearchContext
from vault_search.exceptions import ErrorCode, VaultSearchError
from vault_search.logging_config import get_logger, setup_logging
from vault_search.observability.metrics import (
    MetricsMiddleware,
    get_metrics,
    get_metrics_content_type,
)

logger = get_logger(__name__)

_STATUS_CODES: dict[ErrorCode, int] = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.RECORD_NOT_FOUND: 404,
    ErrorCode.DIMENSION_CONFLICT: 409,
    ErrorCode.DIMENSION_MISMATCH: 409,
    ErrorCode.PROVIDER_MISMATCH: 409,
    ErrorCode.PROVIDER_AUTH_ERROR: 502,
    ErrorCode.PROVIDER_UNAVAILABLE: 503,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Opens a search context from settings unless one was injected, and
    closes the context it opened on shutdown.
    """
    # Startup
    settings = get_settings()
    setup_logging(level=settings.log_level)
    logger.info(
        "Starting vault-search",
        extra={
            "version": __version__,
            "environment": settings.environment.value,
        },
    )

    owned: SearchContext | None = None
    if app.state.context is None:
        owned = SearchContext(settings)
        await owned.open()
        app.state.context = owned

    yield

    # Shutdown
    if owned is not None:
        await owned.close()
        app.state.context = None
    logger.info("Shutting down vault-search")


def create_app(context: SearchContext | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        context: Pre-built search context (tests, embedding applications).

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Vault Search",
        description="Semantic search over a markdown content vault",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.context = context

    app.add_middleware(MetricsMiddleware)

    # Register exception handlers
    app.add_exception_handler(VaultSearchError, vault_search_exception_handler)

    # Register routes
    app.include_router(router)
    app.add_api_route("/health", health_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/health/ready", readiness_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/health/live", liveness_check, methods=["GET"], tags=["Health"])
    app.add_api_route(
        "/metrics",
        metrics_endpoint,
        methods=["GET"],
        tags=["Observability"],
        include_in_schema=False,
    )

    return app


async def vault_search_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle VaultSearchError exceptions.

    Converts exceptions to structured JSON responses.
    """
    if not isinstance(exc, VaultSearchError):
        return JSONResponse(
            status_code=500,
            content={"error": {"code": "VS-1000", "message": str(exc), "details": {}}},
        )

    status_code = get_status_code(exc.code)
    log = logger.error if status_code >= 500 else logger.warning
    log(
        f"Request failed: {exc.message}",
        extra={
            "error_code": exc.code.value,
            "path": request.url.path,
            "details": exc.details,
        },
    )

    return JSONResponse(
        status_code=status_code,
        content=exc.to_dict(),
    )


def get_status_code(code: ErrorCode) -> int:
    """Map error code to HTTP status code."""
    return _STATUS_CODES.get(code, 500)


async def health_check() -> dict[str, Any]:
    """Basic health check endpoint.

    Returns:
        Health status with version and timestamp.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "timestamp": datetime.now(UTC).isoformat(),
    }


async def readiness_check(request: Request) -> JSONResponse:
    """Readiness check.

    Checks that a search context is open and the vector store answers.

    Returns:
        Readiness status with component checks (503 when not ready).
    """
    checks: dict[str, str] = {"config": "ok"}

    context: SearchContext | None = request.app.state.context
    if context is None:
        checks["context"] = "missing"
    else:
        checks["context"] = "ok"
        try:
            await context.vector_store.dimension()
            checks["vector_store"] = "ok"
        except VaultSearchError as e:
            logger.warning(
                "Vector store not reachable",
                extra={"error_code": e.code.value},
            )
            checks["vector_store"] = "error"

    all_ok = all(v == "ok" for v in checks.values())

    return JSONResponse(
        status_code=200 if all_ok else 503,
        content={
            "status": "ready" if all_ok else "not_ready",
            "checks": checks,
            "timestamp": datetime.now(UTC).isoformat(),
        },
    )


async def liveness_check() -> dict[str, str]:
    """Liveness check.

    Returns:
        Liveness status.
    """
    return {"status": "alive"}


async def metrics_endpoint() -> Response:
    """Prometheus scrape endpoint."""
    return Response(content=get_metrics(), media_type=get_metrics_content_type())


# Create the application instance
app = create_app()

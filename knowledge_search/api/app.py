"""FastAPI application entry point.

Configures the application with logging, exception handling, metrics,
health checks and the search and admin routes.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from knowledge_search import __version__
from knowledge_search.api.routes import admin_router, search_router
from knowledge_search.config import get_settings
from knowledge_search.container import build_container
from knowledge_search.exceptions import ErrorCode, KnowledgeSearchError
from knowledge_search.logging_config import get_logger, setup_logging
from knowledge_search.observability.metrics import (
    MetricsMiddleware,
    get_metrics,
    get_metrics_content_type,
)
from knowledge_search.sync.scheduler import embed_pending_trigger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Builds the service container and, when enabled, the embed-pending
    schedule. Both are torn down on shutdown.
    """
    # Startup
    settings = get_settings()
    setup_logging(level=settings.log_level)
    logger.info(
        "Starting knowledge search",
        extra={
            "version": __version__,
            "environment": settings.environment.value,
        },
    )

    container = await build_container(settings)
    app.state.container = container

    trigger = None
    if settings.sync.schedule_enabled:
        trigger = embed_pending_trigger(
            container.orchestrator,
            batch_size=settings.sync.batch_size,
            interval_seconds=settings.sync.schedule_interval_seconds,
        )
        trigger.start()
    app.state.trigger = trigger

    yield

    # Shutdown
    if trigger is not None:
        await trigger.stop()
    await container.close()
    app.state.container = None
    logger.info("Shutting down knowledge search")


def create_app(use_lifespan: bool = True) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        use_lifespan: Build services on startup. Tests that inject their
            own container set this to False.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Knowledge Search",
        description="Hybrid search and embedding synchronization for work notes",
        version=__version__,
        lifespan=lifespan if use_lifespan else None,
        debug=settings.debug,
    )
    app.state.container = None
    app.state.trigger = None

    # Register middleware and exception handlers
    app.add_middleware(MetricsMiddleware)
    app.add_exception_handler(KnowledgeSearchError, knowledge_search_exception_handler)

    # Register routes
    app.add_api_route("/health", health_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/health/ready", readiness_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/health/live", liveness_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/metrics", metrics_endpoint, methods=["GET"], tags=["Observability"])
    app.include_router(admin_router)
    app.include_router(search_router)

    return app


async def knowledge_search_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle KnowledgeSearchError exceptions.

    Converts exceptions to structured JSON responses.
    """
    if not isinstance(exc, KnowledgeSearchError):
        return JSONResponse(
            status_code=500,
            content={
                "error": {
                    "code": ErrorCode.INTERNAL_ERROR.value,
                    "message": str(exc),
                    "details": {},
                }
            },
        )

    status_code = _get_status_code(exc.code)
    log = logger.warning if status_code < 500 else logger.error
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


def _get_status_code(error_code: ErrorCode) -> int:
    """Map error code to HTTP status code."""
    # Validation errors -> 400
    if error_code == ErrorCode.VALIDATION_ERROR:
        return 400

    # Not found errors -> 404
    if error_code in (ErrorCode.DOCUMENT_NOT_FOUND, ErrorCode.VECTOR_NOT_FOUND):
        return 404

    # Rate limit -> 429
    if error_code == ErrorCode.EMBEDDING_RATE_LIMIT:
        return 429

    # Upstream provider -> 502
    if error_code == ErrorCode.EMBEDDING_PROVIDER_ERROR:
        return 502

    # Services not available -> 503
    if error_code == ErrorCode.CONFIGURATION_ERROR:
        return 503

    # Default to 500 for internal errors
    return 500


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
    """Kubernetes readiness probe.

    Ready once the service container is built and the document store
    answers a query.
    """
    checks: dict[str, str] = {"config": "ok"}

    container = getattr(request.app.state, "container", None)
    if container is None:
        checks["services"] = "not_initialized"
    else:
        checks["services"] = "ok"
        try:
            await container.source.count_all()
            checks["database"] = "ok"
        except Exception as e:
            logger.warning(f"Readiness database check failed: {e}")
            checks["database"] = "error"

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
    """Kubernetes liveness probe.

    Simple check that the service is running.

    Returns:
        Liveness status.
    """
    return {"status": "alive"}


async def metrics_endpoint() -> Response:
    """Prometheus scrape endpoint."""
    return Response(content=get_metrics(), media_type=get_metrics_content_type())


# Create the application instance
app = create_app()

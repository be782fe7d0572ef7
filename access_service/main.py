"""Access system API application."""

import time
from contextlib import asynccontextmanager
from typing import Optional

import structlog
import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from accesslib.common.config import AccessServiceConfig
from accesslib.common.logging import REQUEST_ID_HEADER, configure_logging, get_logger, request_context
from accesslib.common.metrics import MetricsCollector
from accesslib.vector_store.base import EmbeddingRepository
from accesslib.vector_store.factory import create_embedding_repository
from .api.admin import router as admin_router
from .api.routes import router as v1_router
from .services.embedding_service import EmbeddingService


def create_app(
    config: Optional[AccessServiceConfig] = None,
    repository: Optional[EmbeddingRepository] = None,
) -> FastAPI:
    """Build the FastAPI application.

    Parameters
    - config: Settings; read from the environment when omitted
    - repository: Pre-built repository; built from ``config`` when omitted.
      An injected repository is not closed at shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Wire collaborators once and hand them out via ``app.state``."""
        settings = config or AccessServiceConfig()
        configure_logging(settings.access_service_name, settings.access_log_level, settings.access_log_format)
        logger = get_logger("access_service", env=settings.access_env)
        app.state.config = settings
        app.state.logger = logger
        app.state.startup_time = time.time()

        logger.info("Starting access service")

        metrics_collector = MetricsCollector(settings.access_service_name)
        app.state.metrics_collector = metrics_collector

        owns_repository = repository is None
        if owns_repository:
            store = create_embedding_repository(
                settings,
                metrics=metrics_collector,
                repository_logger=get_logger("vector_store.pgvector"),
            )
            if settings.access_db_auto_migrate:
                await store.ensure_schema()
        else:
            store = repository
        app.state.repository = store

        app.state.embedding_service = EmbeddingService(
            store,
            vector_dimension=settings.access_vector_dimension,
            metrics=metrics_collector,
            logger=get_logger("access_service.embedding"),
        )
        logger.info(
            "Access service started successfully",
            vector_dimension=settings.access_vector_dimension,
            similarity_threshold=settings.access_similarity_threshold,
        )

        yield

        logger.info("Shutting down access service")
        if owns_repository:
            await store.close()
        logger.info("Access service shutdown complete")

    app = FastAPI(
        title="Access System API",
        description="Stores named embeddings and validates probes by nearest match",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.include_router(v1_router, prefix="/api/v1")
    app.include_router(admin_router, prefix="/api/v1")

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        """Malformed or incomplete requests are a 400, not FastAPI's 422."""
        request.app.state.logger.warning(
            "Error binding request",
            method=request.method,
            path=request.url.path,
            errors=len(exc.errors()),
        )
        return JSONResponse(
            status_code=400,
            content={"detail": f"Bad Request: {_first_error(exc)}"},
        )

    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next):
        """Collect metrics for HTTP requests and tag their log lines with a request id."""
        start_time = time.time()
        with request_context(request.headers.get(REQUEST_ID_HEADER)) as request_id:
            response = await call_next(request)
        duration = time.time() - start_time

        route = request.scope.get("route")
        endpoint = getattr(route, "path", request.url.path)
        metrics_collector = getattr(request.app.state, "metrics_collector", None)
        if metrics_collector is not None:
            metrics_collector.record_http_request(
                method=request.method,
                endpoint=endpoint,
                status=response.status_code,
                duration=duration,
            )

        response.headers["X-Process-Time"] = str(duration)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    @app.get("/health")
    async def health_check():
        """Liveness endpoint. Always 200 while the process serves requests."""
        return {"status": "healthy", "service": app.state.config.access_service_name}

    @app.get("/ready")
    async def readiness():
        """Readiness probe. Fails while the store is unreachable."""
        if await app.state.repository.health_check():
            return {"status": "ready", "service": app.state.config.access_service_name}

        app.state.logger.error("Readiness probe failed")
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "service": app.state.config.access_service_name},
        )

    @app.get("/metrics")
    async def metrics():
        """Prometheus metrics endpoint."""
        return Response(
            content=app.state.metrics_collector.get_metrics(),
            media_type="text/plain",
        )

    return app


def _first_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "invalid request"
    error = errors[0]
    location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
    message = error.get("msg", "invalid value")
    return f"{location}: {message}" if location else message


app = create_app()


if __name__ == "__main__":
    settings = AccessServiceConfig()
    structlog.get_logger("access_service").info(
        "Launching uvicorn", host=settings.access_host, port=settings.access_port
    )
    uvicorn.run(
        "access_service.main:app",
        host=settings.access_host,
        port=settings.access_port,
        log_level=settings.access_log_level.lower(),
    )

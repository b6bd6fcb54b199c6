import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from team_service.cache.layer import CacheLayer
from team_service.core.config import Settings, SettingsDep, get_settings
from team_service.core.errors import StoreError, register_exception_handlers
from team_service.core.logging_setup import add_request_logging, setup_logging
from team_service.database import Store
from team_service.models import get_utc_now
from team_service.routers import cache, info, metrics, tasks
from team_service.services.health import HealthReporter

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    store: Store = app.state.store
    cache_layer: CacheLayer = app.state.cache

    # A database that is down at boot leaves the service up and /health degraded
    try:
        await store.ensure_schema()
    except StoreError as e:
        logger.error(f"Database initialization error: {e.__cause__!r}")
    await cache_layer.connect()

    logger.info(f"Server running on port {settings.port}")
    logger.info(f"Team: {settings.team_name}")
    logger.info(f"Service: {settings.service_name}")
    logger.info(f"Environment: {settings.environment}")
    yield

    logger.info("Shutdown signal received: closing connections")
    await cache_layer.close()
    await store.close()


def create_app(
    settings: Settings | None = None,
    store: Store | None = None,
    cache_layer: CacheLayer | None = None,
) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(
        title="Team Service API",
        description="Task and metric records for one team, on PostgreSQL with an optional Redis cache",
        swagger_ui_parameters={"displayRequestDuration": True},
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store or Store.from_settings(settings)
    app.state.cache = cache_layer or CacheLayer(settings)
    app.state.started_at = time.monotonic()

    register_exception_handlers(app)
    add_request_logging(app)

    # Include routers
    app.include_router(tasks.router)
    app.include_router(metrics.router)
    app.include_router(cache.router)
    app.include_router(info.router)

    @app.get("/")
    async def root(settings: SettingsDep):
        return {
            "message": f"Welcome to {settings.team_name} - {settings.service_name}",
            "team": settings.team_name,
            "service": settings.service_name,
            "environment": settings.environment,
            "timestamp": get_utc_now(),
            "endpoints": {
                "health": "/health",
                "tasks": "/api/tasks",
                "metrics": "/api/metrics",
                "cache": "/api/cache",
                "info": "/api/info",
            },
        }

    @app.get("/health")
    async def health_check(request: Request, settings: SettingsDep):
        reporter = HealthReporter(request.app.state.store, request.app.state.cache, settings)
        report = await reporter.check()
        return JSONResponse(
            status_code=report.status_code, content=report.model_dump(mode="json")
        )

    return app


def run() -> None:
    """Console entry point: serve on all interfaces until SIGTERM/SIGINT."""
    import uvicorn

    settings = get_settings()
    setup_logging(settings.log_level)
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port, log_config=None)


if __name__ == "__main__":
    run()

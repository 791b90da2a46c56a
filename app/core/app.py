from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from app.core.config import settings
from app.core.logging_config import setup_logging
from app.middlewares.logging_middleware import LoggingMiddleware
from app.middlewares.metrics_middleware import PrometheusMiddleware, metrics, record_component_health
from app.schemas.health import Status
from app.schemas.history import AppHistory, ContainerHistory, HistoryFilters
from app.services.database import create_engine, safe_url
from app.services.health import HealthService, PostgresComponent, YunikornComponent
from app.services.history_repository import HistoryRepository, RepositoryError
from app.services.yunikorn_client import YunikornClient, YunikornError

logger = setup_logging()

# routes
ROUTE_HEALTH_LIVENESS = "/ws/v1/health/liveness"
ROUTE_HEALTH_READINESS = "/ws/v1/health/readiness"
ROUTE_SCHEDULER_HEALTHCHECK = "/ws/v1/scheduler/healthcheck"
ROUTE_APPS_HISTORY = "/ws/v1/history/apps"
ROUTE_CONTAINERS_HISTORY = "/ws/v1/history/containers"

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _from_unix_millis(value: int | None, name: str) -> datetime | None:
    if value is None:
        return None
    try:
        return EPOCH + timedelta(milliseconds=value)
    except OverflowError:
        raise HTTPException(status_code=400, detail=f"{name} is out of range: {value}")


def _history_filters(
    timestamp_start: int | None, timestamp_end: int | None, limit: int | None, offset: int | None
) -> HistoryFilters:
    start = _from_unix_millis(timestamp_start, "timestampStart")
    end = _from_unix_millis(timestamp_end, "timestampEnd")
    if start and end and start > end:
        raise HTTPException(status_code=400, detail="timestampStart must not be after timestampEnd")
    return HistoryFilters(timestamp_start=start, timestamp_end=end, limit=limit, offset=offset)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Own the scheduler client and the connection pool for the app's lifetime."""
    yunikorn_client = YunikornClient.from_settings(settings)
    engine = create_engine(settings)
    app.state.yunikorn_client = yunikorn_client
    app.state.engine = engine
    app.state.repository = HistoryRepository(engine)
    app.state.health_service = HealthService(
        [YunikornComponent(yunikorn_client), PostgresComponent(engine)],
        version=settings.version,
        check_timeout=settings.health_check_timeout,
    )
    logger.info(
        "Application startup...",
        version=settings.version,
        yunikorn=yunikorn_client.base_url,
        database=safe_url(engine),
    )
    try:
        yield
    finally:
        logger.info("Application shutdown...")
        await yunikorn_client.aclose()
        await engine.dispose()


def create_app(lifespan=lifespan) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(title=settings.app_name, debug=settings.debug, root_path=settings.root_path, lifespan=lifespan)

    app.add_middleware(LoggingMiddleware)
    app.add_middleware(PrometheusMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.get("/metrics")
    async def get_metrics():
        return await metrics()

    @app.get(ROUTE_HEALTH_LIVENESS, response_model=Status, response_model_exclude_none=True)
    async def liveness(request: Request):
        return request.app.state.health_service.liveness()

    @app.get(ROUTE_HEALTH_READINESS, response_model=Status, response_model_exclude_none=True)
    async def readiness(request: Request):
        status = await request.app.state.health_service.readiness()
        record_component_health(status)
        if not status.healthy:
            return JSONResponse(
                status_code=503,
                content=status.model_dump(mode="json", by_alias=True, exclude_none=True),
            )
        return status

    @app.get(ROUTE_SCHEDULER_HEALTHCHECK)
    async def scheduler_healthcheck(request: Request):
        try:
            info = await request.app.state.yunikorn_client.healthcheck()
        except YunikornError as e:
            logger.warning("Scheduler healthcheck failed", error=str(e))
            raise HTTPException(status_code=502, detail=str(e))
        return info.model_dump(by_alias=True)

    @app.get(ROUTE_APPS_HISTORY, response_model=list[AppHistory])
    async def apps_history(
        request: Request,
        timestamp_start: int | None = Query(None, alias="timestampStart"),
        timestamp_end: int | None = Query(None, alias="timestampEnd"),
        limit: int | None = Query(None, ge=0),
        offset: int | None = Query(None, ge=0),
    ):
        filters = _history_filters(timestamp_start, timestamp_end, limit, offset)
        try:
            return await request.app.state.repository.get_applications_history(filters)
        except RepositoryError as e:
            logger.error("Applications history query failed", error=str(e))
            raise HTTPException(status_code=500, detail=str(e))

    @app.get(ROUTE_CONTAINERS_HISTORY, response_model=list[ContainerHistory])
    async def containers_history(
        request: Request,
        timestamp_start: int | None = Query(None, alias="timestampStart"),
        timestamp_end: int | None = Query(None, alias="timestampEnd"),
        limit: int | None = Query(None, ge=0),
        offset: int | None = Query(None, ge=0),
    ):
        filters = _history_filters(timestamp_start, timestamp_end, limit, offset)
        try:
            return await request.app.state.repository.get_containers_history(filters)
        except RepositoryError as e:
            logger.error("Containers history query failed", error=str(e))
            raise HTTPException(status_code=500, detail=str(e))

    return app

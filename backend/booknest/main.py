"""
BookNest API - application entry point.

Admins publish events with a fixed number of seats; participants reserve
them. `create_app()` wires the shared settings, middleware, exception
handlers and routers together; `app` is the instance uvicorn serves:

    uvicorn booknest.main:app --reload
"""

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from booknest.core.config import get_settings
from booknest.core.errors import register_exception_handlers
from booknest.core.logging import setup_logging, get_logger
from booknest.core.metrics import metrics_endpoint
from booknest.api.router import api_router
from booknest.api.middleware import RequestLoggingMiddleware
from booknest.db.session import engine, get_db
from booknest.services.cache_service import get_redis, close_redis, get_cache_stats

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    setup_logging()

    logger.info(
        "application_starting",
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        database=engine.url.render_as_string(hide_password=True),
        auto_confirm_reservations=settings.RESERVATION_AUTO_CONFIRM,
    )

    if await get_redis():
        logger.info("redis_ready")
    elif settings.REDIS_ENABLED:
        logger.warning("redis_unavailable", message="Event listings served without cache")

    yield

    await close_redis()
    await engine.dispose()
    logger.info("application_shutdown")


async def health_check(db: AsyncSession = Depends(get_db)):
    """Liveness plus database and cache reachability, for Docker and load balancers."""
    try:
        await db.execute(text("SELECT 1"))
        database = "connected"
    except SQLAlchemyError as e:
        logger.error("health_database_unreachable", error=str(e))
        database = "unreachable"

    settings = get_settings()
    return {
        "status": "healthy" if database == "connected" else "degraded",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "database": database,
        "cache": await get_cache_stats(),
    }


async def root():
    settings = get_settings()
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }


def create_app() -> FastAPI:
    """Build the API from the process-wide settings (`get_settings()`)."""
    settings = get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Event booking API: events with finite seat capacity and participant reservations",
        debug=settings.DEBUG,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    register_exception_handlers(app)

    app.include_router(api_router)
    app.add_api_route("/health", health_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/metrics", metrics_endpoint, methods=["GET"], tags=["Health"], include_in_schema=False)
    app.add_api_route("/", root, methods=["GET"], tags=["Root"])

    return app


app = create_app()

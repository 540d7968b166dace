"""
Event Ticketing API - Main Application Entry Point

An event-ticketing backend demonstrating:
- Checkout through a hosted payment provider with deferred seat accounting
- Oversell-proof confirmation via a single conditional seat decrement
- Realtime seat-count broadcast over WebSockets (Redis pub/sub fan-out)
- Redis caching of public listings with invalidation on change
- Structured logging with request correlation
"""

import asyncio
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import get_settings
from app.core.exceptions import AppError, ErrorKind
from app.core.logging import setup_logging, get_logger
from app.core.metrics import metrics_endpoint
from app.api.router import api_router
from app.api.middleware import RequestLoggingMiddleware
from app.infrastructure.redis_client import get_redis, close_redis
from app.services.cache_service import get_cache_stats
from app.services.realtime_service import notifier

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
    )

    relay_task = None
    if settings.REDIS_ENABLED:
        if await get_redis():
            logger.info("redis_ready")
        else:
            logger.warning("redis_unavailable", message="Running without cache until Redis is reachable")
        # Keeps resubscribing, so Redis may come up after boot
        relay_task = asyncio.create_task(notifier.relay())

    yield

    if relay_task:
        relay_task.cancel()
        with suppress(asyncio.CancelledError):
            await relay_task
    await close_redis()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Event ticketing API with payment-confirmed, oversell-proof reservations",
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

app.include_router(api_router)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    log = logger.error if exc.status_code >= 500 else logger.info
    log("request_rejected", error=exc.kind.value, detail=exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.kind.value, "detail": exc.message},
    )


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("database_error", error=str(exc), error_type=type(exc).__name__)
    return JSONResponse(
        status_code=500,
        content={"error": ErrorKind.UPSTREAM_ERROR.value, "detail": "Data store unavailable"},
    )


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    cache_stats = await get_cache_stats()
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "cache": cache_stats,
    }


@app.get("/metrics", tags=["Health"], include_in_schema=False)
def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }

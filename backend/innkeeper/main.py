"""
Innkeeper Reservations API - Main Application Entry Point

Hotel reservation engine:
- No double booking of a room, enforced by a per-room database lock
- Append-only payment ledger with totals recomputed from it
- Booking lifecycle state machine (check-in, check-out, cancel, no-show)
- Redis-cached availability lookups, structured logging, Prometheus metrics
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from innkeeper.core.config import get_settings
from innkeeper.core.exceptions import ReservationError
from innkeeper.core.logging import setup_logging, get_logger
from innkeeper.core.metrics import metrics_endpoint
from innkeeper.api.router import api_router
from innkeeper.api.middleware import RequestLoggingMiddleware
from innkeeper.db.session import engine
from innkeeper.services.cache_service import get_redis, close_redis, get_cache_stats
from innkeeper.services.strategy_factory import get_room_lock

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()

    room_lock = get_room_lock(engine.dialect.name)
    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        room_lock=room_lock.name,
        payment_failure_policy=settings.PAYMENT_FAILURE_POLICY,
    )

    redis_client = await get_redis()
    if redis_client:
        logger.info("redis_ready")
    else:
        logger.warning("redis_unavailable", message="Availability lookups run uncached")

    yield

    await close_redis()
    await engine.dispose()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Hotel reservation API with double-booking-safe room reservations",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

app.include_router(api_router)


@app.exception_handler(ReservationError)
async def reservation_error_handler(request: Request, exc: ReservationError):
    if exc.status_code >= 500:
        logger.error("reservation_error", kind=exc.kind, detail=exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


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


@app.get("/metrics", include_in_schema=False)
async def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }

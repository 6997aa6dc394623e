"""FastAPI application entrypoint: lifespan, routers, middleware, error mapping."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from sqlalchemy import text

from app.auth.jwt import AuthError
from app.config import get_settings
from app.database import engine
from app.middleware.cors import FixedCORSMiddleware
from app.middleware.logging import RequestLoggingMiddleware, configure_structured_logging
from app.middleware.rate_limit import RateLimitMiddleware
from app.routes import profile, sustainability
from app.services.sustainability_service import PredictionError

logger = logging.getLogger("agrosustain")


async def _connect_redis(url: str) -> Redis | None:
    redis = Redis.from_url(url, decode_responses=True)
    try:
        await redis.ping()
    except Exception as exc:
        logger.warning("redis unavailable, rate limiting disabled", extra={"error": str(exc)})
        await redis.aclose()
        return None
    return redis


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application startup / shutdown lifecycle.

    Startup:
      1. Initialize structured logging
      2. Check database connectivity (logged only; readiness reports it)
      3. Connect to Redis (optional; only backs rate limiting)

    Shutdown:
      1. Close Redis connection pool
      2. Dispose SQLAlchemy engine
    """
    configure_structured_logging()
    settings = get_settings()
    logger.info(
        "AgroSustain starting",
        extra={
            "app_env": settings.app_env.value,
            "scoring_backend": settings.scoring_backend.value,
        },
    )

    try:
        async with engine.connect() as connection:
            await connection.execute(text("SELECT 1"))
    except Exception as exc:
        logger.error("database unavailable at startup", extra={"error": str(exc)})

    redis = await _connect_redis(settings.redis_url)
    app.state.redis = redis

    yield

    logger.info("AgroSustain shutting down")
    if redis is not None:
        await redis.aclose()
    await engine.dispose()


app = FastAPI(
    title="AgroSustain API",
    description=(
        "Farm profile management and crop sustainability scoring backed by an "
        "external predictive model."
    ),
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── Middleware (last added runs outermost) ──────────────────────────────────
app.add_middleware(RateLimitMiddleware)
app.add_middleware(FixedCORSMiddleware, path_prefixes=["/api/sustainability"])
app.add_middleware(RequestLoggingMiddleware)


# ── Error mapping ───────────────────────────────────────────────────────────
@app.exception_handler(AuthError)
async def auth_error_handler(_request: Request, exc: AuthError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(PredictionError)
async def prediction_error_handler(_request: Request, exc: PredictionError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


# ── Health checks ───────────────────────────────────────────────────────────
async def _run_readiness_checks(app: FastAPI) -> dict[str, dict[str, Any]]:
    checks: dict[str, dict[str, Any]] = {}
    try:
        async with engine.connect() as connection:
            await connection.execute(text("SELECT 1"))
        checks["database"] = {"ok": True, "message": "ok"}
    except Exception as exc:
        checks["database"] = {"ok": False, "message": str(exc)}

    redis = getattr(app.state, "redis", None)
    if redis is None:
        checks["redis"] = {"ok": False, "message": "not connected"}
    else:
        try:
            await redis.ping()
            checks["redis"] = {"ok": True, "message": "ok"}
        except Exception as exc:
            checks["redis"] = {"ok": False, "message": str(exc)}
    return checks


@app.get("/health", tags=["system"])
async def health_check() -> dict[str, str]:
    """Basic health check — verifies the API process is alive."""
    return {
        "status": "ok",
        "service": "agrosustain",
        "version": "0.1.0",
    }


@app.get("/health/ready", tags=["system"])
async def readiness_check() -> JSONResponse:
    checks = await _run_readiness_checks(app)
    ready = all(check["ok"] for check in checks.values())
    return JSONResponse(
        status_code=200 if ready else 503,
        content={"status": "ok" if ready else "degraded", "checks": checks},
    )


# ── Router registration ────────────────────────────────────────────────────
app.include_router(profile.router, prefix="/api")
app.include_router(sustainability.router, prefix="/api")

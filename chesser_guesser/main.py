"""ChesserGuesser API - Main FastAPI Application."""

import logging
import time
import uuid
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware

from chesser_guesser.api.deps import RedisClient, get_client_ip
from chesser_guesser.api.routes import leaderboard, progress, puzzles, submit
from chesser_guesser.config import get_settings
from chesser_guesser.core.dates import time_until_reset, today_date_string
from chesser_guesser.db.redis import close_redis, create_redis
from chesser_guesser.schemas.puzzle import ResetCountdownResponse
from chesser_guesser.services.rate_limiter import RateLimitExceededError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("chesser_guesser")

settings = get_settings()


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceededError):
    """Handle rate limit exceeded errors."""
    logger.warning(
        f"Rate limit exceeded for {get_client_ip(request)} on {request.url.path}"
    )
    return JSONResponse(
        status_code=429,
        content={
            "detail": "Rate limit exceeded. Please try again later.",
            "retry_after": exc.result.retry_after or 0,
            "reset_at": exc.result.reset_at,
        },
        headers=exc.result.headers(),
    )


def validation_error_handler(request: Request, exc: RequestValidationError):
    """Report malformed requests as 400 Bad Request."""
    return JSONResponse(
        status_code=400,
        content={"detail": jsonable_encoder(exc.errors())},
    )


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for logging requests with correlation IDs."""

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())[:8]
        start_time = time.time()

        # Add request ID to request state for use in handlers
        request.state.request_id = request_id

        logger.info(
            f"[{request_id}] --> {request.method} {request.url.path} "
            f"from {request.client.host if request.client else 'unknown'}"
        )

        try:
            response = await call_next(request)
            process_time = (time.time() - start_time) * 1000

            logger.info(
                f"[{request_id}] <-- {response.status_code} "
                f"({process_time:.2f}ms)"
            )

            response.headers["X-Request-ID"] = request_id
            return response

        except Exception as e:
            process_time = (time.time() - start_time) * 1000
            logger.error(
                f"[{request_id}] <-- ERROR: {type(e).__name__}: {str(e)} "
                f"({process_time:.2f}ms)"
            )
            raise


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting ChesserGuesser API...")

    app.state.redis = create_redis(settings)
    app.state.http_client = httpx.AsyncClient(
        timeout=settings.puzzle_source_timeout_seconds,
    )
    logger.info(f"Daily reset timezone: {settings.timezone}")

    yield

    logger.info("Shutting down ChesserGuesser API...")
    await app.state.http_client.aclose()
    await close_redis(app.state.redis)
    logger.info("Connections closed")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Daily chess evaluation guessing game with ranked leaderboards",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_exception_handler(RateLimitExceededError, rate_limit_exceeded_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)

# Add request logging middleware
app.add_middleware(RequestLoggingMiddleware)

# CORS middleware - configured based on environment
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Retry-After", "X-RateLimit-Remaining", "X-RateLimit-Reset"],
)


@app.get("/health")
async def health_check(redis_client: RedisClient) -> dict:
    """Health check endpoint."""
    try:
        await redis_client.ping()
        redis_status = "ok"
    except RedisError as e:
        logger.warning(f"Redis health check failed: {e}")
        redis_status = "unavailable"

    return {"status": "ok", "version": settings.app_version, "redis": redis_status}


@app.get("/")
async def root() -> dict:
    """Root endpoint with API info."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }


@app.get("/daily/reset", response_model=ResetCountdownResponse)
async def get_reset_countdown() -> ResetCountdownResponse:
    """Time remaining until the next daily puzzle set."""
    countdown = time_until_reset(settings.timezone)
    return ResetCountdownResponse(
        timezone=settings.timezone,
        date=today_date_string(settings.timezone),
        hours=countdown.hours,
        minutes=countdown.minutes,
        seconds=countdown.seconds,
        total_ms=countdown.total_ms,
    )


# Include routers
app.include_router(puzzles.router)
app.include_router(submit.router)
app.include_router(leaderboard.router)
app.include_router(progress.router)

import logging
from contextlib import asynccontextmanager

import redis.asyncio as redis
from fastapi import FastAPI
from fastapi_limiter import FastAPILimiter

from . import models
from .config import settings
from .database import engine
from .exceptions import register_exception_handlers
from .limits import rate_limit_exceeded
from .routers import auth_router, booking_router, review_router, spot_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("spotbnb")

# Alembic owns the schema in deployed environments; this keeps local runs working
models.Base.metadata.create_all(bind=engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Handles application startup and shutdown events.
    """
    logger.info("SpotBnB API starting up...")

    redis_client = redis.from_url(settings.REDIS_URL, encoding="utf-8")
    try:
        await FastAPILimiter.init(redis_client, http_callback=rate_limit_exceeded)
        logger.info("FastAPILimiter initialized with Redis.")
    except Exception as e:
        logger.error(f"Failed to initialize FastAPILimiter: {e}")
        # init stores the client before loading its script
        FastAPILimiter.redis = None
        logger.warning("Rate limiting is disabled until the API is restarted with Redis available.")

    yield  # The application is now running

    logger.info("SpotBnB API shutting down...")
    await redis_client.aclose()


app = FastAPI(
    title="SpotBnB API",
    description="Short-term rental marketplace: spots, bookings and reviews.",
    version="1.0.0",
    lifespan=lifespan,
)

register_exception_handlers(app)

app.include_router(auth_router.router)
app.include_router(spot_router.router)
app.include_router(review_router.router)
app.include_router(booking_router.router)


@app.get("/")
def read_root():
    return {"message": "Welcome to the SpotBnB API"}

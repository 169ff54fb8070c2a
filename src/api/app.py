"""
FastAPI application factory.

* Registers public routes (cities, pharmacies, medicines, ads, submissions)
  and admin routes (bulk sync, health, stats).
* Stops the bulk sync orchestrator and closes Redis on shutdown.
* Applies rate-limiting middleware.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from src.api.middleware import limiter
from src.api.routes import admin, ads, cities, medicines, pharmacies, submissions, sync
from src.config import settings
from src.infrastructure import redis_client
from src.workers import sync_orchestrator as _sync

logging.basicConfig(level=settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Nothing to start eagerly; tear down the sync run and Redis pool on exit."""
    yield
    await _sync.shutdown_orchestrator()
    await redis_client.close_redis()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Montenegro Pharmacy Directory API",
        description=(
            "Find pharmacies by city, proximity, opening hours and medicine "
            "availability.  Admin endpoints manage the catalogue, review "
            "user submissions and drive the city-by-city places sync."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Routers
    for module in (cities, pharmacies, medicines, ads, submissions, sync, admin):
        app.include_router(module.router, prefix="/api/v1")

    return app

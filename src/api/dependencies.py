"""FastAPI dependency injection helpers."""

import secrets
from typing import Optional

from fastapi import Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.infrastructure.cache import NearbyCache
from src.infrastructure.database import async_session_factory
from src.infrastructure.places_client import PlacesSyncClient
from src.infrastructure.redis_client import get_redis
from src.workers.sync_orchestrator import (
    SyncOrchestrator,
    get_orchestrator,
    get_places_client,
)


async def get_db() -> AsyncSession:  # type: ignore[misc]
    """Yield an async DB session; commit on success, rollback on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_nearby_cache() -> NearbyCache:
    return NearbyCache(
        await get_redis(),
        ttl_seconds=settings.nearby_cache_ttl_seconds,
        resolution=settings.h3_resolution,
    )


def get_sync_orchestrator() -> SyncOrchestrator:
    return get_orchestrator()


def get_sync_client() -> PlacesSyncClient:
    return get_places_client()


async def require_admin(x_admin_key: Optional[str] = Header(None)) -> None:
    """Reject admin requests without the configured ``x-admin-key`` header."""
    if not x_admin_key or not secrets.compare_digest(x_admin_key, settings.admin_key):
        raise HTTPException(status_code=401, detail="Invalid or missing admin key")


async def commit_and_clear_cache(db: AsyncSession, cache: NearbyCache) -> None:
    """Commit a catalogue write, then drop nearby entries built from older rows."""
    await db.commit()
    await cache.clear()

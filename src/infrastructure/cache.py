"""
Redis cache for nearby-pharmacy searches.

Keys bin the origin into an H3 cell (resolution 9, ~0.1 km²) so that
users standing close to each other share cache hits::

    nearby:<h3 cell>:<radius>:<24h flag>:<sunday flag>

An entry holds the candidate pharmacies within ``radius + extent`` of the
cell centre, where *extent* is the distance from the centre to the cell's
farthest vertex.  Any origin inside the cell therefore finds every
pharmacy within *radius* of itself in the entry; distances and the final
radius cut are computed per request from the real origin.

Redis being unavailable only costs a cache miss: errors are logged and
the caller computes the result itself.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

import h3
import redis.asyncio as aioredis
from redis.exceptions import RedisError

from src.domain.distance import haversine_km
from src.domain.entities import Coordinate

logger = logging.getLogger(__name__)


def nearby_cache_key(
    lat: float,
    lng: float,
    radius_km: int,
    *,
    is_24h: bool = False,
    open_sunday: bool = False,
    resolution: int = 9,
) -> str:
    cell = h3.latlng_to_cell(lat, lng, resolution)
    return f"nearby:{cell}:{radius_km}:{int(is_24h)}:{int(open_sunday)}"


def cell_extent(lat: float, lng: float, resolution: int = 9) -> tuple[Coordinate, float]:
    """Centre of the H3 cell holding (lat, lng) and its centre-to-vertex reach in km."""
    cell = h3.latlng_to_cell(lat, lng, resolution)
    c_lat, c_lng = h3.cell_to_latlng(cell)
    reach = max(
        haversine_km(c_lat, c_lng, v_lat, v_lng)
        for v_lat, v_lng in h3.cell_to_boundary(cell)
    )
    return Coordinate(c_lat, c_lng), reach


class NearbyCache:
    def __init__(
        self, client: aioredis.Redis, ttl_seconds: int = 300, resolution: int = 9
    ):
        self.redis = client
        self.ttl = ttl_seconds
        self.resolution = resolution

    def key(self, lat: float, lng: float, radius_km: int, **flags: bool) -> str:
        return nearby_cache_key(
            lat, lng, radius_km, resolution=self.resolution, **flags
        )

    def extent(self, lat: float, lng: float) -> tuple[Coordinate, float]:
        return cell_extent(lat, lng, self.resolution)

    async def get(self, key: str) -> Optional[Any]:
        try:
            raw = await self.redis.get(key)
        except RedisError as exc:
            logger.warning("Cache read failed for %s: %s", key, exc)
            return None
        return json.loads(raw) if raw else None

    async def set(self, key: str, value: Any) -> None:
        try:
            await self.redis.set(key, json.dumps(value), ex=self.ttl)
        except RedisError as exc:
            logger.warning("Cache write failed for %s: %s", key, exc)

    async def clear(self) -> int:
        """Drop every nearby entry (after pharmacy data changes)."""
        deleted = 0
        try:
            async for key in self.redis.scan_iter(match="nearby:*"):
                deleted += await self.redis.delete(key)
        except RedisError as exc:
            logger.warning("Cache clear failed: %s", exc)
        return deleted

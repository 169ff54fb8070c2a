"""
Client position resolution.

A position provider is any zero-argument callable returning a
``Coordinate``.  It may fail with one of the ``GeolocationError``
subclasses; the caller then continues from a fixed default position
instead of failing the request.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from .entities import Coordinate
from .nearest import is_valid_coordinate

logger = logging.getLogger(__name__)

DEFAULT_POSITION = Coordinate(42.4415, 19.2621)  # Podgorica

PositionProvider = Callable[[], Coordinate]


class GeolocationError(Exception):
    """Base class for failures to determine the client's position."""


class PermissionDenied(GeolocationError):
    pass


class LocationTimeout(GeolocationError):
    pass


class PositionUnavailable(GeolocationError):
    pass


def query_position(
    lat: Optional[float], lng: Optional[float]
) -> PositionProvider:
    """Provider backed by the ``lat`` / ``lng`` query parameters of a request."""

    def provider() -> Coordinate:
        if lat is None or lng is None:
            raise PositionUnavailable("No position supplied")
        coordinate = Coordinate(lat, lng)
        if not is_valid_coordinate(coordinate):
            raise PositionUnavailable(f"Invalid position {lat}, {lng}")
        return coordinate

    return provider


def resolve_origin(
    provider: PositionProvider, default: Coordinate = DEFAULT_POSITION
) -> tuple[Coordinate, bool]:
    """Return ``(origin, used_fallback)``."""
    try:
        return provider(), False
    except GeolocationError as exc:
        logger.debug("Geolocation failed (%s); using default position", exc)
        return default, True

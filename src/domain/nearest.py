"""
Nearest-Entity Resolution and Adaptive Search Radius
====================================================

1. **Validation**   -- candidates without a usable coordinate (missing,
   non-numeric, NaN, out of range) are skipped, never reported as errors.
2. **Nearest**      -- single linear scan keeping the running minimum; the
   first candidate in input order wins ties.
3. **Radius**       -- a two-tier policy: origins inside the home-region
   bounding box get a local radius without any distance math; everyone
   else gets a radius banded by their distance to the region centre.

Radius bands
------------
  inside bounding box   ->  10 km
  distance <  100 km    ->  50 km
  distance <  500 km    -> 100 km
  distance < 2000 km    -> 200 km
  otherwise             -> 500 km

Complexity
----------
Let N = candidates.

* find_nearest:      O(N)
* within_radius:     O(N log N)  -- one distance per candidate + sort
* adaptive_radius:   O(1)

No spatial index: N is a few hundred at most.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from numbers import Real
from typing import Iterable, Optional

from .distance import distance_km
from .entities import Coordinate, NearestResult, ReferencePoint

LOCAL_RADIUS_KM = 10

# (upper distance bound in km, radius in km) -- first match wins
RADIUS_BANDS: tuple[tuple[float, int], ...] = (
    (100.0, 50),
    (500.0, 100),
    (2000.0, 200),
)
FAR_RADIUS_KM = 500


@dataclass(frozen=True)
class HomeRegion:
    north: float
    south: float
    east: float
    west: float
    center: Coordinate

    def contains(self, point: Coordinate) -> bool:
        return (
            self.south <= point.latitude <= self.north
            and self.west <= point.longitude <= self.east
        )


MONTENEGRO = HomeRegion(
    north=43.5585,
    south=41.8500,
    east=20.3580,
    west=18.4330,
    center=Coordinate(42.7087, 19.3744),
)


def _is_number(value) -> bool:
    return (
        isinstance(value, Real)
        and not isinstance(value, bool)
        and not math.isnan(value)
    )


def is_valid_coordinate(coordinate: Optional[Coordinate]) -> bool:
    if coordinate is None:
        return False
    lat, lng = coordinate.latitude, coordinate.longitude
    if not (_is_number(lat) and _is_number(lng)):
        return False
    return -90 <= lat <= 90 and -180 <= lng <= 180


def find_nearest(
    origin: Coordinate, candidates: Iterable[ReferencePoint]
) -> NearestResult:
    """Return the candidate closest to *origin*, or an empty result."""
    best: Optional[ReferencePoint] = None
    best_distance = math.inf

    for candidate in candidates:
        if not is_valid_coordinate(candidate.coordinate):
            continue
        d = distance_km(origin, candidate.coordinate)
        if d < best_distance:  # strict: earlier candidate keeps ties
            best, best_distance = candidate, d

    return NearestResult(point=best, distance_km=best_distance)


def within_radius(
    origin: Coordinate,
    candidates: Iterable[ReferencePoint],
    radius_km: float,
) -> list[tuple[ReferencePoint, float]]:
    """All valid candidates within *radius_km*, closest first."""
    hits = []
    for candidate in candidates:
        if not is_valid_coordinate(candidate.coordinate):
            continue
        d = distance_km(origin, candidate.coordinate)
        if d <= radius_km:
            hits.append((candidate, d))
    hits.sort(key=lambda hit: hit[1])
    return hits


def adaptive_radius_km(
    origin: Coordinate,
    region_center: Optional[Coordinate] = None,
    region: HomeRegion = MONTENEGRO,
) -> int:
    """Search radius for *origin* based on how far it is from the home region."""
    if region.contains(origin):
        return LOCAL_RADIUS_KM

    center = region_center or region.center
    d = distance_km(origin, center)
    for upper_km, radius in RADIUS_BANDS:
        if d < upper_km:
            return radius
    return FAR_RADIUS_KM

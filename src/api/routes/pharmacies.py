"""
Pharmacy endpoints
==================

GET    /api/v1/pharmacies                              -- filtered listing
GET    /api/v1/pharmacies/nearby                       -- within a (adaptive) radius
GET    /api/v1/pharmacies/nearest                      -- single closest pharmacy
GET    /api/v1/pharmacies/{pharmacy_id}                -- details
POST   /api/v1/pharmacies                              -- create          (admin)
PATCH  /api/v1/pharmacies/{pharmacy_id}                -- partial update  (admin)
DELETE /api/v1/pharmacies/{pharmacy_id}                -- delete          (admin)
PUT    /api/v1/pharmacies/{pharmacy_id}/medicines/{id} -- mark in stock   (admin)
DELETE /api/v1/pharmacies/{pharmacy_id}/medicines/{id} -- remove stock    (admin)
"""

from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import (
    commit_and_clear_cache,
    get_db,
    get_nearby_cache,
    require_admin,
)
from src.api.middleware import limiter
from src.api.schemas import (
    CoordinateResponse,
    NearbyPharmaciesResponse,
    NearbyPharmacyResponse,
    NearestPharmacyResponse,
    PharmacyCreateRequest,
    PharmacyResponse,
    PharmacyUpdateRequest,
)
from src.config import settings
from src.domain.entities import Coordinate, ReferencePoint
from src.domain.location import query_position, resolve_origin
from src.domain.nearest import (
    HomeRegion,
    adaptive_radius_km,
    find_nearest,
    within_radius,
)
from src.infrastructure.cache import NearbyCache
from src.infrastructure.models import PharmacyModel
from src.infrastructure.repositories import (
    CityRepository,
    MedicineRepository,
    PharmacyRepository,
)

router = APIRouter(prefix="/pharmacies", tags=["pharmacies"])


def _default_origin() -> Coordinate:
    return Coordinate(settings.default_latitude, settings.default_longitude)


def _home_region() -> HomeRegion:
    return HomeRegion(
        north=settings.region_north,
        south=settings.region_south,
        east=settings.region_east,
        west=settings.region_west,
        center=Coordinate(
            settings.region_center_latitude, settings.region_center_longitude
        ),
    )


def pharmacy_reference_point(
    pharmacy: Union[PharmacyModel, PharmacyResponse],
) -> ReferencePoint:
    coordinate = None
    if pharmacy.lat is not None and pharmacy.lng is not None:
        coordinate = Coordinate(pharmacy.lat, pharmacy.lng)
    return ReferencePoint(id=pharmacy.id, coordinate=coordinate, display_name=pharmacy.name_me)


# ── Public ────────────────────────────────────────────────────────────


@router.get("", response_model=list[PharmacyResponse], summary="List pharmacies")
@limiter.limit("100/minute")
async def list_pharmacies(
    request: Request,
    city_slug: Optional[str] = Query(None),
    is_24h: bool = Query(False),
    open_sunday: bool = Query(False),
    search: Optional[str] = Query(None, max_length=100),
    medicine_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    return await PharmacyRepository(db).search(
        city_slug=city_slug,
        is_24h=is_24h,
        open_sunday=open_sunday,
        text=search,
        medicine_id=medicine_id,
    )


@router.get(
    "/nearby",
    response_model=NearbyPharmaciesResponse,
    summary="Pharmacies around a position",
    description=(
        "Without an explicit radius the radius adapts to how far the position "
        "is from Montenegro: 10 km inside the country, up to 500 km far away."
    ),
)
@limiter.limit("100/minute")
async def nearby_pharmacies(
    request: Request,
    lat: Optional[float] = Query(None),
    lng: Optional[float] = Query(None),
    radius: Optional[int] = Query(None, ge=1),
    is_24h: bool = Query(False),
    open_sunday: bool = Query(False),
    db: AsyncSession = Depends(get_db),
    cache: NearbyCache = Depends(get_nearby_cache),
):
    origin, used_fallback = resolve_origin(query_position(lat, lng), _default_origin())
    radius_km = radius or adaptive_radius_km(origin, region=_home_region())
    radius_km = min(radius_km, settings.max_search_radius_km)

    key = cache.key(
        origin.latitude, origin.longitude, radius_km,
        is_24h=is_24h, open_sunday=open_sunday,
    )
    cached = await cache.get(key)
    if cached is not None:
        candidates = [PharmacyResponse.model_validate(p) for p in cached]
    else:
        # entry must serve every origin in the cell, so widen around its centre
        center, reach_km = cache.extent(origin.latitude, origin.longitude)
        rows = await PharmacyRepository(db).search(
            is_24h=is_24h, open_sunday=open_sunday
        )
        by_id = {p.id: p for p in rows}
        around_cell = within_radius(
            center, [pharmacy_reference_point(p) for p in rows], radius_km + reach_km
        )
        candidates = [
            PharmacyResponse.model_validate(by_id[point.id]) for point, _ in around_cell
        ]
        await cache.set(key, [c.model_dump() for c in candidates])

    by_id = {c.id: c for c in candidates}
    hits = within_radius(
        origin, [pharmacy_reference_point(c) for c in candidates], radius_km
    )
    pharmacies = [
        NearbyPharmacyResponse(
            **by_id[point.id].model_dump(), distance_km=round(d, 3)
        )
        for point, d in hits
    ]

    return NearbyPharmaciesResponse(
        origin=CoordinateResponse(latitude=origin.latitude, longitude=origin.longitude),
        used_fallback=used_fallback,
        radius_km=radius_km,
        pharmacies=pharmacies,
    )


@router.get(
    "/nearest",
    response_model=NearestPharmacyResponse,
    summary="The single pharmacy closest to a position",
)
@limiter.limit("100/minute")
async def nearest_pharmacy(
    request: Request,
    lat: Optional[float] = Query(None),
    lng: Optional[float] = Query(None),
    is_24h: bool = Query(False),
    open_sunday: bool = Query(False),
    db: AsyncSession = Depends(get_db),
):
    origin, used_fallback = resolve_origin(query_position(lat, lng), _default_origin())
    candidates = await PharmacyRepository(db).search(is_24h=is_24h, open_sunday=open_sunday)
    by_id = {p.id: p for p in candidates}
    nearest = find_nearest(origin, [pharmacy_reference_point(p) for p in candidates])

    response = NearestPharmacyResponse(
        origin=CoordinateResponse(latitude=origin.latitude, longitude=origin.longitude),
        used_fallback=used_fallback,
    )
    if nearest.found:
        response.pharmacy = PharmacyResponse.model_validate(by_id[nearest.point.id])
        response.distance_km = round(nearest.distance_km, 3)
    return response


@router.get("/{pharmacy_id}", response_model=PharmacyResponse, summary="Get pharmacy")
@limiter.limit("100/minute")
async def get_pharmacy(
    request: Request, pharmacy_id: int, db: AsyncSession = Depends(get_db)
):
    pharmacy = await PharmacyRepository(db).get_by_id(pharmacy_id)
    if not pharmacy:
        raise HTTPException(status_code=404, detail="Pharmacy not found")
    return pharmacy


# ── Admin ─────────────────────────────────────────────────────────────


@router.post(
    "",
    status_code=201,
    response_model=PharmacyResponse,
    summary="Create a pharmacy",
    dependencies=[Depends(require_admin)],
)
async def create_pharmacy(
    body: PharmacyCreateRequest,
    db: AsyncSession = Depends(get_db),
    cache: NearbyCache = Depends(get_nearby_cache),
):
    if not await CityRepository(db).get_by_id(body.city_id):
        raise HTTPException(status_code=422, detail="Unknown city")
    pharmacy = await PharmacyRepository(db).create_pharmacy(**body.model_dump())
    await commit_and_clear_cache(db, cache)
    return pharmacy


@router.patch(
    "/{pharmacy_id}",
    response_model=PharmacyResponse,
    summary="Update a pharmacy",
    dependencies=[Depends(require_admin)],
)
async def update_pharmacy(
    pharmacy_id: int,
    body: PharmacyUpdateRequest,
    db: AsyncSession = Depends(get_db),
    cache: NearbyCache = Depends(get_nearby_cache),
):
    repo = PharmacyRepository(db)
    pharmacy = await repo.get_by_id(pharmacy_id)
    if not pharmacy:
        raise HTTPException(status_code=404, detail="Pharmacy not found")

    fields = body.model_dump(exclude_unset=True)
    if "city_id" in fields and not await CityRepository(db).get_by_id(fields["city_id"]):
        raise HTTPException(status_code=422, detail="Unknown city")
    pharmacy = await repo.update(pharmacy, fields)
    await commit_and_clear_cache(db, cache)
    return pharmacy


@router.delete(
    "/{pharmacy_id}",
    status_code=204,
    summary="Delete a pharmacy",
    dependencies=[Depends(require_admin)],
)
async def delete_pharmacy(
    pharmacy_id: int,
    db: AsyncSession = Depends(get_db),
    cache: NearbyCache = Depends(get_nearby_cache),
):
    repo = PharmacyRepository(db)
    pharmacy = await repo.get_by_id(pharmacy_id)
    if not pharmacy:
        raise HTTPException(status_code=404, detail="Pharmacy not found")
    await repo.delete(pharmacy)
    await commit_and_clear_cache(db, cache)
    return Response(status_code=204)


@router.put(
    "/{pharmacy_id}/medicines/{medicine_id}",
    status_code=204,
    summary="Mark a medicine as stocked by a pharmacy",
    dependencies=[Depends(require_admin)],
)
async def add_stock(
    pharmacy_id: int, medicine_id: int, db: AsyncSession = Depends(get_db)
):
    repo = PharmacyRepository(db)
    if not await repo.get_by_id(pharmacy_id):
        raise HTTPException(status_code=404, detail="Pharmacy not found")
    if not await MedicineRepository(db).get_by_id(medicine_id):
        raise HTTPException(status_code=404, detail="Medicine not found")
    await repo.add_medicine(pharmacy_id, medicine_id)
    return Response(status_code=204)


@router.delete(
    "/{pharmacy_id}/medicines/{medicine_id}",
    status_code=204,
    summary="Remove a medicine from a pharmacy's stock",
    dependencies=[Depends(require_admin)],
)
async def remove_stock(
    pharmacy_id: int, medicine_id: int, db: AsyncSession = Depends(get_db)
):
    if not await PharmacyRepository(db).remove_medicine(pharmacy_id, medicine_id):
        raise HTTPException(status_code=404, detail="Medicine not stocked by this pharmacy")
    return Response(status_code=204)

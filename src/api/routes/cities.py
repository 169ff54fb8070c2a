"""
City endpoints
==============

GET /api/v1/cities               -- all cities
GET /api/v1/cities/nearest       -- city closest to the client's position
GET /api/v1/cities/slug/{slug}   -- city by slug
GET /api/v1/cities/{city_id}     -- city by id
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db
from src.api.middleware import limiter
from src.api.schemas import CityResponse, CoordinateResponse, NearestCityResponse
from src.config import settings
from src.domain.entities import Coordinate, ReferencePoint, localized_name
from src.domain.enums import Language
from src.domain.location import query_position, resolve_origin
from src.domain.nearest import find_nearest
from src.infrastructure.models import CityModel
from src.infrastructure.repositories import CityRepository

router = APIRouter(prefix="/cities", tags=["cities"])


def city_reference_point(city: CityModel, lang: Language = Language.ME) -> ReferencePoint:
    coordinate = None
    if city.latitude is not None and city.longitude is not None:
        coordinate = Coordinate(city.latitude, city.longitude)
    return ReferencePoint(
        id=city.id,
        coordinate=coordinate,
        display_name=localized_name(city.name_me, city.name_en, lang),
    )


@router.get("", response_model=list[CityResponse], summary="List all cities")
@limiter.limit("100/minute")
async def list_cities(request: Request, db: AsyncSession = Depends(get_db)):
    return await CityRepository(db).list_all()


@router.get(
    "/nearest",
    response_model=NearestCityResponse,
    summary="Find the city nearest to a position",
    description=(
        "Falls back to the default position (Podgorica) when lat/lng are "
        "missing or invalid."
    ),
)
@limiter.limit("100/minute")
async def nearest_city(
    request: Request,
    lat: Optional[float] = Query(None),
    lng: Optional[float] = Query(None),
    lang: Language = Query(Language.ME),
    db: AsyncSession = Depends(get_db),
):
    origin, used_fallback = resolve_origin(
        query_position(lat, lng),
        Coordinate(settings.default_latitude, settings.default_longitude),
    )
    cities = await CityRepository(db).list_all()
    by_id = {c.id: c for c in cities}
    nearest = find_nearest(origin, [city_reference_point(c, lang) for c in cities])

    response = NearestCityResponse(
        origin=CoordinateResponse(latitude=origin.latitude, longitude=origin.longitude),
        used_fallback=used_fallback,
    )
    if nearest.found:
        response.city = CityResponse.model_validate(by_id[nearest.point.id])
        response.display_name = nearest.point.display_name
        response.distance_km = round(nearest.distance_km, 3)
    return response


@router.get("/slug/{slug}", response_model=CityResponse, summary="Get city by slug")
@limiter.limit("100/minute")
async def get_city_by_slug(
    request: Request, slug: str, db: AsyncSession = Depends(get_db)
):
    city = await CityRepository(db).get_by_slug(slug)
    if not city:
        raise HTTPException(status_code=404, detail="City not found")
    return city


@router.get("/{city_id}", response_model=CityResponse, summary="Get city by id")
@limiter.limit("100/minute")
async def get_city(request: Request, city_id: int, db: AsyncSession = Depends(get_db)):
    city = await CityRepository(db).get_by_id(city_id)
    if not city:
        raise HTTPException(status_code=404, detail="City not found")
    return city

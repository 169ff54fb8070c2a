"""
Advertisement endpoints
=======================

GET    /api/v1/ads                    -- active ads in their date window, by weight
POST   /api/v1/ads/{ad_id}/impression -- count an impression
POST   /api/v1/ads/{ad_id}/click      -- count a click
POST   /api/v1/ads                    -- create  (admin)
PATCH  /api/v1/ads/{ad_id}            -- update  (admin)
DELETE /api/v1/ads/{ad_id}            -- delete  (admin)
"""

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db, require_admin
from src.api.middleware import limiter
from src.api.schemas import AdCreateRequest, AdResponse, AdUpdateRequest
from src.infrastructure.models import AdModel
from src.infrastructure.repositories import AdRepository

router = APIRouter(prefix="/ads", tags=["ads"])


@router.get("", response_model=list[AdResponse], summary="List active ads")
@limiter.limit("100/minute")
async def list_active_ads(request: Request, db: AsyncSession = Depends(get_db)):
    return await AdRepository(db).list_active()


@router.post("/{ad_id}/impression", status_code=204, summary="Record an impression")
@limiter.limit("300/minute")
async def record_impression(
    request: Request, ad_id: int, db: AsyncSession = Depends(get_db)
):
    if not await AdRepository(db).record_impression(ad_id):
        raise HTTPException(status_code=404, detail="Ad not found")
    return Response(status_code=204)


@router.post("/{ad_id}/click", status_code=204, summary="Record a click")
@limiter.limit("100/minute")
async def record_click(request: Request, ad_id: int, db: AsyncSession = Depends(get_db)):
    if not await AdRepository(db).record_click(ad_id):
        raise HTTPException(status_code=404, detail="Ad not found")
    return Response(status_code=204)


@router.post(
    "",
    status_code=201,
    response_model=AdResponse,
    summary="Create an ad",
    dependencies=[Depends(require_admin)],
)
async def create_ad(body: AdCreateRequest, db: AsyncSession = Depends(get_db)):
    if body.start_date and body.end_date and body.end_date < body.start_date:
        raise HTTPException(status_code=422, detail="end_date is before start_date")
    return await AdRepository(db).create(AdModel(**body.model_dump()))


@router.patch(
    "/{ad_id}",
    response_model=AdResponse,
    summary="Update an ad",
    dependencies=[Depends(require_admin)],
)
async def update_ad(
    ad_id: int, body: AdUpdateRequest, db: AsyncSession = Depends(get_db)
):
    repo = AdRepository(db)
    ad = await repo.get_by_id(ad_id)
    if not ad:
        raise HTTPException(status_code=404, detail="Ad not found")

    fields = body.model_dump(exclude_unset=True)
    start = fields.get("start_date", ad.start_date)
    end = fields.get("end_date", ad.end_date)
    if start and end and end < start:
        raise HTTPException(status_code=422, detail="end_date is before start_date")
    return await repo.update(ad, fields)


@router.delete(
    "/{ad_id}",
    status_code=204,
    summary="Delete an ad",
    dependencies=[Depends(require_admin)],
)
async def delete_ad(ad_id: int, db: AsyncSession = Depends(get_db)):
    repo = AdRepository(db)
    ad = await repo.get_by_id(ad_id)
    if not ad:
        raise HTTPException(status_code=404, detail="Ad not found")
    await repo.delete(ad)
    return Response(status_code=204)

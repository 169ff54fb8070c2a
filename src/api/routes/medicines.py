"""
Medicine endpoints
==================

GET    /api/v1/medicines                  -- catalogue, optional ``search``
GET    /api/v1/medicines/search?q=        -- type-ahead search (3+ chars)
GET    /api/v1/medicines/{medicine_id}    -- details with stocking pharmacies
POST   /api/v1/medicines                  -- create  (admin)
PATCH  /api/v1/medicines/{medicine_id}    -- update  (admin)
DELETE /api/v1/medicines/{medicine_id}    -- delete  (admin)
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db, require_admin
from src.api.middleware import limiter
from src.api.schemas import (
    MedicineCreateRequest,
    MedicineDetailResponse,
    MedicineResponse,
    MedicineUpdateRequest,
    PharmacyResponse,
)
from src.infrastructure.models import MedicineModel
from src.infrastructure.repositories import MedicineRepository

router = APIRouter(prefix="/medicines", tags=["medicines"])

MIN_SEARCH_LENGTH = 3


@router.get("", response_model=list[MedicineResponse], summary="List medicines")
@limiter.limit("100/minute")
async def list_medicines(
    request: Request,
    search: Optional[str] = Query(None, max_length=100),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
):
    return await MedicineRepository(db).search(search, limit=limit)


@router.get("/search", response_model=list[MedicineResponse], summary="Search medicines")
@limiter.limit("100/minute")
async def search_medicines(
    request: Request,
    q: str = Query(..., max_length=100),
    db: AsyncSession = Depends(get_db),
):
    if len(q.strip()) < MIN_SEARCH_LENGTH:
        return []
    return await MedicineRepository(db).search(q)


@router.get(
    "/{medicine_id}",
    response_model=MedicineDetailResponse,
    summary="Get a medicine and the pharmacies that stock it",
)
@limiter.limit("100/minute")
async def get_medicine(
    request: Request, medicine_id: int, db: AsyncSession = Depends(get_db)
):
    repo = MedicineRepository(db)
    medicine = await repo.get_by_id(medicine_id)
    if not medicine:
        raise HTTPException(status_code=404, detail="Medicine not found")
    pharmacies = await repo.get_pharmacies(medicine_id)
    return MedicineDetailResponse(
        **MedicineResponse.model_validate(medicine).model_dump(),
        pharmacies=[PharmacyResponse.model_validate(p) for p in pharmacies],
    )


@router.post(
    "",
    status_code=201,
    response_model=MedicineResponse,
    summary="Create a medicine",
    dependencies=[Depends(require_admin)],
)
async def create_medicine(
    body: MedicineCreateRequest, db: AsyncSession = Depends(get_db)
):
    return await MedicineRepository(db).create(MedicineModel(**body.model_dump()))


@router.patch(
    "/{medicine_id}",
    response_model=MedicineResponse,
    summary="Update a medicine",
    dependencies=[Depends(require_admin)],
)
async def update_medicine(
    medicine_id: int, body: MedicineUpdateRequest, db: AsyncSession = Depends(get_db)
):
    repo = MedicineRepository(db)
    medicine = await repo.get_by_id(medicine_id)
    if not medicine:
        raise HTTPException(status_code=404, detail="Medicine not found")
    return await repo.update(medicine, body.model_dump(exclude_unset=True))


@router.delete(
    "/{medicine_id}",
    status_code=204,
    summary="Delete a medicine",
    dependencies=[Depends(require_admin)],
)
async def delete_medicine(medicine_id: int, db: AsyncSession = Depends(get_db)):
    repo = MedicineRepository(db)
    medicine = await repo.get_by_id(medicine_id)
    if not medicine:
        raise HTTPException(status_code=404, detail="Medicine not found")
    await repo.delete(medicine)
    return Response(status_code=204)

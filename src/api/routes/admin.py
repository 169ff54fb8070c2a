"""
Admin / observability endpoints
===============================

GET /api/v1/admin/health -- simple health check
GET /api/v1/admin/stats  -- catalogue counts and pending submissions (admin)
"""

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db, require_admin
from src.api.schemas import HealthResponse, StatsResponse
from src.domain.enums import SubmissionStatus
from src.infrastructure import models

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health():
    return HealthResponse()


async def _count(db: AsyncSession, model, *criteria) -> int:
    result = await db.execute(select(func.count()).select_from(model).where(*criteria))
    return result.scalar() or 0


@router.get(
    "/stats",
    response_model=StatsResponse,
    summary="Catalogue counts",
    dependencies=[Depends(require_admin)],
)
async def stats(db: AsyncSession = Depends(get_db)):
    return StatsResponse(
        cities=await _count(db, models.CityModel),
        pharmacies=await _count(db, models.PharmacyModel, models.PharmacyModel.active.is_(True)),
        medicines=await _count(db, models.MedicineModel, models.MedicineModel.active.is_(True)),
        active_ads=await _count(db, models.AdModel, models.AdModel.active.is_(True)),
        pending_submissions=await _count(
            db,
            models.PharmacySubmissionModel,
            models.PharmacySubmissionModel.status == SubmissionStatus.RECEIVED.value,
        ),
    )

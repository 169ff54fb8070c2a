"""
Pharmacy submission endpoints
=============================

POST   /api/v1/pharmacy-submissions        -- submit a listing (public, 201)
GET    /api/v1/pharmacy-submissions        -- review queue          (admin)
PUT    /api/v1/pharmacy-submissions/{id}   -- change review status  (admin)
DELETE /api/v1/pharmacy-submissions/{id}   -- delete                (admin)

Approving a submission creates the pharmacy it describes.
"""

import logging
from typing import Optional

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
    SubmissionCreateRequest,
    SubmissionResponse,
    SubmissionStatusUpdateRequest,
)
from src.domain.entities import InvalidStateTransition, check_submission_transition
from src.domain.enums import SubmissionStatus
from src.infrastructure.cache import NearbyCache
from src.infrastructure.models import PharmacySubmissionModel
from src.infrastructure.repositories import (
    CityRepository,
    PharmacyRepository,
    SubmissionRepository,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pharmacy-submissions", tags=["submissions"])


@router.post(
    "",
    status_code=201,
    response_model=SubmissionResponse,
    summary="Submit a pharmacy listing for review",
)
@limiter.limit("10/minute")
async def create_submission(
    request: Request,
    body: SubmissionCreateRequest,
    db: AsyncSession = Depends(get_db),
):
    return await SubmissionRepository(db).create(
        PharmacySubmissionModel(**body.model_dump())
    )


@router.get(
    "",
    response_model=list[SubmissionResponse],
    summary="List submissions",
    dependencies=[Depends(require_admin)],
)
async def list_submissions(
    status: Optional[SubmissionStatus] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    return await SubmissionRepository(db).list_all(status)


@router.put(
    "/{submission_id}",
    response_model=SubmissionResponse,
    summary="Change a submission's review status",
    description=(
        "received -> reviewed | approved | rejected; reviewed -> approved | "
        "rejected.  Approval creates an active pharmacy in the submission's city."
    ),
    dependencies=[Depends(require_admin)],
)
async def update_submission_status(
    submission_id: int,
    body: SubmissionStatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
    cache: NearbyCache = Depends(get_nearby_cache),
):
    repo = SubmissionRepository(db)
    submission = await repo.get_by_id(submission_id)
    if not submission:
        raise HTTPException(status_code=404, detail="Submission not found")

    try:
        check_submission_transition(SubmissionStatus(submission.status), body.status)
    except InvalidStateTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc

    if body.status == SubmissionStatus.APPROVED:
        city = await CityRepository(db).get_by_slug(submission.city_slug)
        if not city:
            raise HTTPException(
                status_code=422, detail=f"Unknown city '{submission.city_slug}'"
            )
        pharmacy = await PharmacyRepository(db).create_pharmacy(
            city_id=city.id,
            name_me=submission.name_me,
            name_en=submission.name_en,
            address=submission.address,
            lat=submission.lat,
            lng=submission.lng,
            is_24h=submission.is_24h,
            open_sunday=submission.open_sunday,
            hours_monfri=submission.hours_monfri,
            hours_sat=submission.hours_sat,
            hours_sun=submission.hours_sun,
            phone=submission.phone,
            website=submission.website,
        )
        logger.info(
            "Submission %d approved as pharmacy %d", submission.id, pharmacy.id
        )

    submission.status = body.status.value
    if body.review_notes is not None:
        submission.review_notes = body.review_notes
    if body.status == SubmissionStatus.APPROVED:
        await commit_and_clear_cache(db, cache)
    return submission


@router.delete(
    "/{submission_id}",
    status_code=204,
    summary="Delete a submission",
    dependencies=[Depends(require_admin)],
)
async def delete_submission(submission_id: int, db: AsyncSession = Depends(get_db)):
    repo = SubmissionRepository(db)
    submission = await repo.get_by_id(submission_id)
    if not submission:
        raise HTTPException(status_code=404, detail="Submission not found")
    await repo.delete(submission)
    return Response(status_code=204)

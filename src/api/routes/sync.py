"""
Bulk sync endpoints  (admin)
============================

GET    /api/v1/admin/sync                -- orchestrator state and progress
GET    /api/v1/admin/sync/cities         -- cities that can be synced
POST   /api/v1/admin/sync/start          -- start a bulk sync (202)
POST   /api/v1/admin/sync/stop           -- stop after the in-flight city
DELETE /api/v1/admin/sync                -- clear the last run's results
POST   /api/v1/admin/sync/cities/{slug}  -- sync one city right away
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import (
    get_db,
    get_sync_client,
    get_sync_orchestrator,
    require_admin,
)
from src.api.schemas import (
    CityResponse,
    SyncResultResponse,
    SyncStartRequest,
    SyncStateResponse,
    SyncTaskResponse,
)
from src.domain.entities import SyncTask
from src.infrastructure.places_client import ExternalSyncFailure, PlacesSyncClient
from src.infrastructure.repositories import CityRepository
from src.workers.sync_orchestrator import SyncAlreadyRunning, SyncOrchestrator

router = APIRouter(
    prefix="/admin/sync", tags=["sync"], dependencies=[Depends(require_admin)]
)


def _task_response(task: Optional[SyncTask]) -> Optional[SyncTaskResponse]:
    if task is None:
        return None
    return SyncTaskResponse(
        city_slug=task.city_slug,
        city_name=task.city_name,
        status=task.status.value,
        retry_count=task.retry_count,
        max_retries=task.max_retries,
        error=task.error,
        result=SyncResultResponse.model_validate(task.result) if task.result else None,
    )


def state_response(orchestrator: SyncOrchestrator) -> SyncStateResponse:
    state = orchestrator.state
    message = None
    if state.finished:
        message = f"Sync completed! {state.summary()}"
    return SyncStateResponse(
        in_progress=state.in_progress,
        current=_task_response(state.current),
        queue=state.queue,
        completed=[_task_response(t) for t in state.completed],
        failed=[_task_response(t) for t in state.failed],
        total_cities=state.total_cities,
        processed_cities=state.processed_cities,
        progress_percent=state.progress_percent,
        message=message,
    )


@router.get("", response_model=SyncStateResponse, summary="Bulk sync status")
async def sync_status(
    orchestrator: SyncOrchestrator = Depends(get_sync_orchestrator),
):
    return state_response(orchestrator)


@router.get("/cities", response_model=list[CityResponse], summary="Syncable cities")
async def syncable_cities(db: AsyncSession = Depends(get_db)):
    return await CityRepository(db).list_all()


@router.post(
    "/start",
    status_code=202,
    response_model=SyncStateResponse,
    summary="Start a bulk sync",
    responses={409: {"description": "A bulk sync is already running."}},
)
async def start_sync(
    body: Optional[SyncStartRequest] = None,
    db: AsyncSession = Depends(get_db),
    orchestrator: SyncOrchestrator = Depends(get_sync_orchestrator),
):
    repo = CityRepository(db)
    requested = body.city_slugs if body else None
    if requested:
        cities = await repo.get_by_slugs(requested)
        known = {c.slug for c in cities}
        unknown = [s for s in requested if s not in known]
        if unknown:
            raise HTTPException(
                status_code=422, detail=f"Unknown cities: {', '.join(unknown)}"
            )
        slugs = requested
    else:
        cities = await repo.list_all()
        slugs = [c.slug for c in cities]

    if not slugs:
        raise HTTPException(status_code=422, detail="No cities available for sync")

    try:
        orchestrator.start(slugs, {c.slug: c.name_me for c in cities})
    except SyncAlreadyRunning as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return state_response(orchestrator)


@router.post("/stop", response_model=SyncStateResponse, summary="Stop the bulk sync")
async def stop_sync(orchestrator: SyncOrchestrator = Depends(get_sync_orchestrator)):
    orchestrator.stop()
    return state_response(orchestrator)


@router.delete("", response_model=SyncStateResponse, summary="Clear sync results")
async def clear_sync(orchestrator: SyncOrchestrator = Depends(get_sync_orchestrator)):
    try:
        orchestrator.clear()
    except SyncAlreadyRunning as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return state_response(orchestrator)


@router.post(
    "/cities/{slug}",
    response_model=SyncResultResponse,
    summary="Sync a single city now",
    responses={502: {"description": "The external sync call failed."}},
)
async def sync_single_city(
    slug: str,
    db: AsyncSession = Depends(get_db),
    client: PlacesSyncClient = Depends(get_sync_client),
):
    if not await CityRepository(db).get_by_slug(slug):
        raise HTTPException(status_code=404, detail="City not found")
    try:
        result = await client.sync_city(slug)
    except ExternalSyncFailure as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return SyncResultResponse.model_validate(result)

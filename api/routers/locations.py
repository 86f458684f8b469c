"""Location ingestion and shot endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query

from api.dependencies import get_current_user_id, get_ingest
from api.schemas import (
    ConfirmShotRequest,
    IngestResponse,
    LocationFixRequest,
    LocationFixResponse,
    SensorShotsRequest,
    ShotResponse,
)
from tracking.location_ingest import DEFAULT_HISTORY_LIMIT, LocationIngestService

router = APIRouter()


@router.post("/{round_id}/locations", response_model=IngestResponse)
async def record_location(
    round_id: str,
    req: LocationFixRequest,
    user_id: str = Depends(get_current_user_id),
    ingest: LocationIngestService = Depends(get_ingest),
):
    result = await ingest.record_fix(user_id, round_id, req.to_fix(user_id, round_id))
    return IngestResponse(
        fix=LocationFixResponse.from_fix(result.fix),
        shots=[ShotResponse.from_shot(s) for s in result.shots],
        hole_advanced=result.hole_advanced,
    )


@router.get("/{round_id}/locations", response_model=List[LocationFixResponse])
async def list_locations(
    round_id: str,
    hole: Optional[int] = Query(None, ge=1),
    limit: int = Query(DEFAULT_HISTORY_LIMIT, ge=1, le=1000),
    user_id: str = Depends(get_current_user_id),
    ingest: LocationIngestService = Depends(get_ingest),
):
    fixes = await ingest.list_fixes(user_id, round_id, hole_number=hole, limit=limit)
    return [LocationFixResponse.from_fix(f) for f in fixes]


@router.get("/{round_id}/shots", response_model=List[ShotResponse])
async def list_shots(
    round_id: str,
    hole: Optional[int] = Query(None, ge=1),
    user_id: str = Depends(get_current_user_id),
    ingest: LocationIngestService = Depends(get_ingest),
):
    shots = await ingest.list_shots(user_id, round_id, hole_number=hole)
    return [ShotResponse.from_shot(s) for s in shots]


@router.post(
    "/{round_id}/holes/{hole_number}/shots",
    response_model=List[ShotResponse],
    status_code=201,
)
async def record_sensor_shots(
    round_id: str,
    hole_number: int,
    req: SensorShotsRequest,
    user_id: str = Depends(get_current_user_id),
    ingest: LocationIngestService = Depends(get_ingest),
):
    shots = [s.to_shot(round_id, hole_number) for s in req.shots]
    stored = await ingest.record_external_shots(user_id, round_id, hole_number, shots)
    return [ShotResponse.from_shot(s) for s in stored]


@router.put(
    "/{round_id}/holes/{hole_number}/shots/{shot_number}/confirm",
    response_model=ShotResponse,
)
async def confirm_shot(
    round_id: str,
    hole_number: int,
    shot_number: int,
    req: Optional[ConfirmShotRequest] = Body(None),
    user_id: str = Depends(get_current_user_id),
    ingest: LocationIngestService = Depends(get_ingest),
):
    confirmed = req.confirmed if req is not None else True
    shot = await ingest.confirm_shot(user_id, round_id, hole_number, shot_number, confirmed)
    return ShotResponse.from_shot(shot)

"""Round lifecycle and scoring endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query

from api.dependencies import get_current_user_id, get_lifecycle
from api.schemas import CompleteRoundRequest, HoleScoreRequest, HoleScoreResponse, StartRoundRequest
from models import HoleScore, Round, RoundStatus
from services.errors import NotFound
from services.round_lifecycle import RoundLifecycleService

router = APIRouter()


@router.post("/start", response_model=Round, status_code=201)
async def start_round(
    req: StartRoundRequest,
    user_id: str = Depends(get_current_user_id),
    lifecycle: RoundLifecycleService = Depends(get_lifecycle),
):
    return await lifecycle.start_round(user_id, req.course_id, notes=req.notes)


@router.get("", response_model=List[Round])
async def list_rounds(
    status: Optional[RoundStatus] = Query(None),
    user_id: str = Depends(get_current_user_id),
    lifecycle: RoundLifecycleService = Depends(get_lifecycle),
):
    return await lifecycle.list_rounds(user_id, status)


@router.get("/active", response_model=Round)
async def get_active_round(
    user_id: str = Depends(get_current_user_id),
    lifecycle: RoundLifecycleService = Depends(get_lifecycle),
):
    round_ = await lifecycle.get_active_round(user_id)
    if round_ is None:
        raise NotFound("No active round")
    return round_


@router.get("/{round_id}", response_model=Round)
async def get_round(
    round_id: str,
    user_id: str = Depends(get_current_user_id),
    lifecycle: RoundLifecycleService = Depends(get_lifecycle),
):
    return await lifecycle.get_round(user_id, round_id)


@router.put("/{round_id}/pause", response_model=Round)
async def pause_round(
    round_id: str,
    user_id: str = Depends(get_current_user_id),
    lifecycle: RoundLifecycleService = Depends(get_lifecycle),
):
    return await lifecycle.pause_round(user_id, round_id)


@router.put("/{round_id}/resume", response_model=Round)
async def resume_round(
    round_id: str,
    user_id: str = Depends(get_current_user_id),
    lifecycle: RoundLifecycleService = Depends(get_lifecycle),
):
    return await lifecycle.resume_round(user_id, round_id)


@router.put("/{round_id}/complete", response_model=Round)
async def complete_round(
    round_id: str,
    req: Optional[CompleteRoundRequest] = Body(None),
    user_id: str = Depends(get_current_user_id),
    lifecycle: RoundLifecycleService = Depends(get_lifecycle),
):
    totals = req.to_totals() if req is not None else None
    return await lifecycle.complete_round(user_id, round_id, totals)


@router.put("/{round_id}/abandon", response_model=Round)
async def abandon_round(
    round_id: str,
    user_id: str = Depends(get_current_user_id),
    lifecycle: RoundLifecycleService = Depends(get_lifecycle),
):
    return await lifecycle.abandon_round(user_id, round_id)


@router.put("/{round_id}/holes/{hole_number}/score", response_model=HoleScoreResponse)
async def record_hole_score(
    round_id: str,
    hole_number: int,
    req: HoleScoreRequest,
    user_id: str = Depends(get_current_user_id),
    lifecycle: RoundLifecycleService = Depends(get_lifecycle),
):
    hole_score, round_ = await lifecycle.record_hole_score(
        user_id,
        round_id,
        hole_number,
        req.score,
        putts=req.putts,
        fairway_hit=req.fairway_hit,
        green_in_regulation=req.green_in_regulation,
    )
    return HoleScoreResponse(hole_score=hole_score, round=round_)


@router.get("/{round_id}/scores", response_model=List[HoleScore])
async def get_hole_scores(
    round_id: str,
    user_id: str = Depends(get_current_user_id),
    lifecycle: RoundLifecycleService = Depends(get_lifecycle),
):
    return await lifecycle.get_hole_scores(user_id, round_id)

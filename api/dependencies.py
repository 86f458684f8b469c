from typing import Optional
from uuid import UUID

from fastapi import Header, HTTPException, Request

from database.db_manager import DatabaseManager
from llm.advice import AdviceService
from services.round_lifecycle import RoundLifecycleService
from tracking.location_ingest import LocationIngestService


def get_db(request: Request) -> DatabaseManager:
    """FastAPI dependency that provides the DatabaseManager."""
    return request.app.state.db_manager


def get_lifecycle(request: Request) -> RoundLifecycleService:
    return request.app.state.lifecycle


def get_ingest(request: Request) -> LocationIngestService:
    return request.app.state.ingest


def get_advice(request: Request) -> AdviceService:
    return request.app.state.advice


async def get_current_user_id(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
) -> str:
    """Caller identity, supplied by the upstream auth layer as a UUID header."""
    if not x_user_id:
        raise HTTPException(401, "Missing X-User-Id header")
    try:
        return str(UUID(x_user_id))
    except ValueError:
        raise HTTPException(401, "X-User-Id must be a UUID")

"""Performance statistics endpoints."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from analytics.stats import (
    CoursePerformance,
    PerformanceAnalysis,
    course_performance,
    performance_analysis,
)
from api.dependencies import get_current_user_id, get_db, get_lifecycle
from database.db_manager import DatabaseManager
from models import RoundStatus
from services.errors import NotFound, ValidationError
from services.round_lifecycle import RoundLifecycleService

router = APIRouter()


def _check_range(start_date: Optional[date], end_date: Optional[date]) -> None:
    if start_date and end_date and start_date > end_date:
        raise ValidationError("startDate must not be after endDate")


@router.get("/performance", response_model=PerformanceAnalysis)
async def get_performance(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    user_id: str = Depends(get_current_user_id),
    lifecycle: RoundLifecycleService = Depends(get_lifecycle),
):
    _check_range(start_date, end_date)
    rounds = await lifecycle.list_rounds(user_id, RoundStatus.COMPLETED)
    return performance_analysis(rounds, start_date, end_date)


@router.get("/courses/{course_id}", response_model=CoursePerformance)
async def get_course_performance(
    course_id: str,
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    user_id: str = Depends(get_current_user_id),
    lifecycle: RoundLifecycleService = Depends(get_lifecycle),
    db: DatabaseManager = Depends(get_db),
):
    """Performance on one course; 404 when no completed round falls in range."""
    _check_range(start_date, end_date)
    course = await db.courses.get_course(course_id)
    if course is None:
        raise NotFound(f"Course {course_id} not found")
    rounds = await lifecycle.list_rounds(user_id, RoundStatus.COMPLETED)
    performance = course_performance(rounds, course, start_date, end_date)
    if performance.rounds_played == 0:
        raise NotFound(f"No completed rounds on course {course_id} in this period")
    return performance

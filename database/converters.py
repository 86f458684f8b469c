"""Conversion between asyncpg database rows and Pydantic domain models.

Centralizes all mapping logic between the normalized DB schema
and the domain models. Points are stored as latitude/longitude column
pairs; point lists (boundaries, centre lines) as JSONB ``[[lat, lon], ...]``.
"""

import json
from typing import Any, List, Optional, Tuple
from uuid import UUID

from models import (
    Course,
    EnrichedLocationFix,
    GeoPoint,
    Hole,
    HoleScore,
    PositionOnHole,
    Round,
    RoundStatus,
    ShotEvent,
    ShotSource,
)


# ================================================================
# Helpers
# ================================================================

def parse_uuid(value: Optional[str]) -> Optional[UUID]:
    """UUID from a string id, or None when it is not a valid UUID."""
    if value is None:
        return None
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        return None


def _str_id(value) -> Optional[str]:
    return str(value) if value is not None else None


def _point(lat, lon) -> Optional[GeoPoint]:
    if lat is None or lon is None:
        return None
    return GeoPoint(latitude=lat, longitude=lon)


def points_from_json(value: Any) -> List[GeoPoint]:
    """JSONB point list -> GeoPoints. Accepts decoded lists or raw JSON text."""
    if value is None:
        return []
    if isinstance(value, (str, bytes)):
        value = json.loads(value)
    return [GeoPoint.from_pair(pair) for pair in value]


# ================================================================
# Row -> Model (reads)
# ================================================================

def hole_from_row(row) -> Hole:
    """courses.holes row -> Hole model."""
    return Hole(
        number=row["hole_number"],
        par=row["par"],
        hole_id=_str_id(row["id"]),
        tee_location=_point(row["tee_latitude"], row["tee_longitude"]),
        pin_location=_point(row["pin_latitude"], row["pin_longitude"]),
        fairway_center_line=points_from_json(row["fairway_center_line"]),
    )


def course_from_rows(course_row, hole_rows: list) -> Course:
    """courses.courses row + courses.holes rows -> Course."""
    holes = sorted((hole_from_row(r) for r in hole_rows), key=lambda h: h.number)
    return Course(
        id=str(course_row["id"]),
        name=course_row["name"],
        total_holes=course_row["total_holes"],
        holes=holes,
        boundary=points_from_json(course_row["boundary"]),
    )


def round_from_row(row) -> Round:
    """play.rounds row -> Round model."""
    return Round(
        id=str(row["id"]),
        user_id=str(row["user_id"]),
        course_id=str(row["course_id"]),
        status=RoundStatus(row["status"]),
        current_hole=row["current_hole"],
        total_holes=row["total_holes"],
        start_time=row["start_time"],
        end_time=row["end_time"],
        total_score=row["total_score"],
        total_putts=row["total_putts"],
        fairways_hit=row["fairways_hit"],
        greens_in_regulation=row["greens_in_regulation"],
        notes=row["notes"],
        version=row["version"],
    )


def hole_score_from_row(row) -> HoleScore:
    """play.hole_scores row -> HoleScore model."""
    return HoleScore(
        round_id=str(row["round_id"]),
        hole_number=row["hole_number"],
        hole_id=_str_id(row["hole_id"]),
        score=row["score"],
        putts=row["putts"],
        fairway_hit=row["fairway_hit"],
        green_in_regulation=row["green_in_regulation"],
    )


def fix_from_row(row) -> EnrichedLocationFix:
    """play.location_fixes row -> EnrichedLocationFix."""
    return EnrichedLocationFix(
        user_id=str(row["user_id"]),
        round_id=str(row["round_id"]),
        latitude=row["latitude"],
        longitude=row["longitude"],
        accuracy_meters=row["accuracy_meters"],
        heading_degrees=row["heading_degrees"],
        speed_mps=row["speed_mps"],
        altitude_meters=row["altitude_meters"],
        recorded_at=row["recorded_at"],
        hole_number=row["hole_number"],
        detected_hole=row["detected_hole"],
        position_on_hole=PositionOnHole(row["position_on_hole"]),
        distance_to_tee_meters=row["distance_to_tee_meters"],
        distance_to_pin_meters=row["distance_to_pin_meters"],
        within_course_boundary=row["within_course_boundary"],
        low_accuracy=row["low_accuracy"],
    )


def shot_from_row(row) -> ShotEvent:
    """play.shot_events row -> ShotEvent."""
    lie = row["lie_condition"]
    return ShotEvent(
        round_id=str(row["round_id"]),
        hole_number=row["hole_number"],
        shot_number=row["shot_number"],
        start_location=_point(row["start_latitude"], row["start_longitude"]),
        end_location=_point(row["end_latitude"], row["end_longitude"]),
        distance_meters=row["distance_meters"],
        lie_condition=PositionOnHole(lie) if lie else None,
        shot_type=row["shot_type"],
        estimated_club=row["estimated_club"],
        detection_confidence=row["detection_confidence"],
        source=ShotSource(row["source"]),
        started_at=row["started_at"],
        ended_at=row["ended_at"],
        user_confirmed=row["user_confirmed"],
    )


# ================================================================
# Model -> Row tuple (writes, column order matches the INSERTs)
# ================================================================

def fix_to_row(fix: EnrichedLocationFix) -> Tuple:
    return (
        UUID(fix.round_id), fix.recorded_at, UUID(fix.user_id),
        fix.latitude, fix.longitude, fix.accuracy_meters,
        fix.heading_degrees, fix.speed_mps, fix.altitude_meters,
        fix.hole_number, fix.detected_hole, fix.position_on_hole.value,
        fix.distance_to_tee_meters, fix.distance_to_pin_meters,
        fix.within_course_boundary, fix.low_accuracy,
    )


def shot_to_row(shot: ShotEvent) -> Tuple:
    return (
        UUID(shot.round_id), shot.hole_number, shot.shot_number, shot.source.value,
        shot.start_location.latitude, shot.start_location.longitude,
        shot.end_location.latitude, shot.end_location.longitude,
        shot.distance_meters,
        shot.lie_condition.value if shot.lie_condition else None,
        shot.shot_type, shot.estimated_club, shot.detection_confidence,
        shot.started_at, shot.ended_at, shot.user_confirmed,
    )

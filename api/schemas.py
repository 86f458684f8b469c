"""Request and response models for the HTTP API.

Requests accept camelCase or snake_case keys; responses are snake_case.
Distances cross the API boundary in yards and are converted here, once.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from geo.geomath import METERS_PER_YARD, distance_meters
from models import (
    EnrichedLocationFix,
    GeoPoint,
    HoleScore,
    LocationFix,
    PositionOnHole,
    Round,
    ShotEvent,
    ShotSource,
)
from services.round_lifecycle import RoundTotals
from tracking.shot_tracker import estimate_club


def to_yards(meters: Optional[float]) -> Optional[float]:
    if meters is None:
        return None
    return round(meters / METERS_PER_YARD, 1)


def _alias(snake: str, camel: str, **kwargs):
    return Field(validation_alias=AliasChoices(snake, camel), **kwargs)


class _Request(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ================================================================
# Requests
# ================================================================

class StartRoundRequest(_Request):
    course_id: str = _alias("course_id", "courseId")
    notes: Optional[str] = None


class CompleteRoundRequest(_Request):
    total_score: Optional[int] = _alias("total_score", "totalScore", default=None)
    total_putts: Optional[int] = _alias("total_putts", "totalPutts", default=None)
    fairways_hit: Optional[int] = _alias("fairways_hit", "fairwaysHit", default=None)
    greens_in_regulation: Optional[int] = _alias(
        "greens_in_regulation", "greensInRegulation", default=None
    )

    def to_totals(self) -> RoundTotals:
        return RoundTotals(**self.model_dump())


class LocationFixRequest(_Request):
    # Range checks happen in ingestion so bad coordinates get a domain error.
    latitude: float
    longitude: float
    accuracy_meters: float = _alias("accuracy_meters", "accuracyMeters")
    recorded_at: datetime = _alias("recorded_at", "recordedAt")
    heading_degrees: Optional[float] = _alias("heading_degrees", "headingDegrees", default=None)
    speed_mps: Optional[float] = _alias("speed_mps", "speedMps", default=None, ge=0)
    altitude_meters: Optional[float] = _alias("altitude_meters", "altitudeMeters", default=None)

    def to_fix(self, user_id: str, round_id: str) -> LocationFix:
        return LocationFix(user_id=user_id, round_id=round_id, **self.model_dump())


class HoleScoreRequest(_Request):
    score: int
    putts: Optional[int] = None
    fairway_hit: Optional[bool] = _alias("fairway_hit", "fairwayHit", default=None)
    green_in_regulation: Optional[bool] = _alias(
        "green_in_regulation", "greenInRegulation", default=None
    )


class SensorShotRequest(_Request):
    start_latitude: float = _alias("start_latitude", "startLatitude", ge=-90, le=90)
    start_longitude: float = _alias("start_longitude", "startLongitude", ge=-180, le=180)
    end_latitude: float = _alias("end_latitude", "endLatitude", ge=-90, le=90)
    end_longitude: float = _alias("end_longitude", "endLongitude", ge=-180, le=180)
    club: Optional[str] = None
    lie_condition: Optional[PositionOnHole] = _alias("lie_condition", "lieCondition", default=None)
    shot_type: Optional[str] = _alias("shot_type", "shotType", default=None)
    confidence: float = Field(1.0, ge=0, le=1)
    started_at: Optional[datetime] = _alias("started_at", "startedAt", default=None)
    ended_at: Optional[datetime] = _alias("ended_at", "endedAt", default=None)

    def to_shot(self, round_id: str, hole_number: int) -> ShotEvent:
        start = GeoPoint(latitude=self.start_latitude, longitude=self.start_longitude)
        end = GeoPoint(latitude=self.end_latitude, longitude=self.end_longitude)
        distance = distance_meters(start, end)
        return ShotEvent(
            round_id=round_id,
            hole_number=hole_number,
            # Renumbered on storage.
            shot_number=1,
            start_location=start,
            end_location=end,
            distance_meters=distance,
            lie_condition=self.lie_condition,
            shot_type=self.shot_type,
            estimated_club=self.club or estimate_club(distance),
            detection_confidence=self.confidence,
            source=ShotSource.SENSOR,
            started_at=self.started_at,
            ended_at=self.ended_at,
        )


class SensorShotsRequest(_Request):
    shots: List[SensorShotRequest] = Field(..., min_length=1)


class ConfirmShotRequest(_Request):
    confirmed: bool = True


class AdviceRequest(_Request):
    question: str


# ================================================================
# Responses
# ================================================================

class LocationFixResponse(BaseModel):
    round_id: str
    latitude: float
    longitude: float
    accuracy_meters: float
    heading_degrees: Optional[float] = None
    speed_mps: Optional[float] = None
    altitude_meters: Optional[float] = None
    recorded_at: datetime
    hole_number: int
    detected_hole: int
    position_on_hole: PositionOnHole
    distance_to_tee_yards: Optional[float] = None
    distance_to_pin_yards: Optional[float] = None
    within_course_boundary: bool
    low_accuracy: bool

    @classmethod
    def from_fix(cls, fix: EnrichedLocationFix) -> "LocationFixResponse":
        data = fix.model_dump(exclude={"user_id", "distance_to_tee_meters", "distance_to_pin_meters"})
        return cls(
            **data,
            distance_to_tee_yards=to_yards(fix.distance_to_tee_meters),
            distance_to_pin_yards=to_yards(fix.distance_to_pin_meters),
        )


class ShotResponse(BaseModel):
    round_id: str
    hole_number: int
    shot_number: int
    start_location: GeoPoint
    end_location: GeoPoint
    distance_yards: float
    lie_condition: Optional[PositionOnHole] = None
    shot_type: Optional[str] = None
    estimated_club: Optional[str] = None
    detection_confidence: float
    source: ShotSource
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    user_confirmed: bool

    @classmethod
    def from_shot(cls, shot: ShotEvent) -> "ShotResponse":
        data = shot.model_dump(exclude={"distance_meters"})
        return cls(**data, distance_yards=to_yards(shot.distance_meters))


class IngestResponse(BaseModel):
    fix: LocationFixResponse
    shots: List[ShotResponse] = []
    hole_advanced: bool = False


class HoleScoreResponse(BaseModel):
    hole_score: HoleScore
    round: Round

from datetime import datetime
from enum import Enum
from pydantic import Field, field_validator
from typing import Optional

from .base import FrozenGolfModel, as_utc
from .geo import GeoPoint


class PositionOnHole(str, Enum):
    """Where a fix sits relative to the hole's playing corridor."""
    TEE = "tee"
    FAIRWAY = "fairway"
    ROUGH = "rough"
    GREEN = "green"
    HAZARD = "hazard"
    UNKNOWN = "unknown"


class LocationFix(FrozenGolfModel):
    """One raw GPS sample as reported by the device.

    Coordinates are not range-checked here; ingestion rejects bad values
    with a domain error so the client gets a structured response.
    """
    user_id: str
    round_id: str
    latitude: float
    longitude: float
    accuracy_meters: float
    heading_degrees: Optional[float] = None
    speed_mps: Optional[float] = Field(None, ge=0)
    altitude_meters: Optional[float] = None
    recorded_at: datetime

    @field_validator("recorded_at")
    @classmethod
    def normalise_recorded_at(cls, value: datetime) -> datetime:
        return as_utc(value)

    @property
    def point(self) -> GeoPoint:
        return GeoPoint(latitude=self.latitude, longitude=self.longitude)


class EnrichedLocationFix(LocationFix):
    """A fix plus its course-aware classification. Append-only."""
    hole_number: int = Field(..., ge=1)
    detected_hole: int = Field(..., ge=1)
    position_on_hole: PositionOnHole = PositionOnHole.UNKNOWN
    distance_to_tee_meters: Optional[float] = None
    distance_to_pin_meters: Optional[float] = None
    within_course_boundary: bool = True
    low_accuracy: bool = False

from datetime import datetime
from enum import Enum
from pydantic import Field, field_validator
from typing import Optional

from .base import FrozenGolfModel, as_utc
from .geo import GeoPoint
from .location import PositionOnHole


class ShotSource(str, Enum):
    """Where a shot came from. Sensor data takes precedence over GPS."""
    GPS = "gps"
    SENSOR = "sensor"


class ShotEvent(FrozenGolfModel):
    """One detected shot. Only ``user_confirmed`` may change after creation."""
    round_id: str
    hole_number: int = Field(..., ge=1)
    shot_number: int = Field(..., ge=1)
    start_location: GeoPoint
    end_location: GeoPoint
    distance_meters: float = Field(..., ge=0)
    lie_condition: Optional[PositionOnHole] = None
    shot_type: Optional[str] = None
    estimated_club: Optional[str] = None
    detection_confidence: float = Field(1.0, ge=0, le=1)
    source: ShotSource = ShotSource.GPS
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    user_confirmed: bool = False

    @field_validator("started_at", "ended_at")
    @classmethod
    def normalise_times(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)

    def confirmed(self, value: bool = True) -> "ShotEvent":
        return self.model_copy(update={"user_confirmed": value})

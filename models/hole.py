from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

from .geo import GeoPoint


class Hole(BaseModel):
    """A single hole on a course with the geometry used for tracking.

    Every geometric field is optional: course data is often only partially
    surveyed, and consumers degrade to "unknown" rather than failing.
    """
    model_config = ConfigDict(validate_assignment=True)

    number: int = Field(..., ge=1, le=36)
    par: Optional[int] = Field(None, ge=3, le=6)
    hole_id: Optional[str] = None
    tee_location: Optional[GeoPoint] = None
    pin_location: Optional[GeoPoint] = None
    fairway_center_line: List[GeoPoint] = Field(default_factory=list)

    @property
    def has_tee_and_pin(self) -> bool:
        return self.tee_location is not None and self.pin_location is not None

    def center_line(self) -> List[GeoPoint]:
        """Playing line: surveyed centre line, else straight tee-to-pin."""
        if len(self.fairway_center_line) >= 2:
            return list(self.fairway_center_line)
        if self.has_tee_and_pin:
            return [self.tee_location, self.pin_location]
        return []

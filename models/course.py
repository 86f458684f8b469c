from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import List, Optional

from .geo import GeoPoint
from .hole import Hole


class Course(BaseModel):
    """Read-only course master data: holes plus an optional boundary polygon."""
    model_config = ConfigDict(validate_assignment=True)

    id: Optional[str] = None
    name: Optional[str] = None
    total_holes: int = Field(18, ge=1, le=36)
    holes: List[Hole] = Field(default_factory=list)
    boundary: List[GeoPoint] = Field(default_factory=list)

    @model_validator(mode='after')
    def validate_hole_numbers(self):
        numbers = [h.number for h in self.holes]
        if len(numbers) != len(set(numbers)):
            raise ValueError("Duplicate hole numbers on course")
        for number in numbers:
            if number > self.total_holes:
                raise ValueError(
                    f"Hole {number} exceeds course total of {self.total_holes} holes"
                )
        return self

    def get_hole(self, number: int) -> Optional[Hole]:
        """Get a hole by its number."""
        for hole in self.holes:
            if hole.number == number:
                return hole
        return None

    @property
    def has_boundary(self) -> bool:
        return len(self.boundary) >= 3

    def get_par(self) -> Optional[int]:
        """Total par, or None when any hole is missing par."""
        if len(self.holes) != self.total_holes or any(h.par is None for h in self.holes):
            return None
        return sum(h.par for h in self.holes)

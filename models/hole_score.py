from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional

MIN_SCORE = 1
MAX_SCORE = 15
MAX_PUTTS = 10


class HoleScore(BaseModel):
    """A player's score on a single hole of a round."""
    model_config = ConfigDict(validate_assignment=True)

    round_id: str
    hole_number: int = Field(..., ge=1, le=36)
    hole_id: Optional[str] = None
    score: int = Field(..., ge=MIN_SCORE, le=MAX_SCORE)
    putts: Optional[int] = Field(None, ge=0, le=MAX_PUTTS)
    fairway_hit: Optional[bool] = None
    green_in_regulation: Optional[bool] = None

    @model_validator(mode='after')
    def validate_score_consistency(self):
        # Putts cannot exceed strokes
        if self.putts is not None and self.putts > self.score:
            raise ValueError(f"Putts ({self.putts}) cannot exceed score ({self.score})")
        return self

from datetime import datetime
from enum import Enum
from pydantic import Field, model_validator
from typing import Dict, Optional, Tuple

from .base import BaseGolfModel


class RoundStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    PAUSED = "paused"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class RoundEvent(str, Enum):
    START = "start"
    PAUSE = "pause"
    RESUME = "resume"
    COMPLETE = "complete"
    ABANDON = "abandon"


ACTIVE_STATUSES = frozenset({RoundStatus.IN_PROGRESS, RoundStatus.PAUSED})
TERMINAL_STATUSES = frozenset({RoundStatus.COMPLETED, RoundStatus.ABANDONED})

# Every allowed (from, event) pair. Anything missing is rejected.
TRANSITIONS: Dict[Tuple[RoundStatus, RoundEvent], RoundStatus] = {
    (RoundStatus.NOT_STARTED, RoundEvent.START): RoundStatus.IN_PROGRESS,
    (RoundStatus.IN_PROGRESS, RoundEvent.PAUSE): RoundStatus.PAUSED,
    (RoundStatus.PAUSED, RoundEvent.RESUME): RoundStatus.IN_PROGRESS,
    (RoundStatus.IN_PROGRESS, RoundEvent.COMPLETE): RoundStatus.COMPLETED,
    (RoundStatus.PAUSED, RoundEvent.COMPLETE): RoundStatus.COMPLETED,
    (RoundStatus.IN_PROGRESS, RoundEvent.ABANDON): RoundStatus.ABANDONED,
    (RoundStatus.PAUSED, RoundEvent.ABANDON): RoundStatus.ABANDONED,
}


def next_status(current: RoundStatus, event: RoundEvent) -> Optional[RoundStatus]:
    """Target status for an event, or None if the transition is not allowed."""
    return TRANSITIONS.get((current, event))


class Round(BaseGolfModel):
    """One golfer's play session on one course.

    Totals are derived from the round's hole scores by the lifecycle
    service; they are never edited independently while the round is active.
    """
    id: Optional[str] = None
    user_id: str
    course_id: str
    status: RoundStatus = RoundStatus.NOT_STARTED
    current_hole: int = Field(1, ge=1)
    total_holes: int = Field(18, ge=1, le=36)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    total_score: Optional[int] = Field(None, ge=0)
    total_putts: Optional[int] = Field(None, ge=0)
    fairways_hit: Optional[int] = Field(None, ge=0)
    greens_in_regulation: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None
    version: int = 0

    @model_validator(mode='after')
    def validate_current_hole(self):
        if self.current_hole > self.total_holes:
            raise ValueError(
                f"Current hole {self.current_hole} exceeds {self.total_holes} holes"
            )
        return self

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def round_date(self) -> Optional[datetime]:
        return self.start_time or self.end_time

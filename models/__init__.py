from .base import BaseGolfModel, FrozenGolfModel
from .course import Course
from .geo import GeoPoint
from .hole import Hole
from .hole_score import HoleScore
from .location import EnrichedLocationFix, LocationFix, PositionOnHole
from .round import Round, RoundEvent, RoundStatus
from .shot import ShotEvent, ShotSource

__all__ = [
    "BaseGolfModel",
    "FrozenGolfModel",
    "Course",
    "GeoPoint",
    "Hole",
    "HoleScore",
    "EnrichedLocationFix",
    "LocationFix",
    "PositionOnHole",
    "Round",
    "RoundEvent",
    "RoundStatus",
    "ShotEvent",
    "ShotSource",
]

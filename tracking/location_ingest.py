"""Fix ingestion: validate, enrich, persist, detect shots, advance holes."""

import logging
import math
from typing import Iterable, List, Optional

from pydantic import BaseModel, Field

from database.exceptions import DuplicateError
from models import (
    Course,
    EnrichedLocationFix,
    LocationFix,
    Round,
    RoundStatus,
    ShotEvent,
    ShotSource,
)
from services.errors import (
    Forbidden,
    InvalidCoordinates,
    InvalidRoundState,
    NotFound,
    StateConflict,
    ValidationError,
)
from tracking.config import TrackingConfig
from tracking.course_awareness import CourseAwareness, classify_fix
from tracking.shot_tracker import ShotTracker, resolve_shots

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 100
_RAW_FIELDS = set(LocationFix.model_fields) - {"user_id", "round_id"}


class IngestResult(BaseModel):
    fix: EnrichedLocationFix
    shots: List[ShotEvent] = Field(default_factory=list)
    hole_advanced: bool = False


def validate_fix(fix: LocationFix) -> None:
    """Reject coordinates outside WGS84 ranges, non-finite values, bad accuracy."""
    values = (fix.latitude, fix.longitude, fix.accuracy_meters)
    if not all(math.isfinite(v) for v in values):
        raise InvalidCoordinates("Coordinates and accuracy must be finite numbers")
    if not -90 <= fix.latitude <= 90:
        raise InvalidCoordinates(f"Latitude {fix.latitude} is outside [-90, 90]")
    if not -180 <= fix.longitude <= 180:
        raise InvalidCoordinates(f"Longitude {fix.longitude} is outside [-180, 180]")
    if fix.accuracy_meters < 0:
        raise InvalidCoordinates("Accuracy cannot be negative")


class LocationIngestService:
    """Turns raw fixes into course-aware history and GPS-detected shots."""

    def __init__(self, db, config: Optional[TrackingConfig] = None):
        self._rounds = db.rounds
        self._courses = db.courses
        self._locations = db.locations
        self._shots = db.shots
        self.config = config or TrackingConfig()
        self._tracker = ShotTracker(self.config)

    # ================================================================
    # Private helpers
    # ================================================================

    async def _load_owned(self, user_id: str, round_id: str) -> Round:
        round_ = await self._rounds.get_round(round_id)
        if round_ is None:
            raise NotFound(f"Round {round_id} not found")
        if round_.user_id != user_id:
            raise Forbidden(f"Round {round_id} belongs to another user")
        return round_

    def _classify(
        self, fix: LocationFix, course: Optional[Course], hole_number: int
    ) -> CourseAwareness:
        return classify_fix(
            fix.point, fix.accuracy_meters, course, hole_number, self.config
        )

    async def _maybe_advance(
        self, round_: Round, awareness: CourseAwareness
    ) -> Optional[Round]:
        """Advance exactly one hole when the fix is on the next hole's tee."""
        if awareness.detected_hole != round_.current_hole + 1:
            return None
        if awareness.detected_hole > round_.total_holes:
            return None
        advanced = await self._rounds.advance_current_hole(round_.id, round_.current_hole)
        if advanced is not None:
            logger.info(
                "Round %s advanced from hole %s to %s",
                round_.id, round_.current_hole, advanced.current_hole,
            )
        return advanced

    async def _detect_shots(self, round_id: str, hole_number: int) -> List[ShotEvent]:
        if await self._shots.has_source(round_id, hole_number, ShotSource.SENSOR):
            return []

        existing = await self._shots.list_shots(
            round_id, hole_number=hole_number, source=ShotSource.GPS
        )
        since = existing[-1].ended_at if existing else None
        fixes = await self._locations.list_fixes(
            round_id, hole_number=hole_number, since=since
        )
        shots = self._tracker.detect_shots(
            fixes,
            round_id=round_id,
            hole_number=hole_number,
            next_shot_number=len(existing) + 1,
        )
        if not shots:
            return []
        try:
            stored = await self._shots.add_shots(shots)
        except DuplicateError:
            logger.info(
                "Shots for round %s hole %s already recorded by a concurrent request",
                round_id, hole_number,
            )
            return []
        for shot in stored:
            logger.info(
                "Detected shot %s on hole %s of round %s: %.0f m (confidence %.2f)",
                shot.shot_number, hole_number, round_id,
                shot.distance_meters, shot.detection_confidence,
            )
        return stored

    # ================================================================
    # Ingest
    # ================================================================

    async def record_fix(
        self, user_id: str, round_id: str, fix: LocationFix
    ) -> IngestResult:
        validate_fix(fix)
        round_ = await self._load_owned(user_id, round_id)
        if round_.status != RoundStatus.IN_PROGRESS:
            raise InvalidRoundState(
                f"Cannot record locations on a round that is {round_.status.value}",
                current_status=round_.status.value,
                round_id=round_id,
            )

        course = await self._courses.get_course(round_.course_id)
        awareness = self._classify(fix, course, round_.current_hole)
        hole_number = round_.current_hole

        advanced = await self._maybe_advance(round_, awareness)
        if advanced is not None:
            hole_number = advanced.current_hole
            awareness = self._classify(fix, course, hole_number)
            # Already on the new hole; detected_hole never points backwards.
            awareness = awareness.model_copy(update={"detected_hole": hole_number})

        enriched = EnrichedLocationFix(
            **fix.model_dump(include=_RAW_FIELDS),
            user_id=user_id,
            round_id=round_id,
            hole_number=hole_number,
            **awareness.model_dump(),
        )
        inserted = await self._locations.append_fix(enriched)
        if not inserted:
            logger.debug("Duplicate fix for round %s at %s", round_id, fix.recorded_at)
            return IngestResult(fix=enriched, hole_advanced=advanced is not None)

        shots = await self._detect_shots(round_id, hole_number)
        return IngestResult(fix=enriched, shots=shots, hole_advanced=advanced is not None)

    async def list_fixes(
        self,
        user_id: str,
        round_id: str,
        hole_number: Optional[int] = None,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> List[EnrichedLocationFix]:
        """Recent location history for a round, oldest first."""
        if limit < 1:
            raise ValidationError("limit must be at least 1")
        await self._load_owned(user_id, round_id)
        return await self._locations.list_fixes(
            round_id, hole_number=hole_number, limit=limit
        )

    # ================================================================
    # Shots
    # ================================================================

    async def record_external_shots(
        self,
        user_id: str,
        round_id: str,
        hole_number: int,
        shots: Iterable[ShotEvent],
    ) -> List[ShotEvent]:
        """Store sensor-reported shots; they supersede GPS shots for the hole."""
        round_ = await self._load_owned(user_id, round_id)
        if round_.is_terminal:
            raise InvalidRoundState(
                f"Cannot record shots on a round that is {round_.status.value}",
                current_status=round_.status.value,
                round_id=round_id,
            )
        if not 1 <= hole_number <= round_.total_holes:
            raise ValidationError(f"Hole {hole_number} is outside 1..{round_.total_holes}")

        existing = await self._shots.list_shots(
            round_id, hole_number=hole_number, source=ShotSource.SENSOR
        )
        next_number = len(existing) + 1
        to_store = []
        for offset, shot in enumerate(shots):
            to_store.append(shot.model_copy(update={
                "round_id": round_id,
                "hole_number": hole_number,
                "shot_number": next_number + offset,
                "source": ShotSource.SENSOR,
            }))
        try:
            stored = await self._shots.add_shots(to_store)
        except DuplicateError as e:
            raise StateConflict(
                "Shots for this hole were recorded concurrently; retry",
                current_status=round_.status.value,
                round_id=round_id,
            ) from e
        logger.info(
            "Stored %s sensor shots for hole %s of round %s",
            len(stored), hole_number, round_id,
        )
        return stored

    async def list_shots(
        self, user_id: str, round_id: str, hole_number: Optional[int] = None
    ) -> List[ShotEvent]:
        """Shots for a round or hole, sensor data taking precedence over GPS."""
        await self._load_owned(user_id, round_id)
        shots = await self._shots.list_shots(round_id, hole_number=hole_number)
        return resolve_shots(shots)

    async def confirm_shot(
        self,
        user_id: str,
        round_id: str,
        hole_number: int,
        shot_number: int,
        confirmed: bool = True,
    ) -> ShotEvent:
        """Mark the visible shot (sensor if present, else GPS) as user-confirmed."""
        await self._load_owned(user_id, round_id)
        source = (
            ShotSource.SENSOR
            if await self._shots.has_source(round_id, hole_number, ShotSource.SENSOR)
            else ShotSource.GPS
        )
        shot = await self._shots.set_user_confirmed(
            round_id, hole_number, shot_number, source, confirmed
        )
        if shot is None:
            raise NotFound(f"Shot {shot_number} on hole {hole_number} not found")
        return shot

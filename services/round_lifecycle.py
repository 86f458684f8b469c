"""Round status state machine and hole-score bookkeeping.

Every mutation goes through the transition table in ``models.round`` and is
serialized twice: in-process by per-round / per-user asyncio locks, and in
the database by the optimistic ``version`` check and the one-active-round
unique index. Whichever guard trips, the caller sees ``StateConflict``.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from database.exceptions import DuplicateError, IntegrityError, NotFoundError
from models import HoleScore, Round, RoundEvent, RoundStatus
from models.hole_score import MAX_PUTTS, MAX_SCORE, MIN_SCORE
from models.round import next_status
from services.errors import Forbidden, NotFound, StateConflict, ValidationError
from services.locks import KeyedLocks

logger = logging.getLogger(__name__)


class RoundTotals(BaseModel):
    """Client-supplied totals for completing a round without hole scores."""
    total_score: Optional[int] = None
    total_putts: Optional[int] = None
    fairways_hit: Optional[int] = None
    greens_in_regulation: Optional[int] = None


def totals_from_scores(scores: List[HoleScore]) -> RoundTotals:
    """Aggregate totals over a round's hole scores."""
    putts = [s.putts for s in scores if s.putts is not None]
    return RoundTotals(
        total_score=sum(s.score for s in scores),
        total_putts=sum(putts) if putts else None,
        fairways_hit=sum(1 for s in scores if s.fairway_hit),
        greens_in_regulation=sum(1 for s in scores if s.green_in_regulation),
    )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RoundLifecycleService:
    """Start, pause, resume, complete and abandon rounds; record hole scores."""

    def __init__(self, db, clock: Optional[Callable[[], datetime]] = None):
        self._rounds = db.rounds
        self._courses = db.courses
        self._clock = clock or _utcnow
        self._round_locks = KeyedLocks()
        self._user_locks = KeyedLocks()

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

    async def _save(self, round_: Round, **fields) -> Round:
        try:
            updated = await self._rounds.update_round(round_.id, round_.version, **fields)
        except DuplicateError as e:
            raise StateConflict(
                "User already has an active round",
                current_status=round_.status.value,
                round_id=round_.id,
            ) from e
        if updated is None:
            latest = await self._rounds.get_round(round_.id)
            raise StateConflict(
                f"Round {round_.id} was modified concurrently",
                current_status=latest.status.value if latest else None,
                round_id=round_.id,
            )
        return updated

    async def _transition(
        self, user_id: str, round_id: str, event: RoundEvent, **changes
    ) -> Round:
        async with self._round_locks.hold(round_id):
            round_ = await self._load_owned(user_id, round_id)
            target = next_status(round_.status, event)
            if target is None:
                raise StateConflict(
                    f"Cannot {event.value} a round that is {round_.status.value}",
                    current_status=round_.status.value,
                    round_id=round_id,
                )
            updated = await self._save(round_, status=target, **changes)
        logger.info(
            "Round %s: %s -> %s (%s)",
            round_id, round_.status.value, target.value, event.value,
        )
        return updated

    def _validate_totals(self, totals: RoundTotals, total_holes: int) -> None:
        limits: Dict[str, Tuple[int, int]] = {
            "total_score": (MIN_SCORE * total_holes, MAX_SCORE * total_holes),
            "total_putts": (0, MAX_PUTTS * total_holes),
            "fairways_hit": (0, total_holes),
            "greens_in_regulation": (0, total_holes),
        }
        for name, (low, high) in limits.items():
            value = getattr(totals, name)
            if value is not None and not low <= value <= high:
                raise ValidationError(f"{name} must be between {low} and {high}")
        if (
            totals.total_score is not None
            and totals.total_putts is not None
            and totals.total_putts > totals.total_score
        ):
            raise ValidationError("total_putts cannot exceed total_score")

    # ================================================================
    # Read
    # ================================================================

    async def get_round(self, user_id: str, round_id: str) -> Round:
        return await self._load_owned(user_id, round_id)

    async def get_active_round(self, user_id: str) -> Optional[Round]:
        return await self._rounds.get_active_round(user_id)

    async def list_rounds(
        self, user_id: str, status: Optional[RoundStatus] = None
    ) -> List[Round]:
        return await self._rounds.list_rounds(user_id, status)

    async def get_hole_scores(self, user_id: str, round_id: str) -> List[HoleScore]:
        await self._load_owned(user_id, round_id)
        return await self._rounds.get_hole_scores(round_id)

    # ================================================================
    # Transitions
    # ================================================================

    async def start_round(
        self, user_id: str, course_id: str, notes: Optional[str] = None
    ) -> Round:
        """Create a round in progress on hole 1. One active round per user."""
        async with self._user_locks.hold(user_id):
            active = await self._rounds.get_active_round(user_id)
            if active is not None:
                raise StateConflict(
                    "User already has an active round",
                    current_status=active.status.value,
                    round_id=active.id,
                )
            course = await self._courses.get_course(course_id)
            if course is None:
                raise NotFound(f"Course {course_id} not found")

            round_ = Round(
                user_id=user_id,
                course_id=course.id,
                status=next_status(RoundStatus.NOT_STARTED, RoundEvent.START),
                current_hole=1,
                total_holes=course.total_holes,
                start_time=self._clock(),
                notes=notes,
            )
            try:
                created = await self._rounds.create_round(round_)
            except DuplicateError as e:
                # Another process won the race; report its round.
                winner = await self._rounds.get_active_round(user_id)
                raise StateConflict(
                    "User already has an active round",
                    current_status=winner.status.value if winner else None,
                    round_id=winner.id if winner else None,
                ) from e
            except IntegrityError as e:
                raise NotFound(f"Course {course_id} not found") from e

        logger.info(
            "Started round %s for user %s on course %s", created.id, user_id, course_id
        )
        return created

    async def pause_round(self, user_id: str, round_id: str) -> Round:
        return await self._transition(user_id, round_id, RoundEvent.PAUSE)

    async def resume_round(self, user_id: str, round_id: str) -> Round:
        return await self._transition(user_id, round_id, RoundEvent.RESUME)

    async def abandon_round(self, user_id: str, round_id: str) -> Round:
        return await self._transition(
            user_id, round_id, RoundEvent.ABANDON, end_time=self._clock()
        )

    async def complete_round(
        self, user_id: str, round_id: str, totals: Optional[RoundTotals] = None
    ) -> Round:
        """Complete a round.

        With hole scores on file the totals are recomputed from them and a
        supplied ``total_score`` must agree. Without hole scores the supplied
        totals are validated and stored as-is.
        """
        async with self._round_locks.hold(round_id):
            round_ = await self._load_owned(user_id, round_id)
            target = next_status(round_.status, RoundEvent.COMPLETE)
            if target is None:
                raise StateConflict(
                    f"Cannot complete a round that is {round_.status.value}",
                    current_status=round_.status.value,
                    round_id=round_id,
                )

            scores = await self._rounds.get_hole_scores(round_id)
            if scores:
                computed = totals_from_scores(scores)
                if (
                    totals is not None
                    and totals.total_score is not None
                    and totals.total_score != computed.total_score
                ):
                    raise ValidationError(
                        f"total_score {totals.total_score} does not match the "
                        f"sum of hole scores ({computed.total_score})"
                    )
                final = computed
            else:
                final = totals or RoundTotals()
                self._validate_totals(final, round_.total_holes)

            updated = await self._save(
                round_, status=target, end_time=self._clock(), **final.model_dump()
            )
        logger.info(
            "Completed round %s with total score %s", round_id, updated.total_score
        )
        return updated

    # ================================================================
    # Scores
    # ================================================================

    async def record_hole_score(
        self,
        user_id: str,
        round_id: str,
        hole_number: int,
        score: int,
        putts: Optional[int] = None,
        fairway_hit: Optional[bool] = None,
        green_in_regulation: Optional[bool] = None,
    ) -> Tuple[HoleScore, Round]:
        """Upsert one hole's score and return it with the recomputed round."""
        if not MIN_SCORE <= score <= MAX_SCORE:
            raise ValidationError(f"Score must be between {MIN_SCORE} and {MAX_SCORE}")
        if putts is not None and not 0 <= putts <= MAX_PUTTS:
            raise ValidationError(f"Putts must be between 0 and {MAX_PUTTS}")
        if putts is not None and putts > score:
            raise ValidationError(f"Putts ({putts}) cannot exceed score ({score})")

        async with self._round_locks.hold(round_id):
            round_ = await self._load_owned(user_id, round_id)
            if not round_.is_active:
                raise StateConflict(
                    f"Cannot record a score on a round that is {round_.status.value}",
                    current_status=round_.status.value,
                    round_id=round_id,
                )
            if not 1 <= hole_number <= round_.total_holes:
                raise ValidationError(
                    f"Hole {hole_number} is outside 1..{round_.total_holes}"
                )
            try:
                hole_score = HoleScore(
                    round_id=round_id,
                    hole_number=hole_number,
                    score=score,
                    putts=putts,
                    fairway_hit=fairway_hit,
                    green_in_regulation=green_in_regulation,
                )
            except PydanticValidationError as e:
                raise ValidationError(str(e)) from e

            try:
                stored, updated = await self._rounds.upsert_hole_score(hole_score)
            except NotFoundError as e:
                raise NotFound(f"Round {round_id} not found") from e

        logger.debug(
            "Round %s hole %s scored %s; total now %s",
            round_id, hole_number, score, updated.total_score,
        )
        return stored, updated

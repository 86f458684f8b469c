"""In-process storage with the same contract as the asyncpg repositories.

Used for local development (``GOLF_STORAGE=memory``) and by the service and
API tests. Method bodies never await, so each call is atomic under asyncio,
matching what the database constraints guarantee for the SQL repositories.
"""

import uuid
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from pydantic import TypeAdapter

from models import (
    Course,
    EnrichedLocationFix,
    HoleScore,
    Round,
    RoundStatus,
    ShotEvent,
    ShotSource,
)
from models.round import ACTIVE_STATUSES
from database.converters import parse_uuid
from database.exceptions import DuplicateError, IntegrityError, NotFoundError
from database.repositories.round_repo import UPDATABLE_FIELDS


def _new_id() -> str:
    return str(uuid.uuid4())


class InMemoryCourseRepository:
    def __init__(self):
        self._courses: Dict[str, Course] = {}

    def add_course(self, course: Course) -> Course:
        """Seed a course (there is no write path for courses in the service)."""
        if course.id is None:
            course = course.model_copy(update={"id": _new_id()})
        self._courses[course.id] = course
        return course

    def load_file(self, path: Union[str, Path]) -> List[Course]:
        """Seed courses from a JSON array of course objects."""
        text = Path(path).read_text(encoding="utf-8")
        return [self.add_course(c) for c in TypeAdapter(List[Course]).validate_json(text)]

    async def get_course(self, course_id: str) -> Optional[Course]:
        return self._courses.get(course_id)


class InMemoryRoundRepository:
    def __init__(self, courses: InMemoryCourseRepository):
        self._courses = courses
        self._rounds: Dict[str, Round] = {}
        self._scores: Dict[Tuple[str, int], HoleScore] = {}

    # ================================================================
    # Private helpers
    # ================================================================

    def _check_one_active(self, candidate: Round) -> None:
        if candidate.status not in ACTIVE_STATUSES:
            return
        for other in self._rounds.values():
            if (
                other.id != candidate.id
                and other.user_id == candidate.user_id
                and other.status in ACTIVE_STATUSES
            ):
                raise DuplicateError(
                    f"User {candidate.user_id} already has active round {other.id}"
                )

    # ================================================================
    # Read
    # ================================================================

    async def get_round(self, round_id: str) -> Optional[Round]:
        return self._rounds.get(round_id)

    async def get_active_round(self, user_id: str) -> Optional[Round]:
        for round_ in self._rounds.values():
            if round_.user_id == user_id and round_.status in ACTIVE_STATUSES:
                return round_
        return None

    async def list_rounds(
        self, user_id: str, status: Optional[RoundStatus] = None
    ) -> List[Round]:
        rounds = [
            r for r in self._rounds.values()
            if r.user_id == user_id and (status is None or r.status == status)
        ]
        return sorted(
            rounds,
            key=lambda r: (r.start_time is not None, r.start_time.timestamp() if r.start_time else 0.0),
            reverse=True,
        )

    async def get_hole_scores(self, round_id: str) -> List[HoleScore]:
        scores = [s for (rid, _), s in self._scores.items() if rid == round_id]
        return sorted(scores, key=lambda s: s.hole_number)

    # ================================================================
    # Create / Update
    # ================================================================

    async def create_round(self, round_: Round) -> Round:
        if parse_uuid(round_.course_id) is None or (
            await self._courses.get_course(round_.course_id) is None
        ):
            raise IntegrityError(f"Course {round_.course_id} does not exist")
        stored = round_.with_changes(id=_new_id(), version=0)
        self._check_one_active(stored)
        self._rounds[stored.id] = stored
        return stored

    async def update_round(
        self, round_id: str, expected_version: int, **fields
    ) -> Optional[Round]:
        current = self._rounds.get(round_id)
        if current is None or current.version != expected_version:
            return None
        updates = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS}
        updated = current.with_changes(**updates, version=current.version + 1)
        self._check_one_active(updated)
        self._rounds[round_id] = updated
        return updated

    async def advance_current_hole(self, round_id: str, from_hole: int) -> Optional[Round]:
        current = self._rounds.get(round_id)
        if (
            current is None
            or current.current_hole != from_hole
            or current.status != RoundStatus.IN_PROGRESS
            or current.current_hole >= current.total_holes
        ):
            return None
        updated = current.with_changes(
            current_hole=from_hole + 1, version=current.version + 1
        )
        self._rounds[round_id] = updated
        return updated

    async def upsert_hole_score(self, hole_score: HoleScore) -> Tuple[HoleScore, Round]:
        current = self._rounds.get(hole_score.round_id)
        if current is None:
            raise NotFoundError(f"Round {hole_score.round_id} not found")

        if hole_score.hole_id is None:
            course = await self._courses.get_course(current.course_id)
            hole = course.get_hole(hole_score.hole_number) if course else None
            if hole is not None and hole.hole_id is not None:
                hole_score = hole_score.model_copy(update={"hole_id": hole.hole_id})
        self._scores[(hole_score.round_id, hole_score.hole_number)] = hole_score

        scores = await self.get_hole_scores(hole_score.round_id)
        putts = [s.putts for s in scores if s.putts is not None]
        updated = current.with_changes(
            total_score=sum(s.score for s in scores),
            total_putts=sum(putts) if putts else None,
            fairways_hit=sum(1 for s in scores if s.fairway_hit),
            greens_in_regulation=sum(1 for s in scores if s.green_in_regulation),
            version=current.version + 1,
        )
        self._rounds[updated.id] = updated
        return hole_score, updated


class InMemoryLocationRepository:
    def __init__(self):
        self._fixes: Dict[str, Dict[datetime, EnrichedLocationFix]] = {}

    async def append_fix(self, fix: EnrichedLocationFix) -> bool:
        by_time = self._fixes.setdefault(fix.round_id, {})
        if fix.recorded_at in by_time:
            return False
        by_time[fix.recorded_at] = fix
        return True

    async def list_fixes(
        self,
        round_id: str,
        *,
        hole_number: Optional[int] = None,
        since: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[EnrichedLocationFix]:
        fixes = sorted(
            self._fixes.get(round_id, {}).values(), key=lambda f: f.recorded_at
        )
        if hole_number is not None:
            fixes = [f for f in fixes if f.hole_number == hole_number]
        if since is not None:
            fixes = [f for f in fixes if f.recorded_at >= since]
        if limit is not None:
            fixes = fixes[-limit:] if limit > 0 else []
        return fixes


class InMemoryShotRepository:
    def __init__(self):
        self._shots: Dict[Tuple[str, int, ShotSource, int], ShotEvent] = {}

    @staticmethod
    def _key(shot: ShotEvent) -> Tuple[str, int, ShotSource, int]:
        return (shot.round_id, shot.hole_number, shot.source, shot.shot_number)

    async def add_shots(self, shots: Iterable[ShotEvent]) -> List[ShotEvent]:
        shots = list(shots)
        keys = [self._key(s) for s in shots]
        if len(set(keys)) != len(keys) or any(k in self._shots for k in keys):
            raise DuplicateError("Shot number already recorded")
        for key, shot in zip(keys, shots):
            self._shots[key] = shot
        return shots

    async def list_shots(
        self,
        round_id: str,
        *,
        hole_number: Optional[int] = None,
        source: Optional[ShotSource] = None,
    ) -> List[ShotEvent]:
        shots = [
            s for s in self._shots.values()
            if s.round_id == round_id
            and (hole_number is None or s.hole_number == hole_number)
            and (source is None or s.source == source)
        ]
        return sorted(shots, key=lambda s: (s.hole_number, s.shot_number))

    async def has_source(self, round_id: str, hole_number: int, source: ShotSource) -> bool:
        return any(
            key[0] == round_id and key[1] == hole_number and key[2] == source
            for key in self._shots
        )

    async def set_user_confirmed(
        self,
        round_id: str,
        hole_number: int,
        shot_number: int,
        source: ShotSource,
        value: bool = True,
    ) -> Optional[ShotEvent]:
        key = (round_id, hole_number, source, shot_number)
        shot = self._shots.get(key)
        if shot is None:
            return None
        self._shots[key] = shot.confirmed(value)
        return self._shots[key]

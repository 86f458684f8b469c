"""Storage for detected and sensor-reported shots (play.shot_events)."""

import asyncpg
from typing import Iterable, List, Optional
from uuid import UUID

from models import ShotEvent, ShotSource
from database.converters import parse_uuid, shot_from_row, shot_to_row
from database.exceptions import DuplicateError


class ShotRepositoryDB:
    """Shots are unique per (round, hole, source, shot_number)."""

    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    async def add_shots(self, shots: Iterable[ShotEvent]) -> List[ShotEvent]:
        """Insert shots in one transaction. An existing shot number -> DuplicateError."""
        shots = list(shots)
        if not shots:
            return []
        try:
            async with self._pool.acquire() as conn:
                async with conn.transaction():
                    await conn.executemany(
                        """INSERT INTO play.shot_events
                           (round_id, hole_number, shot_number, source,
                            start_latitude, start_longitude, end_latitude, end_longitude,
                            distance_meters, lie_condition, shot_type, estimated_club,
                            detection_confidence, started_at, ended_at, user_confirmed)
                           VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12,
                                   $13, $14, $15, $16)""",
                        [shot_to_row(s) for s in shots],
                    )
        except asyncpg.UniqueViolationError as e:
            raise DuplicateError(str(e)) from e
        return shots

    async def list_shots(
        self,
        round_id: str,
        *,
        hole_number: Optional[int] = None,
        source: Optional[ShotSource] = None,
    ) -> List[ShotEvent]:
        """Shots ordered by hole then shot number."""
        round_uuid = parse_uuid(round_id)
        if round_uuid is None:
            return []
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                """SELECT * FROM play.shot_events
                   WHERE round_id = $1
                     AND ($2::smallint IS NULL OR hole_number = $2)
                     AND ($3::text IS NULL OR source = $3)
                   ORDER BY hole_number, shot_number""",
                round_uuid, hole_number, source.value if source else None,
            )
        return [shot_from_row(r) for r in rows]

    async def has_source(self, round_id: str, hole_number: int, source: ShotSource) -> bool:
        async with self._pool.acquire() as conn:
            found = await conn.fetchval(
                """SELECT EXISTS (
                       SELECT 1 FROM play.shot_events
                       WHERE round_id = $1 AND hole_number = $2 AND source = $3)""",
                UUID(round_id), hole_number, source.value,
            )
            return bool(found)

    async def set_user_confirmed(
        self,
        round_id: str,
        hole_number: int,
        shot_number: int,
        source: ShotSource,
        value: bool = True,
    ) -> Optional[ShotEvent]:
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                """UPDATE play.shot_events SET user_confirmed = $5
                   WHERE round_id = $1 AND hole_number = $2
                     AND shot_number = $3 AND source = $4
                   RETURNING *""",
                UUID(round_id), hole_number, shot_number, source.value, value,
            )
            return shot_from_row(row) if row else None

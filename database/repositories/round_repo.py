"""CRUD operations for play.rounds and play.hole_scores."""

import asyncpg
from typing import List, Optional, Tuple
from uuid import UUID

from models import HoleScore, Round, RoundStatus
from database.converters import hole_score_from_row, parse_uuid, round_from_row
from database.exceptions import DuplicateError, IntegrityError, NotFoundError

# Columns update_round may touch. Totals included: completion stores them.
UPDATABLE_FIELDS = {
    "status", "current_hole", "start_time", "end_time", "total_score",
    "total_putts", "fairways_hit", "greens_in_regulation", "notes",
}


class RoundRepositoryDB:
    """Async CRUD for rounds and their hole scores.

    Every update bumps ``version``; callers pass the version they read and a
    stale write returns None instead of overwriting a concurrent change.
    """

    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    # ================================================================
    # Read
    # ================================================================

    async def get_round(self, round_id: str) -> Optional[Round]:
        round_uuid = parse_uuid(round_id)
        if round_uuid is None:
            return None
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT * FROM play.rounds WHERE id = $1", round_uuid
            )
            return round_from_row(row) if row else None

    async def get_active_round(self, user_id: str) -> Optional[Round]:
        """The user's in-progress or paused round, if any."""
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                """SELECT * FROM play.rounds
                   WHERE user_id = $1 AND status IN ('in_progress', 'paused')""",
                UUID(user_id),
            )
            return round_from_row(row) if row else None

    async def list_rounds(
        self, user_id: str, status: Optional[RoundStatus] = None
    ) -> List[Round]:
        """A user's rounds, most recent first."""
        async with self._pool.acquire() as conn:
            if status is None:
                rows = await conn.fetch(
                    """SELECT * FROM play.rounds WHERE user_id = $1
                       ORDER BY start_time DESC NULLS LAST, created_at DESC""",
                    UUID(user_id),
                )
            else:
                rows = await conn.fetch(
                    """SELECT * FROM play.rounds WHERE user_id = $1 AND status = $2
                       ORDER BY start_time DESC NULLS LAST, created_at DESC""",
                    UUID(user_id), status.value,
                )
            return [round_from_row(r) for r in rows]

    async def get_hole_scores(self, round_id: str) -> List[HoleScore]:
        round_uuid = parse_uuid(round_id)
        if round_uuid is None:
            return []
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                """SELECT * FROM play.hole_scores
                   WHERE round_id = $1 ORDER BY hole_number""",
                round_uuid,
            )
            return [hole_score_from_row(r) for r in rows]

    # ================================================================
    # Create
    # ================================================================

    async def create_round(self, round_: Round) -> Round:
        """Insert a round. A second active round for the user -> DuplicateError."""
        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(
                    """INSERT INTO play.rounds
                       (user_id, course_id, status, current_hole, total_holes,
                        start_time, notes)
                       VALUES ($1, $2, $3, $4, $5, $6, $7)
                       RETURNING *""",
                    UUID(round_.user_id), UUID(round_.course_id),
                    round_.status.value, round_.current_hole, round_.total_holes,
                    round_.start_time, round_.notes,
                )
                return round_from_row(row)
        except asyncpg.UniqueViolationError as e:
            raise DuplicateError(str(e)) from e
        except asyncpg.ForeignKeyViolationError as e:
            raise IntegrityError(str(e)) from e

    # ================================================================
    # Update
    # ================================================================

    async def update_round(
        self, round_id: str, expected_version: int, **fields
    ) -> Optional[Round]:
        """Apply ``fields`` if the stored version still matches.

        Returns the updated round, or None when the round is missing or was
        changed since ``expected_version`` was read.
        """
        updates = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS}
        if "status" in updates and isinstance(updates["status"], RoundStatus):
            updates["status"] = updates["status"].value

        set_parts = ["version = version + 1"]
        set_parts += [f"{k} = ${i + 3}" for i, k in enumerate(updates)]
        values = [UUID(round_id), expected_version] + list(updates.values())

        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"""UPDATE play.rounds SET {", ".join(set_parts)}
                        WHERE id = $1 AND version = $2 RETURNING *""",
                    *values,
                )
                return round_from_row(row) if row else None
        except asyncpg.UniqueViolationError as e:
            raise DuplicateError(str(e)) from e

    async def advance_current_hole(self, round_id: str, from_hole: int) -> Optional[Round]:
        """Move an in-progress round from ``from_hole`` to the next hole.

        Conditional on the round still being on ``from_hole``, so two fixes
        racing past the tee advance it once. Returns None if nothing changed.
        """
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                """UPDATE play.rounds
                   SET current_hole = current_hole + 1, version = version + 1
                   WHERE id = $1 AND current_hole = $2
                     AND status = 'in_progress' AND current_hole < total_holes
                   RETURNING *""",
                UUID(round_id), from_hole,
            )
            return round_from_row(row) if row else None

    async def upsert_hole_score(self, hole_score: HoleScore) -> Tuple[HoleScore, Round]:
        """Insert or replace a hole score and recompute the round totals.

        Runs in one transaction with the round row locked, so totals always
        equal the sum over the stored hole scores.
        """
        round_uuid = UUID(hole_score.round_id)
        async with self._pool.acquire() as conn:
            async with conn.transaction():
                round_row = await conn.fetchrow(
                    "SELECT * FROM play.rounds WHERE id = $1 FOR UPDATE", round_uuid
                )
                if not round_row:
                    raise NotFoundError(f"Round {hole_score.round_id} not found")

                hole_id = parse_uuid(hole_score.hole_id)
                if hole_id is None:
                    hole_id = await conn.fetchval(
                        """SELECT id FROM courses.holes
                           WHERE course_id = $1 AND hole_number = $2""",
                        round_row["course_id"], hole_score.hole_number,
                    )

                score_row = await conn.fetchrow(
                    """INSERT INTO play.hole_scores
                       (round_id, hole_number, hole_id, score, putts,
                        fairway_hit, green_in_regulation)
                       VALUES ($1, $2, $3, $4, $5, $6, $7)
                       ON CONFLICT (round_id, hole_number)
                       DO UPDATE SET score = EXCLUDED.score,
                                     putts = EXCLUDED.putts,
                                     fairway_hit = EXCLUDED.fairway_hit,
                                     green_in_regulation = EXCLUDED.green_in_regulation,
                                     hole_id = COALESCE(EXCLUDED.hole_id, play.hole_scores.hole_id),
                                     updated_at = now()
                       RETURNING *""",
                    round_uuid, hole_score.hole_number, hole_id,
                    hole_score.score, hole_score.putts,
                    hole_score.fairway_hit, hole_score.green_in_regulation,
                )

                updated = await conn.fetchrow(
                    """UPDATE play.rounds r
                       SET total_score = t.total_score,
                           total_putts = t.total_putts,
                           fairways_hit = t.fairways_hit,
                           greens_in_regulation = t.greens_in_regulation,
                           version = r.version + 1
                       FROM (
                           SELECT SUM(score)::int AS total_score,
                                  SUM(putts)::int AS total_putts,
                                  (COUNT(*) FILTER (WHERE fairway_hit))::int AS fairways_hit,
                                  (COUNT(*) FILTER (WHERE green_in_regulation))::int
                                      AS greens_in_regulation
                           FROM play.hole_scores WHERE round_id = $1
                       ) t
                       WHERE r.id = $1
                       RETURNING r.*""",
                    round_uuid,
                )
        return hole_score_from_row(score_row), round_from_row(updated)

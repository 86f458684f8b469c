"""Append-only storage for enriched location fixes (play.location_fixes)."""

import asyncpg
from datetime import datetime
from typing import List, Optional

from models import EnrichedLocationFix
from database.converters import fix_from_row, fix_to_row, parse_uuid


class LocationRepositoryDB:
    """Fixes are keyed by (round_id, recorded_at); a retried fix is stored once."""

    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    async def append_fix(self, fix: EnrichedLocationFix) -> bool:
        """Insert a fix. Returns False if that timestamp was already stored."""
        async with self._pool.acquire() as conn:
            result = await conn.execute(
                """INSERT INTO play.location_fixes
                   (round_id, recorded_at, user_id, latitude, longitude,
                    accuracy_meters, heading_degrees, speed_mps, altitude_meters,
                    hole_number, detected_hole, position_on_hole,
                    distance_to_tee_meters, distance_to_pin_meters,
                    within_course_boundary, low_accuracy)
                   VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12,
                           $13, $14, $15, $16)
                   ON CONFLICT (round_id, recorded_at) DO NOTHING""",
                *fix_to_row(fix),
            )
            return result == "INSERT 0 1"

    async def list_fixes(
        self,
        round_id: str,
        *,
        hole_number: Optional[int] = None,
        since: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[EnrichedLocationFix]:
        """Fixes in time order; with ``limit``, the most recent ``limit`` of them."""
        round_uuid = parse_uuid(round_id)
        if round_uuid is None:
            return []

        conditions = ["round_id = $1"]
        values: list = [round_uuid]
        if hole_number is not None:
            values.append(hole_number)
            conditions.append(f"hole_number = ${len(values)}")
        if since is not None:
            values.append(since)
            conditions.append(f"recorded_at >= ${len(values)}")
        query = (
            "SELECT * FROM play.location_fixes WHERE "
            + " AND ".join(conditions)
            + " ORDER BY recorded_at DESC"
        )
        if limit is not None:
            values.append(limit)
            query += f" LIMIT ${len(values)}"

        async with self._pool.acquire() as conn:
            rows = await conn.fetch(query, *values)
        return [fix_from_row(r) for r in reversed(rows)]

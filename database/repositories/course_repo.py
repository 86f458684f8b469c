"""Read access to course geometry (courses.courses, courses.holes)."""

import asyncpg
from typing import Optional

from models import Course
from database.converters import course_from_rows, parse_uuid


class CourseRepositoryDB:
    """Async reads for courses and their holes. Course data is read-only here."""

    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    async def get_course(self, course_id: str) -> Optional[Course]:
        """Get a Course with all holes, or None."""
        course_uuid = parse_uuid(course_id)
        if course_uuid is None:
            return None
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT * FROM courses.courses WHERE id = $1", course_uuid
            )
            if not row:
                return None
            hole_rows = await conn.fetch(
                "SELECT * FROM courses.holes WHERE course_id = $1 ORDER BY hole_number",
                course_uuid,
            )
            return course_from_rows(row, hole_rows)

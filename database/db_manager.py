from __future__ import annotations

import logging
from typing import Any, Optional

from database.connection import DatabasePool
from database.memory import (
    InMemoryCourseRepository,
    InMemoryLocationRepository,
    InMemoryRoundRepository,
    InMemoryShotRepository,
)
from database.repositories import (
    CourseRepositoryDB,
    LocationRepositoryDB,
    RoundRepositoryDB,
    ShotRepositoryDB,
)

logger = logging.getLogger(__name__)


class DatabaseManager:
    """
    Bundle of the four repositories the services depend on.

    Notes:
    - ``from_pool`` wires the asyncpg repositories over a shared pool.
    - ``in_memory`` wires process-local repositories with the same contract;
      nothing survives a restart.
    """

    def __init__(
        self,
        courses: Any,
        rounds: Any,
        locations: Any,
        shots: Any,
        pool: Optional[DatabasePool] = None,
    ) -> None:
        self.courses = courses
        self.rounds = rounds
        self.locations = locations
        self.shots = shots
        self._pool = pool

    @classmethod
    def from_pool(cls, pool: DatabasePool) -> "DatabaseManager":
        raw = pool.pool
        return cls(
            courses=CourseRepositoryDB(raw),
            rounds=RoundRepositoryDB(raw),
            locations=LocationRepositoryDB(raw),
            shots=ShotRepositoryDB(raw),
            pool=pool,
        )

    @classmethod
    def in_memory(cls) -> "DatabaseManager":
        courses = InMemoryCourseRepository()
        return cls(
            courses=courses,
            rounds=InMemoryRoundRepository(courses),
            locations=InMemoryLocationRepository(),
            shots=InMemoryShotRepository(),
        )

    @property
    def is_persistent(self) -> bool:
        return self._pool is not None

    async def health_check(self) -> bool:
        if self._pool is None:
            return True
        return await self._pool.health_check()

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            logger.info("Closed database manager")

from database.connection import DatabasePool
from database.db_manager import DatabaseManager
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
from database.exceptions import DatabaseError, NotFoundError, DuplicateError, IntegrityError

__all__ = [
    "DatabasePool",
    "DatabaseManager",
    "InMemoryCourseRepository",
    "InMemoryLocationRepository",
    "InMemoryRoundRepository",
    "InMemoryShotRepository",
    "CourseRepositoryDB",
    "LocationRepositoryDB",
    "RoundRepositoryDB",
    "ShotRepositoryDB",
    "DatabaseError",
    "NotFoundError",
    "DuplicateError",
    "IntegrityError",
]

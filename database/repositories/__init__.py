from .course_repo import CourseRepositoryDB
from .location_repo import LocationRepositoryDB
from .round_repo import RoundRepositoryDB
from .shot_repo import ShotRepositoryDB

__all__ = [
    "CourseRepositoryDB",
    "LocationRepositoryDB",
    "RoundRepositoryDB",
    "ShotRepositoryDB",
]

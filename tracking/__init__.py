from tracking.config import TrackingConfig
from tracking.course_awareness import CourseAwareness, classify_fix
from tracking.location_ingest import IngestResult, LocationIngestService, validate_fix
from tracking.shot_tracker import ShotTracker, estimate_club, resolve_shots

__all__ = [
    "TrackingConfig",
    "CourseAwareness",
    "classify_fix",
    "IngestResult",
    "LocationIngestService",
    "validate_fix",
    "ShotTracker",
    "estimate_club",
    "resolve_shots",
]

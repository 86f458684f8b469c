"""Classify a GPS fix against course geometry.

The classifier is a tiered, explainable heuristic. Course data is often only
partially surveyed, so every branch degrades to ``unknown`` / ``None``
instead of guessing or raising.
"""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import BaseModel

from geo.geomath import distance_meters, distance_to_polyline, point_in_polygon
from models import Course, GeoPoint, Hole, PositionOnHole
from tracking.config import TrackingConfig

logger = logging.getLogger(__name__)


class CourseAwareness(BaseModel):
    detected_hole: int
    position_on_hole: PositionOnHole = PositionOnHole.UNKNOWN
    distance_to_tee_meters: Optional[float] = None
    distance_to_pin_meters: Optional[float] = None
    within_course_boundary: bool = True
    low_accuracy: bool = False


def detect_hole(
    point: GeoPoint,
    course: Optional[Course],
    current_hole: int,
    config: TrackingConfig,
) -> int:
    """Nearest-tee hole within ``current_hole`` +/- the detection window.

    Needs a course boundary and tee points; without them the current hole is
    kept. A neighbouring hole only wins when the fix is within
    ``hole_switch_radius_m`` of its tee and strictly closer to that tee than
    to the current pin. Fixes on the current green never switch holes.
    """
    if course is None or not course.has_boundary:
        return current_hole

    current = course.get_hole(current_hole)
    to_current_pin = (
        distance_meters(point, current.pin_location)
        if current is not None and current.pin_location is not None
        else None
    )
    if to_current_pin is not None and to_current_pin <= config.green_radius_m:
        return current_hole

    window = config.hole_detection_window
    low = max(1, current_hole - window)
    high = min(course.total_holes, current_hole + window)

    best_hole = current_hole
    best_distance: Optional[float] = None
    for number in range(low, high + 1):
        hole = course.get_hole(number)
        if hole is None or hole.tee_location is None:
            continue
        dist = distance_meters(point, hole.tee_location)
        if number != current_hole:
            if dist > config.hole_switch_radius_m:
                continue
            if to_current_pin is not None and dist >= to_current_pin:
                continue
        if best_distance is None or dist < best_distance:
            best_hole = number
            best_distance = dist
    return best_hole


def _within_boundary(point: GeoPoint, course: Optional[Course]) -> bool:
    if course is None or not course.has_boundary:
        return True
    inside = point_in_polygon(point, course.boundary)
    # Undetermined polygons are treated as "assumed inside".
    return True if inside is None else inside


def classify_position(
    point: GeoPoint,
    hole: Optional[Hole],
    within_boundary: bool,
    has_boundary: bool,
    config: TrackingConfig,
    distance_to_tee: Optional[float] = None,
    distance_to_pin: Optional[float] = None,
) -> PositionOnHole:
    """Tiered position classifier: tee, green, then centre-line corridor."""
    if hole is None:
        return PositionOnHole.UNKNOWN

    if distance_to_tee is None and hole.tee_location is not None:
        distance_to_tee = distance_meters(point, hole.tee_location)
    if distance_to_pin is None and hole.pin_location is not None:
        distance_to_pin = distance_meters(point, hole.pin_location)

    if distance_to_tee is not None and distance_to_tee <= config.tee_box_radius_m:
        return PositionOnHole.TEE
    if distance_to_pin is not None and distance_to_pin <= config.green_radius_m:
        return PositionOnHole.GREEN

    off_line = distance_to_polyline(point, hole.center_line())

    if has_boundary and not within_boundary:
        if off_line is not None and off_line <= config.rough_width_m:
            return PositionOnHole.ROUGH
        return PositionOnHole.HAZARD

    if off_line is None:
        return PositionOnHole.UNKNOWN
    if off_line <= config.fairway_half_width_m:
        return PositionOnHole.FAIRWAY
    if off_line <= config.rough_width_m:
        return PositionOnHole.ROUGH
    return PositionOnHole.UNKNOWN


def classify_fix(
    point: GeoPoint,
    accuracy_meters: Optional[float],
    course: Optional[Course],
    current_hole: int,
    config: Optional[TrackingConfig] = None,
) -> CourseAwareness:
    """Course-aware state for one fix relative to the round's current hole."""
    config = config or TrackingConfig()

    hole = course.get_hole(current_hole) if course else None
    if hole is None:
        logger.debug("No geometry for hole %s; classifying as unknown", current_hole)

    distance_to_tee = (
        distance_meters(point, hole.tee_location)
        if hole is not None and hole.tee_location is not None
        else None
    )
    distance_to_pin = (
        distance_meters(point, hole.pin_location)
        if hole is not None and hole.pin_location is not None
        else None
    )
    within = _within_boundary(point, course)
    position = classify_position(
        point,
        hole,
        within_boundary=within,
        has_boundary=bool(course and course.has_boundary),
        config=config,
        distance_to_tee=distance_to_tee,
        distance_to_pin=distance_to_pin,
    )

    return CourseAwareness(
        detected_hole=detect_hole(point, course, current_hole, config),
        position_on_hole=position,
        distance_to_tee_meters=distance_to_tee,
        distance_to_pin_meters=distance_to_pin,
        within_course_boundary=within,
        low_accuracy=(
            accuracy_meters is not None
            and accuracy_meters > config.low_accuracy_threshold_m
        ),
    )


__all__ = ["CourseAwareness", "classify_fix", "classify_position", "detect_hole"]

"""Segment a per-hole stream of fixes into discrete shots.

A golfer standing over the ball is stationary; walking to the next ball is a
run of moving fixes; arriving at it is stationary again. One shot is one
stationary -> moving -> stationary cycle:

    idle --(min_moving_fixes fast fixes)--> moving
    moving --(min_stationary_fixes slow fixes)--> idle, shot emitted

Slow gaps shorter than ``min_stationary_fixes`` inside a run are absorbed.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from geo.geomath import METERS_PER_YARD, distance_meters, path_length_meters
from models import LocationFix, PositionOnHole, ShotEvent, ShotSource
from tracking.config import TrackingConfig

logger = logging.getLogger(__name__)

MIN_CONFIDENCE = 0.05
ACCURACY_PENALTY = 0.3
STRAIGHTNESS_PENALTY = 0.4

# Minimum carry in yards -> club name, longest first.
CLUB_DISTANCE_TABLE: Tuple[Tuple[float, str], ...] = (
    (250, "Driver"),
    (200, "3-Wood"),
    (180, "5-Wood"),
    (160, "4-Iron"),
    (140, "6-Iron"),
    (120, "8-Iron"),
    (100, "Pitching Wedge"),
    (80, "Sand Wedge"),
    (50, "Lob Wedge"),
)
DEFAULT_CLUB = "Short Iron"


def estimate_club(distance_meters_: float) -> str:
    """Rough club guess from the distance a shot travelled."""
    yards = distance_meters_ / METERS_PER_YARD
    for min_yards, club in CLUB_DISTANCE_TABLE:
        if yards >= min_yards:
            return club
    return DEFAULT_CLUB


def infer_shot_type(
    lie: Optional[PositionOnHole], end_position: Optional[PositionOnHole]
) -> Optional[str]:
    if lie is None or lie == PositionOnHole.UNKNOWN:
        return None
    if lie == PositionOnHole.TEE:
        return "tee_shot"
    if lie in (PositionOnHole.ROUGH, PositionOnHole.HAZARD):
        return "recovery"
    if lie == PositionOnHole.FAIRWAY:
        return "approach" if end_position == PositionOnHole.GREEN else "fairway_shot"
    return None


def _position(fix: LocationFix) -> Optional[PositionOnHole]:
    return getattr(fix, "position_on_hole", None)


def _dedupe_sorted(fixes: Iterable[LocationFix]) -> List[LocationFix]:
    by_time: Dict = {}
    for fix in fixes:
        by_time.setdefault(fix.recorded_at, fix)
    return [by_time[key] for key in sorted(by_time)]


def _speeds(fixes: Sequence[LocationFix]) -> List[float]:
    """Reported speed where present, else derived from the previous fix."""
    speeds: List[float] = []
    for i, fix in enumerate(fixes):
        if fix.speed_mps is not None:
            speeds.append(fix.speed_mps)
            continue
        if i == 0:
            speeds.append(0.0)
            continue
        prev = fixes[i - 1]
        elapsed = (fix.recorded_at - prev.recorded_at).total_seconds()
        if elapsed <= 0:
            speeds.append(0.0)
            continue
        speeds.append(distance_meters(prev.point, fix.point) / elapsed)
    return speeds


class ShotTracker:
    """Stateless shot detector; call ``detect_shots`` with a hole's fixes."""

    def __init__(self, config: Optional[TrackingConfig] = None):
        self.config = config or TrackingConfig()

    # ========================================================================
    # Segmentation
    # ========================================================================

    def find_runs(self, fixes: Sequence[LocationFix]) -> List[Tuple[int, List[int], int]]:
        """(start index, moving indices, end index) for every completed run."""
        cfg = self.config
        speeds = _speeds(fixes)

        runs: List[Tuple[int, List[int], int]] = []
        anchor: Optional[int] = None
        streak: List[int] = []
        in_run = False
        run: List[int] = []
        slow_after: List[int] = []

        for i, speed in enumerate(speeds):
            moving = speed >= cfg.moving_speed_mps
            if not in_run:
                if not moving:
                    anchor = i
                    streak = []
                    continue
                streak.append(i)
                if len(streak) >= cfg.min_moving_fixes and anchor is not None:
                    in_run = True
                    run = list(streak)
                    slow_after = []
            elif moving:
                run.extend(slow_after)
                run.append(i)
                slow_after = []
            else:
                slow_after.append(i)
                if len(slow_after) >= cfg.min_stationary_fixes:
                    runs.append((anchor, run, slow_after[0]))
                    in_run = False
                    anchor = slow_after[-1]
                    streak = []
        return runs

    def confidence(self, path: Sequence[LocationFix]) -> float:
        """1.0 for a clean, straight run; lowered for noisy or wandering paths."""
        cfg = self.config
        score = 1.0
        if any(f.accuracy_meters > cfg.shot_accuracy_threshold_m for f in path):
            score -= ACCURACY_PENALTY

        points = [f.point for f in path]
        walked = path_length_meters(points)
        if walked > 0:
            straightness = distance_meters(points[0], points[-1]) / walked
            if straightness < cfg.min_path_straightness:
                shortfall = (cfg.min_path_straightness - straightness) / cfg.min_path_straightness
                score -= STRAIGHTNESS_PENALTY * min(1.0, shortfall)
        return max(MIN_CONFIDENCE, min(1.0, score))

    # ========================================================================
    # Detection
    # ========================================================================

    def detect_shots(
        self,
        fixes: Iterable[LocationFix],
        *,
        round_id: str,
        hole_number: int,
        next_shot_number: int = 1,
    ) -> List[ShotEvent]:
        """Shots completed within ``fixes``, numbered from ``next_shot_number``."""
        ordered = _dedupe_sorted(fixes)
        shots: List[ShotEvent] = []
        shot_number = next_shot_number

        for start_idx, run, end_idx in self.find_runs(ordered):
            start = ordered[start_idx]
            end = ordered[end_idx]
            distance = distance_meters(start.point, end.point)
            if distance < self.config.min_shot_distance_m:
                logger.debug(
                    "Ignoring %.1f m movement on hole %s of round %s",
                    distance, hole_number, round_id,
                )
                continue

            path = [start] + [ordered[i] for i in run] + [end]
            lie = _position(start)
            shots.append(ShotEvent(
                round_id=round_id,
                hole_number=hole_number,
                shot_number=shot_number,
                start_location=start.point,
                end_location=end.point,
                distance_meters=distance,
                lie_condition=lie,
                shot_type=infer_shot_type(lie, _position(end)),
                estimated_club=estimate_club(distance),
                detection_confidence=self.confidence(path),
                source=ShotSource.GPS,
                started_at=start.recorded_at,
                ended_at=end.recorded_at,
            ))
            shot_number += 1
        return shots


def resolve_shots(shots: Iterable[ShotEvent]) -> List[ShotEvent]:
    """Apply source precedence: sensor shots replace GPS shots per hole."""
    shots = list(shots)
    sensor_holes = {s.hole_number for s in shots if s.source == ShotSource.SENSOR}
    kept = [
        s for s in shots
        if s.source == ShotSource.SENSOR or s.hole_number not in sensor_holes
    ]
    return sorted(kept, key=lambda s: (s.hole_number, s.shot_number))


__all__ = [
    "CLUB_DISTANCE_TABLE",
    "ShotTracker",
    "estimate_club",
    "infer_shot_type",
    "resolve_shots",
]

"""Planar geometry on WGS84 coordinates at golf-course scale.

Points are projected onto a local equirectangular tangent plane before any
Euclidean math. Below ~2 km the error against a geodesic is well under a
meter, which is finer than consumer GPS accuracy.
"""

from __future__ import annotations

from math import cos, degrees, hypot, radians
from typing import Optional, Sequence, Tuple

from models.geo import GeoPoint

EARTH_RADIUS_M = 6_371_000.0
METERS_PER_YARD = 0.9144

Vector = Tuple[float, float]


def project(origin: GeoPoint, point: GeoPoint, ref_lat: Optional[float] = None) -> Vector:
    """(x, y) of ``point`` in meters east/north of ``origin``.

    ``ref_lat`` is the latitude used for the longitude scale; it defaults to
    the origin's latitude.
    """
    scale_lat = radians(origin.latitude if ref_lat is None else ref_lat)
    x = radians(point.longitude - origin.longitude) * cos(scale_lat) * EARTH_RADIUS_M
    y = radians(point.latitude - origin.latitude) * EARTH_RADIUS_M
    return (x, y)


def _unproject(origin: GeoPoint, vec: Vector, ref_lat: float) -> GeoPoint:
    lat = origin.latitude + degrees(vec[1] / EARTH_RADIUS_M)
    lon = origin.longitude + degrees(vec[0] / (EARTH_RADIUS_M * cos(radians(ref_lat))))
    return GeoPoint(latitude=lat, longitude=lon)


def distance_meters(p1: GeoPoint, p2: GeoPoint) -> float:
    """Distance between two points in meters.

    The longitude scale uses the mean latitude of both points so the result
    is symmetric.
    """
    if p1 == p2:
        return 0.0
    mean_lat = (p1.latitude + p2.latitude) / 2.0
    x, y = project(p1, p2, ref_lat=mean_lat)
    return hypot(x, y)


def point_in_polygon(point: GeoPoint, polygon: Sequence[GeoPoint]) -> Optional[bool]:
    """Ray-casting containment test.

    Returns None when the polygon has fewer than three vertices, meaning the
    answer is undetermined.
    """
    if len(polygon) < 3:
        return None

    ref_lat = point.latitude
    vertices = [project(point, v, ref_lat=ref_lat) for v in polygon]
    inside = False
    j = len(vertices) - 1
    for i in range(len(vertices)):
        xi, yi = vertices[i]
        xj, yj = vertices[j]
        # The test point is the origin; cast the ray along +x.
        if (yi > 0) != (yj > 0):
            x_cross = xi + (0 - yi) * (xj - xi) / (yj - yi)
            if x_cross > 0:
                inside = not inside
        j = i
    return inside


def nearest_point_on_segment(point: GeoPoint, a: GeoPoint, b: GeoPoint) -> GeoPoint:
    """Closest point to ``point`` on segment a-b (clamped to the endpoints)."""
    ref_lat = (a.latitude + b.latitude) / 2.0
    bx, by = project(a, b, ref_lat=ref_lat)
    px, py = project(a, point, ref_lat=ref_lat)
    seg_len_sq = bx * bx + by * by
    if seg_len_sq == 0:
        return a

    t = (px * bx + py * by) / seg_len_sq
    t = max(0.0, min(1.0, t))
    if t == 0.0:
        return a
    if t == 1.0:
        return b
    return _unproject(a, (bx * t, by * t), ref_lat)


def distance_to_polyline(point: GeoPoint, line: Sequence[GeoPoint]) -> Optional[float]:
    """Shortest distance from ``point`` to a polyline, None for an empty line."""
    if not line:
        return None
    if len(line) == 1:
        return distance_meters(point, line[0])

    best: Optional[float] = None
    for a, b in zip(line, line[1:]):
        nearest = nearest_point_on_segment(point, a, b)
        dist = distance_meters(point, nearest)
        if best is None or dist < best:
            best = dist
    return best


def path_length_meters(points: Sequence[GeoPoint]) -> float:
    """Sum of leg distances along an ordered path."""
    return sum(distance_meters(a, b) for a, b in zip(points, points[1:]))


__all__ = [
    "EARTH_RADIUS_M",
    "METERS_PER_YARD",
    "distance_meters",
    "distance_to_polyline",
    "nearest_point_on_segment",
    "path_length_meters",
    "point_in_polygon",
    "project",
]

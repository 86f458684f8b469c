from .geomath import (
    distance_meters,
    distance_to_polyline,
    nearest_point_on_segment,
    path_length_meters,
    point_in_polygon,
    project,
)

__all__ = [
    "distance_meters",
    "distance_to_polyline",
    "nearest_point_on_segment",
    "path_length_meters",
    "point_in_polygon",
    "project",
]

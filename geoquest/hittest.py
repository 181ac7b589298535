"""Decide whether a map tap landed on the target country."""

import math
import sys
from typing import Callable, Iterable, Optional, Sequence, Tuple

from .geography import bbox_center
from .models import BBox, GeometryRecord

Point = Tuple[float, float]
Projector = Callable[[float, float], Point]

# Targets smaller than this on screen (both sides) get the forgiving radius
SMALL_TARGET_PX = 12
SMALL_TARGET_RADIUS_PX = 28

_EPSILON = sys.float_info.epsilon


def point_in_bbox(lng: float, lat: float, bbox: BBox) -> bool:
    return bbox[0] <= lng <= bbox[2] and bbox[1] <= lat <= bbox[3]


def point_in_ring(point: Point, ring: Sequence[Sequence[float]]) -> bool:
    """Even-odd crossing test.

    The strict `(yi > y) != (yj > y)` pairing counts a vertex lying exactly on
    the test latitude once; epsilon keeps horizontal edges off a zero division.
    """
    x, y = point
    inside = False
    j = len(ring) - 1
    for i in range(len(ring)):
        xi, yi = ring[i][0], ring[i][1]
        xj, yj = ring[j][0], ring[j][1]
        if (yi > y) != (yj > y) and x < (xj - xi) * (y - yi) / (yj - yi + _EPSILON) + xi:
            inside = not inside
        j = i
    return inside


def point_in_polygon(point: Point, polygon: Sequence[Sequence[Sequence[float]]]) -> bool:
    """Inside the exterior ring and outside every hole."""
    if not polygon or not point_in_ring(point, polygon[0]):
        return False
    return not any(point_in_ring(point, hole) for hole in polygon[1:])


def point_in_geometry(lng: float, lat: float, record: GeometryRecord) -> bool:
    if not point_in_bbox(lng, lat, record.bbox):
        return False
    geometry = record.geometry
    if geometry["type"] == "Polygon":
        return point_in_polygon((lng, lat), geometry["coordinates"])
    return any(point_in_polygon((lng, lat), polygon) for polygon in geometry["coordinates"])


def is_small_target_hit(bbox: BBox, click_px: Point, project: Projector) -> bool:
    """Tiny on-screen targets count as hit within a fixed pixel radius of their centre."""
    west, south, east, north = bbox
    top_left = project(west, north)
    bottom_right = project(east, south)
    width = abs(bottom_right[0] - top_left[0])
    height = abs(bottom_right[1] - top_left[1])
    if max(width, height) > SMALL_TARGET_PX:
        return False
    center = project(*bbox_center(bbox))
    return math.hypot(click_px[0] - center[0], click_px[1] - center[1]) <= SMALL_TARGET_RADIUS_PX


def is_hit(
    lng: float,
    lat: float,
    target: GeometryRecord,
    rendered_codes: Iterable[str] = (),
    project: Optional[Projector] = None,
    click_px: Optional[Point] = None,
) -> bool:
    """True when the tap is inside the target, or the renderer drew the target
    under the tap, or the target is too small on screen to tap precisely.

    The last check needs both `project` (the current camera) and `click_px`.
    """
    if point_in_geometry(lng, lat, target):
        return True
    if target.code in set(rendered_codes or ()):
        return True
    if project is not None and click_px is not None:
        return is_small_target_hit(target.bbox, click_px, project)
    return False

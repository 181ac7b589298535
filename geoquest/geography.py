"""Country border and river lookups built from GeoJSON feature collections."""

import logging
import re
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

from .models import BBox, GeometryRecord, RiverRecord

logger = logging.getLogger(__name__)

POLYGON_TYPES = {"Polygon", "MultiPolygon"}
LINE_TYPES = {"LineString", "MultiLineString"}

# Natural Earth marks unassigned codes with -99
_CODE_PROPERTIES = ("cca3", "ISO_A3", "ADM0_A3", "iso_a3", "adm0_a3")


def _iter_polygon_coordinates(geometry: Mapping[str, Any]) -> Iterator[Tuple[float, float]]:
    polygons = geometry["coordinates"]
    if geometry["type"] == "Polygon":
        polygons = [polygons]
    for polygon in polygons:
        for ring in polygon:
            for coordinate in ring:
                yield float(coordinate[0]), float(coordinate[1])


def _envelope(points) -> Optional[BBox]:
    west = south = float("inf")
    east = north = float("-inf")
    for lng, lat in points:
        west = min(west, lng)
        east = max(east, lng)
        south = min(south, lat)
        north = max(north, lat)
    if west == float("inf"):
        return None
    return (west, south, east, north)


def compute_bbox(geometry: Mapping[str, Any]) -> BBox:
    """Tight envelope of every ring vertex of a Polygon or MultiPolygon.

    Raises ValueError for an empty or malformed coordinate array.
    """
    try:
        bbox = _envelope(_iter_polygon_coordinates(geometry))
    except (KeyError, IndexError, TypeError) as exc:
        raise ValueError(f"malformed {geometry.get('type')} coordinates") from exc
    if bbox is None:
        raise ValueError("geometry has no coordinates")
    return bbox


def bbox_center(bbox: BBox) -> Tuple[float, float]:
    return ((bbox[0] + bbox[2]) / 2, (bbox[1] + bbox[3]) / 2)


def merge_bboxes(a: BBox, b: BBox) -> BBox:
    return (min(a[0], b[0]), min(a[1], b[1]), max(a[2], b[2]), max(a[3], b[3]))


def feature_code(properties: Optional[Mapping[str, Any]]) -> Optional[str]:
    for key in _CODE_PROPERTIES:
        value = (properties or {}).get(key)
        if value is None:
            continue
        code = str(value).strip().upper()
        if code and code != "-99":
            return code
    return None


def build_geometry_index(feature_collection: Optional[Mapping[str, Any]]) -> Dict[str, GeometryRecord]:
    """Map country code -> border geometry and bounding box.

    Features without a usable code or with a non-polygon geometry are skipped.
    A feature whose coordinates cannot be read is logged and dropped; the rest
    of the collection is still indexed.
    """
    index: Dict[str, GeometryRecord] = {}
    for feature in (feature_collection or {}).get("features") or []:
        if not isinstance(feature, Mapping):
            continue
        code = feature_code(feature.get("properties"))
        geometry = feature.get("geometry")
        if not code or not isinstance(geometry, Mapping):
            continue
        if geometry.get("type") not in POLYGON_TYPES:
            continue
        try:
            bbox = compute_bbox(geometry)
        except ValueError as exc:
            logger.warning("Skipping border feature %s: %s", code, exc)
            continue
        index[code] = GeometryRecord(code=code, geometry=dict(geometry), bbox=bbox)
    logger.info("Indexed %d country geometries", len(index))
    return index


def normalize_label(value: str) -> str:
    return re.sub(r"\s+", " ", (value or "").lower()).strip()


def river_name(properties: Optional[Mapping[str, Any]]) -> Optional[str]:
    properties = properties or {}
    return properties.get("name") or properties.get("name_en") or None


def compute_line_bbox(geometry: Mapping[str, Any]) -> Optional[BBox]:
    """Envelope of a LineString, or of every segment of a MultiLineString."""
    kind = geometry.get("type")
    if kind == "LineString":
        segments = [geometry.get("coordinates") or []]
    elif kind == "MultiLineString":
        segments = geometry.get("coordinates") or []
    else:
        return None

    bbox: Optional[BBox] = None
    for segment in segments:
        segment_bbox = _envelope((float(point[0]), float(point[1])) for point in segment)
        if segment_bbox is None:
            continue
        bbox = merge_bboxes(bbox, segment_bbox) if bbox else segment_bbox
    return bbox


def build_river_index(feature_collection: Optional[Mapping[str, Any]]) -> Dict[str, RiverRecord]:
    """Map normalized river name -> bounding box merged over every segment of that name."""
    index: Dict[str, RiverRecord] = {}
    for feature in (feature_collection or {}).get("features") or []:
        if not isinstance(feature, Mapping):
            continue
        name = river_name(feature.get("properties"))
        geometry = feature.get("geometry")
        if not name or not isinstance(geometry, Mapping):
            continue
        try:
            bbox = compute_line_bbox(geometry)
        except (IndexError, TypeError, ValueError) as exc:
            logger.warning("Skipping river feature %r: %s", name, exc)
            continue
        if bbox is None:
            continue
        key = normalize_label(name)
        existing = index.get(key)
        index[key] = RiverRecord(bbox=merge_bboxes(existing.bbox, bbox) if existing else bbox)
    logger.info("Indexed %d rivers", len(index))
    return index

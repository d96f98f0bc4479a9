"""Geospatial helpers."""
from __future__ import annotations

import hashlib
import math
from typing import Any, Dict, Iterable, List, Optional, Tuple

from . import config
from .models import BBox


def grid_round(value: float, scale: Optional[int] = None) -> int:
    """Snap a coordinate to the dedup grid (half-up, like Math.round)."""
    scale = config.DEDUP_GRID_SCALE if scale is None else scale
    return int(math.floor(value * scale + 0.5))


def normalize_name(name: Optional[str]) -> str:
    return " ".join((name or "").lower().split())


def place_key(name: Optional[str], lat: float, lng: float) -> str:
    return f"{normalize_name(name)}|{grid_round(lat)}|{grid_round(lng)}"


def fallback_place_id(name: Optional[str], lat: float, lng: float) -> str:
    digest = hashlib.sha256(place_key(name, lat, lng).encode("utf-8")).hexdigest()
    return f"h:{digest[:16]}"


def bbox_from_geometry(geometry: Dict[str, Any]) -> BBox:
    """Bounding box [minLon, minLat, maxLon, maxLat] over every coordinate pair.

    Walks LineString and MultiLineString geometries, recursing into
    GeometryCollections. Raises ValueError if no coordinate is found.
    """
    min_x = min_y = math.inf
    max_x = max_y = -math.inf
    for x, y in iter_line_coordinates(geometry):
        min_x = min(min_x, x)
        min_y = min(min_y, y)
        max_x = max(max_x, x)
        max_y = max(max_y, y)
    if min_x == math.inf:
        raise ValueError("Geometry has no coordinates")
    return (min_x, min_y, max_x, max_y)


def iter_line_coordinates(geometry: Any) -> Iterable[Tuple[float, float]]:
    """Yield (x, y) pairs; malformed positions are skipped."""
    if not isinstance(geometry, dict):
        return
    geom_type = geometry.get("type")
    if geom_type == "LineString":
        lines: List[Any] = [geometry.get("coordinates")]
    elif geom_type == "MultiLineString":
        lines = _as_list(geometry.get("coordinates"))
    elif geom_type == "GeometryCollection":
        for child in _as_list(geometry.get("geometries")):
            yield from iter_line_coordinates(child)
        return
    else:
        return
    for line in lines:
        if not isinstance(line, (list, tuple)):
            continue
        for coord in line:
            pair = _position(coord)
            if pair is not None:
                yield pair


def _position(coord: Any) -> Optional[Tuple[float, float]]:
    if not isinstance(coord, (list, tuple)) or len(coord) < 2:
        return None
    try:
        x, y = float(coord[0]), float(coord[1])
    except (TypeError, ValueError):
        return None
    if not (math.isfinite(x) and math.isfinite(y)):
        return None
    return x, y


def _as_list(value: Any) -> List[Any]:
    return list(value) if isinstance(value, (list, tuple)) else []

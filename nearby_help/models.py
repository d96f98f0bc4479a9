"""Typed models shared by the resolution pipeline."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

BBox = Tuple[float, float, float, float]


class OriginUnavailableError(ValueError):
    """The caller's position is missing or unusable."""


@dataclass(frozen=True)
class LatLng:
    lat: float
    lng: float

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}


# The caller's position; immutable for one resolution.
Origin = LatLng


@dataclass
class Candidate:
    """A real-world facility, annotated with travel metrics once ranked."""

    id: str
    name: str
    location: LatLng
    address: Optional[str] = None
    eta_sec: Optional[float] = None
    distance_m: Optional[float] = None
    eta_text: Optional[str] = None
    distance_text: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "lat": self.location.lat,
            "lng": self.location.lng,
            "address": self.address,
            "eta_sec": self.eta_sec,
            "distance_m": self.distance_m,
            "eta_text": self.eta_text,
            "distance_text": self.distance_text,
        }


@dataclass(frozen=True)
class SearchRequest:
    origin: Origin
    facility_type: str
    radius_sequence: Tuple[int, ...]


@dataclass
class RouteGeometry:
    geometry: Dict[str, Any]
    bbox: BBox

    def to_feature(self, properties: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return {
            "type": "Feature",
            "bbox": list(self.bbox),
            "geometry": self.geometry,
            "properties": dict(properties or {}),
        }


@dataclass
class SearchResult:
    facility_type: str
    mode: str
    candidates: List[Candidate] = field(default_factory=list)
    summary: Dict[str, Any] = field(default_factory=dict)


def require_origin(origin: Optional[Any]) -> Origin:
    """Return *origin* as an Origin or raise OriginUnavailableError.

    Accepts an Origin, a ``{"lat", "lng"}`` mapping or a ``(lat, lng)`` pair.
    """
    if origin is None:
        raise OriginUnavailableError("Location unavailable")
    if isinstance(origin, LatLng):
        lat, lng = origin.lat, origin.lng
    elif isinstance(origin, dict):
        lat = origin.get("lat")
        lng = origin.get("lng", origin.get("lon"))
    elif isinstance(origin, Sequence) and len(origin) == 2:
        lat, lng = origin
    else:
        raise OriginUnavailableError(f"Unsupported origin: {origin!r}")

    try:
        lat = float(lat)
        lng = float(lng)
    except (TypeError, ValueError):
        raise OriginUnavailableError(f"Origin coordinates are not numeric: {origin!r}") from None
    if not (math.isfinite(lat) and math.isfinite(lng)):
        raise OriginUnavailableError(f"Origin coordinates are not finite: {origin!r}")
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0):
        raise OriginUnavailableError(f"Origin coordinates out of range: {origin!r}")
    return LatLng(lat, lng)

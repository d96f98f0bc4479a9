"""Places provider client and response parsing."""
from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Optional, Tuple

from . import config
from .geo import fallback_place_id
from .http import CancellationToken, HttpClient, ProviderError, RequestMetrics
from .models import Candidate, LatLng, Origin

logger = logging.getLogger(__name__)

PROVIDER = "places"


class PlacesClient:
    def __init__(
        self,
        http_client: HttpClient,
        api_key: str,
        url: Optional[str] = None,
        page_limit: Optional[int] = None,
    ) -> None:
        self.http = http_client
        self.api_key = api_key
        self.url = url or config.PLACES_URL
        self.page_limit = config.PLACES_PAGE_LIMIT if page_limit is None else page_limit

    def search(
        self,
        origin: Origin,
        facility_type: str,
        radius_m: int,
        cancel_token: Optional[CancellationToken] = None,
        metrics: Optional[RequestMetrics] = None,
    ) -> List[Candidate]:
        params = build_places_params(origin, facility_type, radius_m, self.page_limit, self.api_key)
        response = self.http.get_json(
            self.url, "places", PROVIDER, params=params, cancel_token=cancel_token, metrics=metrics
        )
        return parse_places_response(response, facility_type)


def build_places_params(
    origin: Origin,
    facility_type: str,
    radius_m: int,
    limit: int,
    api_key: str,
) -> Dict[str, Any]:
    return {
        "categories": config.places_category(facility_type),
        "filter": f"circle:{origin.lng},{origin.lat},{int(radius_m)}",
        "bias": f"proximity:{origin.lng},{origin.lat}",
        "limit": int(limit),
        "apiKey": api_key,
    }


# Adapter/mapper for places feature collections

def parse_places_response(response: Dict[str, Any], facility_type: str) -> List[Candidate]:
    features = response.get("features") or []
    if not isinstance(features, list):
        raise ProviderError(200, PROVIDER, "features is not a list")
    default_name = config.generic_name(facility_type)
    parsed: List[Candidate] = []
    for feature in features:
        if not isinstance(feature, dict):
            logger.debug("Skipping malformed feature: %r", feature)
            continue
        props = feature.get("properties")
        if not isinstance(props, dict):
            props = {}
        point = point_coordinates(feature.get("geometry"))
        if point is None:
            logger.debug("Skipping place without coordinates: %s", props.get("place_id"))
            continue
        lng, lat = point
        name = str(props.get("name") or default_name)
        parsed.append(
            Candidate(
                id=candidate_id(props, name, lat, lng),
                name=name,
                location=LatLng(lat, lng),
                address=props.get("address_line1") or props.get("formatted") or None,
            )
        )
    return parsed


def candidate_id(props: Dict[str, Any], name: str, lat: float, lng: float) -> str:
    place_id = props.get("place_id")
    if place_id:
        return str(place_id)
    osm_id = props.get("osm_id")
    if osm_id:
        return f"{props.get('osm_type') or 'p'}:{osm_id}"
    return fallback_place_id(name, lat, lng)


def point_coordinates(geometry: Any) -> Optional[Tuple[float, float]]:
    """(lng, lat) of a point geometry, or None when it has no usable pair."""
    if not isinstance(geometry, dict):
        return None
    coords = geometry.get("coordinates")
    if not isinstance(coords, (list, tuple)) or len(coords) < 2:
        return None
    try:
        lng, lat = float(coords[0]), float(coords[1])
    except (TypeError, ValueError):
        return None
    if not (math.isfinite(lng) and math.isfinite(lat)):
        return None
    return lng, lat

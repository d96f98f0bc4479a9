"""Routing provider (OSRM) client: travel-time matrix and single routes."""
from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Optional, Sequence

from . import config
from .geo import iter_line_coordinates
from .http import CancellationToken, HttpClient, ProviderError, RequestMetrics, RouteNotFoundError
from .models import LatLng

logger = logging.getLogger(__name__)

MATRIX_PROVIDER = "osrm-table"
ROUTE_PROVIDER = "osrm-route"


class RoutesClient:
    def __init__(self, http_client: HttpClient, base_url: Optional[str] = None) -> None:
        self.http = http_client
        self.base_url = (base_url or config.OSRM_BASE_URL).rstrip("/")

    def table_from_source(
        self,
        coordinates: Sequence[LatLng],
        mode: str,
        cancel_token: Optional[CancellationToken] = None,
        metrics: Optional[RequestMetrics] = None,
    ) -> Dict[str, Any]:
        """One /table request with coordinates[0] as the only source."""
        profile = config.routing_profile(mode)
        if len(coordinates) > config.MATRIX_MAX_COORDINATES:
            logger.warning(
                "Matrix request has %s coordinates (provider limit %s)",
                len(coordinates),
                config.MATRIX_MAX_COORDINATES,
            )
        url = f"{self.base_url}/table/v1/{profile}/{format_coordinates(coordinates)}"
        params = {"sources": "0", "annotations": "duration,distance"}
        data = self.http.get_json(
            url, "matrix", MATRIX_PROVIDER, params=params, cancel_token=cancel_token, metrics=metrics
        )
        _check_osrm_code(data, MATRIX_PROVIDER)
        return data

    def route(
        self,
        origin: LatLng,
        destination: LatLng,
        mode: str,
        cancel_token: Optional[CancellationToken] = None,
        metrics: Optional[RequestMetrics] = None,
    ) -> Dict[str, Any]:
        """Full GeoJSON geometry of the best route between two points."""
        profile = config.routing_profile(mode)
        url = f"{self.base_url}/route/v1/{profile}/{format_coordinates([origin, destination])}"
        params = {"overview": "full", "geometries": "geojson"}
        data = self.http.get_json(
            url, "route", ROUTE_PROVIDER, params=params, cancel_token=cancel_token, metrics=metrics
        )
        _check_osrm_code(data, ROUTE_PROVIDER)
        geometry = parse_route_geometry(data)
        if geometry is None:
            raise RouteNotFoundError(200, ROUTE_PROVIDER, "response contains no route")
        return geometry


def format_coordinates(coordinates: Sequence[LatLng]) -> str:
    """OSRM wants 'lon,lat;lon,lat;...'."""
    return ";".join(f"{c.lng},{c.lat}" for c in coordinates)


def parse_source_row(data: Dict[str, Any], count: int) -> Optional[Dict[str, List[Optional[float]]]]:
    """Durations/distances from source 0 to the *count* destinations after it.

    Returns None when the response carries no source row at all.
    """
    durations = _first_row(data.get("durations"))
    if durations is None:
        return None
    distances = _first_row(data.get("distances")) or []
    return {
        "durations": [_finite_or_none(durations, i) for i in range(1, count + 1)],
        "distances": [_finite_or_none(distances, i) for i in range(1, count + 1)],
    }


def parse_route_geometry(data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    routes = data.get("routes")
    if not isinstance(routes, list) or not routes or not isinstance(routes[0], dict):
        return None
    geometry = routes[0].get("geometry")
    if next(iter(iter_line_coordinates(geometry)), None) is None:
        return None
    return geometry


def _first_row(matrix: Any) -> Optional[List[Any]]:
    if not isinstance(matrix, list) or not matrix:
        return None
    row = matrix[0]
    if not isinstance(row, list):
        return None
    return row


def _finite_or_none(row: List[Any], index: int) -> Optional[float]:
    if index >= len(row):
        return None
    value = row[index]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return float(value)


def _check_osrm_code(data: Dict[str, Any], provider: str) -> None:
    code = data.get("code")
    if code is not None and code != "Ok":
        raise ProviderError(200, provider, str(data.get("message") or code))

"""Pipeline orchestration."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from . import config
from .dedup import dedup
from .geo import bbox_from_geometry
from .http import CancellationToken, HttpClient, RequestMetrics, SearchCancelled
from .models import (
    Candidate,
    Origin,
    RouteGeometry,
    SearchRequest,
    SearchResult,
    require_origin,
)
from .places_client import PlacesClient
from .ranking import rank_candidates
from .routes_client import RoutesClient

logger = logging.getLogger(__name__)


@dataclass
class SearchState:
    radius_index: int = 0
    accumulated: List[Candidate] = field(default_factory=list)
    last_radius_m: Optional[int] = None


def should_stop(state: SearchState, radius_sequence: Sequence[int], threshold: int) -> bool:
    return len(state.accumulated) >= threshold or state.radius_index >= len(radius_sequence)


def step(
    state: SearchState,
    places_client: PlacesClient,
    request: SearchRequest,
    cancel_token: Optional[CancellationToken] = None,
    metrics: Optional[RequestMetrics] = None,
) -> SearchState:
    radius_m = request.radius_sequence[state.radius_index]
    logger.info("Stage 1: places search (%s, radius %s m)", request.facility_type, radius_m)
    found = places_client.search(
        request.origin, request.facility_type, radius_m, cancel_token=cancel_token, metrics=metrics
    )
    return SearchState(
        radius_index=state.radius_index + 1,
        accumulated=dedup(state.accumulated + found),
        last_radius_m=radius_m,
    )


def resolve_places(
    places_client: PlacesClient,
    request: SearchRequest,
    min_candidates: Optional[int] = None,
    cancel_token: Optional[CancellationToken] = None,
    metrics: Optional[RequestMetrics] = None,
) -> SearchState:
    """Expand the search radius until enough distinct places are found.

    Returns the final SearchState: ``state.accumulated`` is the resolved,
    deduplicated candidate sequence in first-seen order, and
    ``radius_index`` / ``last_radius_m`` record how far the search went.

    Radius steps run strictly in order; a provider error aborts the whole
    search. An empty ``accumulated`` list means nothing was found, not a failure.
    """
    origin = require_origin(request.origin)
    if origin is not request.origin:
        request = SearchRequest(origin, request.facility_type, tuple(request.radius_sequence))
    config.places_category(request.facility_type)
    config.validate_radius_sequence(request.radius_sequence)
    threshold = config.MIN_CANDIDATES if min_candidates is None else min_candidates
    state = SearchState()
    while not should_stop(state, request.radius_sequence, threshold):
        state = step(state, places_client, request, cancel_token=cancel_token, metrics=metrics)
    return state


def resolve_route(
    routes_client: RoutesClient,
    origin: Origin,
    candidate: Candidate,
    mode: str,
    cancel_token: Optional[CancellationToken] = None,
    metrics: Optional[RequestMetrics] = None,
) -> RouteGeometry:
    origin = require_origin(origin)
    geometry = routes_client.route(
        origin, candidate.location, mode, cancel_token=cancel_token, metrics=metrics
    )
    return RouteGeometry(geometry=geometry, bbox=bbox_from_geometry(geometry))


class NearbyPipeline:
    """Places -> ETA ranking -> top-N, plus on-demand routes to one candidate.

    Each new search (or route) cancels the previous one of the same kind;
    a result whose invocation was superseded is never returned. Request counts
    in a search summary cover that search only; ``metrics``, when given, keeps
    running totals across invocations.
    """

    def __init__(
        self,
        api_key: str,
        http_client: Optional[HttpClient] = None,
        places_client: Optional[PlacesClient] = None,
        routes_client: Optional[RoutesClient] = None,
        metrics: Optional[RequestMetrics] = None,
    ) -> None:
        self.metrics = metrics
        self.http = http_client or HttpClient(metrics=self.metrics)
        self.places_client = places_client or PlacesClient(self.http, api_key)
        self.routes_client = routes_client or RoutesClient(self.http)
        self._lock = threading.Lock()
        self._latest: Dict[str, CancellationToken] = {}

    def find_nearest(
        self,
        origin: Any,
        facility_type: str,
        mode: str,
        top_n: Optional[int] = None,
        radius_sequence: Optional[Sequence[int]] = None,
    ) -> SearchResult:
        origin = require_origin(origin)
        config.routing_profile(mode)
        limit = config.TOP_N if top_n is None else top_n
        request = SearchRequest(
            origin=origin,
            facility_type=facility_type,
            radius_sequence=config.validate_radius_sequence(
                config.RADIUS_SEQUENCE_M if radius_sequence is None else radius_sequence
            ),
        )

        metrics = RequestMetrics()
        token = self._begin("search")
        state = resolve_places(self.places_client, request, cancel_token=token, metrics=metrics)
        found = len(state.accumulated)
        if state.accumulated:
            logger.info("Stage 2: ranking %s candidates (%s)", found, mode)
            ranked = rank_candidates(
                self.routes_client, origin, state.accumulated, mode, cancel_token=token, metrics=metrics
            )
        else:
            logger.info("No %s found within %s m", facility_type, state.last_radius_m)
            ranked = []
        top = ranked[:limit]
        self._finish("search", token)

        summary = {
            "facility_type": facility_type,
            "mode": mode,
            "radius_steps": state.radius_index,
            "radius_m": state.last_radius_m,
            "candidates_found": found,
            "reachable": len(ranked),
            "returned": len(top),
        }
        summary.update(metrics.as_dict())
        return SearchResult(facility_type=facility_type, mode=mode, candidates=top, summary=summary)

    def route_to(self, origin: Any, candidate: Candidate, mode: str) -> RouteGeometry:
        token = self._begin("route")
        logger.info("Routing to %s (%s)", candidate.name, mode)
        route = resolve_route(self.routes_client, origin, candidate, mode, cancel_token=token)
        self._finish("route", token)
        return route

    def cancel(self) -> None:
        with self._lock:
            for token in self._latest.values():
                token.cancel()

    def _begin(self, kind: str) -> CancellationToken:
        token = CancellationToken()
        with self._lock:
            previous = self._latest.get(kind)
            if previous is not None:
                previous.cancel()
            self._latest[kind] = token
        return token

    def _finish(self, kind: str, token: CancellationToken) -> None:
        with self._lock:
            if self._latest.get(kind) is not token or token.cancelled:
                raise SearchCancelled(f"Superseded {kind} result discarded")

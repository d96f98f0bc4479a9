"""Rank candidates by travel time using one batched matrix request."""
from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence

from .http import CancellationToken, RequestMetrics
from .models import Candidate, Origin, require_origin
from .routes_client import RoutesClient, parse_source_row

logger = logging.getLogger(__name__)


def rank_candidates(
    routes_client: RoutesClient,
    origin: Origin,
    candidates: Sequence[Candidate],
    mode: str,
    cancel_token: Optional[CancellationToken] = None,
    metrics: Optional[RequestMetrics] = None,
) -> List[Candidate]:
    """Annotate candidates with ETA/distance, drop unreachable ones, sort by ETA.

    Candidates are mutated in place. Ties keep their input order.
    """
    origin = require_origin(origin)
    if not candidates:
        return []

    coordinates = [origin] + [c.location for c in candidates]
    data = routes_client.table_from_source(
        coordinates, mode, cancel_token=cancel_token, metrics=metrics
    )
    row = parse_source_row(data, len(candidates))
    if row is None:
        logger.info("Matrix response has no source row; no reachable destinations")
        return []

    reachable: List[Candidate] = []
    for candidate, duration, distance in zip(candidates, row["durations"], row["distances"]):
        annotate(candidate, duration, distance)
        if candidate.eta_sec is not None:
            reachable.append(candidate)

    dropped = len(candidates) - len(reachable)
    if dropped:
        logger.debug("Dropped %s unreachable candidates", dropped)
    reachable.sort(key=lambda c: c.eta_sec)
    return reachable


def annotate(candidate: Candidate, duration: Optional[float], distance: Optional[float]) -> None:
    candidate.eta_sec = duration
    candidate.distance_m = distance
    candidate.eta_text = format_duration(duration) if duration is not None else None
    candidate.distance_text = format_distance(distance) if distance is not None else None


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def format_duration(seconds: float) -> str:
    minutes = _round_half_up(seconds / 60)
    if minutes < 60:
        return f"{minutes} min"
    hours, rest = divmod(minutes, 60)
    return f"{hours}h {rest}m"


def format_distance(meters: float) -> str:
    if meters < 1000:
        return f"{_round_half_up(meters)} m"
    return f"{meters / 1000:.1f} km"

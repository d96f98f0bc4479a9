"""Output reporting helpers."""
from __future__ import annotations

import json
import os
import tempfile
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional, TextIO

from . import config
from .models import RouteGeometry, SearchResult


def ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def _fsync_dir(path: str) -> None:
    try:
        dir_fd = os.open(path, os.O_DIRECTORY)
    except OSError:
        return
    try:
        os.fsync(dir_fd)
    except OSError:
        pass
    finally:
        os.close(dir_fd)


@contextmanager
def atomic_writer(path: str, encoding: str = "utf-8") -> Iterator[TextIO]:
    dir_path = os.path.dirname(path) or "."
    base = os.path.basename(path)
    fd, tmp_path = tempfile.mkstemp(prefix=f".{base}.", suffix=".tmp", dir=dir_path)
    try:
        with os.fdopen(fd, "w", encoding=encoding) as f:
            yield f
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
        _fsync_dir(dir_path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def write_json_object(path: str, payload: Any) -> None:
    with atomic_writer(path) as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)


def write_results_json(path: str, result: SearchResult, origin: Optional[Dict[str, float]] = None) -> None:
    write_json_object(
        path,
        {
            "generated_at": utc_now_iso(),
            "title": config.facility_title(result.facility_type),
            "origin": origin,
            "summary": result.summary,
            "results": [c.to_dict() for c in result.candidates],
        },
    )


def write_route_geojson(path: str, route: RouteGeometry, properties: Optional[Dict[str, Any]] = None) -> None:
    write_json_object(path, route.to_feature(properties))


def render_results(result: SearchResult) -> List[str]:
    lines = [f"{config.facility_title(result.facility_type)} ({result.mode})"]
    for idx, candidate in enumerate(result.candidates, start=1):
        metrics = candidate.eta_text or "?"
        if candidate.distance_text:
            metrics = f"{metrics} • {candidate.distance_text}"
        line = f"{idx:>2}. {candidate.name} - {metrics}"
        if candidate.address:
            line = f"{line} ({candidate.address})"
        lines.append(line)
    return lines


def render_summary(summary: Dict[str, Any]) -> List[str]:
    return [
        "Summary:",
        "  Radius: steps={steps}, last={radius} m".format(
            steps=summary.get("radius_steps", 0), radius=summary.get("radius_m")
        ),
        "  Candidates: found={found}, reachable={reachable}, returned={returned}".format(
            found=summary.get("candidates_found", 0),
            reachable=summary.get("reachable", 0),
            returned=summary.get("returned", 0),
        ),
        "  Requests: places={places}, matrix={matrix}, route={route}".format(
            places=summary.get("places_requests", 0),
            matrix=summary.get("matrix_requests", 0),
            route=summary.get("route_requests", 0),
        ),
    ]

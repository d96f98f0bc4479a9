"""Shared fakes: a requests-like session that answers from canned payloads."""
from typing import Any, Callable, Dict, List, Optional

import pytest

from nearby_help import config
from nearby_help.http import HttpClient, RequestMetrics

PLACES_URL = "https://places.test/v2/places"
OSRM_URL = "https://osrm.test"


class FakeResponse:
    def __init__(self, payload, status_code: int = 200):
        self._payload = payload
        self.status_code = status_code
        self.headers: Dict[str, str] = {}

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    """Routes GET calls to a handler and records every call."""

    def __init__(self, handler: Callable[[str, Dict[str, Any]], Any]):
        self.handler = handler
        self.calls: List[Dict[str, Any]] = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append({"url": url, "params": dict(params or {}), "headers": dict(headers or {})})
        result = self.handler(url, dict(params or {}))
        if isinstance(result, FakeResponse):
            return result
        return FakeResponse(result)

    def urls_containing(self, fragment: str) -> List[str]:
        return [c["url"] for c in self.calls if fragment in c["url"]]


def feature(name: Optional[str], lat: float, lng: float, **props) -> Dict[str, Any]:
    properties = dict(props)
    if name is not None:
        properties["name"] = name
    return {
        "type": "Feature",
        "properties": properties,
        "geometry": {"type": "Point", "coordinates": [lng, lat]},
    }


def table_payload(durations: List[Any], distances: Optional[List[Any]] = None) -> Dict[str, Any]:
    distances = distances if distances is not None else [d * 10 if isinstance(d, (int, float)) else d for d in durations]
    return {"code": "Ok", "durations": [[0.0] + list(durations)], "distances": [[0.0] + list(distances)]}


@pytest.fixture(autouse=True)
def patch_endpoints(monkeypatch):
    monkeypatch.setattr(config, "PLACES_URL", PLACES_URL)
    monkeypatch.setattr(config, "OSRM_BASE_URL", OSRM_URL)


@pytest.fixture()
def make_http():
    def _make(handler, metrics: Optional[RequestMetrics] = None, retry_max: int = 1) -> HttpClient:
        client = HttpClient(
            timeout=1,
            retry_max=retry_max,
            backoff_base=0.0,
            backoff_max=0.0,
            metrics=metrics,
        )
        client.session = FakeSession(handler)
        return client

    return _make

"""HTTP client, provider errors, request metrics and cancellation."""
from __future__ import annotations

import logging
import random
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import requests

from . import config

logger = logging.getLogger(__name__)

REQUEST_KINDS = ("places", "matrix", "route")


class ProviderError(RuntimeError):
    """A provider answered with a non-success status or an unusable body."""

    def __init__(self, status: Optional[int], provider: str, message: str = "") -> None:
        self.status = status
        self.provider = provider
        detail = f": {message}" if message else ""
        super().__init__(f"{provider} failed with status {status}{detail}")


class RouteNotFoundError(ProviderError):
    pass


class SearchCancelled(RuntimeError):
    pass


class CancellationToken:
    def __init__(self) -> None:
        self._event = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise SearchCancelled("Request was cancelled")


@dataclass
class RequestMetrics:
    network_places: int = 0
    network_matrix: int = 0
    network_route: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def inc_network(self, kind: str) -> None:
        if kind not in REQUEST_KINDS:
            raise ValueError(f"Unknown request kind: {kind}")
        with self._lock:
            if kind == "places":
                self.network_places += 1
            elif kind == "matrix":
                self.network_matrix += 1
            else:
                self.network_route += 1

    def as_dict(self) -> Dict[str, int]:
        with self._lock:
            return {
                "places_requests": self.network_places,
                "matrix_requests": self.network_matrix,
                "route_requests": self.network_route,
            }


class HttpClient:
    def __init__(
        self,
        timeout: Optional[float] = None,
        retry_max: Optional[int] = None,
        backoff_base: Optional[float] = None,
        backoff_max: Optional[float] = None,
        metrics: Optional[RequestMetrics] = None,
    ) -> None:
        self.timeout = config.HTTP_TIMEOUT_SECONDS if timeout is None else timeout
        self.retry_max = max(1, config.HTTP_RETRY_MAX if retry_max is None else retry_max)
        self.backoff_base = config.HTTP_BACKOFF_BASE if backoff_base is None else backoff_base
        self.backoff_max = config.HTTP_BACKOFF_MAX if backoff_max is None else backoff_max
        self.metrics = metrics
        self.session = requests.Session()

    def get_json(
        self,
        url: str,
        kind: str,
        provider: str,
        params: Optional[Dict[str, Any]] = None,
        cancel_token: Optional[CancellationToken] = None,
        metrics: Optional[RequestMetrics] = None,
    ) -> Dict[str, Any]:
        """GET a JSON object. *metrics* counts this call in addition to the client totals."""
        headers = dict(config.HTTP_NO_CACHE_HEADERS)
        for attempt in range(1, self.retry_max + 1):
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()
            for counter in (self.metrics, metrics):
                if counter is not None:
                    counter.inc_network(kind)
            try:
                resp = self.session.get(url, params=params, headers=headers, timeout=self.timeout)
            except requests.RequestException:
                if attempt >= self.retry_max:
                    raise
                self._sleep_backoff(attempt)
                continue
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()

            status = resp.status_code
            if 200 <= status < 300:
                try:
                    body = resp.json()
                except ValueError:
                    logger.error("Non-JSON response from %s", provider)
                    raise ProviderError(status, provider, "response is not JSON") from None
                if not isinstance(body, dict):
                    logger.error("Unexpected JSON body from %s", provider)
                    raise ProviderError(status, provider, "response is not a JSON object")
                return body

            if status in (429, 500, 502, 503, 504) and attempt < self.retry_max:
                logger.warning("HTTP %s from %s (attempt %s)", status, provider, attempt)
                if not self._sleep_retry_after(resp):
                    self._sleep_backoff(attempt)
                continue

            logger.error("HTTP %s from %s", status, provider)
            raise ProviderError(status, provider, _error_message(resp))

        raise RuntimeError("Unexpected HTTP retry loop exit")

    def _sleep_backoff(self, attempt: int) -> None:
        base = min(self.backoff_base * (2 ** (attempt - 1)), self.backoff_max)
        jitter = random.uniform(0, self.backoff_base)
        time.sleep(base + jitter)

    def _sleep_retry_after(self, resp: requests.Response) -> bool:
        retry_after = resp.headers.get("Retry-After")
        if not retry_after:
            return False
        try:
            delay = float(retry_after)
        except ValueError:
            return False
        delay = max(0.0, min(delay, self.backoff_max))
        time.sleep(delay)
        return True


def _error_message(resp: requests.Response) -> str:
    try:
        payload = resp.json()
    except ValueError:
        return ""
    if isinstance(payload, dict):
        return str(payload.get("message") or payload.get("error") or "")
    return ""

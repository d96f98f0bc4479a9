"""Project configuration.

Loads user-defined search parameters from search_config.json when available,
falling back to sensible defaults. Keep provider request shapes centralized here.
"""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

_REPO_ROOT = Path(__file__).resolve().parent.parent

# --- Provider endpoints ---

PLACES_URL = "https://api.geoapify.com/v2/places"
OSRM_BASE_URL = "https://router.project-osrm.org"

PLACES_API_KEY_ENV = "GEOAPIFY_API_KEY"
OSRM_BASE_URL_ENV = "OSRM_BASE_URL"

# --- Facility types and travel modes ---

FACILITY_TYPES: Tuple[str, ...] = ("police", "fire_station", "hospital")

PLACES_CATEGORIES: Dict[str, str] = {
    "police": "service.police",
    "fire_station": "service.fire_station",
    "hospital": "healthcare.hospital",
}

GENERIC_NAMES: Dict[str, str] = {
    "police": "Police Station",
    "fire_station": "Fire Station",
    "hospital": "Hospital",
}

TRAVEL_MODES: Tuple[str, ...] = ("driving", "walking")

ROUTING_PROFILES: Dict[str, str] = {
    "driving": "driving",
    "walking": "foot",
}

DEFAULT_FACILITY_TYPE = "police"
DEFAULT_TRAVEL_MODE = "driving"

# --- Places search ---

RADIUS_SEQUENCE_M: Tuple[int, ...] = (5000, 10000, 20000)
PLACES_PAGE_LIMIT = 50
MIN_CANDIDATES = 5

# ~111 m of latitude per grid cell
DEDUP_GRID_SCALE = 1000

# --- Ranking ---

TOP_N = 8
# OSRM demo server rejects larger table requests
MATRIX_MAX_COORDINATES = 100

# --- HTTP ---

HTTP_TIMEOUT_SECONDS = 15
HTTP_RETRY_MAX = 1
HTTP_BACKOFF_BASE = 0.5
HTTP_BACKOFF_MAX = 8.0
HTTP_NO_CACHE_HEADERS: Dict[str, str] = {"Cache-Control": "no-cache", "Pragma": "no-cache"}

# --- Outputs ---

OUTPUT_DIR = "out"


def places_category(facility_type: str) -> str:
    try:
        return PLACES_CATEGORIES[facility_type]
    except KeyError:
        raise ValueError(f"Unknown facility type: {facility_type}") from None


def generic_name(facility_type: str) -> str:
    try:
        return GENERIC_NAMES[facility_type]
    except KeyError:
        raise ValueError(f"Unknown facility type: {facility_type}") from None


def routing_profile(mode: str) -> str:
    try:
        return ROUTING_PROFILES[mode.lower()]
    except (KeyError, AttributeError):
        raise ValueError(f"Unknown travel mode: {mode}") from None


def facility_title(facility_type: str) -> str:
    """Heading shown above a ranked list, e.g. 'Closest fire station'."""
    if facility_type not in PLACES_CATEGORIES:
        raise ValueError(f"Unknown facility type: {facility_type}")
    return f"Closest {facility_type.replace('_', ' ')}"


def validate_radius_sequence(radii: Any) -> Tuple[int, ...]:
    """Radii as a tuple of ints; must be non-empty, positive and ascending."""
    values = tuple(int(r) for r in radii)
    if not values or any(r <= 0 for r in values) or list(values) != sorted(values):
        raise ValueError(f"Radius sequence must be positive and ascending: {list(values)}")
    return values


def load_env_overrides() -> None:
    """Apply endpoint overrides from the environment (call after loading .env)."""
    osrm = (os.environ.get(OSRM_BASE_URL_ENV) or "").strip()
    if osrm:
        globals()["OSRM_BASE_URL"] = osrm.rstrip("/")


def load_search_config(path: Optional[str] = None) -> bool:
    """Load search configuration from a JSON file.

    Updates module-level globals with values from the config file.
    Returns True if config was loaded, False if file not found.
    """
    if path is None:
        path = str(_REPO_ROOT / "search_config.json")

    config_path = Path(path)
    if not config_path.exists():
        return False

    with open(config_path, "r", encoding="utf-8") as f:
        data: Dict[str, Any] = json.load(f)

    globals_ref = globals()

    radii = data.get("radii_m")
    if radii:
        globals_ref["RADIUS_SEQUENCE_M"] = validate_radius_sequence(radii)

    min_candidates = data.get("min_candidates")
    if min_candidates is not None:
        globals_ref["MIN_CANDIDATES"] = int(min_candidates)

    page_limit = data.get("page_limit")
    if page_limit is not None:
        globals_ref["PLACES_PAGE_LIMIT"] = int(page_limit)

    top_n = data.get("top_n")
    if top_n is not None:
        globals_ref["TOP_N"] = int(top_n)

    endpoints = data.get("endpoints", {})
    if endpoints.get("places"):
        globals_ref["PLACES_URL"] = str(endpoints["places"])
    if endpoints.get("osrm"):
        globals_ref["OSRM_BASE_URL"] = str(endpoints["osrm"]).rstrip("/")

    http = data.get("http", {})
    if "timeout_seconds" in http:
        globals_ref["HTTP_TIMEOUT_SECONDS"] = float(http["timeout_seconds"])
    if "retry_max" in http:
        globals_ref["HTTP_RETRY_MAX"] = max(1, int(http["retry_max"]))

    return True

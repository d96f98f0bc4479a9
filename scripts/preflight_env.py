#!/usr/bin/env python3
"""Quick preflight: print secret env var lengths without exposing values."""
from __future__ import annotations

import os


def _len(name: str) -> int:
    return len((os.getenv(name) or "").strip())


if __name__ == "__main__":
    print("GEOAPIFY_API_KEY", _len("GEOAPIFY_API_KEY"))
    print("OSRM_BASE_URL", os.getenv("OSRM_BASE_URL") or "(default)")

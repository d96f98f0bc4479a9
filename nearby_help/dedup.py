"""Collapse candidates that describe the same real-world place."""
from __future__ import annotations

from typing import Iterable, List, Set

from .geo import place_key
from .models import Candidate


def dedup_key(candidate: Candidate) -> str:
    return place_key(candidate.name, candidate.location.lat, candidate.location.lng)


def dedup(candidates: Iterable[Candidate]) -> List[Candidate]:
    """Drop later candidates whose name+grid key was already seen; order is kept."""
    seen: Set[str] = set()
    out: List[Candidate] = []
    for candidate in candidates:
        key = dedup_key(candidate)
        if key in seen:
            continue
        seen.add(key)
        out.append(candidate)
    return out

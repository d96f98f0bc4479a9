"""CLI entrypoint."""
from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv as _load_dotenv

from nearby_help import config
from nearby_help.http import HttpClient, ProviderError, SearchCancelled
from nearby_help.models import OriginUnavailableError, require_origin
from nearby_help.pipeline import NearbyPipeline
from nearby_help.reporting import (
    ensure_dir,
    render_results,
    render_summary,
    write_results_json,
    write_route_geojson,
)


def _repo_root() -> Path:
    return Path(__file__).resolve().parent


def load_env(path: str = ".env", root_dir: Optional[Path] = None) -> None:
    """Optionally load a repo-root .env file without overriding real env vars."""
    root = Path(root_dir) if root_dir else _repo_root()
    env_path = (root / path).resolve()
    if not env_path.exists():
        return
    _load_dotenv(dotenv_path=env_path, override=False)


def parse_args(argv: Optional[list] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Find the nearest emergency facilities by travel time")
    parser.add_argument("--preflight", action="store_true", help="Run offline checks only")
    parser.add_argument("--lat", type=float, default=None, help="Current latitude")
    parser.add_argument("--lon", type=float, default=None, help="Current longitude")
    parser.add_argument("--type", dest="facility_type", choices=config.FACILITY_TYPES, default=config.DEFAULT_FACILITY_TYPE)
    parser.add_argument("--mode", choices=config.TRAVEL_MODES, default=config.DEFAULT_TRAVEL_MODE)
    parser.add_argument("--top", type=int, default=None, help="Maximum results (default: config TOP_N)")
    parser.add_argument("--route", type=int, default=None, help="Fetch the route to the N-th result (1-based)")
    parser.add_argument("--config", type=str, default=None, help="Path to search_config.json")
    parser.add_argument("--out", type=str, default=config.OUTPUT_DIR)
    parser.add_argument("--no-write", action="store_true", help="Print results without writing files")
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args(argv)


def run_preflight(api_key: Optional[str]) -> int:
    ok = True
    if api_key:
        print("Places API key: OK")
    else:
        print(f"Places API key: MISSING ({config.PLACES_API_KEY_ENV})")
        ok = False
    print(f"Places endpoint: {config.PLACES_URL}")
    print(f"Routing endpoint: {config.OSRM_BASE_URL}")
    print(
        "Search: radii={radii}, min_candidates={min_c}, top_n={top}".format(
            radii=",".join(str(r) for r in config.RADIUS_SEQUENCE_M),
            min_c=config.MIN_CANDIDATES,
            top=config.TOP_N,
        )
    )
    print("Preflight: PASS" if ok else "Preflight: FAIL")
    return 0 if ok else 1


def main(argv: Optional[list] = None) -> int:
    load_env()
    config.load_env_overrides()
    args = parse_args(argv)
    config.load_search_config(args.config)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    api_key = (os.environ.get(config.PLACES_API_KEY_ENV) or "").strip()
    if args.preflight:
        return run_preflight(api_key)
    if not api_key:
        print(f"Missing {config.PLACES_API_KEY_ENV} in environment", file=sys.stderr)
        return 1

    origin_raw = None if args.lat is None or args.lon is None else (args.lat, args.lon)
    pipeline = NearbyPipeline(api_key, http_client=HttpClient())

    try:
        origin = require_origin(origin_raw)
        result = pipeline.find_nearest(origin, args.facility_type, args.mode, top_n=args.top)
    except OriginUnavailableError as exc:
        print(f"Location unavailable: {exc}", file=sys.stderr)
        return 1
    except (ProviderError, SearchCancelled, ValueError) as exc:
        print(f"Search failed: {exc}", file=sys.stderr)
        return 1

    if not result.candidates:
        print("No nearby places found.")
        return 0

    for line in render_results(result) + render_summary(result.summary):
        print(line)

    route = None
    if args.route is not None:
        if not 1 <= args.route <= len(result.candidates):
            print(f"--route must be between 1 and {len(result.candidates)}", file=sys.stderr)
            return 1
        target = result.candidates[args.route - 1]
        try:
            route = pipeline.route_to(origin, target, args.mode)
        except (ProviderError, SearchCancelled) as exc:
            print(f"Could not get route: {exc}", file=sys.stderr)
            return 1
        print("Route bbox: " + ", ".join(f"{v:.5f}" for v in route.bbox))

    if not args.no_write:
        ensure_dir(args.out)
        write_results_json(os.path.join(args.out, "results.json"), result, origin=origin.to_dict())
        if route is not None:
            write_route_geojson(
                os.path.join(args.out, "route.geojson"),
                route,
                properties={"id": target.id, "name": target.name, "mode": args.mode},
            )
        print(f"Done. Results written to {args.out}/results.json")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

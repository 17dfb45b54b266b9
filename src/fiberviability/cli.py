"""
fiberviability CLI entrypoint.

This CLI is intended for quick local checks and debugging without the HTTP API.
It validates raw arguments with `fiberviability.validation.validator` and delegates
all lookups to `fiberviability.resolver.proximity.ProximityResolver`.

Exit codes: 0 success, 2 invalid input, 3 data source unavailable.
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any

from fiberviability.config.settings import Settings, get_settings
from fiberviability.core.logging import configure_logging
from fiberviability.domain.errors import DataSourceUnavailable, InputError
from fiberviability.resolver.explain import node_line, one_line_summary
from fiberviability.resolver.proximity import ProximityResolver, build_resolver
from fiberviability.validation.validator import (
    validate_bounds,
    validate_coordinates,
    validate_radius,
    validate_search_text,
)


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _cmd_viability(args: argparse.Namespace, settings: Settings, resolver: ProximityResolver) -> int:
    """Handle the `viability` subcommand."""
    coordinate = validate_coordinates(args.lat, args.lng)
    radius_m = validate_radius(
        args.radius,
        default=settings.viability.default_radius_m,
        maximum=settings.viability.max_radius_m,
    )
    results = resolver.find_near(coordinate, radius_m)
    nearest = resolver.find_nearest(coordinate)
    report = resolver.build_report(coordinate, radius_m, results, nearest)

    if args.json:
        _print_json(report.model_dump(mode="json"))
        return 0

    print(f"Query: ({coordinate.lat}, {coordinate.lng}) radius={radius_m}m")
    print(f"Verdict: {report.verdict} ({report.total_results} nodes in radius)")
    if nearest:
        print(f"Nearest: {one_line_summary(nearest)}")
    for i, result in enumerate(report.results, start=1):
        print(f"{i:>2}. {one_line_summary(result)}")
    print("Recommendations:")
    for line in report.recommendations:
        print(f"  - {line}")
    return 0


def _cmd_nearest(args: argparse.Namespace, settings: Settings, resolver: ProximityResolver) -> int:
    coordinate = validate_coordinates(args.lat, args.lng)
    nearest = resolver.find_nearest(coordinate)
    if args.json:
        _print_json(nearest.model_dump(mode="json") if nearest else None)
    else:
        print(one_line_summary(nearest) if nearest else "No node found")
    return 0


def _cmd_area(args: argparse.Namespace, settings: Settings, resolver: ProximityResolver) -> int:
    box = validate_bounds(args.north, args.south, args.east, args.west)
    nodes = resolver.find_in_bounds(box)
    if args.json:
        _print_json([n.model_dump(mode="json") for n in nodes])
        return 0
    print(f"{len(nodes)} nodes in area")
    for node in nodes:
        print(f"  {node_line(node)}")
    return 0


def _cmd_search(args: argparse.Namespace, settings: Settings, resolver: ProximityResolver) -> int:
    term = validate_search_text(args.query, min_length=settings.viability.min_search_length)
    nodes = resolver.search_by_text(term)
    if args.json:
        _print_json([n.model_dump(mode="json") for n in nodes])
        return 0
    print(f"{len(nodes)} nodes matching '{term}'")
    for node in nodes:
        print(f"  {node_line(node)}")
    return 0


def _cmd_stats(args: argparse.Namespace, settings: Settings, resolver: ProximityResolver) -> int:
    stats = resolver.get_statistics()
    if args.json:
        _print_json(stats.model_dump(mode="json"))
        return 0
    print(f"Total nodes: {stats.total}")
    print(f"Unique names: {stats.unique}")
    print(f"With coordinates: {stats.with_coordinates} ({stats.pct_with_coordinates:.2f}%)")
    return 0


def _cmd_check_connection(args: argparse.Namespace, settings: Settings, resolver: ProximityResolver) -> int:
    ok = resolver.check_connection()
    print(f"{resolver.store.backend}: {'UP' if ok else 'DOWN'}")
    return 0 if ok else 3


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the fiberviability CLI."""
    parser = argparse.ArgumentParser(prog="fiberviability")
    parser.add_argument(
        "--store",
        choices=["bigquery", "local"],
        default=None,
        help="Override the configured node store backend.",
    )
    parser.add_argument("--dataset", default=None, help="Local dataset JSON file (implies --store local).")
    sub = parser.add_subparsers(dest="command", required=True)

    via = sub.add_parser("viability", help="Check fiber viability around a coordinate.")
    via.add_argument("--lat", required=True)
    via.add_argument("--lng", required=True)
    via.add_argument("--radius", default=None, help="Meters (default 300, max 2000)")
    via.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    via.set_defaults(func=_cmd_viability)

    near = sub.add_parser("nearest", help="Show the single nearest node, with no radius bound.")
    near.add_argument("--lat", required=True)
    near.add_argument("--lng", required=True)
    near.add_argument("--json", action="store_true")
    near.set_defaults(func=_cmd_nearest)

    area = sub.add_parser("area", help="List nodes inside a bounding box.")
    for name in ("north", "south", "east", "west"):
        area.add_argument(f"--{name}", required=True)
    area.add_argument("--json", action="store_true")
    area.set_defaults(func=_cmd_area)

    search = sub.add_parser("search", help="Search nodes by name or description.")
    search.add_argument("query")
    search.add_argument("--json", action="store_true")
    search.set_defaults(func=_cmd_search)

    stats = sub.add_parser("stats", help="Dataset statistics.")
    stats.add_argument("--json", action="store_true")
    stats.set_defaults(func=_cmd_stats)

    check = sub.add_parser("check-connection", help="Run a trivial query against the node store.")
    check.set_defaults(func=_cmd_check_connection)
    return parser


def _settings_for(args: argparse.Namespace) -> Settings:
    settings = get_settings()
    store = settings.store
    if args.dataset:
        store = store.model_copy(update={"backend": "local", "local_dataset_path": args.dataset})
    elif args.store:
        store = store.model_copy(update={"backend": args.store})
    return settings.model_copy(update={"store": store})


def main(argv: list[str] | None = None, resolver: ProximityResolver | None = None) -> int:
    """CLI entrypoint callable used by `python -m fiberviability.cli`."""
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = _settings_for(args)
    configure_logging(settings)
    func: Any = getattr(args, "func")
    try:
        resolver = resolver or build_resolver(settings)
        return int(func(args, settings, resolver))
    except InputError as e:
        print(f"error: {e.message}", file=sys.stderr)
        for detail in e.details:
            print(f"  - {detail}", file=sys.stderr)
        fallback = getattr(e, "fallback_radius", None)
        if fallback is not None:
            print(f"  suggested radius: {fallback}m", file=sys.stderr)
        return 2
    except DataSourceUnavailable as e:
        print(f"error: data source unavailable: {e.message}", file=sys.stderr)
        return 3


if __name__ == "__main__":
    raise SystemExit(main())

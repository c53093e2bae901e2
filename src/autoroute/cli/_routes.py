"""``autoroute routes`` — list recorded routes; ``autoroute clean`` — drop the registry.

Reads the registry directly, so the table is available without
generating or importing anything.
"""

import argparse
import sys

from autoroute.cli._resolve import resolve_build
from autoroute.errors import AutorouteError
from autoroute.registry import ALL
from autoroute.runtime import format_route_table


def run_routes(args: argparse.Namespace) -> None:
    """Print SCOPE, PATH, HANDLER, VERB for every recorded descriptor."""
    build = resolve_build(args)
    try:
        descriptors = build.store.read_all(ALL)
    except AutorouteError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    print(format_route_table([d.row() for d in descriptors]))


def run_clean(args: argparse.Namespace) -> None:
    """Delete the registry file for this build identity."""
    build = resolve_build(args)
    try:
        build.store.clear()
    except AutorouteError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
    print(f"Removed {build.store.path}")

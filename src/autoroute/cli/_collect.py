"""``autoroute collect`` / ``begin`` / ``emit`` / ``seal`` — phase 1 commands.

``collect`` runs the whole phase in one process. ``begin``, ``emit`` and
``seal`` split it so a build tool can process units in parallel workers
between a single begin and a single seal.
"""

import argparse
import sys

from autoroute.build import CollectReport
from autoroute.cli._resolve import resolve_build
from autoroute.errors import AutorouteError


def _print_report(report: CollectReport) -> None:
    for error in report.errors:
        print(f"error: {error}", file=sys.stderr)
    units = len(report.units)
    print(f"Recorded {report.descriptors} handler(s) from {units} unit(s)")


def run_phase(args: argparse.Namespace) -> None:
    """Run one phase-1 subcommand. Exits 1 on any unit failure."""
    build = resolve_build(args)

    try:
        if args.command == "begin":
            build.begin()
            print(f"Build started: {build.store.path}")
            return

        if args.command == "seal":
            build.finish()
            print(f"Registry sealed: {build.store.path}")
            return

        if args.command == "collect":
            report = build.collect(args.paths)
        else:
            report = build.emit(args.paths)
    except (AutorouteError, FileNotFoundError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    _print_report(report)
    if not report.ok:
        print(
            f"{len(report.errors)} unit(s) failed; registry left open",
            file=sys.stderr,
        )
        raise SystemExit(1)

    if args.command == "collect":
        try:
            build.finish()
        except AutorouteError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            raise SystemExit(1) from exc

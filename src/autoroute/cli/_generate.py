"""``autoroute generate`` — phase 2: write the generated routes module."""

import argparse
import sys

from autoroute.cli._resolve import resolve_build
from autoroute.errors import AutorouteError


def run_generate(args: argparse.Namespace) -> None:
    """Generate ``register_service`` / ``list_routes`` for ``args.scopes``.

    Writes to ``args.output`` when given, otherwise to stdout. Aggregation
    errors name the offending scope and exit 1.
    """
    build = resolve_build(args)

    try:
        if args.output:
            target = build.write(args.output, args.scopes, args.use_scope_as_path)
            print(f"Wrote {target}", file=sys.stderr)
        else:
            sys.stdout.write(build.generate(args.scopes, args.use_scope_as_path))
    except AutorouteError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

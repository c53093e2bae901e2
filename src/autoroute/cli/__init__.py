"""Autoroute CLI — collect handlers, seal the registry, generate code.

Entry point registered as ``autoroute`` in ``pyproject.toml``::

    [project.scripts]
    autoroute = "autoroute.cli:main"
"""

import argparse
import logging
import sys


def _add_build_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--build-dir",
        default=".autoroute",
        help="Directory holding the registry (default: .autoroute)",
    )
    parser.add_argument(
        "--build-id",
        default="default",
        help="Build identity; selects the registry file (default: default)",
    )
    parser.add_argument(
        "--root",
        default=".",
        help="Source root that unit module names are relative to (default: .)",
    )


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``autoroute`` command."""
    parser = argparse.ArgumentParser(
        prog="autoroute",
        description="autoroute — build-time route collection and code generation.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Log build progress (-vv for per-unit detail)",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- autoroute collect ------------------------------------------------
    collect_parser = subparsers.add_parser(
        "collect", help="Begin a build, record every unit, and seal the registry"
    )
    collect_parser.add_argument("paths", nargs="+", help="Source files or directories")
    collect_parser.add_argument(
        "--full",
        action="store_true",
        help="Clear the registry first (full rebuild)",
    )
    collect_parser.add_argument(
        "--jobs",
        type=int,
        default=1,
        help="Worker threads for unit processing",
    )
    _add_build_options(collect_parser)

    # -- autoroute begin / emit / seal (split-phase builds) ---------------
    begin_parser = subparsers.add_parser("begin", help="Open the collection phase")
    begin_parser.add_argument("--full", action="store_true", help="Clear the registry first")
    _add_build_options(begin_parser)

    emit_parser = subparsers.add_parser(
        "emit", help="Record units into an open registry (no begin, no seal)"
    )
    emit_parser.add_argument("paths", nargs="+", help="Source files or directories")
    _add_build_options(emit_parser)

    seal_parser = subparsers.add_parser("seal", help="Close the collection phase")
    _add_build_options(seal_parser)

    # -- autoroute generate -----------------------------------------------
    generate_parser = subparsers.add_parser(
        "generate", help="Write register_service / list_routes for the given scopes"
    )
    generate_parser.add_argument(
        "--scope",
        dest="scopes",
        action="append",
        required=True,
        help="Scope to register (repeatable, order is kept)",
    )
    mount = generate_parser.add_mutually_exclusive_group()
    mount.add_argument(
        "--use-scope-as-path",
        dest="use_scope_as_path",
        action="store_true",
        default=None,
        help="Mount every scope at its own prefix",
    )
    mount.add_argument(
        "--no-scope-as-path",
        dest="use_scope_as_path",
        action="store_false",
        default=None,
        help="Mount every scope at '/'",
    )
    generate_parser.add_argument("-o", "--output", default=None, help="Output file (default: stdout)")
    _add_build_options(generate_parser)

    # -- autoroute routes -------------------------------------------------
    routes_parser = subparsers.add_parser("routes", help="List recorded routes")
    _add_build_options(routes_parser)

    # -- autoroute clean --------------------------------------------------
    clean_parser = subparsers.add_parser("clean", help="Delete the registry file")
    _add_build_options(clean_parser)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    logging.basicConfig(
        level=logging.WARNING - 10 * min(args.verbose, 2),
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command in ("collect", "begin", "emit", "seal"):
        from autoroute.cli._collect import run_phase

        run_phase(args)
    elif args.command == "generate":
        from autoroute.cli._generate import run_generate

        run_generate(args)
    elif args.command == "routes":
        from autoroute.cli._routes import run_routes

        run_routes(args)
    elif args.command == "clean":
        from autoroute.cli._routes import run_clean

        run_clean(args)

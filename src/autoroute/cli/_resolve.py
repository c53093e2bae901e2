"""Build resolution — turns parsed CLI options into a RouteBuild.

Shared by every subcommand so they all agree on where the registry
lives for a given ``--build-dir`` / ``--build-id``.
"""

import argparse

from autoroute.build import RouteBuild
from autoroute.config import BuildConfig


def resolve_build(args: argparse.Namespace) -> RouteBuild:
    """Create the RouteBuild described by ``args``.

    Reads ``build_dir``, ``build_id`` and ``root``; ``full`` and ``jobs``
    when the subcommand defines them.
    """
    config = BuildConfig(
        build_dir=args.build_dir,
        build_id=args.build_id,
        source_root=args.root,
        full_rebuild=getattr(args, "full", False),
        jobs=getattr(args, "jobs", 1),
    )
    return RouteBuild(config)

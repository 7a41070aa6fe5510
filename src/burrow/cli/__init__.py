"""Burrow CLI — route tree inspection.

Entry point registered as ``burrow`` in ``pyproject.toml``::

    [project.scripts]
    burrow = "burrow.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``burrow`` command."""
    parser = argparse.ArgumentParser(
        prog="burrow",
        description="Burrow — filesystem-convention routing with managed sessions.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- burrow routes ----------------------------------------------------
    routes_parser = subparsers.add_parser("routes", help="List the units in a route tree")
    routes_parser.add_argument("routes_dir", help="Path to the routes directory")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "routes":
        from burrow.cli._routes import run_routes

        run_routes(args)

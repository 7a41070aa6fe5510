"""``burrow routes`` — list the units of a route tree.

Discovers the routes directory the same way the app does at startup and
prints each unit path with its handler keys, or its load error.
"""

import argparse
import sys

from burrow.routing.router import Router


def run_routes(args: argparse.Namespace) -> None:
    """Print a table of UNIT and HANDLERS for ``args.routes_dir``.

    Exits with status 1 when the directory is missing or any unit
    failed to load.
    """
    try:
        router = Router.from_directory(args.routes_dir)
    except FileNotFoundError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    units = router.units
    if not units:
        print("No route units found.")
        return

    rows: list[tuple[str, str]] = []
    for entry in units:
        if entry.unit is None:
            rows.append((entry.path, f"ERROR: {entry.error}"))
        else:
            keys = ", ".join(sorted(entry.unit.handlers)) or "(no handlers)"
            rows.append((entry.path, keys))

    # Column widths
    max_unit = max(max(len(r[0]) for r in rows), 4)  # "UNIT" header

    fmt = f"{{:<{max_unit}}}  {{}}"
    print(fmt.format("UNIT", "HANDLERS"))
    sep_len = max_unit + 2 + max(len(r[1]) for r in rows)
    print("-" * min(sep_len, 80))
    for unit_path, handlers in rows:
        print(fmt.format(unit_path, handlers))

    if router.load_errors:
        raise SystemExit(1)

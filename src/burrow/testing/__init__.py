"""Test utilities for burrow applications::

    from burrow.testing import TestClient
"""

from burrow.testing.client import TestClient, parse_set_cookie

__all__ = ["TestClient", "parse_set_cookie"]

"""Shared fixtures: temporary route trees and apps built on them."""

import textwrap
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from burrow.app import App
from burrow.config import HTTPListener, ListenersConfig, PathsConfig, ServerConfig, SessionConfig

USERS_UNIT = """
from burrow import RouteUnit, handles


class Users(RouteUnit):
    @handles()
    async def index(self, *params):
        return {"handler": "$index", "params": list(params)}

    @handles("list", method="get")
    async def get_list(self, *params):
        return {"handler": "get$list", "params": list(params)}

    @handles("list")
    async def any_list(self, *params):
        return {"handler": "$list", "params": list(params)}
"""

INDEX_UNIT = """
from burrow import RouteUnit, handles


class Home(RouteUnit):
    @handles()
    async def index(self, *params):
        return {"unit": "index", "params": list(params)}

    @handles("home")
    async def home(self, *params):
        return {"unit": "home", "params": list(params)}
"""


@pytest.fixture
def routes_dir(tmp_path: Path) -> Path:
    root = tmp_path / "routes"
    root.mkdir()
    return root


@pytest.fixture
def write_unit(routes_dir: Path) -> Callable[[str, str], Path]:
    """Write a unit source file under the routes directory."""

    def _write(rel: str, source: str) -> Path:
        path = routes_dir / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(source))
        return path

    return _write


@pytest.fixture
def sample_tree(write_unit: Callable[[str, str], Path], routes_dir: Path) -> Path:
    """``routes/{admin/{users.py}, index.py}``."""
    write_unit("admin/users.py", USERS_UNIT)
    write_unit("index.py", INDEX_UNIT)
    return routes_dir


@pytest.fixture
def make_app(tmp_path: Path, routes_dir: Path) -> Callable[..., App]:
    """Build an App over the temporary routes directory.

    Keyword arguments override ``ServerConfig`` fields; ``sessions``
    defaults to a memory store.
    """

    def _make(**overrides: Any) -> App:
        config: dict[str, Any] = {
            "paths": PathsConfig(routes=routes_dir, uploads=tmp_path / "uploads"),
            "sessions": SessionConfig(secret_key="test-secret"),
            "listeners": ListenersConfig(http=HTTPListener(port=8000)),
        }
        config.update(overrides)
        return App(ServerConfig(**config))

    return _make

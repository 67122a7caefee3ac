"""Conftest.py (root-level).

We keep this in root pytest fixtures in pytest's doctest plugin to be available, as well
as avoiding conftest.py from being included in the wheel.
"""

from __future__ import annotations

import os
import typing as t

import pytest
from _pytest.doctest import DoctestItem

from libsteamcmd.status import Status, StatusHandle

if t.TYPE_CHECKING:
    import pathlib

pytest_plugins = ["pytester"]


@pytest.fixture(autouse=True)
def clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clear out steam related environment variables that could interrupt tests.

    A developer's own STEAMCMD_BIN would leak into spawning otherwise.
    """
    for k in list(os.environ):
        if k.startswith(("STEAM", "LIBSTEAMCMD")):
            monkeypatch.delenv(k)


@pytest.fixture(autouse=True)
def add_doctest_fixtures(
    request: pytest.FixtureRequest,
    doctest_namespace: dict[str, t.Any],
    clear_env: None,
) -> None:
    """Configure doctest fixtures for pytest-doctest."""
    if isinstance(request._pyfuncitem, DoctestItem):
        doctest_namespace["Status"] = Status
        doctest_namespace["StatusHandle"] = StatusHandle
        doctest_namespace["client"] = request.getfixturevalue("client")
        doctest_namespace["request"] = request


@pytest.fixture(autouse=True)
def setup_fn(clear_env: None, steam_home: pathlib.Path) -> None:
    """Function-level test configuration fixtures for pytest."""

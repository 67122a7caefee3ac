"""Tests for libsteamcmd.cache."""

from __future__ import annotations

import json
import typing as t

import pytest

from libsteamcmd import exc
from libsteamcmd.application import ApplicationRecord
from libsteamcmd.cache import CatalogCache
from libsteamcmd.constants import Category, Platform
from libsteamcmd.executable import Executable

if t.TYPE_CHECKING:
    import pathlib


def test_default_location(steam_home: pathlib.Path) -> None:
    """The cache lives in the config directory."""
    assert CatalogCache().path == steam_home / "games.json"


def test_missing_cache_is_empty(tmp_path: pathlib.Path) -> None:
    assert CatalogCache(tmp_path / "games.json").load() == []


def test_save_sorts_and_loads(tmp_path: pathlib.Path) -> None:
    """Saved records come back sorted by name."""
    cache = CatalogCache(tmp_path / "games.json")
    records = [
        ApplicationRecord(440, name="Team Fortress 2", category=Category.Game),
        ApplicationRecord(
            570,
            name="Dota 2",
            executables=(Executable(Platform.Linux, "dota 2 beta/dota.sh"),),
            category=Category.Game,
        ),
    ]

    saved = cache.save(records)
    assert [r.id for r in saved] == [570, 440]
    assert cache.load() == saved
    assert not list(tmp_path.glob(".games.json.*"))


def test_file_format(tmp_path: pathlib.Path) -> None:
    """Entries are plain JSON objects."""
    cache = CatalogCache(tmp_path / "games.json")
    cache.save([ApplicationRecord(440, name="Team Fortress 2")])

    entries = json.loads(cache.path.read_text(encoding="utf-8"))
    assert entries == [
        {
            "id": 440,
            "name": "Team Fortress 2",
            "developer": "-",
            "publisher": "-",
            "homepage": "-",
            "executable": [],
            "game_type": "Unknown",
            "icon_url": None,
        },
    ]


@pytest.mark.parametrize(
    "contents",
    ["", "{not json", '{"id": 1}', '[{"name": "no id"}]'],
    ids=["empty", "broken", "not_a_list", "entry_without_id"],
)
def test_unparsable_cache_is_empty(tmp_path: pathlib.Path, contents: str) -> None:
    """A damaged cache reads as empty instead of failing."""
    path = tmp_path / "games.json"
    path.write_text(contents, encoding="utf-8")
    assert CatalogCache(path).load() == []


def test_save_failure(tmp_path: pathlib.Path) -> None:
    """Write errors surface as IoFailure."""
    cache = CatalogCache(tmp_path / "missing" / "games.json")
    with pytest.raises(exc.IoFailure):
        cache.save([ApplicationRecord(1)])

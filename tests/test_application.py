"""Tests for libsteamcmd.application."""

from __future__ import annotations

import os
import typing as t

import pytest

from libsteamcmd import exc
from libsteamcmd.application import ApplicationRecord, derive_category
from libsteamcmd.constants import STEAM_CDN, Category, Platform
from libsteamcmd.test.fake import FakeSteamCmd, make_app


class CategoryFixture(t.NamedTuple):
    """Test fixture for derive_category()."""

    test_id: str
    common: dict[str, t.Any]
    expected: Category


CATEGORY_FIXTURES: list[CategoryFixture] = [
    CategoryFixture("game", {"type": "Game"}, Category.Game),
    CategoryFixture("lowercase_dlc", {"type": "dlc"}, Category.DLC),
    CategoryFixture("tool", {"type": "Tool"}, Category.Tool),
    CategoryFixture("demo", {"type": "Demo"}, Category.Demo),
    CategoryFixture("config", {"type": "Config"}, Category.Config),
    CategoryFixture("application", {"type": "Application"}, Category.Application),
    CategoryFixture(
        "driver_wins",
        {"type": "Game", "driverversion": "1.2"},
        Category.Driver,
    ),
    CategoryFixture("unmapped", {"type": "Music"}, Category.Unknown),
    CategoryFixture("missing", {}, Category.Unknown),
]


@pytest.mark.parametrize(
    list(CategoryFixture._fields),
    CATEGORY_FIXTURES,
    ids=[test.test_id for test in CATEGORY_FIXTURES],
)
def test_derive_category(
    test_id: str,
    common: dict[str, t.Any],
    expected: Category,
) -> None:
    """Test derive_category()."""
    assert derive_category(common) is expected


def test_from_response() -> None:
    """A full app_info_print response decodes into a record."""
    fake = FakeSteamCmd(
        apps={
            440: make_app(
                "Team Fortress 2",
                installdir="Team Fortress 2",
                executables=[("hl2.exe", "windows"), ("hl2.sh", "linux")],
                developer="Valve",
                clienticon="e3f595a92552da3d664ad00277fad2107345f743",
            ),
        },
    )
    record = ApplicationRecord.from_response("440", fake.cmd_app_info_print("440"))

    assert record.id == 440
    assert record.name == "Team Fortress 2"
    assert record.developer == "Valve"
    assert record.publisher == "-"
    assert record.homepage == "-"
    assert record.category is Category.Game
    assert record.icon_url == (
        f"{STEAM_CDN}/440/e3f595a92552da3d664ad00277fad2107345f743.ico"
    )
    assert [e.platform for e in record.executables] == [
        Platform.Linux,
        Platform.Windows,
    ]
    assert record.executables[0].executable == os.path.join(
        "Team Fortress 2",
        "hl2.sh",
    )


def test_missing_name() -> None:
    """Records without common.name are still decoded."""
    record = ApplicationRecord.from_tree("7", {"7": make_app(app_type="Config")})
    assert record.name == "<no name>"
    assert record.icon_url is None
    assert record.executables == ()


class IncompleteFixture(t.NamedTuple):
    """Test fixture for undecodable application trees."""

    test_id: str
    tree: dict[str, t.Any]


INCOMPLETE_FIXTURES: list[IncompleteFixture] = [
    IncompleteFixture("no_block", {}),
    IncompleteFixture("leaf", {"440": "gone"}),
    IncompleteFixture("no_config", {"440": {"common": {}, "extended": {}}}),
    IncompleteFixture("no_extended", {"440": {"common": {}, "config": {}}}),
    IncompleteFixture(
        "common_is_leaf",
        {"440": {"common": "x", "extended": {}, "config": {}}},
    ),
]


@pytest.mark.parametrize(
    list(IncompleteFixture._fields),
    INCOMPLETE_FIXTURES,
    ids=[test.test_id for test in INCOMPLETE_FIXTURES],
)
def test_from_tree_requires_blocks(test_id: str, tree: dict[str, t.Any]) -> None:
    """common, extended and config must all be blocks."""
    with pytest.raises(exc.MalformedResponse):
        ApplicationRecord.from_tree("440", tree)


def test_dict_round_trip_ignores_status() -> None:
    """Cached records restore equal, with a fresh status cell."""
    record = ApplicationRecord.from_tree(
        "570",
        {"570": make_app("Dota 2", executables=[("dota.sh", "linux")])},
    )
    record.status.begin("downloading 1%")

    restored = ApplicationRecord.from_dict(record.to_dict())
    assert restored == record
    assert restored.status is not record.status
    assert restored.status.get().state == ""


def test_from_dict_requires_id() -> None:
    """Cache entries without an id are rejected."""
    with pytest.raises(exc.MalformedResponse):
        ApplicationRecord.from_dict({"name": "Dota 2"})


def test_repr_skips_defaults() -> None:
    """repr() omits defaults and the status cell."""
    assert repr(ApplicationRecord(440, name="Team Fortress 2")) == (
        "ApplicationRecord(id=440, name='Team Fortress 2')"
    )

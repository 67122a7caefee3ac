"""libsteamcmd pytest plugin."""

from __future__ import annotations

import logging
import typing as t

import pytest

from libsteamcmd.client import Client
from libsteamcmd.jobs import JobRunner
from libsteamcmd.test.fake import (
    FakeClientDaemon,
    FakeScriptRunner,
    FakeSteamCmd,
    make_app,
)

if t.TYPE_CHECKING:
    import pathlib
    from collections.abc import Generator

logger = logging.getLogger(__name__)

#: ``app_update`` output of a successful install script
INSTALL_OUTPUT = (
    "Logging in user 'gaben' to Steam Public...OK",
    " Update state (0x3) reconfiguring, progress: 0.00 (0 / 0)",
    " Update state (0x61) downloading, progress: 50.00 (512 / 1024)",
    " Update state (0x61) downloading, progress: 100.00 (1024 / 1024)",
    "Success! App '440' fully installed.",
)


@pytest.fixture
def steam_home(
    tmp_path: pathlib.Path,
    monkeypatch: pytest.MonkeyPatch,
) -> pathlib.Path:
    """Isolated config directory, with application paths under it.

    Sets :envvar:`LIBSTEAMCMD_DIR`, :envvar:`STEAM_APP_DIR` and
    :envvar:`STEAM_RUN_WRAPPER` (pointing at a missing wrapper).
    """
    config_dir = tmp_path / "libsteamcmd"
    app_dir = tmp_path / "steamapps" / "common"
    config_dir.mkdir()
    app_dir.mkdir(parents=True)

    monkeypatch.setenv("LIBSTEAMCMD_DIR", str(config_dir))
    monkeypatch.setenv("STEAM_APP_DIR", str(app_dir))
    monkeypatch.setenv("STEAM_RUN_WRAPPER", str(tmp_path / "no-wrapper.sh"))
    return config_dir


@pytest.fixture
def fake_steamcmd() -> FakeSteamCmd:
    """Fake steamcmd owning a small catalog.

    - package ``0`` grants the ``Config`` app ``7``
    - package ``12`` grants games ``440`` and ``570``
    """
    return FakeSteamCmd(
        packages={0: [7], 12: [440, 570]},
        apps={
            7: make_app("Steam Client", app_type="Config"),
            440: make_app(
                "Team Fortress 2",
                installdir="Team Fortress 2",
                executables=[("hl2.sh", "linux"), ("hl2.exe", "windows")],
                developer="Valve",
            ),
            570: make_app("Dota 2", installdir="dota 2 beta"),
        },
        statuses={440: ("Fully Installed", "Team Fortress 2", 1024)},
    )


@pytest.fixture
def script_runner() -> FakeScriptRunner:
    """Scripted steamcmd runs that install successfully."""
    return FakeScriptRunner(INSTALL_OUTPUT)


@pytest.fixture
def client_daemon() -> FakeClientDaemon:
    """Desktop client daemon that is not running yet."""
    return FakeClientDaemon()


@pytest.fixture
def client(
    steam_home: pathlib.Path,
    fake_steamcmd: FakeSteamCmd,
    script_runner: FakeScriptRunner,
    client_daemon: FakeClientDaemon,
) -> Generator[Client, None, None]:
    """:class:`Client` wired to :func:`fake_steamcmd`, closed on teardown."""
    c = Client(
        channel_factory=fake_steamcmd.channel,
        job_runner=JobRunner(script_runner),
        daemon_probe=client_daemon.probe,
        daemon_starter=client_daemon.start,
    )
    try:
        yield c
    finally:
        c.close()

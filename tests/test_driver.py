"""Tests for the protocol driver state machine."""

from __future__ import annotations

import queue
import threading
import typing as t

import pytest

from libsteamcmd import exc
from libsteamcmd.cache import CatalogCache
from libsteamcmd.commands import (
    Install,
    Restart,
    RunRawLine,
    Shutdown,
    StartClientDaemon,
)
from libsteamcmd.driver import ProtocolDriver
from libsteamcmd.jobs import JobRunner
from libsteamcmd.state import Failed, LoggedIn, LoggedOut, Loading, StateCell
from libsteamcmd.status import Status, StatusHandle
from libsteamcmd.test.fake import FakeClientDaemon, FakeScriptRunner, FakeSteamCmd
from libsteamcmd.test.retry import retry_until

if t.TYPE_CHECKING:
    from libsteamcmd.commands import Command
    from libsteamcmd.state import Phase

POLLUTION = "pollution¬Ñ ‚Ñ¢Ô∏è √∂ ¬Æ√ò Â§© üéâ Maxis√¢¬¢\n\n\n\nquit\nbash"


class RecordingStateCell(StateCell):
    """State cell remembering every phase written to it."""

    def __init__(self) -> None:
        super().__init__()
        self.phases: list[Phase] = []

    def update(self, **changes: t.Any) -> t.Any:
        if "phase" in changes:
            self.phases.append(changes["phase"])
        return super().update(**changes)


class CountingCache(CatalogCache):
    """Catalog cache counting its writes."""

    saves = 0

    def save(self, records: t.Any) -> t.Any:
        self.saves += 1
        return super().save(records)


class Harness:
    """Driver running on its own thread against a fake steamcmd."""

    def __init__(
        self,
        fake: FakeSteamCmd,
        script_runner: FakeScriptRunner | None = None,
        daemon: FakeClientDaemon | None = None,
    ) -> None:
        self.fake = fake
        self.state = RecordingStateCell()
        self.inbox: queue.Queue[Command] = queue.Queue()
        self.responses: queue.Queue[str] = queue.Queue()
        self.cache = CountingCache()
        self.daemon = daemon or FakeClientDaemon()
        self.driver = ProtocolDriver(
            self.state,
            self.inbox,
            self.responses,
            channel_factory=fake.channel,
            cache=self.cache,
            jobs=JobRunner(script_runner or FakeScriptRunner()),
            daemon_probe=self.daemon.probe,
            daemon_starter=self.daemon.start,
        )
        self.error: BaseException | None = None
        self.thread = threading.Thread(target=self._run, daemon=True)
        self.thread.start()

    def _run(self) -> None:
        try:
            self.driver.run()
        except Exception as e:
            self.error = e

    def send(self, *commands: Command) -> None:
        for command in commands:
            self.inbox.put(command)

    def response(self) -> str:
        return self.responses.get(timeout=5)

    def phase_is(self, phase: Phase) -> bool:
        return self.state.phase == phase

    def stop(self) -> None:
        if self.thread.is_alive():
            self.inbox.put(Shutdown())
            self.thread.join(5)


@pytest.fixture
def harness(
    fake_steamcmd: FakeSteamCmd,
    script_runner: FakeScriptRunner,
    client_daemon: FakeClientDaemon,
) -> t.Iterator[Harness]:
    h = Harness(fake_steamcmd, script_runner, client_daemon)
    try:
        yield h
    finally:
        h.stop()


def test_polluted_line_quits_cleanly(harness: Harness) -> None:
    """A line containing quit is answered and ends the loop without error."""
    harness.send(RunRawLine(POLLUTION))

    assert "pollution" in harness.response()
    harness.thread.join(5)
    assert not harness.thread.is_alive()
    assert harness.error is None
    assert harness.fake.lines_received[-1] == "quit"


def test_unknown_line_is_fatal(harness: Harness) -> None:
    """Unknown commands return their response, then stop the driver."""
    harness.send(RunRawLine("doesn't hang"))

    assert "Command not found: doesn't" in harness.response()
    harness.thread.join(5)
    assert isinstance(harness.error, exc.ProtocolViolation)
    assert "Command not found: doesn't" in harness.error.response


def test_login_then_enumerate(harness: Harness) -> None:
    """Login fetches the account; enumeration walks packages depth-first."""
    harness.send(RunRawLine("login gaben"))
    retry_until(lambda: harness.phase_is(Loading(0, -2)))
    account = harness.state.get().account
    assert account is not None
    assert account.username == "gaben"

    harness.send(RunRawLine("licenses_print"))
    retry_until(lambda: harness.phase_is(LoggedIn()))

    assert harness.fake.lines_received == [
        "login gaben",
        "info",
        "licenses_print",
        "package_info_print 0",
        "app_info_print 7",
        "package_info_print 12",
        "app_info_print 440",
        "app_info_print 570",
    ]

    phases = harness.state.phases
    assert phases[phases.index(Loading(0, -1)) :] == [
        Loading(0, -1),
        Loading(0, 0),
        Loading(0, 2),
        Loading(1, 3),
        Loading(2, 3),
        Loading(3, 5),
        Loading(4, 5),
        LoggedIn(),
    ]

    catalog = harness.state.get().catalog
    assert [r.name for r in catalog] == ["Dota 2", "Steam Client", "Team Fortress 2"]
    assert harness.cache.saves == 1
    assert harness.cache.load() == list(catalog)


def test_empty_license_list(steam_home: t.Any) -> None:
    """No licenses completes the enumeration straight away."""
    h = Harness(FakeSteamCmd())
    try:
        h.send(RunRawLine("login gaben"), RunRawLine("licenses_print"))
        retry_until(lambda: h.phase_is(LoggedIn()))
        assert h.state.get().catalog == ()
        assert h.cache.saves == 1
    finally:
        h.stop()


def test_undecodable_app_is_skipped(steam_home: t.Any) -> None:
    """Apps without info still count towards completion."""
    h = Harness(FakeSteamCmd(packages={5: [1, 2]}, apps={}))
    try:
        h.send(RunRawLine("licenses_print"))
        retry_until(lambda: h.phase_is(LoggedIn()))
        assert h.state.get().catalog == ()
    finally:
        h.stop()


def test_login_failure() -> None:
    """A rejected login ends in Failed without fetching account info."""
    h = Harness(FakeSteamCmd(rejected_users=["mallory"]))
    try:
        h.send(RunRawLine("login mallory"))
        retry_until(lambda: h.phase_is(Failed()))
        assert h.fake.lines_received == ["login mallory"]
        assert h.state.get().account is None
    finally:
        h.stop()


def test_status_is_routed(harness: Harness) -> None:
    """app_status responses go to the response queue."""
    harness.send(RunRawLine("app_status 440"))

    assert Status.from_response(harness.response()) == Status(
        state="Fully Installed",
        installdir="Team Fortress 2",
        size=1024.0,
    )
    assert harness.phase_is(LoggedOut())


def test_status_during_loading(harness: Harness) -> None:
    """A status query queued mid-enumeration leaves the counters alone."""
    harness.send(RunRawLine("licenses_print"), RunRawLine("app_status 570"))

    assert "Uninstalled" in harness.response()
    retry_until(lambda: harness.phase_is(LoggedIn()))
    assert harness.fake.lines_received[-1] == "app_status 570"
    assert harness.cache.saves == 1


def test_restart_logs_in_again(harness: Harness) -> None:
    """Restart replaces the process and repeats the last login."""
    harness.send(RunRawLine("login gaben"))
    retry_until(lambda: harness.phase_is(Loading(0, -2)))

    harness.send(Restart())
    retry_until(lambda: len(harness.fake.processes) == 2)
    retry_until(lambda: harness.fake.lines_received.count("info") == 2)

    assert harness.fake.processes[0].returncode == 0
    assert harness.fake.lines_received == [
        "login gaben",
        "info",
        "quit",
        "login gaben",
        "info",
    ]
    assert LoggedOut() in harness.state.phases[2:]


def test_restart_without_account(harness: Harness) -> None:
    """Without a known account, the repeated login is blank and fails."""
    harness.send(Restart())
    retry_until(lambda: harness.phase_is(Failed()))
    assert harness.fake.lines_received[-1].strip() == "login"


def test_install_requires_account(harness: Harness) -> None:
    status = StatusHandle()
    harness.send(Install(440, status))

    retry_until(lambda: status.get().is_terminal)
    assert status.get().state == "Failed: Not logged in"


def test_install_runs_job(
    harness: Harness,
    script_runner: FakeScriptRunner,
) -> None:
    """Installs run a script as the logged in user."""
    harness.send(RunRawLine("login gaben"))
    retry_until(lambda: harness.state.get().account is not None)

    status = StatusHandle()
    harness.send(Install(440, status))

    retry_until(lambda: status.get().is_terminal)
    assert status.get().state == "Success!"
    assert [s.name for s in script_runner.scripts] == ["440.install"]
    assert "login gaben" in script_runner.scripts[0].read_text(encoding="utf-8")


def test_client_daemon_started_once(
    harness: Harness,
    client_daemon: FakeClientDaemon,
) -> None:
    """The desktop client is started once and stopped on quit."""
    harness.send(StartClientDaemon(), StartClientDaemon())
    retry_until(lambda: client_daemon.starts == 1)

    harness.send(Shutdown())
    harness.thread.join(5)
    assert client_daemon.starts == 1
    assert client_daemon.stops == 1


def test_client_daemon_already_running() -> None:
    daemon = FakeClientDaemon(running=True)
    h = Harness(FakeSteamCmd(), daemon=daemon)
    h.send(StartClientDaemon())
    h.stop()
    assert daemon.starts == 0


def test_shutdown(harness: Harness) -> None:
    """Shutdown sends quit and returns its output."""
    harness.send(Shutdown())

    assert harness.response() == "Unloading Steam API...OK\n"
    harness.thread.join(5)
    assert harness.error is None
    assert harness.fake.lines_received == ["quit"]


def test_spawn_failure() -> None:
    """Failing to start steamcmd stops the driver."""

    def no_steamcmd() -> t.Any:
        raise exc.ProcessSpawnFailure(["steamcmd"])

    driver = ProtocolDriver(
        StateCell(),
        queue.Queue(),
        queue.Queue(),
        channel_factory=no_steamcmd,
    )
    with pytest.raises(exc.ProcessSpawnFailure):
        driver.run()

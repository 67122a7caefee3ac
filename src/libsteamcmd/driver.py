"""Protocol driver: the command-queue state machine.

libsteamcmd.driver
~~~~~~~~~~~~~~~~~~

One thread runs :meth:`ProtocolDriver.run`. It owns the interactive steamcmd
channel and the :class:`~libsteamcmd._internal.command_queue.CommandQueue`,
and is the only writer of the :class:`~libsteamcmd.state.StateCell`.

Each raw line is written, exactly one response is read, and the response is
interpreted according to the line that was *sent*. Interpreting a response
may push follow-up lines to the front of the queue:

``login`` -> ``info`` -> (caller) ``licenses_print`` ->
``package_info_print <id>`` per package -> ``app_info_print <id>`` per app.

While enumerating, the phase is :class:`~libsteamcmd.state.Loading`. Its total
grows by however many commands a response added, and the phase becomes
:class:`~libsteamcmd.state.LoggedIn` once done catches up with total.
"""

from __future__ import annotations

import logging
import queue
import typing as t

from . import exc
from ._internal.channel import SteamCmdChannel
from ._internal.command_queue import CommandQueue
from .account import Account
from .application import ApplicationRecord
from .cache import CatalogCache
from .catalog import license_package_ids, package_app_ids
from .commands import (
    Command,
    Install,
    Launch,
    Restart,
    RunRawLine,
    Shutdown,
    StartClientDaemon,
)
from .constants import AWAITING_ACCOUNT, AWAITING_LICENSES, LOGIN_FAILURE
from .jobs import JobRunner, client_daemon_running, start_client_daemon
from .lexers import COMMAND_LEX
from .state import Failed, LoggedIn, LoggedOut, Loading

if t.TYPE_CHECKING:
    from collections.abc import Callable

    from .state import StateCell

logger = logging.getLogger(__name__)


class ProtocolDriver:
    """Serializes every exchange with the interactive steamcmd process.

    Parameters
    ----------
    state : :class:`~libsteamcmd.state.StateCell`
        Session state, written only by this driver.
    inbox : queue.Queue
        Commands submitted by other threads.
    responses : queue.Queue
        Raw responses routed out of band (``app_status``, ``quit`` and
        unknown commands).
    channel_factory : callable, optional
        Spawns the interactive channel, also on restart.
    cache : :class:`~libsteamcmd.cache.CatalogCache`, optional
        Written once per completed enumeration.
    jobs : :class:`~libsteamcmd.jobs.JobRunner`, optional
        Runs install and launch requests.
    daemon_probe, daemon_starter : callable, optional
        Check for, and start, the headless desktop client.
    """

    def __init__(
        self,
        state: StateCell,
        inbox: queue.Queue[Command],
        responses: queue.Queue[str],
        channel_factory: Callable[[], SteamCmdChannel] | None = None,
        cache: CatalogCache | None = None,
        jobs: JobRunner | None = None,
        daemon_probe: Callable[[], bool] = client_daemon_running,
        daemon_starter: Callable[[], Callable[[], None]] = start_client_daemon,
    ) -> None:
        self.state = state
        self.inbox = inbox
        self.responses = responses
        self.channel_factory = channel_factory or SteamCmdChannel.interactive
        self.cache = cache or CatalogCache()
        self.jobs = jobs or JobRunner()
        self.daemon_probe = daemon_probe
        self.daemon_starter = daemon_starter
        self.queue = CommandQueue()
        self.channel: SteamCmdChannel | None = None
        self._catalog: list[ApplicationRecord] = []
        self._cleanup: Callable[[], None] | None = None

    # Loop --------------------------------------------------------------
    def run(self) -> None:
        """Process commands until ``quit`` has been answered.

        Raises
        ------
        :exc:`exc.ProtocolViolation`
            steamcmd was sent a line the driver cannot interpret.
        :exc:`exc.LibSteamCmdException`
            Spawning, reading or writing steamcmd failed.
        """
        self.channel = self.channel_factory()
        try:
            while True:
                if not self.queue:
                    self.queue.append(self.inbox.get())
                self._drain_inbox()

                command = self.queue.pop()
                if command is not None and self.execute(command):
                    return
        finally:
            self._close_channel()

    def _drain_inbox(self) -> None:
        while True:
            try:
                self.queue.append(self.inbox.get_nowait())
            except queue.Empty:
                return

    def _close_channel(self) -> None:
        if self.channel is not None:
            self.channel.close()
            self.channel = None

    def execute(self, command: Command) -> bool:
        """Execute one command; returns True once the loop should stop."""
        logger.debug("executing %r", command)
        if isinstance(command, RunRawLine):
            return self.run_line(command.text)
        if isinstance(command, Shutdown):
            return self.run_line("quit")
        if isinstance(command, Install):
            self._install(command)
        elif isinstance(command, Launch):
            self._launch(command)
        elif isinstance(command, StartClientDaemon):
            self._start_client_daemon()
        elif isinstance(command, Restart):
            self._restart()
        else:
            raise exc.ProtocolViolation(repr(command))
        return False

    # Raw lines ---------------------------------------------------------
    def run_line(self, line: str) -> bool:
        """Send *line*, read its response and act on it."""
        assert self.channel is not None

        tokens = COMMAND_LEX.tokenize(line)
        verb = tokens[0] if tokens else None

        if verb == "login":
            self.state.update(phase=LoggedOut())
        elif verb == "licenses_print":
            self.state.update(phase=Loading(0, AWAITING_LICENSES))

        waiting = len(self.queue)
        self.channel.write(line)
        try:
            response = self.channel.read_response()
        except exc.ChannelClosed:
            if verb != "quit":
                raise
            response = ""

        done = 0
        if verb == "login":
            self._on_login(response)
        elif verb == "info":
            self._on_info(response)
        elif verb == "licenses_print":
            self._on_licenses(response)
        elif verb == "package_info_print":
            done += 1
            self._on_package(tokens[1], response)
        elif verb == "app_info_print":
            done += 1
            self._on_app(tokens[1], response)
        elif verb == "app_status":
            self.responses.put(response)
        elif verb == "quit":
            self._on_quit(response)
            return True
        else:
            # Returned for diagnostics; unknown commands are never executed
            self.responses.put(response)
            raise exc.ProtocolViolation(response)

        self._advance(done, waiting)
        return False

    def _on_login(self, response: str) -> None:
        if LOGIN_FAILURE in response:
            logger.info("login rejected")
            self.state.update(phase=Failed())
        else:
            self.queue.push_front([RunRawLine("info")])

    def _on_info(self, response: str) -> None:
        try:
            account: Account | None = Account.from_response(response)
        except exc.MalformedResponse as e:
            logger.warning("cannot decode account: %s", e)
            account = None
        self.state.update(account=account, phase=Loading(0, AWAITING_ACCOUNT))

    def _on_licenses(self, response: str) -> None:
        package_ids = license_package_ids(response)
        logger.info("enumerating %d packages", len(package_ids))
        self._catalog = []
        self.queue.push_front(
            RunRawLine(f"package_info_print {package_id}")
            for package_id in package_ids
        )
        self.state.update(phase=Loading(0, 0), catalog=())

    def _on_package(self, key: str, response: str) -> None:
        try:
            app_ids = package_app_ids(key, response)
        except exc.MalformedResponse as e:
            logger.warning("skipping package %s: %s", key, e)
            return
        self.queue.push_front(
            RunRawLine(f"app_info_print {app_id}") for app_id in app_ids
        )

    def _on_app(self, key: str, response: str) -> None:
        try:
            record = ApplicationRecord.from_response(key, response)
        except exc.MalformedResponse as e:
            logger.warning("skipping app %s: %s", key, e)
            return
        self._catalog.append(record)
        self.state.update(catalog=tuple(self._catalog))

    def _on_quit(self, response: str) -> None:
        if self._cleanup is not None:
            self._cleanup()
            self._cleanup = None
        self.responses.put(response)

    def _advance(self, done: int, waiting: int) -> None:
        """Fold one answered command into the :class:`Loading` counters."""
        phase = self.state.phase
        if not isinstance(phase, Loading):
            return

        done += phase.done
        total = phase.total + (len(self.queue) - waiting)
        if total >= 0 and done == total:
            records = self.cache.save(self._catalog)
            self._catalog = []
            self.state.update(phase=LoggedIn(), catalog=tuple(records))
            logger.info("catalog loaded, %d records", len(records))
        else:
            self.state.update(phase=Loading(done, total))

    # Other commands ----------------------------------------------------
    def _install(self, command: Install) -> None:
        account = self.state.get().account
        if account is None:
            command.status.fail("Not logged in")
            return
        self.jobs.install(command.app_id, account.username, command.status)

    def _launch(self, command: Launch) -> None:
        account = self.state.get().account
        self.jobs.launch(
            command.app_id,
            command.executables,
            account.username if account else None,
            command.status,
            session_active=account is not None and self.daemon_probe(),
        )

    def _start_client_daemon(self) -> None:
        if self._cleanup is not None or self.daemon_probe():
            logger.debug("client daemon already running")
            return
        try:
            self._cleanup = self.daemon_starter()
        except exc.ProcessSpawnFailure as e:
            logger.error("cannot start client daemon: %s", e)

    def _restart(self) -> None:
        account = self.state.get().account
        self._close_channel()
        self.channel = self.channel_factory()
        self.state.update(phase=LoggedOut())
        user = account.username if account else ""
        self.queue.push_front([RunRawLine(f"login {user}")])

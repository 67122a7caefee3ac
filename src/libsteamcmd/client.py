"""Thread-safe facade over the protocol driver.

libsteamcmd.client
~~~~~~~~~~~~~~~~~~

Commands travel to the driver thread through one queue and routed responses
come back through another. Session state is read from the shared
:class:`~libsteamcmd.state.StateCell`.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
import typing as t
import warnings

from . import exc
from .cache import CatalogCache
from .catalog import filter_catalog
from .commands import (
    Install,
    Launch,
    Restart,
    RunRawLine,
    Shutdown,
    StartClientDaemon,
)
from .driver import ProtocolDriver
from .jobs import JobRunner
from .state import LoggedIn, StateCell, Terminated
from .status import Status, status_app_id

if t.TYPE_CHECKING:
    from collections.abc import Callable

    from ._internal.channel import SteamCmdChannel
    from .account import Account
    from .application import ApplicationRecord
    from .catalog import VisibilityFilter
    from .commands import Command
    from .state import Phase, SessionState

logger = logging.getLogger(__name__)

#: Seconds between liveness checks while waiting for a routed response
POLL_INTERVAL = 0.1


class Client:
    """Drive one interactive steamcmd session from any thread.

    Starting a client spawns steamcmd on a dedicated driver thread. All
    traffic to it goes through that thread; this object only submits
    commands, reads routed responses and reads session snapshots.

    Parameters
    ----------
    channel_factory : callable, optional
        Spawns the interactive channel. Defaults to
        :meth:`SteamCmdChannel.interactive`.
    cache : :class:`~libsteamcmd.cache.CatalogCache`, optional
        Catalog cache, shared with the driver.
    job_runner : :class:`~libsteamcmd.jobs.JobRunner`, optional
        Runs install and launch jobs.
    **driver_kwargs
        Passed on to :class:`~libsteamcmd.driver.ProtocolDriver`.

    Examples
    --------
    >>> with Client() as client:  # doctest: +SKIP
    ...     client.login("gaben")
    ...     client.load_catalog()
    """

    def __init__(
        self,
        channel_factory: Callable[[], SteamCmdChannel] | None = None,
        cache: CatalogCache | None = None,
        job_runner: JobRunner | None = None,
        **driver_kwargs: t.Any,
    ) -> None:
        self.cache = cache or CatalogCache()
        self.job_runner = job_runner or JobRunner()
        self._state = StateCell()
        self._inbox: queue.Queue[Command] = queue.Queue()
        self._responses: queue.Queue[str] = queue.Queue()
        self._request_lock = threading.Lock()
        self._closed = False

        self._driver = ProtocolDriver(
            self._state,
            self._inbox,
            self._responses,
            channel_factory=channel_factory,
            cache=self.cache,
            jobs=self.job_runner,
            **driver_kwargs,
        )
        self._thread = threading.Thread(
            target=self._supervise,
            name="libsteamcmd-driver",
            daemon=True,
        )
        self._thread.start()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(phase={self.current_phase()!r})"

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *args: t.Any) -> None:
        self.close()

    def __del__(self) -> None:  # pragma: no cover - best effort cleanup
        if not self.__dict__.get("_closed", True) and self._thread.is_alive():
            warnings.warn(
                f"unclosed {self!r}",
                ResourceWarning,
                stacklevel=2,
            )
            self.close()

    def _supervise(self) -> None:
        try:
            self._driver.run()
        except exc.ProcessSpawnFailure as e:
            logger.error("%s", e)
            self._state.update(phase=Terminated(str(e)))
        except Exception as e:
            logger.exception("driver thread crashed")
            self._state.update(
                phase=Terminated(f"Fatal Error in client thread:\n{e}"),
            )

    # Session -----------------------------------------------------------
    @property
    def state(self) -> SessionState:
        """Current session snapshot."""
        return self._state.get()

    @property
    def account(self) -> Account | None:
        return self._state.get().account

    def current_phase(self) -> Phase:
        return self._state.phase

    def is_logged_in(self) -> bool:
        return isinstance(self._state.phase, LoggedIn)

    def is_alive(self) -> bool:
        """Whether the driver thread still accepts commands."""
        return self._thread.is_alive()

    def send(self, command: Command) -> None:
        """Submit *command* to the driver thread.

        Raises
        ------
        :exc:`exc.ChannelClosed`
            The driver thread has stopped.
        """
        if not self._thread.is_alive():
            phase = self._state.phase
            reason = phase.reason if isinstance(phase, Terminated) else "closed"
            msg = f"steamcmd driver stopped: {reason}"
            raise exc.ChannelClosed(msg)
        self._inbox.put(command)

    def login(self, user: str) -> None:
        """Log in as *user*, then fetch account details.

        Raises
        ------
        :exc:`exc.BlankUsername`
            *user* is empty or whitespace.
        """
        if not user.strip():
            raise exc.BlankUsername
        self.send(RunRawLine(f"login {user.strip()}"))

    def restart(self) -> None:
        """Replace the steamcmd process and log in again."""
        self.send(Restart())

    def load_catalog(self) -> None:
        """Start enumerating every owned application.

        Progress shows in :meth:`current_phase`; the catalog is cached once
        the phase reaches :class:`~libsteamcmd.state.LoggedIn`.
        """
        self.send(RunRawLine("licenses_print"))

    def catalog(
        self,
        filter: VisibilityFilter | None = None,
    ) -> list[ApplicationRecord]:
        """Return the cached catalog, optionally filtered."""
        records = self.cache.load()
        if filter is not None:
            records = filter_catalog(records, filter)
        return records

    def start_background_daemon(self) -> None:
        """Start the headless desktop client if it is not running."""
        self.send(StartClientDaemon())

    # Requests ----------------------------------------------------------
    def execute(self, line: str) -> None:
        """Send a raw line; routed output is read with :meth:`recv_response`."""
        self.send(RunRawLine(line))

    def recv_response(self, timeout: float | None = None) -> str:
        """Return the next routed response.

        Raises
        ------
        :exc:`exc.ChannelClosed`
            The driver stopped before answering.
        :exc:`exc.WaitTimeout`
            Nothing arrived within *timeout* seconds.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            wait = POLL_INTERVAL
            if deadline is not None:
                wait = min(wait, max(deadline - time.monotonic(), 0))
            try:
                return self._responses.get(timeout=wait)
            except queue.Empty:
                pass

            if not self._thread.is_alive() and self._responses.empty():
                msg = "steamcmd driver stopped before responding"
                raise exc.ChannelClosed(msg)
            if deadline is not None and time.monotonic() >= deadline:
                msg = f"No response within {timeout} seconds"
                raise exc.WaitTimeout(msg)

    def status(self, app_id: int, timeout: float | None = None) -> Status:
        """Query the install status of *app_id*.

        Blocks until the driver answers. Only one query is in flight at a time.
        Late answers to queries that timed out earlier are recognised by their
        ``AppID`` header and discarded.
        """
        with self._request_lock:
            while True:
                try:
                    stale = self._responses.get_nowait()
                except queue.Empty:
                    break
                logger.debug("discarding unread response %r", stale)

            self.send(RunRawLine(f"app_status {app_id}"))
            deadline = None if timeout is None else time.monotonic() + timeout
            while True:
                remaining = None
                if deadline is not None:
                    remaining = max(deadline - time.monotonic(), 0)
                response = self.recv_response(remaining)
                answered = status_app_id(response)
                if answered is None or answered == app_id:
                    return Status.from_response(response)
                logger.debug("discarding late status of %d", answered)

    def refresh_status(
        self,
        record: ApplicationRecord,
        timeout: float | None = None,
    ) -> Status:
        """Query *record*'s install status and merge it into ``record.status``.

        Only the install directory and size are taken; a job's label stays.
        """
        status = self.status(record.id, timeout)
        record.status.merge(status)
        return record.status.get()

    def install(self, record: ApplicationRecord) -> None:
        """Install or update *record*; progress lands in ``record.status``."""
        self.send(Install(record.id, record.status))

    def launch(self, record: ApplicationRecord) -> None:
        """Launch *record*; progress lands in ``record.status``."""
        self.send(Launch(record.id, record.executables, record.status))

    # Shutdown ----------------------------------------------------------
    def close(self, timeout: float | None = 10.0) -> None:
        """Quit steamcmd and stop the driver thread. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        if self._thread.is_alive():
            self._inbox.put(Shutdown())
            self._thread.join(timeout)
            if self._thread.is_alive():
                logger.warning("driver thread did not stop within %s s", timeout)

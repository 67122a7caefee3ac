"""Background install and launch jobs.

libsteamcmd.jobs
~~~~~~~~~~~~~~~~

Each job runs on its own thread with its own throwaway steamcmd process and
reports only through the :class:`~libsteamcmd.status.StatusHandle` it was
given. Jobs never touch the driver's session or its steamcmd process.
"""

from __future__ import annotations

import logging
import socket
import subprocess
import sys
import threading
import typing as t

from . import exc
from ._internal.channel import SteamCmdChannel
from ._internal.subprocess import SubprocessCommand
from .config import install_script, launch_script, resolve_executable, run_wrapper
from .constants import STATUS_SUCCESS, STEAM_CLIENT_PORT, Platform
from .lexers import INSTALL_LEX

if t.TYPE_CHECKING:
    import pathlib
    from collections.abc import Callable, Sequence

    from .executable import Executable
    from .status import StatusHandle

    ChannelFactory = Callable[[pathlib.Path], SteamCmdChannel]

logger = logging.getLogger(__name__)

CLIENT_DAEMON_ARGS = [
    "steam",
    "-console",
    "-dev",
    "-nofriendsui",
    "-no-browser",
    "+open",
    "steam://",
]


def client_daemon_running(port: int = STEAM_CLIENT_PORT) -> bool:
    """Return True if the desktop client accepts connections on *port*."""
    try:
        with socket.create_connection(("127.0.0.1", port), timeout=0.2):
            return True
    except OSError:
        return False


def start_client_daemon() -> Callable[[], None]:
    """Start the headless desktop client, returning its cleanup hook.

    Raises
    ------
    :exc:`exc.ProcessSpawnFailure`
        ``steam`` could not be started.
    """
    cmd = SubprocessCommand(
        CLIENT_DAEMON_ARGS,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
    )
    try:
        proc = cmd.Popen()
    except OSError as e:
        raise exc.ProcessSpawnFailure(cmd.args) from e
    logger.info("started client daemon, pid %s", proc.pid)

    def cleanup() -> None:
        # Grandchildren of the client are not reaped here
        if proc.poll() is None:
            logger.info("stopping client daemon, pid %s", proc.pid)
            proc.terminate()

    return cleanup


def install_progress(line: str) -> str | None:
    """Translate one line of ``app_update`` output into a status label.

    Examples
    --------
    >>> install_progress("(0x61) downloading, progress: 50.00 (512 / 1024)")
    'downloading 50%'
    >>> install_progress("ERROR! Failed to install app '70' (No subscription)")
    "Failed: Failed to install app '70' (No subscription)"
    >>> install_progress("Success! App '70' fully installed.")
    'Success!'
    >>> install_progress("Loading Steam API...OK") is None
    True
    """
    tokens = INSTALL_LEX.tokenize(line)
    if len(tokens) == 3 and tokens[0] == "progress":
        current, total = int(tokens[1]), int(tokens[2])
        percent = current * 100 // total if total else 0
        return f"downloading {percent}%"
    if len(tokens) == 2 and tokens[0] in ("ERROR", "Error"):
        return f"Failed: {tokens[1]}"
    if tokens == ["Success"]:
        return STATUS_SUCCESS
    return None


def runnable_on_host(platform: Platform) -> bool:
    """Whether an executable for *platform* can be started on this host."""
    if platform is Platform.Mac:
        return sys.platform == "darwin"
    if platform is Platform.Linux:
        return sys.platform.startswith("linux")
    return True


def launch_command(executable: Executable, path: pathlib.Path) -> SubprocessCommand:
    """Build the command line starting *executable* found at *path*.

    Windows binaries go through ``wine`` on other hosts, and everything goes
    through the runtime wrapper when one is installed.
    """
    cmd = SubprocessCommand([str(path), *executable.arguments.split()])
    if executable.platform is Platform.Windows and sys.platform != "win32":
        cmd = cmd.wrap(["wine"])
    wrapper = run_wrapper()
    if wrapper is not None:
        cmd = cmd.wrap([str(wrapper)])
    return cmd


class JobRunner:
    """Starts install and launch jobs, at most one per application id.

    Parameters
    ----------
    channel_factory : callable, optional
        Spawns a scripted steamcmd for a script path. Defaults to
        :meth:`SteamCmdChannel.scripted`.
    """

    def __init__(self, channel_factory: ChannelFactory | None = None) -> None:
        self.channel_factory = channel_factory or SteamCmdChannel.scripted
        self._lock = threading.Lock()
        self._active: set[int] = set()
        self._threads: list[threading.Thread] = []

    def is_active(self, app_id: int) -> bool:
        with self._lock:
            return app_id in self._active

    def join(self, timeout: float | None = None) -> None:
        """Wait for started jobs to finish."""
        for thread in list(self._threads):
            thread.join(timeout)

    def _start(
        self,
        app_id: int,
        target: Callable[..., None],
        *args: t.Any,
    ) -> bool:
        with self._lock:
            if app_id in self._active:
                logger.debug("job for %d already running", app_id)
                return False
            self._active.add(app_id)

        thread = threading.Thread(
            target=self._run,
            args=(app_id, target, *args),
            name=f"libsteamcmd-job-{app_id}",
            daemon=True,
        )
        self._threads = [t_ for t_ in self._threads if t_.is_alive()]
        self._threads.append(thread)
        thread.start()
        return True

    def _run(
        self,
        app_id: int,
        target: Callable[..., None],
        *args: t.Any,
    ) -> None:
        status: StatusHandle = args[-1]
        try:
            target(app_id, *args)
        except exc.LibSteamCmdException as e:
            logger.warning("job for %d failed: %s", app_id, e)
            status.fail(e)
        except Exception as e:
            logger.exception("job for %d crashed", app_id)
            status.fail(e)
        finally:
            with self._lock:
                self._active.discard(app_id)

    # Install -----------------------------------------------------------
    def install(self, app_id: int, username: str, status: StatusHandle) -> bool:
        """Start installing *app_id*; False if a job for it is in flight."""
        return self._start(app_id, self._install, username, status)

    def _run_script(self, script: pathlib.Path, status: StatusHandle) -> int:
        with self.channel_factory(script) as channel:
            for line in channel:
                label = install_progress(line)
                if label is None:
                    logger.debug("steamcmd script: %s", line.rstrip())
                    continue
                status.update(label)
            return channel.wait()

    def _install(self, app_id: int, username: str, status: StatusHandle) -> None:
        status.begin("downloading 0%")
        returncode = self._run_script(install_script(username, app_id), status)
        if returncode:
            status.fail(f"steamcmd exited with status {returncode}")
        else:
            status.finish(STATUS_SUCCESS)

    # Launch ------------------------------------------------------------
    def launch(
        self,
        app_id: int,
        executables: Sequence[Executable],
        username: str | None,
        status: StatusHandle,
        session_active: bool = False,
    ) -> bool:
        """Start launching *app_id*; False if a job for it is in flight.

        With an active session the launch is delegated to a steamcmd script,
        falling back to running an executable directly if the script fails.
        """
        return self._start(
            app_id,
            self._launch,
            tuple(executables),
            username,
            session_active,
            status,
        )

    def _launch(
        self,
        app_id: int,
        executables: tuple[Executable, ...],
        username: str | None,
        session_active: bool,
        status: StatusHandle,
    ) -> None:
        status.begin("Launching")
        if session_active and username:
            try:
                returncode = self._run_script(launch_script(username, app_id), status)
            except exc.LibSteamCmdException as e:
                logger.warning("run script for %d failed: %s", app_id, e)
            else:
                if returncode == 0 and not status.get().state.startswith("Failed"):
                    status.finish(STATUS_SUCCESS)
                    return
                logger.warning(
                    "run script for %d exited with %d, launching directly",
                    app_id,
                    returncode,
                )
            status.begin("Launching")

        for executable in executables:
            if not runnable_on_host(executable.platform):
                continue
            path = resolve_executable(executable.executable)
            if path is None:
                continue
            self._run_executable(launch_command(executable, path), status)
            return

        raise exc.ExecutableNotFound(app_id)

    def _run_executable(self, cmd: SubprocessCommand, status: StatusHandle) -> None:
        logger.info("launching %s", cmd.args)
        status.update("Running")
        try:
            completed = cmd.run(capture_output=True)
        except OSError as e:
            raise exc.ProcessSpawnFailure(cmd.args) from e
        logger.debug("launch stdout: %r", completed.stdout)
        logger.debug("launch stderr: %r", completed.stderr)
        if completed.returncode:
            status.fail(f"exited with status {completed.returncode}")
        else:
            status.finish(STATUS_SUCCESS)

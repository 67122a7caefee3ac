"""Install and launch status.

libsteamcmd.status
~~~~~~~~~~~~~~~~~~

:class:`Status` is an immutable reading, either decoded from ``app_status``
or taken from a :class:`StatusHandle`. A handle is the mutable cell that a
background job publishes into and the UI polls.
"""

from __future__ import annotations

import dataclasses
import logging
import threading

from .constants import STATUS_FAILED_PREFIX, STATUS_SUCCESS
from .lexers import STATUS_HEADER_LEX, STATUS_LEX

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class Status:
    """Install state of one application.

    Examples
    --------
    >>> Status.from_response(
    ...     ' - install state: Fully Installed,\\n'
    ...     ' - install dir: "Half-Life"\\n'
    ...     ' - size on disk: 1024 bytes'
    ... )
    Status(state='Fully Installed', installdir='Half-Life', size=1024.0)
    >>> Status.from_response("garbage")
    Status(state='', installdir='', size=0.0)
    """

    state: str = ""
    installdir: str = ""
    size: float = 0.0

    @classmethod
    def from_response(cls, response: str) -> Status:
        """Decode an ``app_status`` response. Never fails."""
        fields: dict[str, str] = {}
        for line in response.splitlines():
            tokens = STATUS_LEX.tokenize(line)
            if len(tokens) == 2:
                fields.setdefault(tokens[0], tokens[1])

        try:
            size = float(fields.get("disk", ""))
        except ValueError:
            size = 0.0

        return cls(
            state=fields.get("state", "").strip(),
            installdir=fields.get("dir", ""),
            size=size,
        )

    @property
    def is_terminal(self) -> bool:
        """Whether the label is a final job outcome."""
        return is_terminal_label(self.state)


def is_terminal_label(label: str) -> bool:
    """Return True for ``Success!`` and ``Failed: ...`` labels."""
    return label == STATUS_SUCCESS or label.startswith(STATUS_FAILED_PREFIX)


def status_app_id(response: str) -> int | None:
    """Return the application id an ``app_status`` response is about.

    Examples
    --------
    >>> status_app_id("AppID 440 (Team Fortress 2):\\n - install state: Uninstalled,")
    440
    >>> status_app_id("garbage") is None
    True
    """
    tokens = STATUS_HEADER_LEX.tokenize(response)
    if len(tokens) != 2:
        return None
    return int(tokens[1])


class StatusHandle:
    """Lockable status cell shared between one job and its readers.

    Once a terminal label is published, plain updates are ignored until a new
    job calls :meth:`begin`.

    Examples
    --------
    >>> handle = StatusHandle()
    >>> handle.begin("downloading 0%")
    >>> handle.finish("Success!")
    >>> handle.update("downloading 99%")
    False
    >>> handle.get().state
    'Success!'
    """

    def __init__(self, status: Status | None = None) -> None:
        self._lock = threading.Lock()
        self._status = status or Status()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._status!r})"

    def get(self) -> Status:
        """Return the current reading."""
        with self._lock:
            return self._status

    def begin(self, state: str) -> None:
        """Start a new job, superseding any previous outcome."""
        with self._lock:
            self._status = dataclasses.replace(self._status, state=state)

    def update(self, state: str) -> bool:
        """Publish progress; returns False if a terminal label holds."""
        with self._lock:
            if self._status.is_terminal:
                logger.debug("ignoring %r after %r", state, self._status.state)
                return False
            self._status = dataclasses.replace(self._status, state=state)
            return True

    def finish(self, state: str) -> bool:
        """Publish a terminal label unless one already holds."""
        return self.update(state)

    def fail(self, reason: object) -> bool:
        """Publish ``Failed: <reason>``."""
        return self.finish(f"{STATUS_FAILED_PREFIX}{reason}")

    def merge(self, status: Status) -> None:
        """Take install directory and size from a decoded ``app_status``."""
        with self._lock:
            self._status = dataclasses.replace(
                self._status,
                installdir=status.installdir,
                size=status.size,
            )

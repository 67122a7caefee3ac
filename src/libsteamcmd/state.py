"""Session phases and the shared session-state cell.

libsteamcmd.state
~~~~~~~~~~~~~~~~~

The driver thread is the only writer of :class:`StateCell`. Every other thread
reads immutable :class:`SessionState` snapshots from it.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
import typing as t

from .constants import AWAITING_ACCOUNT, AWAITING_LICENSES

if t.TYPE_CHECKING:
    from .account import Account
    from .application import ApplicationRecord

logger = logging.getLogger(__name__)


class Phase:
    """Base class of the session phases."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"

    def __eq__(self, other: object) -> bool:
        return type(self) is type(other)

    def __hash__(self) -> int:
        return hash(type(self))


class LoggedOut(Phase):
    """No login has succeeded yet, or the process was restarted."""


class LoggedIn(Phase):
    """Logged in with a fully enumerated catalog."""


class Failed(Phase):
    """Login was rejected; recoverable by logging in again."""


@dataclasses.dataclass(frozen=True)
class Terminated(Phase):
    """The driver thread died; recoverable only by a new client."""

    reason: str


@dataclasses.dataclass(frozen=True)
class Loading(Phase):
    """Enumerating the catalog.

    A negative *total* means the count is not known yet:
    ``-2`` awaits account info, ``-1`` awaits the license list.

    Examples
    --------
    >>> Loading(0, -2).is_complete
    False
    >>> Loading(3, 3).is_complete
    True
    """

    done: int = 0
    total: int = AWAITING_LICENSES

    @property
    def is_complete(self) -> bool:
        """True once every queued fetch has been answered."""
        return self.total >= 0 and self.done == self.total

    @property
    def awaiting_account(self) -> bool:
        return self.total == AWAITING_ACCOUNT

    @property
    def awaiting_licenses(self) -> bool:
        return self.total == AWAITING_LICENSES


@dataclasses.dataclass(frozen=True)
class SessionState:
    """Immutable snapshot of the driver's session."""

    phase: Phase = dataclasses.field(default_factory=LoggedOut)
    account: Account | None = None
    catalog: tuple[ApplicationRecord, ...] = ()
    version: int = 0


class StateCell:
    """Single-writer, multi-reader holder of the current :class:`SessionState`.

    Writers replace the whole snapshot; readers never see partial updates.

    Examples
    --------
    >>> cell = StateCell()
    >>> cell.phase
    LoggedOut()
    >>> cell.update(phase=Loading(0, -1)).version
    1
    >>> cell.phase
    Loading(done=0, total=-1)
    """

    def __init__(self, state: SessionState | None = None) -> None:
        self._lock = threading.Lock()
        self._state = state or SessionState()

    def get(self) -> SessionState:
        """Return the current snapshot."""
        with self._lock:
            return self._state

    @property
    def phase(self) -> Phase:
        return self.get().phase

    def update(self, **changes: t.Any) -> SessionState:
        """Swap in a copy of the snapshot with *changes* applied."""
        with self._lock:
            self._state = dataclasses.replace(
                self._state,
                version=self._state.version + 1,
                **changes,
            )
            state = self._state
        if "phase" in changes:
            logger.debug("session phase: %r", state.phase)
        return state

"""Commands accepted by the driver thread."""

from __future__ import annotations

import dataclasses
import typing as t

from ._internal.dataclasses import SkipDefaultFieldsReprMixin

if t.TYPE_CHECKING:
    from .executable import Executable
    from .status import StatusHandle


class Command:
    """Base class of driver commands. Commands are never mutated."""


@dataclasses.dataclass(frozen=True)
class RunRawLine(Command):
    """Write one line to steamcmd and interpret its response."""

    text: str


@dataclasses.dataclass(frozen=True, repr=False)
class Install(Command, SkipDefaultFieldsReprMixin):
    """Install or update an application in a background job."""

    app_id: int
    status: StatusHandle = dataclasses.field(compare=False)


@dataclasses.dataclass(frozen=True, repr=False)
class Launch(Command, SkipDefaultFieldsReprMixin):
    """Run an application in a background job."""

    app_id: int
    executables: tuple[Executable, ...]
    status: StatusHandle = dataclasses.field(compare=False)


@dataclasses.dataclass(frozen=True)
class StartClientDaemon(Command):
    """Start the headless desktop client unless it already runs."""


@dataclasses.dataclass(frozen=True)
class Restart(Command):
    """Replace the steamcmd process and log in again."""


@dataclasses.dataclass(frozen=True)
class Shutdown(Command):
    """Send ``quit`` and stop the driver loop."""

"""Provide exceptions used by libsteamcmd.

libsteamcmd.exc
~~~~~~~~~~~~~~~

Every failure raised by the library derives from :exc:`LibSteamCmdException`.
The driver thread converts uncaught errors into a
:class:`~libsteamcmd.state.Terminated` phase, background jobs convert theirs
into a ``Failed: ...`` status label; everything else propagates to the caller.
"""

from __future__ import annotations

import typing as t


class LibSteamCmdException(Exception):
    """Base exception for all libsteamcmd errors."""


class IoFailure(LibSteamCmdException):
    """Raised when reading or writing a channel or file fails."""


class ProcessSpawnFailure(LibSteamCmdException):
    """Raised when the steamcmd process (or a helper process) cannot start."""

    def __init__(self, argv: t.Sequence[str] | None = None, *args: object) -> None:
        msg = (
            "An error occurred spawning the steamcmd process. "
            "Do you have it installed?"
        )
        if argv:
            msg += f" (command: {' '.join(argv)})"
        super().__init__(msg, *args)


class ChannelClosed(LibSteamCmdException):
    """Raised when the peer of a channel (process or thread) has gone away."""


class MalformedResponse(LibSteamCmdException):
    """Raised when a response breaks a decoding invariant."""


class MissingField(MalformedResponse):
    """Raised when a decoded tree lacks a required key."""

    def __init__(self, field: str, *args: object) -> None:
        super().__init__(f"Missing field: {field}", *args)


class ProtocolViolation(LibSteamCmdException):
    """Raised when steamcmd answers in a shape the driver does not know.

    Fatal to the driver loop.
    """

    def __init__(self, response: str, *args: object) -> None:
        self.response = response
        super().__init__(f"Unknown command sent {response}", *args)


class ConfigurationProblem(LibSteamCmdException):
    """Base exception for invalid user input or local setup."""


class BlankUsername(ConfigurationProblem, ValueError):
    """Raised if login is attempted without a user name."""

    def __init__(self, *args: object) -> None:
        super().__init__("Blank string. Requires user to log in.", *args)


class ExecutableNotFound(ConfigurationProblem):
    """Raised if none of an application's executables exists on disk."""

    def __init__(self, app_id: int | None = None, *args: object) -> None:
        if app_id is not None:
            super().__init__(f"Executable doesn't exist for app {app_id}")
        else:
            super().__init__("Executable doesn't exist")


class WaitTimeout(LibSteamCmdException):
    """Raised when a function times out waiting for a condition."""

"""Invokable :mod:`subprocess` wrapper.

Build a command line, inspect or adjust it, then run it.

Note
----
This is an internal API not covered by versioning policy.

Examples
--------
>>> cmd = SubprocessCommand(['echo', 'hi'])
>>> cmd.args
['echo', 'hi']
>>> cmd.wrap(['wine'])
SubprocessCommand(args=['wine', 'echo', 'hi'])
"""

from __future__ import annotations

import dataclasses
import os
import subprocess
import typing as t

from typing_extensions import TypeAlias

from .dataclasses import SkipDefaultFieldsReprMixin

_FILE: TypeAlias = t.Union[None, int, t.IO[t.Any]]
_ENV: TypeAlias = t.Mapping[str, str]
_PATH: TypeAlias = t.Union[str, "os.PathLike[str]"]


@dataclasses.dataclass(repr=False)
class SubprocessCommand(SkipDefaultFieldsReprMixin):
    """Wraps a :mod:`subprocess` request. Inspect, mutate, control before invocation.

    Attributes
    ----------
    args : list[str]
        Program and arguments.
    cwd : str, optional
        Working directory of the child.
    env : Mapping[str, str], optional
        Environment of the child.
    stdin, stdout, stderr :
        Standard streams, as accepted by :class:`subprocess.Popen`.
    start_new_session : bool
        Detach the child into its own session (POSIX only).
    """

    args: list[str]
    cwd: _PATH | None = None
    env: _ENV | None = None
    stdin: _FILE = None
    stdout: _FILE = None
    stderr: _FILE = None
    start_new_session: bool = False

    def wrap(self, prefix: t.Sequence[str]) -> SubprocessCommand:
        """Return a copy running this command through *prefix*."""
        return dataclasses.replace(self, args=[*prefix, *self.args])

    def Popen(self, **kwargs: t.Any) -> subprocess.Popen[t.Any]:
        """Run command in :class:`subprocess.Popen`, optionally overrides via kwargs."""
        return subprocess.Popen(**dataclasses.replace(self, **kwargs).__dict__)

    def run(
        self,
        *,
        capture_output: bool = False,
        check: bool = False,
        timeout: float | None = None,
        **kwargs: t.Any,
    ) -> subprocess.CompletedProcess[t.Any]:
        """Run command in :func:`subprocess.run`, optionally overrides via kwargs."""
        params = dataclasses.replace(self, **kwargs).__dict__
        if capture_output:
            params = {
                k: v for k, v in params.items() if k not in {"stdout", "stderr"}
            }
        return subprocess.run(
            **params,
            check=check,
            capture_output=capture_output,
            timeout=timeout,
        )

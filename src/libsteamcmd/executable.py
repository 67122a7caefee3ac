"""Executable descriptors of an application."""

from __future__ import annotations

import dataclasses
import logging
import os
import typing as t

from .constants import PLATFORM_OSLIST_MAP, PLATFORM_RANK, Platform
from .parser import as_value

if t.TYPE_CHECKING:
    from collections.abc import Iterable

    from .parser import Datum, DatumMap

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class Executable:
    """One launch option from ``config.executable``.

    Attributes
    ----------
    platform : :class:`~libsteamcmd.constants.Platform`
        Target platform from the entry's ``config.oslist``.
    executable : str
        Path of the binary, joined onto the app's install directory.
    arguments : str
        Argument string, split on spaces at launch.
    """

    platform: Platform
    executable: str
    arguments: str = ""

    @classmethod
    def from_datum(cls, entry: DatumMap, installdir: str) -> Executable:
        """Decode one numbered entry of ``config.executable``."""
        platform = Platform.Unknown
        config = entry.get("config")
        if isinstance(config, dict):
            oslist = config.get("oslist")
            if isinstance(oslist, str):
                platform = PLATFORM_OSLIST_MAP.get(oslist, Platform.Unknown)

        return cls(
            platform=platform,
            executable=os.path.join(
                installdir,
                as_value(entry.get("executable"), default=""),
            ),
            arguments=as_value(entry.get("arguments"), default=""),
        )

    def to_dict(self) -> dict[str, str]:
        """Return a JSON-ready mapping."""
        return {
            "platform": self.platform.value,
            "executable": self.executable,
            "arguments": self.arguments,
        }

    @classmethod
    def from_dict(cls, data: dict[str, t.Any]) -> Executable:
        """Inverse of :meth:`to_dict`."""
        return cls(
            platform=Platform(data.get("platform", Platform.Unknown.value)),
            executable=data.get("executable", ""),
            arguments=data.get("arguments", ""),
        )


def rank_executables(
    executables: Iterable[Executable],
    native: Platform = Platform.Linux,
    secondary: Platform = Platform.Windows,
) -> list[Executable]:
    """Sort *executables* by platform preference.

    Native platform first, then *secondary*, everything else last. Ties keep
    their previous order.

    Examples
    --------
    >>> ranked = rank_executables([
    ...     Executable(Platform.Windows, "game.exe"),
    ...     Executable(Platform.Linux, "game.sh"),
    ...     Executable(Platform.Mac, "game.app"),
    ... ])
    >>> [e.platform.value for e in ranked]
    ['Linux', 'Windows', 'Mac']
    """
    if native is Platform.Linux and secondary is Platform.Windows:
        ranks = PLATFORM_RANK
    else:
        ranks = {native: 0, secondary: 1}
    return sorted(executables, key=lambda e: ranks.get(e.platform, len(ranks)))


def decode_executables(config: Datum | None, installdir: str) -> list[Executable]:
    """Decode ``config.executable`` into ranked descriptors.

    Only integer keys are entries; they are visited in ascending order before
    ranking by platform.
    """
    if not isinstance(config, dict):
        return []

    keys: list[tuple[int, str]] = []
    for key in config:
        try:
            index = int(key)
        except ValueError:
            continue
        if index >= 0:
            keys.append((index, key))

    executables = []
    for _, key in sorted(keys):
        entry = config[key]
        if isinstance(entry, dict):
            executables.append(Executable.from_datum(entry, installdir))
    logger.debug("decoded %d executables in %r", len(executables), installdir)
    return rank_executables(executables)

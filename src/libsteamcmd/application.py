"""Application records decoded from ``app_info_print``.

libsteamcmd.application
~~~~~~~~~~~~~~~~~~~~~~~

A record needs the ``common``, ``extended`` and ``config`` blocks of an
application; every field inside them is optional.
"""

from __future__ import annotations

import dataclasses
import logging
import typing as t

from . import exc
from ._internal.dataclasses import SkipDefaultFieldsReprMixin
from .constants import CATEGORY_TYPE_MAP, STEAM_CDN, Category
from .executable import Executable, decode_executables
from .parser import as_value, parse_text
from .status import StatusHandle

if t.TYPE_CHECKING:
    from .parser import DatumMap

logger = logging.getLogger(__name__)

#: Placeholder for absent descriptive fields
BLANK = "-"
NO_NAME = "<no name>"


def derive_category(common: DatumMap) -> Category:
    """Classify an application from its ``common`` block.

    A ``driverversion`` value wins over ``type``.

    Examples
    --------
    >>> derive_category({"type": "Game", "driverversion": "1.0"})
    <Category.Driver: 'Driver'>
    >>> derive_category({"type": "DLC"})
    <Category.DLC: 'DLC'>
    >>> derive_category({"type": "music"})
    <Category.Unknown: 'Unknown'>
    """
    if isinstance(common.get("driverversion"), str):
        return Category.Driver

    app_type = common.get("type")
    if not isinstance(app_type, str):
        return Category.Unknown

    category = CATEGORY_TYPE_MAP.get(app_type.lower())
    if category is None:
        logger.debug("unknown app type %r", app_type)
        return Category.Unknown
    return category


@dataclasses.dataclass(frozen=True, repr=False)
class ApplicationRecord(SkipDefaultFieldsReprMixin):
    """One entry of the catalog.

    Immutable apart from :attr:`status`, a separately locked cell that install
    and launch jobs publish into.
    """

    id: int
    name: str = NO_NAME
    developer: str = BLANK
    publisher: str = BLANK
    homepage: str = BLANK
    executables: tuple[Executable, ...] = ()
    category: Category = Category.Unknown
    icon_url: str | None = None
    status: StatusHandle = dataclasses.field(
        default_factory=StatusHandle,
        compare=False,
        repr=False,
    )

    @classmethod
    def from_tree(cls, key: str, tree: DatumMap) -> ApplicationRecord:
        """Decode the subtree stored under application id *key*.

        Raises
        ------
        :exc:`exc.MalformedResponse`
            The ``common``, ``extended`` and ``config`` blocks are not all
            present.
        """
        app = tree.get(key)
        if not isinstance(app, dict):
            msg = f"Could not extract game. No block for {key}"
            raise exc.MalformedResponse(msg)

        common, extended, config = (
            app.get("common"),
            app.get("extended"),
            app.get("config"),
        )
        if not (
            isinstance(common, dict)
            and isinstance(extended, dict)
            and isinstance(config, dict)
        ):
            msg = f"Could not extract game. Incomplete block for {key}"
            raise exc.MalformedResponse(msg)

        try:
            app_id = int(key)
        except ValueError:
            app_id = 0

        icon_url = None
        icon = common.get("clienticon")
        if isinstance(icon, str):
            icon_url = f"{STEAM_CDN}/{key}/{icon}.ico"

        return cls(
            id=app_id,
            name=as_value(common.get("name"), default=NO_NAME),
            developer=as_value(extended.get("developer"), default=BLANK),
            publisher=as_value(extended.get("publisher"), default=BLANK),
            homepage=as_value(extended.get("homepage"), default=BLANK),
            executables=tuple(
                decode_executables(
                    config.get("executable"),
                    as_value(config.get("installdir"), default=""),
                ),
            ),
            category=derive_category(common),
            icon_url=icon_url,
        )

    @classmethod
    def from_response(cls, key: str, response: str) -> ApplicationRecord:
        """Decode a full ``app_info_print <key>`` response."""
        return cls.from_tree(key, parse_text(response))

    def to_dict(self) -> dict[str, t.Any]:
        """Return a JSON-ready mapping, without the status cell."""
        return {
            "id": self.id,
            "name": self.name,
            "developer": self.developer,
            "publisher": self.publisher,
            "homepage": self.homepage,
            "executable": [e.to_dict() for e in self.executables],
            "game_type": self.category.value,
            "icon_url": self.icon_url,
        }

    @classmethod
    def from_dict(cls, data: dict[str, t.Any]) -> ApplicationRecord:
        """Inverse of :meth:`to_dict`.

        Raises
        ------
        :exc:`exc.MalformedResponse`
            *data* has no integer ``id``.
        """
        try:
            app_id = int(data["id"])
        except (KeyError, TypeError, ValueError) as e:
            msg = f"Cached record without id: {data!r}"
            raise exc.MalformedResponse(msg) from e

        try:
            category = Category(data.get("game_type", Category.Unknown.value))
        except ValueError:
            category = Category.Unknown

        return cls(
            id=app_id,
            name=data.get("name", NO_NAME),
            developer=data.get("developer", BLANK),
            publisher=data.get("publisher", BLANK),
            homepage=data.get("homepage", BLANK),
            executables=tuple(
                Executable.from_dict(e) for e in data.get("executable", [])
            ),
            category=category,
            icon_url=data.get("icon_url"),
        )


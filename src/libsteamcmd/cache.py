"""Persisted catalog cache."""

from __future__ import annotations

import json
import logging
import os
import pathlib
import tempfile
import typing as t

from . import exc
from .application import ApplicationRecord
from .catalog import sort_catalog
from .config import cache_location

if t.TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)


class CatalogCache:
    """JSON file holding the last fully enumerated catalog.

    Parameters
    ----------
    path : pathlib.Path, optional
        Cache file. Defaults to :func:`~libsteamcmd.config.cache_location`,
        resolved on each access.
    """

    def __init__(self, path: pathlib.Path | None = None) -> None:
        self._path = path

    @property
    def path(self) -> pathlib.Path:
        """Location of the cache file."""
        return self._path or cache_location()

    def load(self) -> list[ApplicationRecord]:
        """Return cached records; absent or unparsable files give ``[]``."""
        path = self.path
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError as e:
            logger.warning("cannot read catalog cache %s: %s", path, e)
            return []

        try:
            entries = json.loads(raw)
            if not isinstance(entries, list):
                msg = f"expected a list, found {type(entries).__name__}"
                raise exc.MalformedResponse(msg)
            return [ApplicationRecord.from_dict(entry) for entry in entries]
        except (ValueError, TypeError, AttributeError, exc.MalformedResponse) as e:
            logger.warning("ignoring unparsable catalog cache %s: %s", path, e)
            return []

    def save(self, records: Iterable[ApplicationRecord]) -> list[ApplicationRecord]:
        """Atomically replace the cache with *records*, sorted by name."""
        ordered = sort_catalog(records)
        path = self.path
        payload = json.dumps([record.to_dict() for record in ordered])

        try:
            fd, tmp_name = tempfile.mkstemp(
                dir=path.parent,
                prefix=f".{path.name}.",
                suffix=".tmp",
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                    tmp.write(payload)
                os.replace(tmp_name, path)
            except BaseException:
                pathlib.Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            msg = f"Cannot write catalog cache {path}: {e}"
            raise exc.IoFailure(msg) from e

        logger.debug("cached %d records in %s", len(ordered), path)
        return ordered

"""Catalog enumeration decoders.

libsteamcmd.catalog
~~~~~~~~~~~~~~~~~~~

The catalog is walked in three steps: ``licenses_print`` lists packages,
``package_info_print`` lists the applications of one package and
``app_info_print`` describes one application.
"""

from __future__ import annotations

import logging
import typing as t

from .lexers import LICENSE_LEX
from .parser import as_nest, parse_text

if t.TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from .application import ApplicationRecord

logger = logging.getLogger(__name__)

#: ``licenses_print`` prints one record per this many lines
LICENSE_RECORD_LINES = 4

VisibilityFilter = t.Callable[["ApplicationRecord"], bool]


def license_package_ids(response: str) -> list[int]:
    """Return package ids from a ``licenses_print`` response.

    Only the first line of each record carries the id.

    Examples
    --------
    >>> license_package_ids(
    ...     "License packageID 0:\\n - State\\n - Apps\\n - Depots\\n"
    ...     "License packageID 12:\\n - State\\n - Apps\\n - Depots"
    ... )
    [0, 12]
    """
    package_ids = []
    for i, line in enumerate(response.splitlines()):
        if i % LICENSE_RECORD_LINES:
            continue
        tokens = LICENSE_LEX.tokenize(line)
        if len(tokens) != 2:
            continue
        package_id = int(tokens[1])
        if package_id >= 0:
            package_ids.append(package_id)
    return package_ids


def package_app_ids(key: str, response: str) -> list[int]:
    """Return application ids listed by ``package_info_print <key>``.

    Ids come in tree order; negative or non-numeric ids are dropped and
    duplicates are kept.

    Raises
    ------
    :exc:`exc.MissingField`
        The package block has no ``appids``.

    Examples
    --------
    >>> package_app_ids("7", '"7"\\n{\\n"appids"\\n{\\n"0" "440"\\n"1" "x"\\n}\\n}')
    [440]
    """
    tree = parse_text(response)
    package = tree.get(key)
    if package is None:
        return []
    apps = as_nest(as_nest(package, field=key).get("appids"), field="appids")

    app_ids = []
    for value in apps.values():
        if not isinstance(value, str):
            continue
        try:
            app_id = int(value)
        except ValueError:
            continue
        if app_id >= 0:
            app_ids.append(app_id)
    return app_ids


def sort_catalog(records: Iterable[ApplicationRecord]) -> list[ApplicationRecord]:
    """Return *records* ordered by display name."""
    return sorted(records, key=lambda record: record.name)


def filter_catalog(
    records: Iterable[ApplicationRecord],
    predicate: Callable[[ApplicationRecord], bool] | None = None,
) -> list[ApplicationRecord]:
    """Return the records accepted by *predicate* (all when ``None``)."""
    if predicate is None:
        return list(records)
    return [record for record in records if predicate(record)]

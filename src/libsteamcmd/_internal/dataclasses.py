""":mod:`dataclasses` utilities.

Note
----
This is an internal API not covered by versioning policy.
"""

from __future__ import annotations

import dataclasses
import typing as t
from operator import attrgetter

if t.TYPE_CHECKING:
    from _typeshed import DataclassInstance


def _field_default(field: dataclasses.Field[t.Any]) -> t.Any:
    if field.default is not dataclasses.MISSING:
        return field.default
    if field.default_factory is not dataclasses.MISSING:
        return field.default_factory()
    return dataclasses.MISSING


class SkipDefaultFieldsReprMixin:
    r"""Skip default and ``repr=False`` fields in dataclass representation.

    Notes
    -----
    Credit: Pietro Oldrati, 2022-05-08, Unilicense

    https://stackoverflow.com/a/72161437/1396928

    Examples
    --------
    >>> @dataclasses.dataclass(repr=False)
    ... class Entry(SkipDefaultFieldsReprMixin):
    ...     id: int
    ...     name: str = "<no name>"
    ...     tags: list = dataclasses.field(default_factory=list)
    ...

    >>> Entry(440)
    Entry(id=440)

    >>> Entry(440, name='Team Fortress 2', tags=['fps'])
    Entry(id=440, name='Team Fortress 2', tags=['fps'])
    """

    def __repr__(self: DataclassInstance) -> str:
        """Omit default fields in object representation."""
        nodef_f_vals = (
            (f.name, attrgetter(f.name)(self))
            for f in dataclasses.fields(self)
            if f.repr and attrgetter(f.name)(self) != _field_default(f)
        )

        nodef_f_repr = ", ".join(f"{name}={value!r}" for name, value in nodef_f_vals)
        return f"{self.__class__.__name__}({nodef_f_repr})"

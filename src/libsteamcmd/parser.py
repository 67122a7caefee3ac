"""Nested key/value block parser.

libsteamcmd.parser
~~~~~~~~~~~~~~~~~~

steamcmd prints application and package data as brace-delimited blocks::

    "440"
    {
        "common"
        {
            "name"      "Team Fortress 2"
        }
    }

:func:`parse` turns such a block into a :data:`Datum` tree: leaves are
:class:`str`, nested blocks are :class:`dict`.
"""

from __future__ import annotations

import typing as t

from . import exc
from .lexers import DATA_LEX

if t.TYPE_CHECKING:
    from collections.abc import Iterator

    from typing_extensions import TypeAlias

Datum: TypeAlias = "str | dict[str, Datum]"
DatumMap: TypeAlias = "dict[str, Datum]"


def parse(lines: Iterator[str]) -> DatumMap:
    """Parse one nesting level from *lines*.

    Consumes lines up to and including the closing brace of the current level,
    so the caller can keep iterating after a nested block returns. Lines that
    are neither entries nor braces are skipped; the parse never fails.

    Parameters
    ----------
    lines : Iterator[str]
        Lazy sequence of response lines, shared with the caller.

    Returns
    -------
    dict
        Mapping of keys to leaf strings or nested mappings.

    Examples
    --------
    >>> block = iter(['"hmm" "™️ ö ®"', '"sub"', '{', '}', '}'])
    >>> parse(block)
    {'hmm': '™️ ö ®', 'sub': {}}
    """
    tree: DatumMap = {}
    for line in lines:
        tokens = DATA_LEX.tokenize(line)
        if tokens == ["}"]:
            break
        if len(tokens) == 2:
            key, value = tokens
            tree[key] = value
        elif len(tokens) == 1:
            # A bare key is always followed by a line holding "{"
            next(lines, None)
            tree[tokens[0]] = parse(lines)
    return tree


def parse_text(text: str) -> DatumMap:
    """Parse a whole response string."""
    return parse(iter(text.splitlines()))


def as_value(
    datum: Datum | None,
    default: str | None = None,
    field: str = "value",
) -> str:
    """Return *datum*, the entry named *field*, as a leaf string.

    Raises
    ------
    :exc:`exc.MissingField`
        *datum* is absent and there is no default.
    :exc:`exc.MalformedResponse`
        *datum* is a nested block.
    """
    if datum is None:
        if default is None:
            raise exc.MissingField(field)
        return default
    if not isinstance(datum, str):
        msg = f"Expected a value, found a block with keys {sorted(datum)}"
        raise exc.MalformedResponse(msg)
    return datum


def as_nest(datum: Datum | None, field: str = "block") -> DatumMap:
    """Return *datum*, the entry named *field*, as a nested mapping.

    Raises
    ------
    :exc:`exc.MissingField`
        *datum* is absent.
    :exc:`exc.MalformedResponse`
        *datum* is a leaf string.
    """
    if datum is None:
        raise exc.MissingField(field)
    if not isinstance(datum, dict):
        msg = f"Expected a block, found {datum!r}"
        raise exc.MalformedResponse(msg)
    return datum

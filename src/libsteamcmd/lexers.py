"""Line lexers for steamcmd output.

libsteamcmd.lexers
~~~~~~~~~~~~~~~~~~

Each lexer is a single regular expression made of alternatives. Tokenizing a
line returns the groups captured by whichever alternative matched, skipping
groups that did not take part in the match. No match yields an empty list,
so callers pattern-match on the token list and never handle exceptions.

Examples
--------
>>> COMMAND_LEX.tokenize("app_info_print 440")
['app_info_print', '440']
>>> COMMAND_LEX.tokenize("doesn't hang")
[]
>>> LICENSE_LEX.tokenize("License packageID 1234:")
['packageID', '1234']
"""

from __future__ import annotations

import re


class Lexer:
    """Regex-backed tokenizer for one line of text."""

    def __init__(self, pattern: str) -> None:
        self.regex = re.compile(pattern, re.VERBOSE)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.regex.pattern!r})"

    def tokenize(self, line: str) -> list[str]:
        """Return captured groups of the first match in *line*."""
        match = self.regex.search(line)
        if match is None:
            return []
        return [group for group in match.groups() if group is not None]


#: Classifies a line *sent* to steamcmd, used to interpret its response
COMMAND_LEX = Lexer(
    r"""
    (login)(?:\s+(\S*))? |
    \b(info)\b |
    \b(quit)\b |
    \b(licenses_print)\b |
    (package_info_print)\s+(\d+) |
    (app_info_print)\s+(\d+) |
    (app_status)\s+(\d+)
    """,
)

#: Fields of the ``info`` response
ACCOUNT_LEX = Lexer(
    r"""
    \s*(Account):\s*(\S+)\s* |
    \s*(SteamID):\s*(\S+)\s* |
    \s*(Language):\s*(\S+)\s*
    """,
)

#: Fields of the ``app_status`` response
STATUS_LEX = Lexer(
    r"""
    .*install\s+(state):\s+([^,]+).* |
    .*(dir):\s+"([^"]+)".* |
    .*(disk):\s+(\d+).*
    """,
)

#: Header naming the application an ``app_status`` response describes
STATUS_HEADER_LEX = Lexer(r"^\s*(AppID)\s+(\d+)\b")

#: Package id on the first line of every ``licenses_print`` record
LICENSE_LEX = Lexer(r".*(packageID)\s+(\d+).*")

#: Output of ``app_update`` while an install script runs
INSTALL_LEX = Lexer(
    r"""
    .*(progress):\s*[\d.]+\s*\((\d+)\s*/\s*(\d+)\) |
    .*(ERROR|Error)!\s*(.*?)\s*$ |
    .*(Success)!
    """,
)

#: Lines of a brace-delimited key/value block
DATA_LEX = Lexer(
    r"""
    ^\s*"([^"]+)"\s+"([^"]*)"\s* |
    ^\s*"([^"]+)"\s*$ |
    ^\s*(})\s*$
    """,
)

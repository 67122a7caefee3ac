"""Account decoded from the ``info`` response."""

from __future__ import annotations

import dataclasses
import logging

from . import exc
from .lexers import ACCOUNT_LEX

logger = logging.getLogger(__name__)

ACCOUNT_FIELDS = ("Account", "SteamID", "Language")


@dataclasses.dataclass(frozen=True)
class Account:
    """Logged in steam account.

    Examples
    --------
    >>> Account.from_response("Account: gaben\\nSteamID: 765\\nLanguage: english")
    Account(username='gaben', steam_id='765', language='english')
    """

    username: str
    steam_id: str
    language: str

    @classmethod
    def from_response(cls, response: str) -> Account:
        """Decode the ``info`` response.

        Raises
        ------
        :exc:`exc.MalformedResponse`
            Not exactly three account fields were found.
        """
        found: list[tuple[str, str]] = []
        for line in response.splitlines():
            tokens = ACCOUNT_LEX.tokenize(line)
            if len(tokens) == 2 and tokens[0] in ACCOUNT_FIELDS:
                found.append((tokens[0], tokens[1]))

        if len(found) != len(ACCOUNT_FIELDS):
            msg = (
                "Account info response in unexpected format: "
                f"found {len(found)} fields"
            )
            raise exc.MalformedResponse(msg)

        fields = dict(found)
        if len(fields) != len(ACCOUNT_FIELDS):
            msg = f"Account info response repeats fields: {[k for k, _ in found]}"
            raise exc.MalformedResponse(msg)

        return cls(
            username=fields["Account"],
            steam_id=fields["SteamID"],
            language=fields["Language"],
        )

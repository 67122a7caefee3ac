"""Constant variables for libsteamcmd."""

from __future__ import annotations

import enum


class Category(enum.Enum):
    """Kind of application, derived from ``common.type``."""

    Game = "Game"
    DLC = "DLC"
    Driver = "Driver"
    Application = "Application"
    Config = "Config"
    Demo = "Demo"
    Tool = "Tool"
    Unknown = "Unknown"


#: Lowercase ``common.type`` values and the category they map to
CATEGORY_TYPE_MAP: dict[str, Category] = {
    "game": Category.Game,
    "dlc": Category.DLC,
    "application": Category.Application,
    "config": Category.Config,
    "demo": Category.Demo,
    "tool": Category.Tool,
}


class Platform(enum.Enum):
    """Target platform of an executable (``config.oslist``)."""

    Linux = "Linux"
    Mac = "Mac"
    Windows = "Windows"
    Unknown = "Unknown"


PLATFORM_OSLIST_MAP: dict[str, Platform] = {
    "linux": Platform.Linux,
    "windows": Platform.Windows,
    "macos": Platform.Mac,
}

#: Executable ranking, lower ranks first. Unlisted platforms sort last.
PLATFORM_RANK: dict[Platform, int] = {
    Platform.Linux: 0,
    Platform.Windows: 1,
}


class Mode(enum.Enum):
    """How steamcmd was spawned, which decides the framing byte."""

    Interactive = "INTERACTIVE"
    Scripted = "SCRIPTED"


#: Delimiter of raw frames from :meth:`SteamCmdChannel.read_frame`. Interactive
#: responses are framed on :data:`PROMPT` instead; the escape byte only splits
#: raw interactive frames at colour codes.
FRAMING_BYTE_MAP: dict[Mode, bytes] = {
    Mode.Interactive: b"\x1b",
    Mode.Scripted: b"\n",
}

#: Prompt printed by steamcmd once it is ready for the next command
PROMPT = "Steam>"


#: Local port the desktop client listens on while it runs
STEAM_CLIENT_PORT = 57343

STEAM_CDN = "https://steamcdn-a.akamaihd.net/steamcommunity/public/images/apps"

#: Substring marking a rejected ``login``
LOGIN_FAILURE = "Login Failure"

#: Terminal labels published by background jobs
STATUS_SUCCESS = "Success!"
STATUS_FAILED_PREFIX = "Failed: "

#: Loading totals that mean "count unknown yet"
AWAITING_ACCOUNT = -2
AWAITING_LICENSES = -1

"""libsteamcmd, a typed, threaded driver for Valve's steamcmd tool."""

from .__about__ import (
    __author__,
    __copyright__,
    __description__,
    __email__,
    __license__,
    __package_name__,
    __title__,
    __version__,
)
from .account import Account
from .application import ApplicationRecord
from .cache import CatalogCache
from .client import Client
from .config import Config
from .constants import Category, Platform
from .executable import Executable
from .state import Failed, LoggedIn, LoggedOut, Loading, Terminated
from .status import Status, StatusHandle

__all__ = (
    "Account",
    "ApplicationRecord",
    "CatalogCache",
    "Category",
    "Client",
    "Config",
    "Executable",
    "Failed",
    "Loading",
    "LoggedIn",
    "LoggedOut",
    "Platform",
    "Status",
    "StatusHandle",
    "Terminated",
    "__author__",
    "__copyright__",
    "__description__",
    "__email__",
    "__license__",
    "__package_name__",
    "__title__",
    "__version__",
)

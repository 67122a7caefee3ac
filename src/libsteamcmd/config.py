"""Paths and user configuration.

libsteamcmd.config
~~~~~~~~~~~~~~~~~~

Locations are read from the environment each time they are resolved:

- :envvar:`LIBSTEAMCMD_DIR`: config and cache directory, defaults to
  ``~/.config/libsteamcmd``
- :envvar:`STEAM_APP_DIR`: installed applications, defaults to
  ``~/.steam/steam/steamapps/common/``
- :envvar:`STEAM_RUN_WRAPPER`: optional runtime wrapper for launching, defaults
  to ``~/.steam/bin32/steam-runtime/run.sh``
- :envvar:`STEAMCMD_BIN`: the steamcmd executable, defaults to ``steamcmd``
"""

from __future__ import annotations

import dataclasses
import json
import logging
import os
import pathlib
import typing as t

from . import exc
from .constants import Category

if t.TYPE_CHECKING:
    from .catalog import VisibilityFilter

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = "~/.config/libsteamcmd"
DEFAULT_APP_DIR = "~/.steam/steam/steamapps/common/"
DEFAULT_RUN_WRAPPER = "~/.steam/bin32/steam-runtime/run.sh"
DEFAULT_STEAMCMD_BIN = "steamcmd"

CONFIG_FILE = "config.json"
CACHE_FILE = "games.json"


def expand(path: str) -> pathlib.Path:
    """Expand ``~`` and environment variables in *path*."""
    return pathlib.Path(os.path.expandvars(os.path.expanduser(path)))


def _ensure_dir(path: pathlib.Path) -> pathlib.Path:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        msg = f"Cannot create directory {path}: {e}"
        raise exc.IoFailure(msg) from e
    return path


def config_directory() -> pathlib.Path:
    """Return (and create) the config and cache directory."""
    return _ensure_dir(expand(os.getenv("LIBSTEAMCMD_DIR", DEFAULT_CONFIG_DIR)))


def app_directory() -> pathlib.Path:
    """Return the directory holding installed applications."""
    return expand(os.getenv("STEAM_APP_DIR", DEFAULT_APP_DIR))


def run_wrapper() -> pathlib.Path | None:
    """Return the runtime wrapper, or ``None`` when it does not exist."""
    wrapper = expand(os.getenv("STEAM_RUN_WRAPPER", DEFAULT_RUN_WRAPPER))
    if wrapper.exists():
        return wrapper
    logger.debug("run wrapper doesn't exist: %s", wrapper)
    return None


def steamcmd_bin() -> str:
    """Return the name or path of the steamcmd binary."""
    return os.getenv("STEAMCMD_BIN", DEFAULT_STEAMCMD_BIN)


def config_location() -> pathlib.Path:
    """Return the path of ``config.json``."""
    return config_directory() / CONFIG_FILE


def cache_location() -> pathlib.Path:
    """Return the path of the catalog cache."""
    return config_directory() / CACHE_FILE


def resolve_executable(executable: str) -> pathlib.Path | None:
    """Return *executable* under :func:`app_directory` if it exists."""
    path = app_directory() / executable
    if path.exists():
        return path
    return None


def _write_script(name: str, contents: str) -> pathlib.Path:
    path = config_directory() / name
    try:
        path.write_text(contents, encoding="utf-8")
    except OSError as e:
        msg = f"Cannot write script {path}: {e}"
        raise exc.IoFailure(msg) from e
    return path


def install_script(username: str, app_id: int) -> pathlib.Path:
    """Write the steamcmd script installing *app_id*."""
    return _write_script(
        f"{app_id}.install",
        f'\nlogin {username}\napp_update "{app_id}" -validate\nquit\n',
    )


def launch_script(username: str, app_id: int) -> pathlib.Path:
    """Write the steamcmd script updating and running *app_id*."""
    return _write_script(
        f"{app_id}.launch",
        f'\nlogin {username}\napp_update "{app_id}" -validate\n'
        f"app_run {app_id}\nquit\n",
    )


def _default_categories() -> list[Category]:
    return [Category.Game, Category.DLC]


@dataclasses.dataclass
class Config:
    """User preferences stored in ``config.json``.

    Examples
    --------
    >>> config = Config(hidden_apps=[10])
    >>> visible = config.visibility_filter()
    >>> from libsteamcmd.application import ApplicationRecord
    >>> visible(ApplicationRecord(10, category=Category.Game))
    False
    >>> visible(ApplicationRecord(20, category=Category.Game))
    True
    >>> visible(ApplicationRecord(30, category=Category.Tool))
    False
    """

    default_user: str = ""
    hidden_apps: list[int] = dataclasses.field(default_factory=list)
    allowed_categories: list[Category] = dataclasses.field(
        default_factory=_default_categories,
    )

    @classmethod
    def load(cls, path: pathlib.Path | None = None) -> Config:
        """Read *path*; an absent or broken file yields (and saves) defaults."""
        path = path or config_location()
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            config = cls(
                default_user=str(data.get("default_user", "")),
                hidden_apps=[int(i) for i in data.get("hidden_games", [])],
                allowed_categories=[
                    Category(c) for c in data.get("allowed_games", [])
                ],
            )
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.info("using default config, cannot read %s: %s", path, e)
            config = cls()
            config.save(path)
        return config

    def save(self, path: pathlib.Path | None = None) -> None:
        """Write the config as JSON."""
        path = path or config_location()
        data = {
            "default_user": self.default_user,
            "hidden_games": self.hidden_apps,
            "allowed_games": [c.value for c in self.allowed_categories],
        }
        try:
            path.write_text(json.dumps(data), encoding="utf-8")
        except OSError as e:
            msg = f"Cannot write config {path}: {e}"
            raise exc.IoFailure(msg) from e

    def visibility_filter(self) -> VisibilityFilter:
        """Return a predicate accepting the records this config shows."""
        hidden = frozenset(self.hidden_apps)
        allowed = frozenset(self.allowed_categories)

        def is_visible(record: t.Any) -> bool:
            return record.id not in hidden and record.category in allowed

        return is_visible

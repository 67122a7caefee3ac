"""Metadata package for libsteamcmd."""

from __future__ import annotations

__title__ = "libsteamcmd"
__package_name__ = "libsteamcmd"
__version__ = "0.4.0"
__description__ = "Typed, threaded driver for the steamcmd console client"
__email__ = "maintainers@libsteamcmd.dev"
__author__ = "libsteamcmd contributors"
__github__ = "https://github.com/libsteamcmd/libsteamcmd"
__docs__ = "https://libsteamcmd.readthedocs.io"
__tracker__ = "https://github.com/libsteamcmd/libsteamcmd/issues"
__pypi__ = "https://pypi.org/project/libsteamcmd/"
__license__ = "MIT"
__copyright__ = "Copyright 2021- libsteamcmd contributors"

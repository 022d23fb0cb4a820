"""Installed distribution version."""

from importlib.metadata import PackageNotFoundError, version

DISTRIBUTION_NAME = "pycaniemail"

try:
    __version__ = version(DISTRIBUTION_NAME)
except PackageNotFoundError:  # pragma: no cover
    # Source checkouts that were never installed.
    __version__ = "0.0.0"

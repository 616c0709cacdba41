# SPDX-License-Identifier: MIT
"""KeySentinel package metadata."""
from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("keysentinel")
except PackageNotFoundError:
    __version__ = "0.3.0"

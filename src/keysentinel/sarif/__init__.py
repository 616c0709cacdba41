# SPDX-License-Identifier: MIT
from .export import build_sarif

__all__ = ["build_sarif"]

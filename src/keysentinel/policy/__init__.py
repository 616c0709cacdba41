# SPDX-License-Identifier: MIT
"""Severity gate."""

from .enforce import severity_counts, should_fail

__all__ = ["severity_counts", "should_fail"]

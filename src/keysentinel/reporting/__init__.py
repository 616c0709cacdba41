# SPDX-License-Identifier: MIT
"""Renderers for scan results."""

from .markdown import COMMENT_MARKER, generate_report, sort_findings
from .console import format_terminal_report
from .output import findings_payload, write_github_outputs

__all__ = [
    "COMMENT_MARKER",
    "generate_report",
    "sort_findings",
    "format_terminal_report",
    "findings_payload",
    "write_github_outputs",
]

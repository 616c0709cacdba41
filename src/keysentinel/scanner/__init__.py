# SPDX-License-Identifier: MIT
"""Public scanning API.

    from keysentinel.scanner import scan_lines, extract_added_lines, load_scanner_config
"""

from .config import (
    ConfigOverrides,
    ScanConfig,
    build_config,
    load_scanner_config,
    should_ignore_file,
)
from .diff import extract_added_lines, lines_from_content, split_unified_diff
from .engine import FileInput, scan_files, scan_lines, scan_with_rules

__all__ = [
    "ConfigOverrides",
    "ScanConfig",
    "build_config",
    "load_scanner_config",
    "should_ignore_file",
    "extract_added_lines",
    "lines_from_content",
    "split_unified_diff",
    "FileInput",
    "scan_files",
    "scan_lines",
    "scan_with_rules",
]

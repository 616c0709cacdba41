# SPDX-License-Identifier: MIT
"""Allowlist compilation and matching."""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Sequence

from keysentinel.core.log import Logger, get_logger


def compile_allowlist(
    patterns: Iterable[str], logger: Optional[Logger] = None, source: str = ""
) -> List[re.Pattern]:
    """
    Compile allowlist regexes case-insensitively.

    Entries that fail to compile are dropped with a warning.
    """
    log = logger or get_logger()
    where = f" in {source}" if source else ""
    compiled: List[re.Pattern] = []
    for pattern in patterns:
        if not isinstance(pattern, str) or not pattern:
            log.warn(f'Ignoring non-string allowlist entry{where}: {pattern!r}')
            continue
        try:
            compiled.append(re.compile(pattern, re.IGNORECASE))
        except re.error as e:
            log.warn(f'Invalid allowlist regex{where} "{pattern}": {e}')
    return compiled


def is_allowlisted(value: str, allowlist: Sequence[re.Pattern]) -> bool:
    """True when any allowlist regex matches somewhere in ``value``."""
    return any(pattern.search(value) for pattern in allowlist)

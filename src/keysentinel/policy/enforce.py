# SPDX-License-Identifier: MIT
"""
Severity gate enforcement.
"""
from __future__ import annotations

from typing import Dict, Optional, Sequence

from keysentinel.core.findings import SEVERITY_RANK, Finding, Severity
from keysentinel.core.log import Logger
from keysentinel.scanner.config import parse_severity


def should_fail(findings: Sequence[Finding], fail_on: str, logger: Optional[Logger] = None) -> bool:
    """
    True iff a finding's severity is at or above the ``fail_on`` threshold.

    The threshold is case-insensitive. ``off`` never fails; an unknown
    threshold is reported and gates like ``high``.
    """
    threshold = parse_severity(fail_on, logger)
    if threshold == "off":
        return False
    return any(f.severity.rank >= SEVERITY_RANK[threshold] for f in findings)


def severity_counts(findings: Sequence[Finding]) -> Dict[str, int]:
    counts = {s.value: 0 for s in Severity}
    for finding in findings:
        counts[finding.severity.value] += 1
    return counts

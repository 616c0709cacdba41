# SPDX-License-Identifier: MIT
"""Finding data structures for KeySentinel."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class Severity(str, Enum):
    """How serious a finding is judged to be."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return SEVERITY_RANK[self.value]


class Confidence(str, Enum):
    """How certain the detection mechanism is that a match is a secret."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


SEVERITY_RANK: Dict[str, int] = {"low": 1, "medium": 2, "high": 3}


@dataclass(frozen=True)
class AddedLine:
    """A line added by a diff, numbered as in the new file version."""

    text: str
    line_number: int


@dataclass(frozen=True)
class Finding:
    """One reported candidate secret."""

    file: str  # repo-relative file path
    line: Optional[int]  # 1-based line number in the new file
    rule: str  # rule name, e.g. 'AWS Access Key ID'
    severity: Severity
    confidence: Confidence
    snippet: str  # masked line preview
    remediation: str
    # unmasked value, stays inside the process
    raw_value: str = field(default="", repr=False, compare=False)

    @property
    def rule_id(self) -> str:
        """Rule name as a snake_case identifier."""
        return "_".join(self.rule.lower().split())

    def to_dict(self) -> Dict[str, Any]:
        """Convert Finding to its redacted, externally visible form."""
        return {
            "file": self.file,
            "line": self.line,
            "type": self.rule,
            "severity": self.severity.value,
            "confidence": self.confidence.value,
            "snippet": self.snippet,
            "remediation": self.remediation,
        }


@dataclass
class ScanResult:
    """Findings of one scan invocation plus file accounting."""

    findings: List[Finding] = field(default_factory=list)
    files_scanned: int = 0
    files_skipped: int = 0

    @property
    def total(self) -> int:
        return len(self.findings)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "secrets_found": self.total,
            "files_scanned": self.files_scanned,
            "files_skipped": self.files_skipped,
            "findings": [f.to_dict() for f in self.findings],
        }

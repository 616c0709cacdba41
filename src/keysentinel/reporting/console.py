# SPDX-License-Identifier: MIT
"""Terminal report for the local CLI and git hooks."""
from __future__ import annotations

from typing import List, Sequence

from keysentinel.core.findings import Finding
from keysentinel.core.redaction import mask_secret
from keysentinel.policy.enforce import severity_counts

from .markdown import sort_findings


def format_terminal_report(findings: Sequence[Finding], files_scanned: int, source: str = "staged changes") -> str:
    if not findings:
        return f"KeySentinel: No secrets detected (scanned {files_scanned} file(s))."

    counts = severity_counts(findings)
    lines: List[str] = [
        "",
        f"KeySentinel found potential secret(s) in {source}:",
        f"  High: {counts['high']}, Medium: {counts['medium']}, Low: {counts['low']}",
        "",
    ]
    for f in sort_findings(findings):
        line = str(f.line) if f.line is not None else "?"
        lines.append(f"  [{f.severity.value.upper()}] {f.file}:{line} - {f.rule} ({f.confidence.value} confidence)")
        lines.append(f"      {f.snippet.replace(chr(10), ' ')}")
        lines.append(f"      (raw masked: {mask_secret(f.raw_value)})")
        lines.append(f"      fix: {f.remediation}")
    lines += [
        "",
        "Remove or allowlist these before committing. See .keysentinel.yml allowlist.",
        "",
    ]
    return "\n".join(lines)

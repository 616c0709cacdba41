# SPDX-License-Identifier: MIT
"""
Markdown report used as the pull request comment body.
"""
from __future__ import annotations

from typing import Dict, List, Sequence

from keysentinel.core.findings import Finding, Severity
from keysentinel.policy.enforce import severity_counts

COMMENT_MARKER = "<!-- keysentinel:comment -->"

SEVERITY_LABELS = {
    Severity.HIGH: ":red_circle: High",
    Severity.MEDIUM: ":orange_circle: Medium",
    Severity.LOW: ":yellow_circle: Low",
}


def sort_findings(findings: Sequence[Finding]) -> List[Finding]:
    """Order findings by severity (high first), then file and line."""
    return sorted(
        findings,
        key=lambda f: (-f.severity.rank, f.file, f.line if f.line is not None else 0),
    )


def _cell(text: str) -> str:
    return text.replace("|", "\\|").replace("\n", " ")


def generate_report(findings: Sequence[Finding], files_scanned: int) -> str:
    """
    Render findings as markdown.

    Every finding appears exactly once in the findings table; remediation
    is listed once per rule with the locations it applies to.
    """
    lines: List[str] = [COMMENT_MARKER, ""]

    if not findings:
        lines += [
            "## :white_check_mark: KeySentinel Secret Scan",
            "",
            "**Status:** ✅ No secrets detected",
            "",
            f"_Scanned {files_scanned} file(s)._",
        ]
        return "\n".join(lines)

    counts = severity_counts(findings)
    status_icon = ":x:" if counts["high"] else ":warning:"
    parts = [
        f"{SEVERITY_LABELS[s]}: {counts[s.value]}" for s in Severity if counts[s.value]
    ]
    total = len(findings)
    plural = "s" if total != 1 else ""

    lines += [
        "## :lock: KeySentinel Secret Scan",
        "",
        f"**Status:** {status_icon} Potential secrets detected",
        "",
        f"**Summary:** **{total} finding{plural}** ({' • '.join(parts)}) "
        f"• Scanned **{files_scanned}** file(s)",
        "",
        "### Findings",
        "",
        "| Severity | File | Line | Rule | Confidence | Preview |",
        "|:---|:---|---:|:---|:---|:---|",
    ]

    ordered = sort_findings(findings)
    for finding in ordered:
        line = str(finding.line) if finding.line is not None else "N/A"
        lines.append(
            f"| {SEVERITY_LABELS[finding.severity]} | `{_cell(finding.file)}` | {line} "
            f"| `{finding.rule_id}` | {finding.confidence.value} | `{_cell(finding.snippet)}` |"
        )

    lines += ["", "### Remediation", ""]
    by_rule: Dict[str, List[Finding]] = {}
    for finding in ordered:
        by_rule.setdefault(finding.rule, []).append(finding)
    for rule, group in by_rule.items():
        where = ", ".join(
            f"`{f.file}:{f.line if f.line is not None else 'N/A'}`" for f in group
        )
        lines.append(f"- **{rule}** ({where}): {group[0].remediation}")

    lines += [
        "",
        "<details>",
        "<summary><strong>:white_check_mark: What to do next</strong></summary>",
        "",
        "1. **Remove the secret from code** (recommended)",
        "   - Move to environment variables (e.g. `.env`, GitHub Secrets)",
        "2. **Rotate the key** if it was real and may have leaked.",
        "3. If this is a **false positive**, allowlist it:",
        "",
        "```yaml",
        "# .keysentinel.yml",
        "allowlist:",
        "  - 'FAKE_SECRET_1234567890'",
        "```",
        "",
        "</details>",
        "",
    ]
    return "\n".join(lines)

# SPDX-License-Identifier: MIT
"""
Scan engine: runs the rule catalog, entropy analysis and allowlist over the
added lines of each file and produces deduplicated findings.

``scan_lines`` is a pure function of its arguments. ``scan_files`` adds file
selection (ignore globs, removed files, content fallback) and isolates
per-file failures so one bad file never aborts the batch.
"""

from __future__ import annotations

import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Iterable, List, NamedTuple, Optional, Sequence, Set, Tuple

from keysentinel.core.findings import AddedLine, Confidence, Finding, ScanResult, Severity
from keysentinel.core.log import Logger, get_logger
from keysentinel.core.redaction import mask_line, redact
from keysentinel.detectors import ENTROPY_REMEDIATION, ENTROPY_RULE_NAME, SecretRule
from keysentinel.detectors.allowlist import is_allowlisted
from keysentinel.detectors.entropy import detect_high_entropy_strings

from .config import ScanConfig, should_ignore_file
from .diff import extract_added_lines, lines_from_content

HIGH_ENTROPY = 5.0
MEDIUM_ENTROPY = 4.5


class RuleMatch(NamedTuple):
    rule: SecretRule
    value: str
    index: int


@dataclass
class FileInput:
    """One file handed to ``scan_files``.

    ``patch`` is the unified diff for the file. When it is missing,
    ``content`` (or the result of ``load_content``) is scanned as if every
    line were added.
    """

    filename: str
    patch: Optional[str] = None
    content: Optional[str] = None
    status: str = "modified"
    load_content: Optional[Callable[[], Optional[str]]] = None


def find_rule_matches(rule: SecretRule, text: str) -> List[Tuple[str, int]]:
    """All non-overlapping matches of one rule as ``(value, index)`` pairs."""
    matches = []
    for m in rule.pattern.finditer(text):
        value = m.group(0)
        if rule.pattern.groups >= 1 and m.group(1):
            value = m.group(1)
        matches.append((value, m.start()))
    return matches


def scan_with_rules(
    text: str, rules: Sequence[SecretRule], allowlist: Sequence[re.Pattern]
) -> List[RuleMatch]:
    """Run every rule against ``text``, dropping allowlisted values."""
    results: List[RuleMatch] = []
    for rule in rules:
        for value, index in find_rule_matches(rule, text):
            if is_allowlisted(value, allowlist):
                continue
            results.append(RuleMatch(rule, value, index))
    return results


def entropy_classification(entropy: float) -> Tuple[Severity, Confidence]:
    if entropy >= HIGH_ENTROPY:
        return Severity.HIGH, Confidence.HIGH
    if entropy >= MEDIUM_ENTROPY:
        return Severity.MEDIUM, Confidence.MEDIUM
    return Severity.LOW, Confidence.LOW


def scan_lines(
    filename: str,
    lines: Iterable[AddedLine],
    config: ScanConfig,
    rules: Sequence[SecretRule],
) -> List[Finding]:
    """
    Scan the added lines of one file.

    Rule matches come first within a line, then entropy matches. A
    ``(file, line, value)`` triple is reported once, so a value already
    found by a rule is not reported again by entropy analysis. Every
    snippet masks all values detected on its line, not just its own.
    """
    findings: List[Finding] = []
    seen: Set[Tuple[str, int, str]] = set()

    for added in lines:
        text, line_number = added.text, added.line_number

        hits: List[Tuple[str, str, Severity, Confidence, str]] = [
            (m.value, m.rule.name, m.rule.severity, Confidence.HIGH, m.rule.remediation)
            for m in scan_with_rules(text, rules, config.allowlist)
        ]
        if config.entropy.enabled:
            for candidate in detect_high_entropy_strings(text, config.entropy):
                if is_allowlisted(candidate.value, config.allowlist):
                    continue
                severity, confidence = entropy_classification(candidate.entropy)
                hits.append((candidate.value, ENTROPY_RULE_NAME, severity, confidence, ENTROPY_REMEDIATION))

        line_values = [hit[0] for hit in hits]
        for value, rule_name, severity, confidence, remediation in hits:
            key = (filename, line_number, value)
            if key in seen:
                continue
            seen.add(key)
            findings.append(
                Finding(
                    file=filename,
                    line=line_number,
                    rule=rule_name,
                    severity=severity,
                    confidence=confidence,
                    snippet=mask_line(text, value, also_mask=line_values),
                    remediation=remediation,
                    raw_value=value,
                )
            )

    return findings


def added_lines_for(file: FileInput, log: Logger) -> List[AddedLine]:
    """Resolve the lines to scan for a file; empty means nothing to scan."""
    if file.patch:
        return extract_added_lines(file.patch)

    content = file.content
    if content is None and file.load_content is not None:
        log.debug(f"No patch for {file.filename}, fetching content")
        content = file.load_content()
    if content:
        return lines_from_content(content)
    return []


def _scan_one(
    file: FileInput, config: ScanConfig, rules: Sequence[SecretRule], log: Logger
) -> Optional[List[Finding]]:
    """Findings for one file, or None when the file is skipped."""
    if file.status == "removed":
        return None
    if should_ignore_file(file.filename, config.ignore):
        log.debug(f"Ignoring file: {file.filename}")
        return None
    try:
        lines = added_lines_for(file, log)
        if not lines:
            return None
        findings = scan_lines(file.filename, lines, config, rules)
        for f in findings:
            log.debug(f"{f.file}:{f.line} {f.rule} {redact(f.raw_value)}")
        return findings
    except Exception as e:
        log.warn(f"Skipping {file.filename}: {type(e).__name__}: {e}")
        return None


def scan_files(
    files: Iterable[FileInput],
    config: ScanConfig,
    rules: Sequence[SecretRule],
    logger: Optional[Logger] = None,
    workers: int = 1,
) -> ScanResult:
    """
    Scan a batch of files.

    With ``workers > 1`` files are scanned in a thread pool; results are
    merged back in input order so the output stays deterministic.
    """
    log = logger or get_logger()
    files = list(files)

    if workers > 1 and len(files) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            outcomes = list(pool.map(lambda f: _scan_one(f, config, rules, log), files))
    else:
        outcomes = [_scan_one(f, config, rules, log) for f in files]

    result = ScanResult()
    for outcome in outcomes:
        if outcome is None:
            result.files_skipped += 1
            continue
        result.files_scanned += 1
        result.findings.extend(outcome)
    return result

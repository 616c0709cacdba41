# SPDX-License-Identifier: MIT
from __future__ import annotations

import os
from typing import Any, Dict, Mapping, Optional

from keysentinel import __version__
from keysentinel.core.findings import ScanResult, Severity

INFORMATION_URI = "https://github.com/keysentinel/keysentinel"

LEVELS = {
    Severity.HIGH: "error",
    Severity.MEDIUM: "warning",
    Severity.LOW: "note",
}


def build_sarif(result: ScanResult, environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """SARIF 2.1.0 log for code scanning upload. Only masked snippets are included."""
    env = os.environ if environ is None else environ

    # Collect rules by name
    rule_ids: Dict[str, int] = {}
    rules = []
    for f in result.findings:
        if f.rule_id in rule_ids:
            continue
        rule_ids[f.rule_id] = len(rules)
        rules.append(
            {
                "id": f.rule_id,
                "name": f.rule,
                "shortDescription": {"text": f"KeySentinel rule: {f.rule}"},
                "help": {"text": f.remediation},
                "defaultConfiguration": {"level": LEVELS[f.severity]},
                "helpUri": INFORMATION_URI,
            }
        )

    results = []
    for f in result.findings:
        results.append(
            {
                "ruleId": f.rule_id,
                "ruleIndex": rule_ids[f.rule_id],
                "level": LEVELS[f.severity],
                "message": {"text": f"{f.rule}: {f.snippet}"},
                "locations": [
                    {
                        "physicalLocation": {
                            "artifactLocation": {"uri": f.file.replace("\\", "/")},
                            "region": {"startLine": max(1, f.line or 1)},
                        }
                    }
                ],
                "properties": {
                    "severity": f.severity.value,
                    "confidence": f.confidence.value,
                },
            }
        )

    # Unique per job so repeated uploads do not replace each other
    auto_id = "keysentinel-{run}-{job}-{attempt}".format(
        run=env.get("GITHUB_RUN_ID", "local"),
        job=env.get("GITHUB_JOB", "job"),
        attempt=env.get("GITHUB_RUN_ATTEMPT", "1"),
    )

    return {
        "version": "2.1.0",
        "$schema": "https://json.schemastore.org/sarif-2.1.0.json",
        "runs": [
            {
                "automationDetails": {"id": auto_id},
                "tool": {
                    "driver": {
                        "name": "KeySentinel",
                        "version": __version__,
                        "informationUri": INFORMATION_URI,
                        "rules": rules,
                    }
                },
                "results": results,
            }
        ],
    }

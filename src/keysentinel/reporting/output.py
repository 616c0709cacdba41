# SPDX-License-Identifier: MIT
"""Machine-readable output for CI consumption."""
from __future__ import annotations

import uuid
from pathlib import Path
from typing import Any, Dict, Mapping, Sequence

from keysentinel.core.findings import Finding


def findings_payload(findings: Sequence[Finding]) -> Dict[str, Any]:
    """Count plus redacted findings; raw values are never included."""
    return {
        "secrets_found": len(findings),
        "findings": [f.to_dict() for f in findings],
    }


def write_github_outputs(output_path: str, outputs: Mapping[str, str]) -> None:
    """Append step outputs to the ``GITHUB_OUTPUT`` file."""
    with open(Path(output_path), "a", encoding="utf-8") as f:
        for name, value in outputs.items():
            if "\n" in value:
                delimiter = f"ghadelimiter_{uuid.uuid4().hex}"
                f.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")
            else:
                f.write(f"{name}={value}\n")

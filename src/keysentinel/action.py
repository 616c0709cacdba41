# SPDX-License-Identifier: MIT
"""
Pull request scan for GitHub Actions.

Inputs arrive as ``INPUT_*`` environment variables, step outputs are
appended to ``GITHUB_OUTPUT`` and diagnostics use workflow commands.
"""
from __future__ import annotations

import json
import os
from typing import List, Mapping, Optional

from keysentinel.core.exceptions import GitHubAPIError, KeySentinelConfigError
from keysentinel.core.log import ActionsLogger, Logger
from keysentinel.core.redaction import mask_secret
from keysentinel.detectors import get_enabled_rules
from keysentinel.github.client import DEFAULT_API_URL, GitHubClient, get_pull_request_context
from keysentinel.policy.enforce import should_fail
from keysentinel.reporting.markdown import generate_report
from keysentinel.reporting.output import findings_payload, write_github_outputs
from keysentinel.scanner.config import (
    action_config_path,
    load_scanner_config,
    overrides_from_action_inputs,
)
from keysentinel.scanner.engine import FileInput, scan_files


def run_action(
    environ: Optional[Mapping[str, str]] = None,
    client: Optional[GitHubClient] = None,
    logger: Optional[Logger] = None,
) -> int:
    """
    Scan the current pull request.

    Returns:
        0 when the gate passes or there is nothing to scan, 1 on a gate
        failure or a fatal error
    """
    env = os.environ if environ is None else environ
    log = logger or ActionsLogger()

    try:
        log.info("KeySentinel starting...")
        workspace = env.get("GITHUB_WORKSPACE", ".")
        config_path = action_config_path(env)
        explicit = bool(env.get("INPUT_CONFIG_PATH", "").strip())
        if not os.path.isabs(config_path):
            config_path = os.path.join(workspace, config_path)
        config = load_scanner_config(
            config_path=config_path if explicit else None,
            repo_root=workspace,
            overrides=overrides_from_action_inputs(env),
            logger=log,
        )
        log.debug(f"Config: fail_on={config.fail_on}, max_files={config.max_files}")

        context = get_pull_request_context(env)
        if context is None:
            log.warn("Not running in a pull request context. Skipping scan.")
            return 0

        if client is None:
            token = env.get("INPUT_GITHUB_TOKEN") or env.get("GITHUB_TOKEN")
            if not token:
                log.error("Input required and not supplied: github_token")
                return 1
            client = GitHubClient(token, api_url=env.get("GITHUB_API_URL", DEFAULT_API_URL), logger=log)

        owner, repo, number = context.owner, context.repo, context.number
        log.info(f"Scanning PR #{number} in {owner}/{repo}")

        pr_files = client.list_pull_request_files(owner, repo, number, config.max_files)
        log.info(f"Found {len(pr_files)} file(s) in PR")
        if not pr_files:
            log.info("No files to scan")
            return 0

        def loader(path: str):
            return lambda: client.get_file_content(owner, repo, path, context.head_sha)

        inputs: List[FileInput] = [
            FileInput(
                filename=f["filename"],
                patch=f.get("patch"),
                status=f.get("status", "modified"),
                load_content=loader(f["filename"]),
            )
            for f in pr_files
        ]
        result = scan_files(inputs, config, get_enabled_rules(config.patterns), logger=log)

        log.info(f"Scanned {result.files_scanned} file(s), skipped {result.files_skipped} file(s)")
        log.info(f"Found {result.total} potential secret(s)")

        payload = findings_payload(result.findings)
        output_path = env.get("GITHUB_OUTPUT")
        if output_path:
            write_github_outputs(
                output_path,
                {
                    "secrets_found": str(payload["secrets_found"]),
                    "findings": json.dumps(payload["findings"]),
                },
            )

        if result.findings or config.post_no_findings:
            report = generate_report(result.findings, result.files_scanned)
            client.upsert_comment(owner, repo, number, report)
        else:
            client.delete_existing_comment(owner, repo, number)

        if should_fail(result.findings, config.fail_on, log):
            for finding in result.findings:
                line = finding.line if finding.line is not None else "N/A"
                log.warn(
                    f"{finding.severity.value.upper()}: {finding.rule} in {finding.file}:{line} - "
                    f"{mask_secret(finding.raw_value)}"
                )
            log.error(
                f'KeySentinel found {result.total} potential secret(s) at or above "{config.fail_on}" severity'
            )
            return 1

        log.info("KeySentinel completed")
        return 0
    except (KeySentinelConfigError, GitHubAPIError, OSError) as e:
        log.error(f"KeySentinel failed: {e}")
        return 1

# SPDX-License-Identifier: MIT
"""
Local git access for the pre-commit and pre-push hooks.
"""
from __future__ import annotations

import os
import stat
import subprocess
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from keysentinel.core.exceptions import GitError
from keysentinel.core.log import Logger, get_logger

ZERO_SHA = "0" * 40
# git's well-known empty tree object
EMPTY_TREE = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"
HOOK_MARKER = "# installed by keysentinel"

PRE_COMMIT_HOOK = f"""#!/bin/sh
{HOOK_MARKER}
# Scan staged changes for secrets before committing.
echo "KeySentinel scanning staged changes for secrets..."

if command -v keysentinel >/dev/null 2>&1; then
  keysentinel scan
else
  python3 -m keysentinel scan
fi

if [ $? -ne 0 ]; then
  echo "Blocked by KeySentinel (secret detected)"
  exit 1
fi
exit 0
"""

PRE_PUSH_HOOK = f"""#!/bin/sh
{HOOK_MARKER}
# Scan outbound commits for secrets before pushing.
# git passes "<local ref> <local sha> <remote ref> <remote sha>" lines on stdin.
echo "KeySentinel scanning outbound commits for secrets..."

if command -v keysentinel >/dev/null 2>&1; then
  keysentinel scan --pre-push
else
  python3 -m keysentinel scan --pre-push
fi

if [ $? -ne 0 ]; then
  echo "Blocked by KeySentinel (secret detected)"
  exit 1
fi
exit 0
"""

HOOKS = {"pre-commit": PRE_COMMIT_HOOK, "pre-push": PRE_PUSH_HOOK}


def find_git_root(cwd: Optional[str] = None) -> Optional[Path]:
    """Closest directory at or above ``cwd`` holding a ``.git`` directory."""
    current = Path(cwd or os.getcwd()).resolve()
    for directory in (current, *current.parents):
        if (directory / ".git").is_dir():
            return directory
    return None


def run_git(root: Path, args: List[str]) -> str:
    """Run git in ``root`` and return stdout; raise ``GitError`` on failure."""
    command = ["git", *args]
    try:
        proc = subprocess.run(
            command,
            cwd=str(root),
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
    except FileNotFoundError:
        raise GitError("git executable not found", command=command)
    if proc.returncode != 0:
        raise GitError(proc.stderr.strip() or f"git exited with {proc.returncode}", command=command)
    return proc.stdout


def staged_diff(root: Path) -> str:
    return run_git(root, ["diff", "--cached", "--no-color", "--no-ext-diff"])


def range_diff(root: Path, rev_range: str) -> str:
    return run_git(root, ["diff", "--no-color", "--no-ext-diff", rev_range])


def _commit_exists(root: Path, sha: str) -> bool:
    try:
        run_git(root, ["cat-file", "-e", f"{sha}^{{commit}}"])
    except GitError:
        return False
    return True


def _new_branch_base(root: Path, local_sha: str) -> Optional[str]:
    """
    Base to diff a newly pushed branch against: the parent of the oldest
    commit not yet on any remote, or the empty tree for a root commit.
    None when every commit is already on a remote.
    """
    out = run_git(root, ["rev-list", "--reverse", local_sha, "--not", "--remotes"])
    commits = out.split()
    if not commits:
        return None
    oldest = commits[0]
    try:
        return run_git(root, ["rev-parse", "--verify", "--quiet", f"{oldest}^"]).strip()
    except GitError:
        return EMPTY_TREE


def outbound_diff(root: Path, push_lines: Iterable[str], logger: Optional[Logger] = None) -> str:
    """
    Diff of everything a push would send.

    Args:
        root: Repository root
        push_lines: Lines git hands to the pre-push hook on stdin

    Returns:
        Concatenated unified diffs, one per pushed ref
    """
    log = logger or get_logger()
    diffs: List[str] = []
    for raw in push_lines:
        parts = raw.split()
        if len(parts) != 4:
            if raw.strip():
                log.warn(f"Ignoring malformed pre-push line: {raw.strip()}")
            continue
        local_ref, local_sha, _remote_ref, remote_sha = parts
        if local_sha == ZERO_SHA:
            log.debug(f"Skipping deleted ref {local_ref}")
            continue

        if remote_sha != ZERO_SHA and _commit_exists(root, remote_sha):
            base = remote_sha
        else:
            base = _new_branch_base(root, local_sha)
            if base is None:
                log.debug(f"Nothing new to scan for {local_ref}")
                continue
        diffs.append(run_git(root, ["diff", "--no-color", "--no-ext-diff", base, local_sha]))
    return "".join(diffs)


def install_hooks(root: Path, force: bool = False) -> Dict[str, str]:
    """
    Write the pre-commit and pre-push hooks.

    A hook that was not written by keysentinel is left alone unless
    ``force`` is set.

    Returns:
        Hook name mapped to "installed", "updated" or "skipped"
    """
    hooks_dir = Path(root) / ".git" / "hooks"
    hooks_dir.mkdir(parents=True, exist_ok=True)

    results: Dict[str, str] = {}
    for name, script in HOOKS.items():
        path = hooks_dir / name
        status = "installed"
        if path.exists():
            existing = path.read_text(encoding="utf-8", errors="replace")
            if HOOK_MARKER not in existing and not force:
                results[name] = "skipped"
                continue
            status = "updated"
        path.write_text(script, encoding="utf-8")
        mode = path.stat().st_mode
        path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH | stat.S_IRUSR | stat.S_IWUSR)
        results[name] = status
    return results

# SPDX-License-Identifier: MIT
"""
Unified diff parsing.

Only the added side of a diff is scanned. Line numbers are those of the new
file version, exactly as a diff viewer shows them, because they are what the
user is pointed at.
"""

from __future__ import annotations

import re
from typing import Dict, List

from keysentinel.core.findings import AddedLine

HUNK_HEADER = re.compile(r"^@@ -\d+(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")
DIFF_GIT_HEADER = re.compile(r"^diff --git a/(.+) b/(.+)$")


def extract_added_lines(patch: str) -> List[AddedLine]:
    """
    Return the added lines of a unified diff with their new-file line numbers.

    ``+++``/``---`` lines are file headers only once the current hunk has
    consumed the line counts announced in its header; inside a hunk they
    are an added line starting with ``++`` or a removed one starting
    with ``--``.

    Args:
        patch: Unified diff text for one or more hunks

    Returns:
        Added lines in patch order; empty when the patch has no hunk header
    """
    added: List[AddedLine] = []
    if not patch:
        return added

    current = 0
    old_left = new_left = 0
    in_hunk = False

    for line in patch.split("\n"):
        hunk = HUNK_HEADER.match(line)
        if hunk:
            old_count, new_start, new_count = hunk.groups()
            current = int(new_start) - 1
            old_left = int(old_count or 1)
            new_left = int(new_count or 1)
            in_hunk = True
            continue

        if line.startswith("diff "):
            in_hunk = False
            continue

        if not in_hunk:
            continue

        if (line.startswith("+++") or line.startswith("---")) and old_left <= 0 and new_left <= 0:
            continue

        if line.startswith("+"):
            current += 1
            new_left -= 1
            added.append(AddedLine(text=line[1:], line_number=current))
        elif line.startswith("-"):
            old_left -= 1
        elif line.startswith("\\"):
            # "\ No newline at end of file" is not part of either file
            continue
        else:
            current += 1
            old_left -= 1
            new_left -= 1

    return added


def lines_from_content(content: str) -> List[AddedLine]:
    """Treat every line of raw content as added, numbered from 1."""
    if not content:
        return []
    return [AddedLine(text=text, line_number=i) for i, text in enumerate(content.split("\n"), start=1)]


def split_unified_diff(diff_text: str) -> Dict[str, str]:
    """
    Split the output of ``git diff`` into one patch per file.

    Files are keyed by their new path. Deleted files (``+++ /dev/null``) are
    dropped since they add nothing.
    """
    patches: Dict[str, List[str]] = {}
    order: List[str] = []
    current_path = None
    current_lines: List[str] = []
    deleted = False

    def flush():
        if current_path and not deleted:
            if current_path not in patches:
                order.append(current_path)
                patches[current_path] = []
            patches[current_path].extend(current_lines)

    for line in diff_text.split("\n"):
        header = DIFF_GIT_HEADER.match(line)
        if header:
            flush()
            current_path = header.group(2)
            current_lines = [line]
            deleted = False
            continue
        if current_path is None:
            continue
        if line.startswith("+++ ") and not _has_hunk(current_lines):
            target = line[4:].strip()
            if target == "/dev/null":
                deleted = True
            elif target.startswith("b/"):
                current_path = target[2:]
        current_lines.append(line)
    flush()

    return {path: "\n".join(patches[path]) for path in order}


def _has_hunk(lines: List[str]) -> bool:
    return any(HUNK_HEADER.match(line) for line in lines)

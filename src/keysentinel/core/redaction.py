# SPDX-License-Identifier: MIT
"""
Central masking utilities for KeySentinel.

Every preview that leaves the process (PR comment, terminal report, JSON,
SARIF, log line) goes through these helpers so the full secret is never
written anywhere.
"""

from __future__ import annotations

from typing import Iterable

LINE_CONTEXT = 20


def mask_secret(value: str, show_chars: int = 3) -> str:
    """
    Mask a secret, keeping ``show_chars`` characters at each end.

    Values of length ``2 * show_chars + 3`` or less are masked entirely
    (at most 10 stars). The masked middle is capped at 20 stars.

    Args:
        value: The secret string to mask
        show_chars: Characters to keep visible at start and end

    Returns:
        Masked string
    """
    if not value:
        return "***"
    length = len(value)
    if length <= show_chars * 2 + 3:
        return "*" * min(length, 10)
    masked_len = min(length - show_chars * 2, 20)
    return value[:show_chars] + "*" * masked_len + value[-show_chars:]


def mask_line(
    line: str,
    secret_value: str,
    max_line_length: int = 100,
    also_mask: Iterable[str] = (),
) -> str:
    """
    Mask every occurrence of ``secret_value`` and of the ``also_mask``
    values in ``line``, trimming long lines to a window around the masked
    token.

    Args:
        line: Source line containing the secret
        secret_value: The raw secret
        max_line_length: Longest preview returned unchanged
        also_mask: Other secrets found on the same line

    Returns:
        Masked, possibly truncated, line
    """
    if not line or not secret_value:
        return line

    masked_secret = mask_secret(secret_value)
    masked = mask_multiple(line, [secret_value, *also_mask])

    if len(masked) <= max_line_length:
        return masked

    pos = masked.find(masked_secret)
    if pos == -1:
        return masked[: max_line_length - 3] + "..."

    start = max(0, pos - LINE_CONTEXT)
    end = min(len(masked), pos + len(masked_secret) + LINE_CONTEXT)
    result = masked[start:end]
    if start > 0:
        result = "..." + result
    if end < len(masked):
        result = result + "..."
    return result


def mask_multiple(text: str, secrets: Iterable[str]) -> str:
    """Mask every occurrence of each secret in ``text``.

    Longer secrets go first so a value contained in another one cannot
    leave the rest of the longer value visible.
    """
    result = text
    for secret in sorted(set(secrets), key=len, reverse=True):
        if secret and secret in result:
            result = result.replace(secret, mask_secret(secret))
    return result


def redact(value: str) -> str:
    """Fully redact a value for logging, keeping only its length."""
    if not value:
        return "[REDACTED]"
    return f"[REDACTED:{len(value)} chars]"

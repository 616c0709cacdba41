# SPDX-License-Identifier: MIT
"""
Entropy based detection of random-looking tokens.

Candidates are pulled from a line with a token regex, structurally boring
values are dropped (numbers, UUIDs, identifiers, versions, URLs, emails,
hex digests and optionally base64 blobs), and Shannon entropy is computed
on what remains.
"""

from __future__ import annotations

import math
import re
from collections import Counter
from dataclasses import dataclass
from typing import List, NamedTuple

TOKEN_PATTERN = re.compile(r"\b[a-zA-Z0-9_\-+/]{20,}\b", re.ASCII)
BASE64_PATTERN = re.compile(r"^[A-Za-z0-9+/]+=*$")

NON_SECRET_PATTERNS = (
    re.compile(r"^[0-9]+$"),
    re.compile(r"^[a-f0-9]{8}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{12}$", re.I),
    re.compile(r"^(true|false|null|undefined|none)$", re.I),
    re.compile(r"^[a-z]+(_[a-z]+)*$", re.I),  # snake_case
    re.compile(r"^[a-z]+(-[a-z]+)*$", re.I),  # kebab-case
    re.compile(r"^v?\d+\.\d+\.\d+"),
    re.compile(r"^https?://[^\s@]+$"),
    re.compile(r"^[\w.+-]+@[\w.-]+\.[a-z]{2,}$", re.I),
    re.compile(r"^sha[0-9]{3}:[a-f0-9]{64}$", re.I),
    re.compile(r"^[0-9a-f]{64}$", re.I),
    re.compile(r"^[0-9a-f]{40}$", re.I),
)


@dataclass(frozen=True)
class EntropyConfig:
    """Settings for entropy detection."""

    enabled: bool = True
    min_length: int = 20
    threshold: float = 4.2
    ignore_base64_like: bool = True


class EntropyMatch(NamedTuple):
    value: str
    entropy: float


def calculate_entropy(value: str) -> float:
    """Shannon entropy in bits per character; 0 for an empty string."""
    if not value:
        return 0.0
    length = len(value)
    entropy = 0.0
    for count in Counter(value).values():
        p = count / length
        entropy -= p * math.log2(p)
    return entropy


def is_base64_like(value: str) -> bool:
    return bool(BASE64_PATTERN.match(value)) and len(value) % 4 == 0


def is_likely_non_secret(value: str) -> bool:
    return any(p.search(value) for p in NON_SECRET_PATTERNS)


def detect_high_entropy_strings(text: str, config: EntropyConfig) -> List[EntropyMatch]:
    """Return candidate tokens of ``text`` at or above the entropy threshold."""
    if not config.enabled:
        return []

    results: List[EntropyMatch] = []
    for match in TOKEN_PATTERN.finditer(text):
        candidate = match.group(0)
        if len(candidate) < config.min_length:
            continue
        if is_likely_non_secret(candidate):
            continue
        if config.ignore_base64_like and is_base64_like(candidate):
            continue
        entropy = calculate_entropy(candidate)
        if entropy >= config.threshold:
            results.append(EntropyMatch(candidate, entropy))
    return results

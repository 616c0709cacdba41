# SPDX-License-Identifier: MIT
"""Rule catalog and lookup helpers for KeySentinel."""

from __future__ import annotations

from typing import List, Mapping, Optional

from .rules import SECRET_RULES, SecretRule, ENTROPY_RULE_NAME, ENTROPY_REMEDIATION


def get_enabled_rules(group_toggles: Optional[Mapping[str, bool]] = None) -> List[SecretRule]:
    """
    Return the rules whose group is not explicitly disabled.

    A group missing from ``group_toggles`` stays enabled; only an explicit
    ``False`` removes it.
    """
    if not group_toggles:
        return list(SECRET_RULES)
    return [rule for rule in SECRET_RULES if group_toggles.get(rule.group) is not False]


def rule_groups() -> List[str]:
    """Return the known rule groups in catalog order."""
    groups: List[str] = []
    for rule in SECRET_RULES:
        if rule.group not in groups:
            groups.append(rule.group)
    return groups


def get_rule(name: str) -> Optional[SecretRule]:
    for rule in SECRET_RULES:
        if rule.name == name:
            return rule
    return None


__all__ = [
    "SECRET_RULES",
    "SecretRule",
    "ENTROPY_RULE_NAME",
    "ENTROPY_REMEDIATION",
    "get_enabled_rules",
    "rule_groups",
    "get_rule",
]

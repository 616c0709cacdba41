# SPDX-License-Identifier: MIT
"""
Scanner configuration loader for KeySentinel.

Resolution order: built-in defaults, then ``.keysentinel.yml`` (or an explicit
``--config`` file), then explicit overrides from CLI flags or GitHub Action
inputs.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from keysentinel.core.exceptions import KeySentinelConfigError
from keysentinel.core.log import Logger, get_logger
from keysentinel.detectors.allowlist import compile_allowlist
from keysentinel.detectors.entropy import EntropyConfig

CONFIG_FILENAMES = (".keysentinel.yml", ".keysentinel.yaml")
FAIL_ON_CHOICES = ("high", "medium", "low", "off")

DEFAULT_IGNORE = [
    "node_modules/**",
    "dist/**",
    "build/**",
    "vendor/**",
    "*.min.js",
    "*.min.css",
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "*.lock",
    "*.map",
    ".git/**",
    "coverage/**",
    "__pycache__/**",
    "*.pyc",
    ".env.example",
    ".env.sample",
    "*.md",
    "LICENSE*",
    "CHANGELOG*",
]

DEFAULT_MAX_FILES = 100


@dataclass(frozen=True)
class ScanConfig:
    """Resolved configuration for one scan."""

    fail_on: str = "high"
    post_no_findings: bool = False
    ignore: List[str] = field(default_factory=lambda: list(DEFAULT_IGNORE))
    allowlist: List[re.Pattern] = field(default_factory=list)
    max_files: int = DEFAULT_MAX_FILES
    patterns: Dict[str, bool] = field(default_factory=dict)
    entropy: EntropyConfig = field(default_factory=EntropyConfig)


@dataclass
class ConfigOverrides:
    """Explicitly supplied settings that win over the YAML file.

    ``ignore`` and ``allowlist`` are comma separated strings, as they arrive
    from flags or action inputs.
    """

    fail_on: Optional[str] = None
    post_no_findings: Optional[bool] = None
    ignore: Optional[str] = None
    allowlist: Optional[str] = None
    max_files: Optional[int] = None
    entropy_enabled: Optional[bool] = None


def parse_severity(value: Any, logger: Optional[Logger] = None) -> str:
    """Normalize a fail threshold, falling back to ``high`` when invalid."""
    log = logger or get_logger()
    # YAML 1.1 loads a bare `off` as False
    if value is False:
        return "off"
    normalized = str(value).strip().lower() if value is not None else ""
    if normalized in FAIL_ON_CHOICES:
        return normalized
    log.warn(f'Invalid fail_on value "{value}", defaulting to "high"')
    return "high"


def parse_comma_list(value: Optional[str]) -> List[str]:
    if not value or not value.strip():
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def load_yaml_config(
    config_path: Path, logger: Optional[Logger] = None, explicit: bool = False
) -> Optional[Dict[str, Any]]:
    """
    Load a YAML config file.

    A missing or malformed implicit config file is logged and ignored. When
    the path was requested explicitly, the same conditions raise
    ``KeySentinelConfigError``.
    """
    log = logger or get_logger()
    path = Path(config_path)

    if not path.exists():
        if explicit:
            raise KeySentinelConfigError(
                f"Specified config file not found: {path.resolve()}",
                config_path=str(path.resolve()),
            )
        log.debug(f"Config file not found at {path}")
        return None

    try:
        with open(path, "r", encoding="utf-8") as f:
            parsed = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        if explicit:
            raise KeySentinelConfigError(
                f"Failed to parse config file: {e}", config_path=str(path.resolve())
            )
        log.warn(f"Failed to load config file {path}: {e}")
        return None

    if not isinstance(parsed, dict):
        if explicit:
            raise KeySentinelConfigError(
                "Config must be a mapping", config_path=str(path.resolve())
            )
        log.warn(f"Invalid config file at {path}")
        return None

    log.info(f"Loaded config from {path}")
    return parsed


def build_config(
    yaml_config: Optional[Mapping[str, Any]] = None,
    overrides: Optional[ConfigOverrides] = None,
    logger: Optional[Logger] = None,
) -> ScanConfig:
    """Merge defaults, YAML settings and overrides into a ``ScanConfig``."""
    log = logger or get_logger()
    overrides = overrides or ConfigOverrides()
    data = dict(yaml_config or {})

    fail_on = "high"
    if overrides.fail_on is not None:
        fail_on = parse_severity(overrides.fail_on, log)
    elif "fail_on" in data:
        fail_on = parse_severity(data["fail_on"], log)

    post_no_findings = False
    if overrides.post_no_findings is not None:
        post_no_findings = overrides.post_no_findings
    elif "post_no_findings" in data:
        post_no_findings = bool(data["post_no_findings"])

    ignore = list(DEFAULT_IGNORE)
    if overrides.ignore:
        ignore += parse_comma_list(overrides.ignore)
    elif "ignore" in data:
        if isinstance(data["ignore"], list):
            ignore += [str(g) for g in data["ignore"]]
        else:
            log.warn("Config 'ignore' must be a list of globs, ignoring it")

    if overrides.allowlist:
        allowlist = compile_allowlist(parse_comma_list(overrides.allowlist), log)
    else:
        allowlist = []
        if "allowlist" in data:
            if isinstance(data["allowlist"], list):
                allowlist = compile_allowlist(data["allowlist"], log, source="config")
            else:
                log.warn("Config 'allowlist' must be a list of regexes, ignoring it")

    max_files = DEFAULT_MAX_FILES
    if overrides.max_files is not None:
        max_files = overrides.max_files
    elif "max_files" in data:
        if isinstance(data["max_files"], int) and not isinstance(data["max_files"], bool):
            max_files = data["max_files"]
        else:
            log.warn(f"Config 'max_files' must be an integer, using {DEFAULT_MAX_FILES}")

    patterns: Dict[str, bool] = {}
    if "patterns" in data:
        if isinstance(data["patterns"], dict):
            patterns = {str(k): bool(v) for k, v in data["patterns"].items()}
        else:
            log.warn("Config 'patterns' must map group names to true/false, ignoring it")

    entropy = _build_entropy_config(data.get("entropy"), log)
    if overrides.entropy_enabled is not None:
        entropy = replace(entropy, enabled=overrides.entropy_enabled)

    return ScanConfig(
        fail_on=fail_on,
        post_no_findings=post_no_findings,
        ignore=ignore,
        allowlist=allowlist,
        max_files=max_files,
        patterns=patterns,
        entropy=entropy,
    )


def _build_entropy_config(section: Any, log: Logger) -> EntropyConfig:
    defaults = EntropyConfig()
    if section is None:
        return defaults
    if not isinstance(section, dict):
        log.warn("Config 'entropy' must be a mapping, using defaults")
        return defaults
    try:
        return EntropyConfig(
            enabled=bool(section.get("enabled", defaults.enabled)),
            min_length=int(section.get("min_length", defaults.min_length)),
            threshold=float(section.get("threshold", defaults.threshold)),
            ignore_base64_like=bool(
                section.get("ignore_base64_like", defaults.ignore_base64_like)
            ),
        )
    except (TypeError, ValueError) as e:
        log.warn(f"Invalid entropy settings ({e}), using defaults")
        return defaults


def load_scanner_config(
    config_path: Optional[str] = None,
    repo_root: str = ".",
    overrides: Optional[ConfigOverrides] = None,
    logger: Optional[Logger] = None,
) -> ScanConfig:
    """
    Resolve the scanner configuration.

    Args:
        config_path: Explicit config path from --config (must exist)
        repo_root: Repository root searched for .keysentinel.yml/.keysentinel.yaml
        overrides: CLI flag or action input overrides
        logger: Sink for non-fatal conditions

    Raises:
        KeySentinelConfigError: If an explicitly provided config is missing or malformed
    """
    log = logger or get_logger()

    if config_path:
        yaml_config = load_yaml_config(Path(config_path), log, explicit=True)
    else:
        yaml_config = None
        for name in CONFIG_FILENAMES:
            candidate = Path(repo_root) / name
            if candidate.exists():
                yaml_config = load_yaml_config(candidate, log)
                break
        else:
            log.debug("No .keysentinel.yml found, using default scanner config")

    return build_config(yaml_config, overrides, log)


def overrides_from_action_inputs(environ: Mapping[str, str]) -> ConfigOverrides:
    """Read GitHub Action inputs (``INPUT_*`` variables) as overrides."""

    def get(name: str) -> Optional[str]:
        value = environ.get(f"INPUT_{name.upper()}", "")
        return value if value.strip() else None

    max_files = get("max_files")
    post = get("post_no_findings")
    return ConfigOverrides(
        fail_on=get("fail_on"),
        post_no_findings=(post.strip().lower() == "true") if post else None,
        ignore=get("ignore"),
        allowlist=get("allowlist"),
        max_files=_parse_int(max_files),
    )


def _parse_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def action_config_path(environ: Mapping[str, str]) -> str:
    return environ.get("INPUT_CONFIG_PATH", "").strip() or CONFIG_FILENAMES[0]


def should_ignore_file(file_path: str, ignore_patterns: List[str]) -> bool:
    """True when ``file_path`` matches any ignore glob."""
    return any(match_glob(file_path, pattern) for pattern in ignore_patterns)


def match_glob(path: str, pattern: str) -> bool:
    """
    Case-insensitive glob match on ``/`` separated paths.

    ``**`` crosses directories, ``*`` stays within a segment and ``?`` is one
    character. A pattern is anchored at the start unless it begins with
    ``*`` and at the end unless it ends with ``*``.
    """
    normalized_path = path.replace("\\", "/")
    normalized_pattern = pattern.replace("\\", "/")

    parts = []
    i = 0
    while i < len(normalized_pattern):
        char = normalized_pattern[i]
        if normalized_pattern.startswith("**", i):
            parts.append(".*")
            i += 2
            continue
        if char == "*":
            parts.append("[^/]*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
        i += 1

    regex = "".join(parts)
    if not normalized_pattern.startswith("*"):
        regex = "^" + regex
    if not normalized_pattern.endswith("*"):
        regex = regex + "$"

    try:
        return re.search(regex, normalized_path, re.IGNORECASE) is not None
    except re.error:
        return False


def create_default_config_template() -> str:
    """
    Create a minimal .keysentinel.yml template with commented examples.

    Returns:
        YAML string with default configuration template
    """
    return """# KeySentinel configuration
# Used by the pre-commit/pre-push hooks and the pull request action.

# Fail when a finding is at or above this severity: high, medium, low or off
fail_on: high

# Post a comment even when a pull request is clean
post_no_findings: false

# Extra globs to skip (added to the built-in list)
ignore: []
  # - "docs/**"
  # - "**/fixtures/**"

# Regexes (case-insensitive) for values that are known not to be secrets
allowlist: []
  # - "EXAMPLE_.*"
  # - "FAKE_SECRET_1234567890"

# Maximum number of pull request files to scan
max_files: 100

# Rule groups to turn off (all groups are on unless set to false)
patterns: {}
  # aws: false
  # heroku: false

entropy:
  enabled: true
  min_length: 20
  threshold: 4.2
  ignore_base64_like: true
"""

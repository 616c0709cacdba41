# SPDX-License-Identifier: MIT
"""KeySentinel custom exceptions."""

from __future__ import annotations

from typing import Optional


class KeySentinelConfigError(Exception):
    """Raised when an explicitly requested configuration is missing or invalid."""

    def __init__(self, message: str, config_path: str = None, section: str = None):
        self.config_path = config_path
        self.section = section
        super().__init__(message)

    def __str__(self):
        msg = super().__str__()
        if self.config_path:
            msg += f" (config: {self.config_path})"
        if self.section:
            msg += f" (section: {self.section})"
        return msg


class GitError(Exception):
    """Raised when a git subprocess fails."""

    def __init__(self, message: str, command: Optional[list] = None):
        self.command = command
        super().__init__(message)


class GitHubAPIError(Exception):
    """Raised when the GitHub REST API answers with an error status."""

    def __init__(self, status: int, message: str = ""):
        self.status = status
        self.message = message
        super().__init__(f"HTTP {status}: {message}" if message else f"HTTP {status}")

    @property
    def is_rate_limit(self) -> bool:
        # 403 is also used for missing permissions, only treat it as a
        # secondary rate limit when the message says so
        if self.status == 429:
            return True
        if self.status == 403:
            lowered = self.message.lower()
            return "rate" in lowered or "limit" in lowered
        return False

    @property
    def is_permission_error(self) -> bool:
        return self.status in (401, 403)

    @property
    def is_not_found(self) -> bool:
        return self.status == 404

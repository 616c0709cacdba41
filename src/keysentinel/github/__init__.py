# SPDX-License-Identifier: MIT
from .client import (
    COMMENT_MARKER,
    GitHubClient,
    PullRequestContext,
    get_pull_request_context,
)

__all__ = [
    "COMMENT_MARKER",
    "GitHubClient",
    "PullRequestContext",
    "get_pull_request_context",
]

# SPDX-License-Identifier: MIT
"""
GitHub REST API access for the pull request scan.

Only the handful of endpoints the action needs: listing pull request files,
reading a file at a ref and maintaining the single KeySentinel comment.
"""
from __future__ import annotations

import base64
import json
import time
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

from keysentinel.core.exceptions import GitHubAPIError
from keysentinel.core.log import Logger, get_logger
from keysentinel.reporting.markdown import COMMENT_MARKER

DEFAULT_API_URL = "https://api.github.com"
PER_PAGE = 100
RATE_LIMIT_WAIT = 60
MAX_RATE_LIMIT_RETRIES = 3


@dataclass(frozen=True)
class PullRequestContext:
    owner: str
    repo: str
    number: int
    head_sha: str


def get_pull_request_context(environ: Mapping[str, str]) -> Optional[PullRequestContext]:
    """
    Resolve the pull request from the Actions event payload.

    Returns:
        The pull request context, or None when the workflow was not
        triggered by a pull request event
    """
    event_path = environ.get("GITHUB_EVENT_PATH")
    if not event_path:
        return None
    try:
        with open(event_path, "r", encoding="utf-8") as f:
            event = json.load(f)
    except (OSError, ValueError):
        return None

    pull_request = event.get("pull_request") if isinstance(event, dict) else None
    if not pull_request:
        return None

    full_name = environ.get("GITHUB_REPOSITORY") or (event.get("repository") or {}).get("full_name", "")
    if "/" not in full_name:
        return None
    owner, repo = full_name.split("/", 1)

    head_sha = (pull_request.get("head") or {}).get("sha") or environ.get("GITHUB_SHA", "")
    return PullRequestContext(owner=owner, repo=repo, number=int(pull_request["number"]), head_sha=head_sha)


class GitHubClient:
    """Minimal REST client with rate limit retries."""

    def __init__(
        self,
        token: str,
        api_url: str = DEFAULT_API_URL,
        opener: Optional[Callable[..., Any]] = None,
        sleep: Callable[[float], None] = time.sleep,
        logger: Optional[Logger] = None,
    ):
        self.token = token
        self.api_url = api_url.rstrip("/")
        self._opener = opener or urllib.request.urlopen
        self._sleep = sleep
        self._log = logger or get_logger()

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
        action: str = "calling the GitHub API",
    ) -> Any:
        url = f"{self.api_url}{path}"
        if params:
            url += "?" + urllib.parse.urlencode(params)
        data = json.dumps(body).encode("utf-8") if body is not None else None
        headers = {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
            "User-Agent": "keysentinel",
        }
        if data is not None:
            headers["Content-Type"] = "application/json"

        attempt = 0
        while True:
            req = urllib.request.Request(url, data=data, headers=headers, method=method)
            try:
                with self._opener(req, timeout=30) as response:
                    raw = response.read()
                return json.loads(raw.decode("utf-8")) if raw else None
            except urllib.error.HTTPError as e:
                error = GitHubAPIError(e.code, _error_message(e))
            if error.is_rate_limit and attempt < MAX_RATE_LIMIT_RETRIES:
                attempt += 1
                self._log.warn(f"Rate limit hit while {action}, waiting...")
                self._sleep(RATE_LIMIT_WAIT)
                continue
            raise error

    def list_pull_request_files(self, owner: str, repo: str, number: int, max_files: int) -> List[Dict[str, Any]]:
        """Changed files of a pull request, at most ``max_files``."""
        files: List[Dict[str, Any]] = []
        page = 1
        while len(files) < max_files:
            batch = self._request(
                "GET",
                f"/repos/{owner}/{repo}/pulls/{number}/files",
                params={"per_page": PER_PAGE, "page": page},
                action="fetching PR files",
            ) or []
            if not batch:
                break
            files.extend(batch)
            if len(batch) < PER_PAGE:
                break
            page += 1
        return files[:max_files]

    def get_file_content(self, owner: str, repo: str, path: str, ref: str) -> Optional[str]:
        """Text of ``path`` at ``ref``, or None when it is missing or not a file."""
        try:
            data = self._request(
                "GET",
                f"/repos/{owner}/{repo}/contents/{urllib.parse.quote(path)}",
                params={"ref": ref},
                action="fetching file content",
            )
        except GitHubAPIError as e:
            if e.is_not_found:
                self._log.debug(f"File not found: {path}")
                return None
            raise
        if not isinstance(data, dict) or data.get("type") != "file" or "content" not in data:
            return None
        return base64.b64decode(data["content"]).decode("utf-8", errors="replace")

    def find_existing_comment(self, owner: str, repo: str, number: int) -> Optional[Dict[str, Any]]:
        """The previously posted KeySentinel comment, if any."""
        page = 1
        while True:
            comments = self._request(
                "GET",
                f"/repos/{owner}/{repo}/issues/{number}/comments",
                params={"per_page": PER_PAGE, "page": page},
                action="fetching comments",
            ) or []
            for comment in comments:
                body = comment.get("body") or ""
                if COMMENT_MARKER in body:
                    return {"id": comment["id"], "body": body}
            if len(comments) < PER_PAGE:
                return None
            page += 1

    def upsert_comment(self, owner: str, repo: str, number: int, body: str) -> None:
        """Update the existing comment or create a new one."""
        full_body = body if body.startswith(COMMENT_MARKER) else f"{COMMENT_MARKER}\n{body}"
        try:
            existing = self.find_existing_comment(owner, repo, number)
            if existing:
                self._request(
                    "PATCH",
                    f"/repos/{owner}/{repo}/issues/comments/{existing['id']}",
                    body={"body": full_body},
                    action="posting comment",
                )
                self._log.info(f"Updated existing comment #{existing['id']}")
            else:
                self._request(
                    "POST",
                    f"/repos/{owner}/{repo}/issues/{number}/comments",
                    body={"body": full_body},
                    action="posting comment",
                )
                self._log.info("Created new comment")
        except GitHubAPIError as e:
            if e.is_permission_error and not e.is_rate_limit:
                self._log.error(
                    f"HTTP {e.status}: Insufficient permissions to comment. Grant the workflow "
                    "'pull-requests: write' permission (Settings > Actions > General > Workflow permissions)."
                )
                return
            raise

    def delete_existing_comment(self, owner: str, repo: str, number: int) -> bool:
        existing = self.find_existing_comment(owner, repo, number)
        if not existing:
            return False
        self._request(
            "DELETE",
            f"/repos/{owner}/{repo}/issues/comments/{existing['id']}",
            action="deleting comment",
        )
        self._log.info(f"Deleted existing comment #{existing['id']}")
        return True


def _error_message(error: urllib.error.HTTPError) -> str:
    try:
        raw = error.read()
    except OSError:
        raw = b""
    if raw:
        try:
            payload = json.loads(raw.decode("utf-8"))
            if isinstance(payload, dict) and payload.get("message"):
                return str(payload["message"])
        except ValueError:
            pass
    return str(error.reason or "")

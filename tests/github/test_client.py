# SPDX-License-Identifier: MIT
"""
Tests for the GitHub REST client. No network: requests go to a fake opener.
"""
import base64
import io
import json
import urllib.error

import pytest

from keysentinel.core.exceptions import GitHubAPIError
from keysentinel.github.client import (
    COMMENT_MARKER,
    GitHubClient,
    get_pull_request_context,
)


class FakeResponse:
    def __init__(self, payload):
        self._raw = b"" if payload is None else json.dumps(payload).encode("utf-8")

    def read(self):
        return self._raw

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


def http_error(status, message=""):
    body = io.BytesIO(json.dumps({"message": message}).encode("utf-8"))
    return urllib.error.HTTPError("https://api.github.com/x", status, message, {}, body)


class FakeOpener:
    """Replays queued responses and records requests."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request, timeout=None):
        body = json.loads(request.data.decode("utf-8")) if request.data else None
        self.requests.append((request.get_method(), request.full_url, body))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return FakeResponse(response)


def make_client(opener, logger, sleeps=None):
    sleeps = [] if sleeps is None else sleeps
    return GitHubClient("t0ken", opener=opener, sleep=sleeps.append, logger=logger)


class TestRequests:
    """Test request construction and errors."""

    def test_auth_header(self, logger):
        """Requests carry a bearer token and the GitHub media type."""
        seen = []

        def opener(request, timeout=None):
            seen.append(request)
            return FakeResponse([])

        make_client(opener, logger).list_pull_request_files("o", "r", 1, 10)

        assert seen[0].get_header("Authorization") == "Bearer t0ken"
        assert seen[0].get_header("Accept") == "application/vnd.github+json"

    def test_rate_limit_retried(self, logger):
        """A 429 is retried after waiting."""
        sleeps = []
        opener = FakeOpener(http_error(429, "API rate limit exceeded"), [{"filename": "a.py"}])

        files = make_client(opener, logger, sleeps).list_pull_request_files("o", "r", 1, 10)

        assert files == [{"filename": "a.py"}]
        assert sleeps == [60]
        assert len(logger.warnings) == 1

    def test_rate_limit_gives_up(self, logger):
        """After three retries the error propagates."""
        sleeps = []
        opener = FakeOpener(*[http_error(403, "secondary rate limit") for _ in range(4)])

        with pytest.raises(GitHubAPIError) as exc:
            make_client(opener, logger, sleeps).list_pull_request_files("o", "r", 1, 10)

        assert exc.value.status == 403
        assert sleeps == [60, 60, 60]

    def test_other_errors_raise(self, logger):
        """Non rate limit errors are not retried."""
        opener = FakeOpener(http_error(500, "boom"))

        with pytest.raises(GitHubAPIError) as exc:
            make_client(opener, logger).list_pull_request_files("o", "r", 1, 10)

        assert exc.value.status == 500
        assert "boom" in str(exc.value)


class TestPullRequestFiles:
    """Test file listing."""

    def test_pagination(self, logger):
        """Pages are fetched until a short page."""
        page1 = [{"filename": f"f{i}.py"} for i in range(100)]
        page2 = [{"filename": f"g{i}.py"} for i in range(5)]
        opener = FakeOpener(page1, page2)

        files = make_client(opener, logger).list_pull_request_files("o", "r", 7, 500)

        assert len(files) == 105
        assert "page=2" in opener.requests[1][1]
        assert "/repos/o/r/pulls/7/files" in opener.requests[0][1]

    def test_max_files_cap(self, logger):
        """No more than max_files are returned or fetched."""
        opener = FakeOpener([{"filename": f"f{i}.py"} for i in range(100)])

        files = make_client(opener, logger).list_pull_request_files("o", "r", 7, 50)

        assert len(files) == 50
        assert len(opener.requests) == 1


class TestFileContent:
    """Test content retrieval."""

    def test_decodes_base64(self, logger):
        """File content is base64 decoded."""
        content = base64.b64encode(b"line one\nline two").decode("ascii")
        opener = FakeOpener({"type": "file", "content": content})

        text = make_client(opener, logger).get_file_content("o", "r", "dir/a b.py", "abc123")

        assert text == "line one\nline two"
        assert "contents/dir/a%20b.py?ref=abc123" in opener.requests[0][1]

    def test_not_found(self, logger):
        """404 means no content."""
        opener = FakeOpener(http_error(404, "Not Found"))

        assert make_client(opener, logger).get_file_content("o", "r", "a.py", "sha") is None

    def test_directory(self, logger):
        """Non file entries have no content."""
        opener = FakeOpener([{"type": "file", "name": "x"}])

        assert make_client(opener, logger).get_file_content("o", "r", "dir", "sha") is None


class TestComments:
    """Test the single KeySentinel comment."""

    def test_update_existing(self, logger):
        """An existing marked comment is updated in place."""
        opener = FakeOpener(
            [{"id": 3, "body": "unrelated"}, {"id": 7, "body": f"{COMMENT_MARKER}\nold"}],
            {"id": 7},
        )

        make_client(opener, logger).upsert_comment("o", "r", 5, f"{COMMENT_MARKER}\nnew report")

        method, url, body = opener.requests[1]
        assert method == "PATCH"
        assert url.endswith("/repos/o/r/issues/comments/7")
        assert body["body"].count(COMMENT_MARKER) == 1

    def test_create_new(self, logger):
        """Without a marked comment a new one is created with the marker."""
        opener = FakeOpener([], {"id": 9})

        make_client(opener, logger).upsert_comment("o", "r", 5, "report")

        method, url, body = opener.requests[1]
        assert method == "POST"
        assert url.endswith("/repos/o/r/issues/5/comments")
        assert body["body"] == f"{COMMENT_MARKER}\nreport"

    def test_permission_error_logged(self, logger):
        """Missing permissions are logged, not raised."""
        opener = FakeOpener([], http_error(403, "Resource not accessible by integration"))

        make_client(opener, logger).upsert_comment("o", "r", 5, "report")

        assert len(logger.errors) == 1
        assert "HTTP 403" in logger.errors[0]

    def test_delete_existing(self, logger):
        """A marked comment is deleted."""
        opener = FakeOpener([{"id": 7, "body": COMMENT_MARKER}], None)

        assert make_client(opener, logger).delete_existing_comment("o", "r", 5) is True
        assert opener.requests[1][0] == "DELETE"

    def test_delete_nothing(self, logger):
        """Nothing to delete returns False."""
        opener = FakeOpener([])

        assert make_client(opener, logger).delete_existing_comment("o", "r", 5) is False
        assert len(opener.requests) == 1


class TestPullRequestContext:
    """Test reading the event payload."""

    def test_pull_request_event(self, tmp_path):
        """Owner, repo, number and head sha come from the event."""
        event = tmp_path / "event.json"
        event.write_text(json.dumps({"pull_request": {"number": 12, "head": {"sha": "deadbeef"}}}))

        context = get_pull_request_context({"GITHUB_EVENT_PATH": str(event), "GITHUB_REPOSITORY": "acme/app"})

        assert (context.owner, context.repo, context.number, context.head_sha) == ("acme", "app", 12, "deadbeef")

    def test_head_sha_fallback(self, tmp_path):
        """GITHUB_SHA is used when the payload has no head."""
        event = tmp_path / "event.json"
        event.write_text(json.dumps({"pull_request": {"number": 1}}))
        env = {"GITHUB_EVENT_PATH": str(event), "GITHUB_REPOSITORY": "acme/app", "GITHUB_SHA": "cafe"}

        assert get_pull_request_context(env).head_sha == "cafe"

    def test_not_a_pull_request(self, tmp_path):
        """Push events and missing payloads give None."""
        event = tmp_path / "event.json"
        event.write_text(json.dumps({"ref": "refs/heads/main"}))

        assert get_pull_request_context({"GITHUB_EVENT_PATH": str(event), "GITHUB_REPOSITORY": "a/b"}) is None
        assert get_pull_request_context({}) is None

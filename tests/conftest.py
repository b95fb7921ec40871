"""Pytest configuration and fixtures for kinetic tests."""

import json
import re
import sys
import tempfile
from pathlib import Path

import httpx
import pytest
import pytest_asyncio

from kinetic.core.config import CherryPickConfig
from kinetic.core.log import ConsoleSink, setup_logger
from kinetic.github.client import GitHubClient

API_URL = "https://api.test"
REPO_PREFIX = "/repos/octo/widgets"


@pytest.fixture(autouse=True, scope="session")
def configure_logging():
    """Configure logging for console-only mode during tests.

    This enables debug output during test runs without requiring
    authentication or sending logs to logfire.dev.
    """
    test_log_root = Path(tempfile.gettempdir()) / "kinetic-tests"
    setup_logger(
        log_root=test_log_root,
        run_name="test",
        console=ConsoleSink(level="debug"),
    )


@pytest.fixture(scope="session")
def test_config():
    """Load configuration for tests without CLI parsing conflicts.

    Creates a State object with full configuration loading, but
    temporarily replaces sys.argv to avoid conflicts with pytest's
    command line arguments.

    Returns:
        Config object with all settings loaded from defaults
    """
    from kinetic.core.config import State

    old_argv = sys.argv
    sys.argv = ['kinetic']

    try:
        state = State()
        return state.config
    finally:
        sys.argv = old_argv


class FakeGitHubHost:
    """In-memory GitHub serving the REST endpoints the client uses.

    Pull requests, commits, files and branches live in plain dicts.
    Every request is recorded in `requests` as (method, path) with the
    repository prefix stripped.
    """

    def __init__(self):
        self.pulls: dict[int, dict] = {}
        self.commits: dict[int, list[dict]] = {}
        self.files: dict[int, list[dict]] = {}
        self.refs: dict[str, str] = {"main": "0" * 40}
        # (head, base) -> successive mergeable values reported for a
        # probe; the last value repeats
        self.mergeability: dict[tuple[str, str], list] = {}
        # (method, path) -> [status, payload, successes left] forced
        # failures
        self.failures: dict[tuple[str, str], list] = {}
        self.requests: list[tuple[str, str]] = []
        self.next_number = 1000

    # ------------------------------------------------------------
    # Setup helpers
    # ------------------------------------------------------------

    def add_branch(self, name: str, sha: str | None = None) -> str:
        sha = sha or f"{len(self.refs):040x}"
        self.refs[name] = sha
        return sha

    def add_pr(
        self,
        number: int,
        title: str = "Fix the widget",
        author: str = "alice",
        head: str | None = None,
        base: str = "main",
        merged_at: str | None = "2024-06-05T10:00:00Z",
        updated_at: str | None = None,
        commits: int = 1,
        merge_commits: int = 0,
        head_exists: bool = True,
    ) -> dict:
        """Add a pull request with `commits` ordinary commits followed
        by `merge_commits` two-parent commits."""
        head = f"feature-{number}" if head is None else head
        if head and head_exists:
            self.add_branch(head)
        pr = {
            "number": number,
            "title": title,
            "body": f"Body of #{number}",
            "state": "closed" if merged_at else "open",
            "user": {"login": author},
            "head": {"ref": head},
            "base": {"ref": base},
            "html_url": f"https://github.test/octo/widgets/pull/{number}",
            "merged_at": merged_at,
            "updated_at": updated_at or merged_at or "2024-06-05T10:00:00Z",
            "merge_commit_sha": f"m{number:039d}" if merged_at else None,
            "additions": 10,
            "deletions": 2,
            "mergeable": None,
            "mergeable_state": "unknown",
        }
        self.pulls[number] = pr
        shas = [f"{number:020d}{i:020d}" for i in range(commits)]
        self.commits[number] = [
            {
                "sha": sha,
                "parents": [{"sha": f"p{sha[1:]}"}],
                "commit": {"message": f"commit {i}"},
            }
            for i, sha in enumerate(shas)
        ] + [
            {
                "sha": f"{number:020d}{90 + i:020d}",
                "parents": [{"sha": "a" * 40}, {"sha": "b" * 40}],
                "commit": {"message": "Merge branch 'main'"},
            }
            for i in range(merge_commits)
        ]
        self.files[number] = [
            {
                "filename": "widget.py",
                "status": "modified",
                "additions": 10,
                "deletions": 2,
                "patch": "@@ -1 +1 @@\n-old\n+new",
            },
            {
                "filename": "logo.png",
                "status": "added",
                "additions": 0,
                "deletions": 0,
            },
        ]
        return pr

    def fail(self, method: str, path: str, status: int = 500,
             message: str = "Internal error", after: int = 0,
             body: dict | None = None):
        """Answer (method, path) with `status` once `after` requests
        have succeeded; `body` replaces the {"message": ...} payload."""
        self.failures[(method, path)] = [
            status, body or {"message": message}, after
        ]

    # ------------------------------------------------------------
    # Inspection helpers
    # ------------------------------------------------------------

    def probes(self) -> list[dict]:
        return [
            pr for pr in self.pulls.values()
            if pr["title"].startswith("[TEST] Conflict check")
        ]

    def open_probes(self) -> list[dict]:
        return [pr for pr in self.probes() if pr["state"] == "open"]

    def created_pulls(self) -> list[dict]:
        return [
            pr for pr in self.pulls.values()
            if pr["number"] >= 1000 and pr not in self.probes()
        ]

    def calls(self, method: str, path: str | None = None) -> int:
        return sum(
            1 for m, p in self.requests
            if m == method and (path is None or p == path)
        )

    # ------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        assert path.startswith(REPO_PREFIX), path
        path = path[len(REPO_PREFIX):]
        method = request.method
        self.requests.append((method, path))

        failure = self.failures.get((method, path))
        if failure and failure[2] > 0:
            failure[2] -= 1
        elif failure:
            return httpx.Response(failure[0], json=failure[1])

        if method == "GET" and path == "/pulls":
            return self._list_pulls(request)
        if method == "POST" and path == "/pulls":
            return self._create_pull(request)
        if method == "POST" and path == "/git/refs":
            return self._create_ref(request)

        match = re.fullmatch(r"/git/ref/heads/(.+)", path)
        if match and method == "GET":
            branch = match.group(1)
            if branch not in self.refs:
                return httpx.Response(404, json={"message": "Not Found"})
            return httpx.Response(200, json=self._ref(branch))

        match = re.fullmatch(r"/pulls/(\d+)(/commits|/files)?", path)
        if match:
            number = int(match.group(1))
            if number not in self.pulls:
                return httpx.Response(404, json={"message": "Not Found"})
            if match.group(2) == "/commits":
                return self._page(request, self.commits[number])
            if match.group(2) == "/files":
                return self._page(request, self.files[number])
            if method == "PATCH":
                self.pulls[number].update(_json(request))
                return httpx.Response(200, json=self.pulls[number])
            return httpx.Response(200, json=self._read_pull(number))

        return httpx.Response(404, json={"message": "Not Found"})

    def _page(self, request: httpx.Request, items: list) -> httpx.Response:
        per_page = int(request.url.params.get("per_page", 30))
        page = int(request.url.params.get("page", 1))
        start = (page - 1) * per_page
        chunk = items[start:start + per_page]
        headers = {}
        if start + per_page < len(items):
            next_url = request.url.copy_set_param("page", str(page + 1))
            headers["Link"] = f'<{next_url}>; rel="next"'
        return httpx.Response(200, json=chunk, headers=headers)

    def _list_pulls(self, request: httpx.Request) -> httpx.Response:
        state = request.url.params.get("state", "open")
        pulls = [
            pr for pr in self.pulls.values()
            if state == "all" or pr["state"] == state
        ]
        pulls.sort(key=lambda pr: pr["updated_at"], reverse=True)
        return self._page(request, pulls)

    def _read_pull(self, number: int) -> dict:
        pr = self.pulls[number]
        key = (pr["head"]["ref"], pr["base"]["ref"])
        if pr["state"] == "open" and key in self.mergeability:
            values = self.mergeability[key]
            value = values.pop(0) if len(values) > 1 else values[0]
            pr["mergeable"] = value
            pr["mergeable_state"] = {
                True: "clean", False: "dirty", None: "unknown"
            }[value]
        return pr

    def _create_pull(self, request: httpx.Request) -> httpx.Response:
        data = _json(request)
        head, base = data["head"], data["base"]
        if head not in self.refs or base not in self.refs:
            return _validation_failed(
                f"Field 'head' is invalid: {head}"
                if head not in self.refs
                else f"Field 'base' is invalid: {base}"
            )
        for pr in self.pulls.values():
            if (pr["state"] == "open" and pr["head"]["ref"] == head
                    and pr["base"]["ref"] == base):
                return _validation_failed(
                    f"A pull request already exists for octo:{head}."
                )
        number = self.next_number
        self.next_number += 1
        self.pulls[number] = {
            "number": number,
            "title": data["title"],
            "body": data["body"],
            "state": "open",
            "user": {"login": "kinetic-bot"},
            "head": {"ref": head},
            "base": {"ref": base},
            "html_url": f"https://github.test/octo/widgets/pull/{number}",
            "merged_at": None,
            "updated_at": "2024-06-08T12:00:00Z",
            "merge_commit_sha": None,
            "additions": 0,
            "deletions": 0,
            "mergeable": None,
            "mergeable_state": "unknown",
        }
        self.mergeability.setdefault((head, base), [True])
        self.commits[number] = []
        self.files[number] = []
        return httpx.Response(201, json=self.pulls[number])

    def _create_ref(self, request: httpx.Request) -> httpx.Response:
        data = _json(request)
        branch = data["ref"].removeprefix("refs/heads/")
        if branch in self.refs:
            return httpx.Response(
                422, json={"message": "Reference already exists"}
            )
        self.refs[branch] = data["sha"]
        return httpx.Response(201, json=self._ref(branch))

    def _ref(self, branch: str) -> dict:
        return {
            "ref": f"refs/heads/{branch}",
            "object": {"sha": self.refs[branch], "type": "commit"},
        }


def _json(request: httpx.Request) -> dict:
    return json.loads(request.content)


def _validation_failed(message: str) -> httpx.Response:
    return httpx.Response(
        422,
        json={
            "message": "Validation Failed",
            "errors": [{"resource": "PullRequest", "message": message}],
        },
    )


@pytest.fixture
def host():
    """Empty in-memory GitHub with a main branch."""
    return FakeGitHubHost()


@pytest_asyncio.fixture
async def client(host):
    """GitHubClient wired to the in-memory host."""
    async with GitHubClient(
        "test-token",
        "octo",
        "widgets",
        api_url=API_URL,
        transport=httpx.MockTransport(host.handler),
    ) as gh:
        yield gh


@pytest.fixture
def fast_config():
    """Cherry-pick settings without poll delays."""
    return CherryPickConfig(initial_poll_delay=0, recheck_poll_delay=0)


@pytest.fixture
def host_client(host):
    """Factory for unopened clients on the in-memory host, standing in
    for open_client() in command tests."""
    def _open(state=None):
        return GitHubClient(
            "test-token",
            "octo",
            "widgets",
            api_url=API_URL,
            transport=httpx.MockTransport(host.handler),
        )
    return _open


@pytest.fixture
def state(fast_config):
    """State built without CLI parsing or logger setup."""
    from kinetic.core.config import Config, GitHubConfig, Runtime, State

    config = Config.model_construct(
        github=GitHubConfig(
            token="test-token", owner="octo", repo="widgets",
            api_url=API_URL,
        ),
        cherry_pick=fast_config,
    )
    return State.model_construct(config=config, runtime=Runtime())

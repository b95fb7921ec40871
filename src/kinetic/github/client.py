"""Async GitHub REST client used by the cherry-pick pipeline.

Thin by intent: every method is one API call (or one paged listing)
mapped onto the snapshot models in kinetic.github.models. Failures are
raised as GitHubError with the operation and its identifying
parameters in the message.
"""

from __future__ import annotations

from typing import Any

import httpx

from kinetic.core.log import logger
from kinetic.errors import GitHubError, NotFoundError
from kinetic.github.models import Commit, PullRequest, PullRequestFile, Ref

DEFAULT_API_URL = "https://api.github.com"
MAX_PER_PAGE = 100


def _error_text(response: httpx.Response) -> str:
    """Summarize a GitHub error response.

    GitHub sends {"message": ..., "errors": [{"message": ...}, ...]};
    validation failures such as "A pull request already exists" only
    appear in the nested errors.
    """
    reason = f"{response.status_code} {response.reason_phrase}".strip()
    try:
        payload = response.json()
    except ValueError:
        return reason
    if not isinstance(payload, dict):
        return reason
    parts = [payload.get("message") or ""]
    for err in payload.get("errors") or []:
        if isinstance(err, dict):
            parts.append(err.get("message") or err.get("code") or "")
        else:
            parts.append(str(err))
    detail = "; ".join(p for p in parts if p)
    return f"{reason}: {detail}" if detail else reason


def next_page(response: httpx.Response) -> int | None:
    """Page number of the Link rel="next" header, None on the last page."""
    link = response.links.get("next")
    if not link:
        return None
    page = httpx.URL(link["url"]).params.get("page")
    return int(page) if page else None


class GitHubClient:
    """Client for one repository.

    Use as an async context manager so the connection pool is closed:

        async with GitHubClient(token, "octo", "widgets") as gh:
            pr = await gh.get_pull_request(42)
    """

    def __init__(
        self,
        token: str,
        owner: str,
        repo: str,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not token:
            raise ValueError("GitHub token is required")
        self.owner = owner
        self.repo = repo
        self._http = httpx.AsyncClient(
            base_url=api_url,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
                "User-Agent": "kinetic",
            },
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_config(cls, config) -> GitHubClient:
        """Create from a GitHubConfig section."""
        return cls(
            token=config.token,
            owner=config.owner,
            repo=config.repo,
            api_url=config.api_url,
            timeout=config.timeout,
        )

    @property
    def repo_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def _request(
        self, operation: str, method: str, path: str, **kwargs: Any
    ) -> httpx.Response:
        """Send one request, raising GitHubError on failure.

        Args:
            operation: Human-readable description used as the error
                prefix, e.g. "get PR #42"
        """
        logger.trace(
            f"GitHub {method} {path}", operation=operation, method=method
        )
        try:
            response = await self._http.request(
                method, f"{self.repo_path}{path}", **kwargs
            )
        except httpx.HTTPError as e:
            raise GitHubError(f"failed to {operation}: {e}") from e

        if response.is_success:
            return response

        message = f"failed to {operation}: {_error_text(response)}"
        error_cls = NotFoundError if response.status_code == 404 else GitHubError
        raise error_cls(message, status_code=response.status_code)

    async def _list_all(
        self, operation: str, path: str
    ) -> list[dict[str, Any]]:
        """Collect every page of a list endpoint."""
        items: list[dict[str, Any]] = []
        page: int | None = 1
        while page is not None:
            response = await self._request(
                operation, "GET", path,
                params={"per_page": MAX_PER_PAGE, "page": page},
            )
            items.extend(response.json())
            page = next_page(response)
        return items

    # ------------------------------------------------------------
    # Pull requests
    # ------------------------------------------------------------

    async def get_pull_request(self, number: int) -> PullRequest:
        response = await self._request(
            f"get PR #{number}", "GET", f"/pulls/{number}"
        )
        return PullRequest.from_api(response.json())

    async def list_pull_request_files(
        self, number: int
    ) -> list[PullRequestFile]:
        data = await self._list_all(
            f"get files of PR #{number}", f"/pulls/{number}/files"
        )
        return [PullRequestFile.from_api(item) for item in data]

    async def list_pull_request_commits(self, number: int) -> list[Commit]:
        """All commits of a pull request in host-reported order."""
        data = await self._list_all(
            f"get commits of PR #{number}", f"/pulls/{number}/commits"
        )
        return [Commit.from_api(item) for item in data]

    async def list_pull_requests(
        self,
        state: str = "open",
        sort: str = "created",
        direction: str = "desc",
        page: int = 1,
        per_page: int = MAX_PER_PAGE,
    ) -> tuple[list[PullRequest], int | None]:
        """One page of pull requests.

        Returns:
            (pull requests, next page number or None when exhausted)
        """
        response = await self._request(
            f"list {state} PRs (page {page})", "GET", "/pulls",
            params={
                "state": state,
                "sort": sort,
                "direction": direction,
                "page": page,
                "per_page": per_page,
            },
        )
        prs = [PullRequest.from_api(item) for item in response.json()]
        return prs, next_page(response)

    async def create_pull_request(
        self, title: str, body: str, head: str, base: str
    ) -> PullRequest:
        response = await self._request(
            f"create PR {head} -> {base}", "POST", "/pulls",
            json={"title": title, "body": body, "head": head, "base": base},
        )
        return PullRequest.from_api(response.json())

    async def close_pull_request(self, number: int) -> PullRequest:
        response = await self._request(
            f"close PR #{number}", "PATCH", f"/pulls/{number}",
            json={"state": "closed"},
        )
        return PullRequest.from_api(response.json())

    # ------------------------------------------------------------
    # Refs
    # ------------------------------------------------------------

    async def get_ref(self, branch: str) -> Ref:
        """Look up refs/heads/<branch>."""
        response = await self._request(
            f"get branch {branch}", "GET", f"/git/ref/heads/{branch}"
        )
        return Ref.from_api(response.json())

    async def create_ref(self, branch: str, sha: str) -> Ref:
        """Create refs/heads/<branch> pointing at sha."""
        response = await self._request(
            f"create branch {branch}", "POST", "/git/refs",
            json={"ref": f"refs/heads/{branch}", "sha": sha},
        )
        return Ref.from_api(response.json())


__all__ = ["GitHubClient", "DEFAULT_API_URL", "next_page"]

"""Find pull requests merged within a lookback window."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from pydantic import BaseModel

from kinetic.core.config import CherryPickConfig
from kinetic.core.log import logger
from kinetic.github.client import GitHubClient
from kinetic.github.models import PullRequest


class MergedPullRequest(BaseModel):
    """Summary of a merged pull request."""

    number: int
    title: str
    author: str
    merged_at: str
    merge_sha: str

    @classmethod
    def from_pull_request(cls, pr: PullRequest) -> MergedPullRequest:
        merged_at = ""
        if pr.merged_at is not None:
            merged_at = pr.merged_at.isoformat().replace("+00:00", "Z")
        return cls(
            number=pr.number,
            title=pr.title,
            author=pr.author,
            merged_at=merged_at,
            merge_sha=pr.merge_commit_sha,
        )


async def list_merged_pull_requests(
    client: GitHubClient,
    days: int = 0,
    now: datetime | None = None,
    config: CherryPickConfig | None = None,
) -> list[PullRequest]:
    """Pull requests merged at or after now - days.

    Closed pull requests are read newest-updated first. Paging stops
    when the host has no next page, or when a page ends with a pull
    request last updated before the cutoff: merging updates a PR, so
    nothing further down can have merged inside the window.

    Args:
        client: GitHub client
        days: Lookback window; config.lookback_days (7) when <= 0
        now: Reference time, current UTC time when None
        config: Paging and default window settings
    """
    config = config or CherryPickConfig()
    if days <= 0:
        days = config.lookback_days
    now = now or datetime.now(UTC)
    cutoff = now - timedelta(days=days)

    merged: list[PullRequest] = []
    page: int | None = 1
    with logger.span("List merged PRs", days=days, cutoff=cutoff.isoformat()):
        while page is not None:
            prs, page = await client.list_pull_requests(
                state="closed",
                sort="updated",
                direction="desc",
                page=page,
                per_page=config.per_page,
            )
            merged.extend(
                pr for pr in prs
                if pr.merged_at is not None and pr.merged_at >= cutoff
            )
            oldest = prs[-1].updated_at if prs else None
            if oldest is not None and oldest < cutoff:
                break

        logger.info(
            f"Found {len(merged)} PRs merged in the last {days} days",
            count=len(merged),
            days=days,
        )
    return merged

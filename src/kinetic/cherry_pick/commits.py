"""Commit classification for cherry-picking."""

from __future__ import annotations

from collections.abc import Iterable

from kinetic.errors import NoCherryPickableCommitsError
from kinetic.github.client import GitHubClient
from kinetic.github.models import Commit


def cherry_pickable(commits: Iterable[Commit]) -> list[Commit]:
    """Keep commits with exactly one parent, in their original order.

    Merge commits (two or more parents) are never cherry-picked. Root
    commits (no parents) cannot be either.
    """
    return [c for c in commits if len(c.parents) == 1]


async def get_cherry_pickable_commits(
    client: GitHubClient, pr_number: int, require: bool = False
) -> list[Commit]:
    """Fetch a pull request's commits and filter them.

    Args:
        client: GitHub client
        pr_number: Pull request number
        require: Raise when nothing is left after filtering

    Raises:
        NoCherryPickableCommitsError: If require is set and the list
            is empty
    """
    commits = cherry_pickable(
        await client.list_pull_request_commits(pr_number)
    )
    if require and not commits:
        raise NoCherryPickableCommitsError(pr_number)
    return commits

"""GitHub REST gateway."""

from kinetic.github.client import GitHubClient
from kinetic.github.models import (
    Commit,
    Mergeability,
    PullRequest,
    PullRequestFile,
    Ref,
)

__all__ = [
    "GitHubClient",
    "Commit",
    "Mergeability",
    "PullRequest",
    "PullRequestFile",
    "Ref",
]

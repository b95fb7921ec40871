"""Exception types raised by the GitHub gateway and the cherry-pick
pipeline."""

from __future__ import annotations


class KineticError(Exception):
    """Base class for all kinetic errors."""


# ============================================================
# GATEWAY ERRORS
# ============================================================

class GitHubError(KineticError):
    """A GitHub API call failed.

    The message names the operation and its identifying parameters,
    e.g. "failed to get PR #42: 502 Bad Gateway".
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(GitHubError):
    """The pull request, ref or branch does not exist (HTTP 404)."""


# ============================================================
# PIPELINE ERRORS
# ============================================================

class CherryPickError(KineticError):
    """A cherry-pick operation was refused for a specific pull request."""

    def __init__(self, message: str, pr_number: int):
        super().__init__(message)
        self.pr_number = pr_number


class NotMergedError(CherryPickError):
    def __init__(self, pr_number: int):
        super().__init__(f"PR #{pr_number} is not merged", pr_number)


class NoCherryPickableCommitsError(CherryPickError):
    def __init__(self, pr_number: int):
        super().__init__(
            f"PR #{pr_number} has no commits to cherry-pick", pr_number
        )


class MissingHeadRefError(CherryPickError):
    def __init__(self, pr_number: int):
        super().__init__(
            f"PR #{pr_number} does not have a head ref", pr_number
        )


class ConflictError(CherryPickError):
    """The prober reported conflicts; nothing was created."""

    def __init__(self, pr_number: int, target_branch: str, detail: str):
        super().__init__(
            f"cannot cherry-pick PR #{pr_number} to {target_branch}: "
            f"{detail}",
            pr_number,
        )
        self.target_branch = target_branch
        self.detail = detail


class TargetBranchNotFoundError(CherryPickError):
    def __init__(self, pr_number: int, target_branch: str, cause: str):
        super().__init__(
            f"failed to get target branch {target_branch}: {cause}",
            pr_number,
        )
        self.target_branch = target_branch


class PullRequestCreationError(CherryPickError):
    """Creating the cherry-pick pull request failed; the host's error
    text is kept verbatim."""

    def __init__(self, pr_number: int, cause: str):
        super().__init__(
            f"failed to create cherry-pick PR: {cause}", pr_number
        )


class ConfirmationRequiredError(CherryPickError):
    """Materialization was attempted without a matching confirmation."""

    def __init__(self, pr_number: int, target_branch: str):
        super().__init__(
            f"cherry-pick of PR #{pr_number} to {target_branch} has not "
            f"been confirmed",
            pr_number,
        )
        self.target_branch = target_branch


class StaleBranchError(CherryPickError):
    """An existing cherry-pick branch does not point at the target tip."""

    def __init__(
        self, pr_number: int, branch: str, branch_sha: str, target_sha: str
    ):
        super().__init__(
            f"branch {branch} already exists at {branch_sha[:12]} but "
            f"the target tip is {target_sha[:12]}",
            pr_number,
        )
        self.branch = branch


# ============================================================
# WARNINGS
# ============================================================

class ProbeCleanupWarning(UserWarning):
    """Closing a probe pull request failed.

    Logged, never raised: the reported mergeability result is still
    correct, only the host is left with an open probe.
    """


__all__ = [
    "KineticError",
    "GitHubError",
    "NotFoundError",
    "CherryPickError",
    "NotMergedError",
    "NoCherryPickableCommitsError",
    "MissingHeadRefError",
    "ConflictError",
    "TargetBranchNotFoundError",
    "PullRequestCreationError",
    "ConfirmationRequiredError",
    "StaleBranchError",
    "ProbeCleanupWarning",
]

"""Create the branch and pull request for a confirmed cherry-pick."""

from __future__ import annotations

from pydantic import BaseModel

from kinetic.cherry_pick.commits import get_cherry_pickable_commits
from kinetic.cherry_pick.gate import Confirmation, require_confirmation
from kinetic.cherry_pick.probe import check_conflicts
from kinetic.core.config import CherryPickConfig
from kinetic.core.log import logger
from kinetic.errors import (
    ConflictError,
    GitHubError,
    NotMergedError,
    PullRequestCreationError,
    StaleBranchError,
    TargetBranchNotFoundError,
)
from kinetic.github.client import GitHubClient
from kinetic.github.models import Commit, PullRequest, Ref


class CherryPickPullRequest(BaseModel):
    """The pull request opened for a cherry-pick."""

    pr_number: int
    title: str
    url: str
    branch: str


def branch_name(pr_number: int, target_branch: str) -> str:
    """cherry-pick-<number>-to-<target>; the same pair always maps to
    the same branch."""
    return f"cherry-pick-{pr_number}-to-{target_branch}"


def build_title(branch: str, original: PullRequest) -> str:
    return f"[{branch}] {original.title}"


def build_body(
    original: PullRequest,
    target_branch: str,
    branch: str,
    commits: list[Commit],
) -> str:
    """PR description recording provenance and the manual commands."""
    merged_on = (
        original.merged_at.strftime("%Y-%m-%d") if original.merged_at else ""
    )
    shas = " ".join(c.sha for c in commits)
    return (
        f"This is a cherry-pick of PR #{original.number} to "
        f"{target_branch}.\n\n"
        f"Original PR: #{original.number}\n"
        f"Original Author: @{original.author}\n"
        f"Original Merge Date: {merged_on}\n"
        f"Commits being cherry-picked: {len(commits)}\n\n"
        f"**Note**: This PR contains only the commits from the original "
        f"PR (excluding merge commit).\n"
        f"To cherry-pick manually:\n"
        f"```\n"
        f"git checkout {branch}\n"
        f"git cherry-pick {shas}\n"
        f"```\n"
    )


async def ensure_branch(
    client: GitHubClient,
    pr_number: int,
    branch: str,
    target: Ref,
    policy: str = "reuse",
) -> Ref:
    """Create branch at the target tip, or fall back to the existing one.

    A failed create is usually "Reference already exists" from an
    earlier attempt; the existing ref is then used. With policy
    "verify" an existing ref must point at the target tip.

    Raises:
        GitHubError: The create failed and no existing ref was found
        StaleBranchError: policy is "verify" and the existing ref
            points elsewhere
    """
    try:
        ref = await client.create_ref(branch, target.sha)
    except GitHubError as create_error:
        try:
            ref = await client.get_ref(branch)
        except GitHubError:
            raise create_error from None

        if ref.sha != target.sha:
            if policy == "verify":
                raise StaleBranchError(
                    pr_number, branch, ref.sha, target.sha
                ) from create_error
            logger.warning(
                f"Reusing existing branch {branch} at {ref.sha[:12]}; "
                f"target tip is {target.sha[:12]}",
                branch=branch,
                branch_sha=ref.sha,
                target_sha=target.sha,
            )
        else:
            logger.info(f"Reusing existing branch {branch}", branch=branch)
        return ref

    logger.info(
        f"Created branch {branch} at {target.sha[:12]}",
        branch=branch,
        sha=target.sha,
    )
    return ref


async def create_cherry_pick_pr(
    client: GitHubClient,
    pr_number: int,
    target_branch: str,
    confirmation: Confirmation | None,
    base_branch: str | None = None,
    config: CherryPickConfig | None = None,
) -> CherryPickPullRequest:
    """Open a pull request cherry-picking a merged PR onto target_branch.

    Nothing is trusted from earlier calls: the PR is re-validated and
    conflicts are re-checked before any branch or PR is created.

    Args:
        client: GitHub client
        pr_number: Merged pull request to cherry-pick
        target_branch: Branch to cherry-pick onto
        confirmation: Human approval; must cover
            (pr_number, target_branch)
        base_branch: Defaults to config.base_branch ("main")
        config: Probe delays and existing-branch policy

    Raises:
        ConfirmationRequiredError: confirmation does not cover the pair
        NotMergedError, NoCherryPickableCommitsError,
        MissingHeadRefError: Validation failed
        ConflictError: The probe reported conflicts (nothing created)
        TargetBranchNotFoundError: target_branch does not exist
        StaleBranchError: See ensure_branch()
        PullRequestCreationError: GitHub refused the pull request
        GitHubError: Any other API failure
    """
    require_confirmation(confirmation, pr_number, target_branch)

    config = config or CherryPickConfig()
    base_branch = base_branch or config.base_branch

    with logger.span(
        "Create cherry-pick PR",
        pr_number=pr_number,
        target_branch=target_branch,
        base_branch=base_branch,
    ):
        original = await client.get_pull_request(pr_number)
        if not original.is_merged:
            raise NotMergedError(pr_number)
        commits = await get_cherry_pickable_commits(
            client, pr_number, require=True
        )

        check = await check_conflicts(
            client, pr_number, target_branch, base_branch, config
        )
        if check.has_conflicts:
            detail = check.details[0] if check.details else "Unknown conflicts"
            raise ConflictError(pr_number, target_branch, detail)

        branch = branch_name(pr_number, target_branch)
        try:
            target = await client.get_ref(target_branch)
        except GitHubError as e:
            raise TargetBranchNotFoundError(
                pr_number, target_branch, str(e)
            ) from e

        await ensure_branch(
            client, pr_number, branch, target, config.existing_branch
        )

        title = build_title(branch, original)
        body = build_body(original, target_branch, branch, commits)
        try:
            created = await client.create_pull_request(
                title=title, body=body, head=branch, base=target_branch
            )
        except GitHubError as e:
            raise PullRequestCreationError(pr_number, str(e)) from e

        logger.info(
            f"Opened cherry-pick PR #{created.number} for PR #{pr_number} "
            f"-> {target_branch}",
            pr_number=pr_number,
            cherry_pick_pr=created.number,
            url=created.html_url,
            commits=len(commits),
        )
        return CherryPickPullRequest(
            pr_number=created.number,
            title=created.title or title,
            url=created.html_url,
            branch=created.head_ref or branch,
        )

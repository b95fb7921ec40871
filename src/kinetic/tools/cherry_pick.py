"""Cherry-pick tools for the agent."""

import asyncio
from collections.abc import Callable

from pydantic_ai import RunContext
from pydantic_ai.exceptions import ModelRetry

from kinetic.cherry_pick.discovery import (
    MergedPullRequest,
    list_merged_pull_requests,
)
from kinetic.cherry_pick.gate import Confirmations
from kinetic.cherry_pick.materialize import create_cherry_pick_pr as _create
from kinetic.cherry_pick.probe import check_conflicts
from kinetic.core.config import CherryPickConfig
from kinetic.errors import ConfirmationRequiredError, KineticError
from kinetic.github.client import GitHubClient


class CherryPickDeps:
    """Dependencies shared by every tool call of one agent run."""

    def __init__(
        self,
        client: GitHubClient,
        config: CherryPickConfig | None = None,
        confirmations: Confirmations | None = None,
        ask: Callable[[str], str] = input,
    ):
        """Initialize dependencies.

        Args:
            client: GitHub client for the configured repository
            config: Probe and materialization settings
            confirmations: Confirmations granted so far in this run
            ask: Prompts the human and returns the answer
        """
        self.client = client
        self.config = config or CherryPickConfig()
        self.confirmations = confirmations or Confirmations()
        self.ask = ask


async def list_merged_prs(
    ctx: RunContext[CherryPickDeps], days: int = 7
) -> dict:
    """List pull requests merged within the last `days` days.

    Args:
        days: Lookback window in days (0 means the default of 7)

    Returns:
        {"prs": [{number, title, author, merged_at, merge_sha}, ...]}
    """
    deps = ctx.deps
    try:
        prs = await list_merged_pull_requests(
            deps.client, days, config=deps.config
        )
    except KineticError as e:
        raise ModelRetry(f"Failed to list merged PRs: {e}") from e
    return {
        "prs": [
            MergedPullRequest.from_pull_request(pr).model_dump()
            for pr in prs
        ]
    }


async def check_cherry_pick_conflicts(
    ctx: RunContext[CherryPickDeps],
    pr_number: int,
    target_branch: str,
    base_branch: str = "main",
) -> dict:
    """Check whether cherry-picking a merged PR onto target_branch would
    conflict.

    Call this BEFORE asking the user for confirmation and before
    create_cherry_pick_pr.

    Args:
        pr_number: The merged PR to cherry-pick
        target_branch: Branch the commits would land on
        base_branch: Base branch (default: main)

    Returns:
        {"has_conflicts": bool, "details": [str], "commits": int}
    """
    deps = ctx.deps
    try:
        check = await check_conflicts(
            deps.client, pr_number, target_branch, base_branch, deps.config
        )
    except KineticError as e:
        raise ModelRetry(str(e)) from e
    return check.model_dump()


async def request_confirmation(
    ctx: RunContext[CherryPickDeps],
    pr_number: int,
    target_branches: list[str],
) -> dict:
    """Ask the user to approve cherry-picking a PR to target branches.

    The user sees the PR number and every target branch and must answer
    yes. Only approved pairs may be passed to create_cherry_pick_pr.

    Args:
        pr_number: The merged PR to cherry-pick
        target_branches: Branches to cherry-pick to

    Returns:
        {"confirmed": bool, "pr_number": int, "target_branches": [str]}
    """
    if not target_branches:
        raise ModelRetry(
            "target_branches is empty. Ask the user which branches to "
            "cherry-pick to first."
        )

    deps = ctx.deps
    question = (
        f"Create cherry-pick PRs for PR #{pr_number} to "
        f"{', '.join(target_branches)}? [yes/no] "
    )
    answer = await asyncio.to_thread(deps.ask, question)
    confirmed = answer.strip().lower() in ("y", "yes")
    if confirmed:
        deps.confirmations.grant(pr_number, target_branches)
    return {
        "confirmed": confirmed,
        "pr_number": pr_number,
        "target_branches": list(target_branches),
    }


async def create_cherry_pick_pr(
    ctx: RunContext[CherryPickDeps],
    pr_number: int,
    target_branch: str,
    base_branch: str = "main",
) -> dict:
    """Create a pull request cherry-picking a merged PR to target_branch.

    Only the PR's own commits are cherry-picked, never its merge
    commit. Conflicts are checked again first and the call fails if
    any are found. Only call this after check_cherry_pick_conflicts
    reported no conflicts AND request_confirmation returned
    confirmed=true for this PR and branch.

    Args:
        pr_number: The merged PR to cherry-pick
        target_branch: Branch to cherry-pick to
        base_branch: Branch to create the cherry-pick branch from
            (default: main)

    Returns:
        {"pr_number": int, "title": str, "url": str, "branch": str}
    """
    deps = ctx.deps
    try:
        created = await _create(
            deps.client,
            pr_number,
            target_branch,
            deps.confirmations.get(pr_number),
            base_branch,
            deps.config,
        )
    except ConfirmationRequiredError as e:
        raise ModelRetry(
            f"{e}. Call request_confirmation for PR #{pr_number} and "
            f"{target_branch} and wait for the user to approve."
        ) from e
    except KineticError as e:
        raise ModelRetry(str(e)) from e
    return created.model_dump()

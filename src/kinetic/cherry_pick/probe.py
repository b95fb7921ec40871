"""Mergeability probing through disposable pull requests.

GitHub already knows how to decide whether a branch merges cleanly
into another: it computes the `mergeable` flag of every open pull
request. To ask "would PR #n land cleanly on release-1?" without a
local clone, we open a throwaway pull request from PR #n's head ref
into release-1, read the flag once GitHub has computed it, and close
the throwaway again.

The throwaway (the probe) must never outlive one check: once open_probe()
has returned, everything else runs inside probe_pull_request(), which
closes it on every exit path (normal return, API errors while polling,
task cancellation).
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from pydantic import BaseModel, Field

from kinetic.cherry_pick.commits import get_cherry_pickable_commits
from kinetic.core.config import CherryPickConfig
from kinetic.core.log import logger
from kinetic.errors import (
    GitHubError,
    MissingHeadRefError,
    NotMergedError,
    ProbeCleanupWarning,
)
from kinetic.github.client import GitHubClient
from kinetic.github.models import Mergeability, PullRequest


class ConflictCheck(BaseModel):
    """Answer to "can PR #n be cherry-picked onto the target cleanly?"."""

    has_conflicts: bool
    details: list[str] = Field(default_factory=list)
    commits: int = 0


def probe_title(pr_number: int, target_branch: str) -> str:
    return (
        f"[TEST] Conflict check for PR #{pr_number} cherry-pick to "
        f"{target_branch}"
    )


def probe_body(pr_number: int, target_branch: str) -> str:
    return (
        f"Testing if PR #{pr_number} commits can be cherry-picked to "
        f"{target_branch}. This test PR will be closed immediately."
    )


async def close_probe(client: GitHubClient, probe_number: int) -> None:
    """Close a probe, logging instead of raising on failure."""
    try:
        await client.close_pull_request(probe_number)
    except Exception as e:
        logger.warning(
            f"Failed to close probe PR #{probe_number}; it is still open",
            probe_number=probe_number,
            warning=ProbeCleanupWarning.__name__,
            _exc_info=e,
        )
    else:
        logger.debug(
            f"Closed probe PR #{probe_number}", probe_number=probe_number
        )


async def open_probe(
    client: GitHubClient, pr_number: int, head_ref: str, target_branch: str
) -> PullRequest:
    """Open a probe PR from head_ref into target_branch.

    Raises:
        GitHubError: If the probe could not be created
    """
    probe = await client.create_pull_request(
        title=probe_title(pr_number, target_branch),
        body=probe_body(pr_number, target_branch),
        head=head_ref,
        base=target_branch,
    )
    logger.debug(
        f"Opened probe PR #{probe.number} for PR #{pr_number} -> "
        f"{target_branch}",
        probe_number=probe.number,
        pr_number=pr_number,
        target_branch=target_branch,
    )
    return probe


@asynccontextmanager
async def probe_pull_request(
    client: GitHubClient, probe: PullRequest
) -> AsyncIterator[PullRequest]:
    """Scope an open probe; close it exactly once on exit.

    The close is shielded from cancellation of the surrounding task,
    so a cancelled check still closes its probe.
    """
    try:
        yield probe
    finally:
        await asyncio.shield(close_probe(client, probe.number))


async def poll_mergeable(
    client: GitHubClient,
    probe_number: int,
    initial_delay: float,
    recheck_delay: float,
) -> PullRequest:
    """Wait for GitHub to compute the probe's mergeable flag.

    Two bounded waits: initial_delay then a read, and if the flag is
    still unknown recheck_delay then a final read. Returns the last
    snapshot, whose flag may still be UNKNOWN. A failed final read
    leaves the first snapshot (UNKNOWN) as the answer.

    Raises:
        GitHubError: If the first read fails
    """
    await asyncio.sleep(initial_delay)
    probe = await client.get_pull_request(probe_number)
    if probe.mergeable is not Mergeability.UNKNOWN:
        return probe

    logger.debug(
        f"Mergeability of probe PR #{probe_number} not computed yet, "
        f"re-checking in {recheck_delay}s",
        probe_number=probe_number,
    )
    await asyncio.sleep(recheck_delay)
    try:
        return await client.get_pull_request(probe_number)
    except GitHubError as e:
        logger.warning(
            f"Re-check of probe PR #{probe_number} failed; mergeability "
            f"stays unknown",
            probe_number=probe_number,
            _exc_info=e,
        )
        return probe


def interpret(
    probe: PullRequest, pr_number: int, target_branch: str
) -> tuple[bool, list[str]]:
    """Turn a probe snapshot into (has_conflicts, details).

    UNKNOWN counts as conflicting: never report "clean" on a guess.
    """
    if probe.mergeable is Mergeability.TRUE:
        return False, []
    if probe.mergeable is Mergeability.FALSE:
        details = [
            f"PR #{pr_number} commits cannot be cleanly merged into "
            f"{target_branch}"
        ]
        if probe.mergeable_state:
            details.append(f"Mergeable state: {probe.mergeable_state}")
        return True, details
    return True, [
        "Unable to determine mergeability status - assuming conflicts exist"
    ]


async def check_conflicts(
    client: GitHubClient,
    pr_number: int,
    target_branch: str,
    base_branch: str | None = None,
    config: CherryPickConfig | None = None,
) -> ConflictCheck:
    """Check whether a merged PR's commits merge cleanly into target_branch.

    Args:
        client: GitHub client
        pr_number: Merged pull request to cherry-pick
        target_branch: Branch the commits would land on
        base_branch: Accepted for interface symmetry with
            create_cherry_pick_pr; the probe always targets
            target_branch
        config: Poll delays; defaults when None

    Returns:
        ConflictCheck. A probe that cannot be opened (usually because
        the head branch was deleted after merging) yields
        has_conflicts=False with a caution detail.

    Raises:
        NotMergedError: PR is not merged
        NoCherryPickableCommitsError: PR has only merge commits
        MissingHeadRefError: PR has no head ref
        GitHubError: Any other API failure, after the probe is closed
    """
    config = config or CherryPickConfig()
    base_branch = base_branch or config.base_branch

    with logger.span(
        "Check cherry-pick conflicts",
        pr_number=pr_number,
        target_branch=target_branch,
        base_branch=base_branch,
    ):
        pr = await client.get_pull_request(pr_number)
        if not pr.is_merged:
            raise NotMergedError(pr_number)

        commits = await get_cherry_pickable_commits(
            client, pr_number, require=True
        )

        if not pr.head_ref:
            raise MissingHeadRefError(pr_number)

        try:
            probe = await open_probe(
                client, pr_number, pr.head_ref, target_branch
            )
        except GitHubError as e:
            logger.warning(
                f"Could not open probe PR for PR #{pr_number} -> "
                f"{target_branch}: {e}",
                pr_number=pr_number,
                target_branch=target_branch,
                head_ref=pr.head_ref,
            )
            return ConflictCheck(
                has_conflicts=False,
                details=[
                    f"Cannot check conflicts: original PR head branch "
                    f"'{pr.head_ref}' may have been deleted. Proceed "
                    f"with caution."
                ],
                commits=len(commits),
            )

        async with probe_pull_request(client, probe):
            snapshot = await poll_mergeable(
                client,
                probe.number,
                config.initial_poll_delay,
                config.recheck_poll_delay,
            )
            has_conflicts, details = interpret(
                snapshot, pr_number, target_branch
            )

        logger.info(
            f"PR #{pr_number} -> {target_branch}: "
            f"{'conflicts' if has_conflicts else 'clean'}",
            pr_number=pr_number,
            target_branch=target_branch,
            has_conflicts=has_conflicts,
            mergeable=snapshot.mergeable.value,
            commits=len(commits),
        )
        return ConflictCheck(
            has_conflicts=has_conflicts,
            details=details,
            commits=len(commits),
        )


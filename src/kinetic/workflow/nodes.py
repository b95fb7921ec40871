"""Backport workflow nodes.

Discover -> CheckConflicts -> Confirm -> Materialize -> End

The same order the agent is instructed to follow, without the model:
conflicts are checked before anyone is asked, and only confirmed
clean pairs are materialized.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from pydantic import BaseModel, Field
from pydantic_graph import BaseNode, End, GraphRunContext

from kinetic.cherry_pick.discovery import list_merged_pull_requests
from kinetic.cherry_pick.gate import Confirmations
from kinetic.cherry_pick.materialize import create_cherry_pick_pr
from kinetic.cherry_pick.probe import check_conflicts
from kinetic.core.config import State
from kinetic.core.log import logger
from kinetic.errors import KineticError


class BackportSummary(BaseModel):
    """Outcome of one backport run."""

    created: list[dict] = Field(default_factory=list)
    conflicts: list[dict] = Field(default_factory=list)
    declined: list[dict] = Field(default_factory=list)
    failures: list[dict] = Field(default_factory=list)


def _summary(state: State) -> BackportSummary:
    backport = state.runtime.backport
    conflicts = [
        {
            "pr_number": pr_number,
            "target_branch": target,
            "details": check.details,
        }
        for (pr_number, target), check in backport.checks.items()
        if check.has_conflicts
    ]
    declined = [
        {"pr_number": pr_number, "target_branch": target}
        for (pr_number, target), check in backport.checks.items()
        if not check.has_conflicts
        and not _confirmed(state, pr_number, target)
    ]
    return BackportSummary(
        created=[c.model_dump() for c in backport.created],
        conflicts=conflicts,
        declined=declined,
        failures=list(backport.failures),
    )


def _confirmed(state: State, pr_number: int, target_branch: str) -> bool:
    confirmations = state.runtime.backport.confirmations
    confirmation = confirmations.get(pr_number) if confirmations else None
    return confirmation is not None and confirmation.covers(
        pr_number, target_branch
    )


def _fail(state: State, pr_number: int, target_branch: str | None, e):
    logger.error(
        f"PR #{pr_number}: {e}",
        pr_number=pr_number,
        target_branch=target_branch,
        error_type=type(e).__name__,
    )
    state.runtime.backport.failures.append({
        "pr_number": pr_number,
        "target_branch": target_branch,
        "error": str(e),
    })


@dataclass
class Discover(BaseNode[State, None, BackportSummary]):
    """Collect the pull requests to backport."""

    async def run(
        self, ctx: GraphRunContext[State]
    ) -> CheckConflicts | End[BackportSummary]:
        backport = ctx.state.runtime.backport
        backport.status = "running"
        if backport.confirmations is None:
            backport.confirmations = Confirmations()
        client = backport.client

        if backport.pr_numbers:
            candidates = []
            for number in backport.pr_numbers:
                try:
                    candidates.append(await client.get_pull_request(number))
                except KineticError as e:
                    _fail(ctx.state, number, None, e)
        else:
            candidates = await list_merged_pull_requests(
                client, backport.days, config=ctx.state.config.cherry_pick
            )

        backport.candidates = candidates
        if not candidates:
            logger.info("Nothing to backport")
            backport.status = "failed" if backport.failures else "complete"
            return End(_summary(ctx.state))

        logger.info(
            f"Backporting {len(candidates)} PRs to "
            f"{', '.join(backport.target_branches)}",
            pr_numbers=[pr.number for pr in candidates],
        )
        return CheckConflicts()


@dataclass
class CheckConflicts(BaseNode[State, None, BackportSummary]):
    """Probe every (PR, target branch) pair."""

    async def run(self, ctx: GraphRunContext[State]) -> Confirm:
        backport = ctx.state.runtime.backport
        for pr in backport.candidates:
            for target in backport.target_branches:
                try:
                    backport.checks[(pr.number, target)] = (
                        await check_conflicts(
                            backport.client,
                            pr.number,
                            target,
                            backport.base_branch,
                            ctx.state.config.cherry_pick,
                        )
                    )
                except KineticError as e:
                    _fail(ctx.state, pr.number, target, e)
        return Confirm()


@dataclass
class Confirm(BaseNode[State, None, BackportSummary]):
    """Ask once per PR for the branches it can land on cleanly."""

    async def run(self, ctx: GraphRunContext[State]) -> Materialize:
        backport = ctx.state.runtime.backport
        for pr in backport.candidates:
            clean = [
                target for target in backport.target_branches
                if (pr.number, target) in backport.checks
                and not backport.checks[(pr.number, target)].has_conflicts
            ]
            if not clean:
                continue

            if backport.assume_yes:
                backport.confirmations.grant(pr.number, clean)
                continue

            question = (
                f"PR #{pr.number}: {pr.title} (@{pr.author})\n"
                f"Create cherry-pick PRs to {', '.join(clean)}? [yes/no] "
            )
            answer = await asyncio.to_thread(backport.ask, question)
            if answer.strip().lower() in ("y", "yes"):
                backport.confirmations.grant(pr.number, clean)
            else:
                logger.info(
                    f"PR #{pr.number} declined", pr_number=pr.number
                )
        return Materialize()


@dataclass
class Materialize(BaseNode[State, None, BackportSummary]):
    """Create cherry-pick PRs for confirmed clean pairs."""

    async def run(
        self, ctx: GraphRunContext[State]
    ) -> End[BackportSummary]:
        backport = ctx.state.runtime.backport
        for (pr_number, target), check in backport.checks.items():
            if check.has_conflicts or not _confirmed(
                ctx.state, pr_number, target
            ):
                continue
            try:
                created = await create_cherry_pick_pr(
                    backport.client,
                    pr_number,
                    target,
                    backport.confirmations.get(pr_number),
                    backport.base_branch,
                    ctx.state.config.cherry_pick,
                )
            except KineticError as e:
                _fail(ctx.state, pr_number, target, e)
                continue
            backport.created.append(created)

        backport.status = "failed" if backport.failures else "complete"
        summary = _summary(ctx.state)
        logger.info(
            f"Backport {backport.status}: {len(summary.created)} created, "
            f"{len(summary.conflicts)} with conflicts, "
            f"{len(summary.failures)} failed",
            status=backport.status,
        )
        return End(summary)

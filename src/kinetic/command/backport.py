"""Backport command - runs the backport workflow."""

from pydantic import BaseModel, Field

from kinetic.command.common import (
    EXIT_ERROR,
    EXIT_OK,
    emit,
    exit_code_for,
    open_client,
)
from kinetic.core.log import logger
from kinetic.errors import KineticError


class BackportCommand(BaseModel):
    """Cherry-pick recently merged PRs onto one or more branches.

    Discovers merged PRs (or takes --pr-numbers), checks every PR
    against every target branch, asks once per PR for the branches it
    applies to cleanly, then opens the cherry-pick PRs.
    """

    target_branches: list[str] = Field(
        description="Branches to cherry-pick onto",
    )
    days: int = Field(
        default=0,
        description="Lookback window in days (0 uses the configured default, 7)",
    )
    pr_numbers: list[int] = Field(
        default_factory=list,
        description="Backport these PRs instead of discovering merged ones",
    )
    base_branch: str | None = Field(
        default=None,
        description="Base branch (default: config.cherry_pick.base_branch)",
    )
    yes: bool = Field(
        default=False,
        description="Confirm every conflict-free cherry-pick without asking",
    )

    async def run_workflow(self, state: "State", ask=input) -> int:
        """Run backport workflow.

        Args:
            state: State instance
            ask: Prompts the human and returns the answer

        Returns:
            Exit code (0=success, 1=any pair failed)
        """
        from kinetic.workflow.graph import create_workflow
        from kinetic.workflow.nodes import Discover

        backport = state.runtime.backport
        backport.target_branches = list(self.target_branches)
        backport.days = self.days
        backport.pr_numbers = list(self.pr_numbers)
        backport.base_branch = self.base_branch
        backport.assume_yes = self.yes
        backport.ask = ask

        try:
            client = open_client(state)
        except ValueError as e:
            return exit_code_for(e)

        workflow = create_workflow()
        summary = None
        try:
            async with client:
                backport.client = client
                async with workflow.iter(Discover(), state=state) as run:
                    async for _node in run:
                        pass
                summary = run.result.output
        except KineticError as e:
            backport.status = "failed"
            return exit_code_for(e)
        finally:
            backport.client = None

        emit(summary)
        if backport.failures:
            logger.error(
                f"Backport finished with {len(backport.failures)} failures"
            )
            return EXIT_ERROR
        return EXIT_OK

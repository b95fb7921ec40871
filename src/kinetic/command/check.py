"""Check command - probe one (PR, target branch) pair for conflicts."""

from pydantic import BaseModel, Field

from kinetic.cherry_pick.probe import check_conflicts
from kinetic.command.common import EXIT_OK, emit, exit_code_for, open_client
from kinetic.errors import KineticError


class CheckCommand(BaseModel):
    """Check whether a merged PR cherry-picks cleanly onto a branch.

    Opens a temporary probe pull request, reads GitHub's mergeable flag
    and closes the probe again. Nothing else is changed.
    """

    pr_number: int = Field(description="Merged pull request number")
    target_branch: str = Field(description="Branch to cherry-pick onto")
    base_branch: str | None = Field(
        default=None,
        description="Base branch (default: config.cherry_pick.base_branch)",
    )

    async def run_workflow(self, state: "State") -> int:
        """Run the conflict check and print the result.

        Returns:
            Exit code (0=check completed, 1=failure)
        """
        try:
            async with open_client(state) as client:
                check = await check_conflicts(
                    client,
                    self.pr_number,
                    self.target_branch,
                    self.base_branch,
                    state.config.cherry_pick,
                )
        except (KineticError, ValueError) as e:
            return exit_code_for(e)

        emit(check)
        return EXIT_OK

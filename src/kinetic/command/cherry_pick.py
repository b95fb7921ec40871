"""Cherry-pick command - create one cherry-pick pull request."""

from pydantic import BaseModel, Field

from kinetic.cherry_pick.gate import Confirmation
from kinetic.cherry_pick.materialize import create_cherry_pick_pr
from kinetic.command.common import EXIT_OK, emit, exit_code_for, open_client
from kinetic.errors import KineticError


class CherryPickCommand(BaseModel):
    """Create a branch and pull request cherry-picking a merged PR.

    Conflicts are checked first; nothing is created when they are
    found. Without --confirm nothing is created either and the exit
    code is 2.
    """

    pr_number: int = Field(description="Merged pull request number")
    target_branch: str = Field(description="Branch to cherry-pick onto")
    base_branch: str | None = Field(
        default=None,
        description="Base branch (default: config.cherry_pick.base_branch)",
    )
    confirm: bool = Field(
        default=False,
        description="Confirm creating the cherry-pick branch and PR",
    )

    async def run_workflow(self, state: "State") -> int:
        """Create the cherry-pick PR and print it.

        Returns:
            Exit code (0=created, 1=failure, 2=not confirmed)
        """
        confirmation = None
        if self.confirm:
            confirmation = Confirmation(
                pr_number=self.pr_number,
                target_branches=frozenset({self.target_branch}),
            )

        try:
            async with open_client(state) as client:
                created = await create_cherry_pick_pr(
                    client,
                    self.pr_number,
                    self.target_branch,
                    confirmation,
                    self.base_branch,
                    state.config.cherry_pick,
                )
        except (KineticError, ValueError) as e:
            return exit_code_for(e)

        emit(created)
        return EXIT_OK

"""List-merged command - pull requests merged recently."""

from pydantic import BaseModel, Field

from kinetic.cherry_pick.discovery import (
    MergedPullRequest,
    list_merged_pull_requests,
)
from kinetic.command.common import EXIT_OK, emit, exit_code_for, open_client
from kinetic.errors import KineticError


class ListMergedCommand(BaseModel):
    """List pull requests merged within the last N days."""

    days: int = Field(
        default=0,
        description="Lookback window in days (0 uses the configured default, 7)",
    )

    async def run_workflow(self, state: "State") -> int:
        """Run discovery and print {"prs": [...]}.

        Returns:
            Exit code (0=success, 1=failure)
        """
        try:
            async with open_client(state) as client:
                prs = await list_merged_pull_requests(
                    client, self.days, config=state.config.cherry_pick
                )
        except (KineticError, ValueError) as e:
            return exit_code_for(e)

        emit({
            "prs": [
                MergedPullRequest.from_pull_request(pr).model_dump()
                for pr in prs
            ]
        })
        return EXIT_OK

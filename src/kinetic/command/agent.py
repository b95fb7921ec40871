"""Agent command - let the cherry-pick agent handle a request."""

import builtins

from pydantic import BaseModel, Field
from pydantic_ai.exceptions import AgentRunError

from kinetic.cherry_pick.gate import Confirmations
from kinetic.command.common import EXIT_OK, exit_code_for, open_client
from kinetic.errors import KineticError


class AgentCommand(BaseModel):
    """Ask the cherry-pick agent, e.g. "backport last week's fixes to
    release-1".

    The agent lists merged PRs, checks conflicts and asks for your
    confirmation on the console before creating anything.
    """

    input: str = Field(description="Request for the agent")

    async def run_workflow(self, state: "State", ask=builtins.input) -> int:
        """Run the agent and print its answer.

        Returns:
            Exit code (0=success, 1=failure)
        """
        from kinetic.model.agent import CherryPickAgent
        from kinetic.tools import CherryPickDeps

        try:
            client = open_client(state)
        except ValueError as e:
            return exit_code_for(e)

        confirmations = Confirmations()
        state.runtime.backport.confirmations = confirmations
        agent = CherryPickAgent(state.config.llm, state.config)
        try:
            async with client:
                output = await agent.run(
                    self.input,
                    CherryPickDeps(
                        client=client,
                        config=state.config.cherry_pick,
                        confirmations=confirmations,
                        ask=ask,
                    ),
                )
        except (KineticError, AgentRunError) as e:
            return exit_code_for(e)

        print(output)
        return EXIT_OK

#!/usr/bin/env python3
"""kinetic CLI - cherry-pick merged GitHub pull requests onto other
branches."""

import asyncio
import sys

from pydantic_settings import CliApp, CliSubCommand, get_subcommand

from kinetic.command.agent import AgentCommand
from kinetic.command.backport import BackportCommand
from kinetic.command.check import CheckCommand
from kinetic.command.cherry_pick import CherryPickCommand
from kinetic.command.list_merged import ListMergedCommand
from kinetic.core.config import State
from kinetic.core.log import logger


class CliState(State):
    """Cherry-pick merged GitHub pull requests onto release branches.

    Conflicts are detected by GitHub itself through a short-lived probe
    pull request, so no local clone is needed. Nothing is created
    without explicit confirmation.

    Configuration sources (in priority order):
    1. Command-line arguments (--config.github.repo value)
    2. kinetic.yaml in the current directory (plus --include files)
    3. .env file for secrets
    4. Environment variables (KINETIC_CONFIG__GITHUB__REPO=value,
       or GITHUB_TOKEN / GITHUB_ORG / GITHUB_REPO)

    Results are printed as JSON on stdout; logs go to stderr.
    """

    list_merged: CliSubCommand[ListMergedCommand]
    check: CliSubCommand[CheckCommand]
    cherry_pick: CliSubCommand[CherryPickCommand]
    backport: CliSubCommand[BackportCommand]
    agent: CliSubCommand[AgentCommand]

    def cli_cmd(self):
        """Dispatch to active subcommand, or show help if none
        provided."""
        subcommand = get_subcommand(self, is_required=False)

        if subcommand is None:
            CliApp.run(CliState, cli_args=['--help'])
            sys.exit(1)

        # self IS State with all config loaded
        with logger:
            exit_code = asyncio.run(subcommand.run_workflow(self))
            raise SystemExit(exit_code)


def main():
    """Main entry point for CLI."""
    CliApp.run(CliState)


if __name__ == "__main__":
    main()

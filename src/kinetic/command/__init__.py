"""CLI command modules for kinetic."""

from kinetic.command.agent import AgentCommand
from kinetic.command.backport import BackportCommand
from kinetic.command.check import CheckCommand
from kinetic.command.cherry_pick import CherryPickCommand
from kinetic.command.list_merged import ListMergedCommand

__all__ = [
    "AgentCommand",
    "BackportCommand",
    "CheckCommand",
    "CherryPickCommand",
    "ListMergedCommand",
]

"""Backport workflow as a pydantic-graph state machine."""

from kinetic.workflow.graph import create_workflow
from kinetic.workflow.nodes import (
    BackportSummary,
    CheckConflicts,
    Confirm,
    Discover,
    Materialize,
)

__all__ = [
    "create_workflow",
    "BackportSummary",
    "Discover",
    "CheckConflicts",
    "Confirm",
    "Materialize",
]

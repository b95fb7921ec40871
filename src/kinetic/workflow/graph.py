"""Graph workflow definition."""

from pydantic_graph import Graph

from kinetic.core.config import State
from kinetic.core.log import logger
from kinetic.workflow.nodes import (
    CheckConflicts,
    Confirm,
    Discover,
    Materialize,
)


def create_workflow() -> Graph:
    """Create the backport workflow graph.

    Discover → CheckConflicts → Confirm → Materialize → End

    Returns:
        Graph workflow with State as state_type
    """
    logger.debug("Building backport workflow graph")
    return Graph(
        nodes=(Discover, CheckConflicts, Confirm, Materialize),
        state_type=State,
    )

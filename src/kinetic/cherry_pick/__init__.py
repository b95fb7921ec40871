"""Cherry-pick conflict detection and pull request materialization.

Control flow: discovery -> probe -> confirmation gate -> materialize.
Materialization re-runs the commit filter and the probe itself before
changing anything on the host.
"""

from kinetic.cherry_pick.commits import (
    cherry_pickable,
    get_cherry_pickable_commits,
)
from kinetic.cherry_pick.discovery import (
    MergedPullRequest,
    list_merged_pull_requests,
)
from kinetic.cherry_pick.gate import (
    Confirmation,
    Confirmations,
    require_confirmation,
)
from kinetic.cherry_pick.materialize import (
    CherryPickPullRequest,
    branch_name,
    create_cherry_pick_pr,
)
from kinetic.cherry_pick.probe import ConflictCheck, check_conflicts

__all__ = [
    "cherry_pickable",
    "get_cherry_pickable_commits",
    "MergedPullRequest",
    "list_merged_pull_requests",
    "Confirmation",
    "Confirmations",
    "require_confirmation",
    "ConflictCheck",
    "check_conflicts",
    "CherryPickPullRequest",
    "branch_name",
    "create_cherry_pick_pr",
]

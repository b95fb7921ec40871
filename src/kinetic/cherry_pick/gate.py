"""Human confirmation required before any cherry-pick PR is created."""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel, Field

from kinetic.errors import ConfirmationRequiredError


class Confirmation(BaseModel):
    """An explicit yes from a human for one pull request.

    Covers exactly the listed target branches; approving release-1
    says nothing about release-2.
    """

    pr_number: int
    target_branches: frozenset[str] = Field(default_factory=frozenset)

    def covers(self, pr_number: int, target_branch: str) -> bool:
        return (
            pr_number == self.pr_number
            and target_branch in self.target_branches
        )


class Confirmations(BaseModel):
    """Confirmations collected during one run, keyed by PR number."""

    granted: dict[int, Confirmation] = Field(default_factory=dict)

    def grant(
        self, pr_number: int, target_branches: Iterable[str]
    ) -> Confirmation:
        """Record approval, adding to any earlier approval for the PR."""
        previous = self.granted.get(pr_number)
        branches = frozenset(target_branches)
        if previous is not None:
            branches |= previous.target_branches
        confirmation = Confirmation(
            pr_number=pr_number, target_branches=branches
        )
        self.granted[pr_number] = confirmation
        return confirmation

    def get(self, pr_number: int) -> Confirmation | None:
        return self.granted.get(pr_number)


def require_confirmation(
    confirmation: Confirmation | None, pr_number: int, target_branch: str
) -> None:
    """Raise unless confirmation covers (pr_number, target_branch).

    Raises:
        ConfirmationRequiredError: If it does not
    """
    if confirmation is None or not confirmation.covers(
        pr_number, target_branch
    ):
        raise ConfirmationRequiredError(pr_number, target_branch)

"""Helpers shared by the CLI commands."""

import json
from typing import Any

from pydantic import BaseModel

from kinetic.core.log import logger
from kinetic.errors import ConfirmationRequiredError
from kinetic.github.client import GitHubClient

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_UNCONFIRMED = 2


def open_client(state) -> GitHubClient:
    """GitHub client for the configured repository.

    Raises:
        ValueError: If token, owner or repo is missing
    """
    github = state.config.github
    github.require()
    return GitHubClient.from_config(github)


def emit(result: Any) -> None:
    """Print a result as JSON on stdout."""
    if isinstance(result, BaseModel):
        result = result.model_dump(mode="json")
    print(json.dumps(result, indent=2, default=str))


def exit_code_for(e: Exception) -> int:
    """Log a command failure and map it to an exit code."""
    if isinstance(e, ConfirmationRequiredError):
        logger.error(
            f"{e}; pass --confirm to create it",
            pr_number=e.pr_number,
            target_branch=e.target_branch,
        )
        return EXIT_UNCONFIRMED
    logger.error(str(e), error_type=type(e).__name__)
    return EXIT_ERROR

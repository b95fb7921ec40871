"""Read-only pull request tools."""

from pydantic_ai import RunContext
from pydantic_ai.exceptions import ModelRetry

from kinetic.errors import GitHubError
from kinetic.tools.cherry_pick import CherryPickDeps


async def fetch_pull_request(
    ctx: RunContext[CherryPickDeps], pr_number: int
) -> dict:
    """Fetch a pull request by number.

    Args:
        pr_number: Pull request number

    Returns:
        {number, title, body, state, author, files, additions, deletions}
    """
    client = ctx.deps.client
    try:
        pr = await client.get_pull_request(pr_number)
        files = await client.list_pull_request_files(pr_number)
    except GitHubError as e:
        raise ModelRetry(str(e)) from e

    return {
        "number": pr.number,
        "title": pr.title,
        "body": pr.body,
        "state": pr.state,
        "author": pr.author,
        "files": [f.filename for f in files],
        "additions": pr.additions,
        "deletions": pr.deletions,
    }


async def get_pull_request_diff(
    ctx: RunContext[CherryPickDeps], pr_number: int
) -> dict:
    """Get the diff of a pull request, file by file.

    Binary files and very large changes have no patch and are left out.

    Args:
        pr_number: Pull request number

    Returns:
        {"diff": str}
    """
    try:
        files = await ctx.deps.client.list_pull_request_files(pr_number)
    except GitHubError as e:
        raise ModelRetry(str(e)) from e

    diffs = [
        f"File: {f.filename}\n{f.patch}\n"
        for f in files
        if f.patch is not None
    ]
    return {"diff": "\n---\n\n".join(diffs)}

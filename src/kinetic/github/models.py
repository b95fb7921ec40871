"""Read-only snapshots of GitHub objects."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class Mergeability(str, Enum):
    """Host-computed mergeable flag.

    GitHub computes it asynchronously and reports null until done.
    """

    TRUE = "true"
    FALSE = "false"
    UNKNOWN = "unknown"

    @classmethod
    def from_api(cls, value: bool | None) -> Mergeability:
        if value is None:
            return cls.UNKNOWN
        return cls.TRUE if value else cls.FALSE


class PullRequest(BaseModel):
    """Pull request as returned by GET /repos/{owner}/{repo}/pulls/{n}."""

    number: int
    title: str = ""
    body: str = ""
    state: str = ""
    author: str = ""
    head_ref: str = ""
    base_ref: str = ""
    html_url: str = ""
    merged_at: datetime | None = None
    updated_at: datetime | None = None
    merge_commit_sha: str = ""
    additions: int = 0
    deletions: int = 0
    mergeable: Mergeability = Mergeability.UNKNOWN
    mergeable_state: str | None = None

    @property
    def is_merged(self) -> bool:
        return self.merged_at is not None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> PullRequest:
        """Build from a GitHub pull request payload."""
        head = data.get("head") or {}
        base = data.get("base") or {}
        user = data.get("user") or {}
        return cls(
            number=data["number"],
            title=data.get("title") or "",
            body=data.get("body") or "",
            state=data.get("state") or "",
            author=user.get("login") or "",
            head_ref=head.get("ref") or "",
            base_ref=base.get("ref") or "",
            html_url=data.get("html_url") or "",
            merged_at=data.get("merged_at"),
            updated_at=data.get("updated_at"),
            merge_commit_sha=data.get("merge_commit_sha") or "",
            additions=data.get("additions") or 0,
            deletions=data.get("deletions") or 0,
            mergeable=Mergeability.from_api(data.get("mergeable")),
            mergeable_state=data.get("mergeable_state"),
        )


class Commit(BaseModel):
    """A commit of a pull request."""

    sha: str
    parents: list[str] = Field(default_factory=list)
    message: str = ""

    @property
    def is_merge(self) -> bool:
        return len(self.parents) > 1

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Commit:
        return cls(
            sha=data["sha"],
            parents=[p["sha"] for p in data.get("parents") or []],
            message=(data.get("commit") or {}).get("message") or "",
        )


class PullRequestFile(BaseModel):
    """A file changed by a pull request."""

    filename: str
    status: str = ""
    additions: int = 0
    deletions: int = 0
    patch: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> PullRequestFile:
        return cls(
            filename=data["filename"],
            status=data.get("status") or "",
            additions=data.get("additions") or 0,
            deletions=data.get("deletions") or 0,
            patch=data.get("patch"),
        )


class Ref(BaseModel):
    """A git reference, e.g. refs/heads/main."""

    ref: str
    sha: str

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Ref:
        return cls(ref=data["ref"], sha=data["object"]["sha"])


__all__ = [
    "Mergeability",
    "PullRequest",
    "Commit",
    "PullRequestFile",
    "Ref",
]

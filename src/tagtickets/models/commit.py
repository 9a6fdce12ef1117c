"""Data models for commits, tags and releases."""

from datetime import datetime
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


def ticket_sort_key(key: str) -> Tuple[str, int, str]:
    """Natural sort key for ticket keys: ABC-2 sorts before ABC-10."""
    prefix, _, number = key.rpartition("-")
    if number.isdigit():
        return (prefix, int(number), key)
    return (key, -1, key)


class Commit(BaseModel):
    """A single node of the commit DAG."""

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "id": "abc123def456",
                "parents": ["parent123"],
                "message": "PROJ-42 Fix token validation\n\nCloses PROJ-41",
                "timestamp": "2024-01-15T10:30:00Z",
            }
        },
    )

    id: str = Field(..., description="Full commit SHA hash")
    parents: List[str] = Field(default_factory=list, description="Parent commit hashes, in order")
    message: str = Field("", description="Full commit message")
    timestamp: datetime = Field(..., description="Author timestamp")

    @property
    def short_id(self) -> str:
        return self.id[:7]

    @property
    def summary(self) -> str:
        """First line of the commit message."""
        lines = self.message.strip().split("\n")
        return lines[0] if lines else ""

    @property
    def is_merge(self) -> bool:
        return len(self.parents) > 1

    @property
    def is_root(self) -> bool:
        return not self.parents


class Tag(BaseModel):
    """A named pointer at a commit, marking one release."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Tag name, e.g. v1.2.0")
    target: str = Field(..., description="Commit hash the tag points at")
    created_at: Optional[datetime] = Field(None, description="Creation time for annotated tags")


class TicketReference(BaseModel):
    """A normalized ticket key and the commit it was found in."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., description="Normalized ticket key, e.g. PROJ-123")
    commit_id: str = Field(..., description="Commit whose message referenced the ticket")


class Release(BaseModel):
    """A tag plus the commits first introduced by it.

    ``tag`` is None only for the pseudo-release holding commits reachable from
    HEAD that no tag covers yet.
    """

    tag: Optional[Tag] = Field(None, description="Tag marking this release")
    label: str = Field(..., description="Display name of the release")
    commits: List[Commit] = Field(default_factory=list, description="Exclusive commits, oldest first")
    tickets: List[TicketReference] = Field(default_factory=list, description="Ticket references found")
    timestamp: Optional[datetime] = Field(None, description="Timestamp of the tagged commit")
    complete: bool = Field(True, description="False when commits could not be resolved")
    warnings: List[str] = Field(default_factory=list, description="Integrity problems for this release")

    @property
    def is_unreleased(self) -> bool:
        return self.tag is None

    @property
    def commit_ids(self) -> List[str]:
        return [commit.id for commit in self.commits]

    @property
    def ticket_keys(self) -> List[str]:
        """Unique ticket keys in natural order."""
        return sorted({ref.key for ref in self.tickets}, key=ticket_sort_key)


class CommitLine(BaseModel):
    """One commit as shown under a release."""

    id: str
    short_id: str
    summary: str
    tickets: List[str] = Field(default_factory=list)


class ReportEntry(BaseModel):
    """Presentation-ready view of one release."""

    label: str = Field(..., description="Release label")
    tickets: List[str] = Field(default_factory=list, description="Ticket keys, sorted")
    ticket_urls: List[str] = Field(default_factory=list, description="Linked tickets, parallel to tickets")
    commit_count: int = Field(0, description="Number of exclusive commits")
    commits: List[CommitLine] = Field(default_factory=list, description="Per-commit lines when requested")
    timestamp: Optional[datetime] = Field(None, description="Tagged commit timestamp")
    complete: bool = Field(True, description="Whether every commit could be resolved")
    unreleased: bool = Field(False, description="True for the untagged HEAD pseudo-release")


class ReleaseReport(BaseModel):
    """Ordered report entries plus the warnings collected during the run."""

    entries: List[ReportEntry] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    partial: bool = Field(False, description="True when the run was cancelled or timed out")

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

"""Data models for release and ticket mapping."""

from tagtickets.models.commit import (
    Commit,
    CommitLine,
    Release,
    ReleaseReport,
    ReportEntry,
    Tag,
    TicketReference,
    ticket_sort_key,
)
from tagtickets.models.config import RepositoryConfig, Settings

__all__ = [
    "Commit",
    "Tag",
    "TicketReference",
    "Release",
    "CommitLine",
    "ReportEntry",
    "ReleaseReport",
    "ticket_sort_key",
    "RepositoryConfig",
    "Settings",
]

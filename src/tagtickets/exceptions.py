"""Exception hierarchy for tagtickets.

Exception Hierarchy:
    TagTicketsError (base)
    ├── AdapterError
    ├── DataIntegrityError
    ├── TicketPatternError
    └── ConfigurationError

Only ``DataIntegrityError`` is recoverable: the partition engine records it
against a single release and keeps going. Everything else aborts the run.
"""

from typing import Optional


class TagTicketsError(Exception):
    """Base exception for all tagtickets errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class AdapterError(TagTicketsError):
    """The commit store could not be read (missing path, not a repository)."""


class DataIntegrityError(TagTicketsError):
    """A commit referenced by a tag or a parent edge cannot be resolved.

    Attributes:
        tag_name: Release the problem was found in (None for the unreleased walk)
        commit_id: Identifier that could not be resolved
    """

    def __init__(self, commit_id: str, tag_name: Optional[str] = None) -> None:
        self.commit_id = commit_id
        self.tag_name = tag_name
        where = f"release {tag_name}" if tag_name else "unreleased commits"
        super().__init__(f"Commit {commit_id} referenced from {where} could not be resolved")


class TicketPatternError(TagTicketsError):
    """A custom ticket regular expression failed to compile."""


class ConfigurationError(TagTicketsError):
    """An option value could not be interpreted."""

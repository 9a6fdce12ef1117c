"""Commit store adapters."""

from tagtickets.extraction.base import BaseCommitStore
from tagtickets.extraction.git_extractor import GitCommitStore
from tagtickets.extraction.memory import InMemoryCommitStore

__all__ = [
    "BaseCommitStore",
    "GitCommitStore",
    "InMemoryCommitStore",
]

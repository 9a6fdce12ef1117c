"""Base class for commit store adapters."""

from abc import ABC, abstractmethod
from typing import List, Optional

from tagtickets.models import Commit, Tag


class BaseCommitStore(ABC):
    """Abstract read-only view of a commit DAG and its tags.

    The release engine only talks to a repository through this interface, so
    a run can be pointed at a real repository or at an in-memory fixture.
    """

    @abstractmethod
    def resolve_tags(self) -> List[Tag]:
        """Return every tag with the commit it points at.

        Tags whose target cannot be peeled to a commit are still returned;
        the engine reports them as unreachable.

        Returns:
            List of Tag objects
        """
        pass

    @abstractmethod
    def get_commit(self, commit_id: str) -> Optional[Commit]:
        """Look up a single commit.

        Args:
            commit_id: Full commit hash

        Returns:
            The Commit, or None if the store does not contain it
        """
        pass

    @abstractmethod
    def head_commit(self) -> Optional[str]:
        """Return the hash HEAD points at, or None for an empty repository."""
        pass

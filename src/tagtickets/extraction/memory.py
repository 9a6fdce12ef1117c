"""In-memory commit store for fixtures and embedding."""

from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional

from tagtickets.extraction.base import BaseCommitStore
from tagtickets.models import Commit, Tag

EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)


class InMemoryCommitStore(BaseCommitStore):
    """Commit store holding a hand-built DAG.

    Example:
        store = InMemoryCommitStore()
        store.add_commit("a", message="Initial commit")
        store.add_commit("b", parents=["a"], message="ABC-1 Add feature")
        store.add_tag("v1.0", "b")
    """

    def __init__(
        self,
        commits: Optional[Iterable[Commit]] = None,
        tags: Optional[Iterable[Tag]] = None,
        head: Optional[str] = None,
    ) -> None:
        self.commits: Dict[str, Commit] = {}
        self.tags: Dict[str, Tag] = {}
        self.head: Optional[str] = head
        for commit in commits or []:
            self.commits[commit.id] = commit
        for tag in tags or []:
            self.tags[tag.name] = tag

    def add_commit(
        self,
        commit_id: str,
        parents: Optional[List[str]] = None,
        message: str = "",
        timestamp: Optional[datetime] = None,
        move_head: bool = True,
    ) -> Commit:
        """Add a commit, defaulting its timestamp to one minute per commit added.

        Args:
            commit_id: Commit identifier
            parents: Parent identifiers (they do not have to exist)
            message: Commit message
            timestamp: Author timestamp
            move_head: Point HEAD at the new commit

        Returns:
            The stored Commit
        """
        if timestamp is None:
            timestamp = EPOCH + timedelta(minutes=len(self.commits))
        commit = Commit(id=commit_id, parents=list(parents or []), message=message, timestamp=timestamp)
        self.commits[commit_id] = commit
        if move_head:
            self.head = commit_id
        return commit

    def add_tag(self, name: str, target: str, created_at: Optional[datetime] = None) -> Tag:
        tag = Tag(name=name, target=target, created_at=created_at)
        self.tags[name] = tag
        return tag

    def resolve_tags(self) -> List[Tag]:
        return sorted(self.tags.values(), key=lambda tag: tag.name)

    def get_commit(self, commit_id: str) -> Optional[Commit]:
        return self.commits.get(commit_id)

    def head_commit(self) -> Optional[str]:
        return self.head

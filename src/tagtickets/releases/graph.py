"""Commit graph arena over a commit store.

Commits are held in a flat mapping keyed by hash and every traversal works by
id lookups, so the DAG never needs linked node objects.
"""

from typing import Dict, Iterable, Iterator, List, Optional, Set

import structlog

from tagtickets.exceptions import DataIntegrityError
from tagtickets.extraction.base import BaseCommitStore
from tagtickets.models import Commit

logger = structlog.get_logger(__name__)


class CommitGraph:
    """Per-run view of the commit DAG, loaded lazily from a store."""

    def __init__(self, store: BaseCommitStore) -> None:
        self.store = store
        self._commits: Dict[str, Commit] = {}
        self._missing: Set[str] = set()

    def get(self, commit_id: str) -> Optional[Commit]:
        """Return a commit, or None if the store does not have it."""
        commit = self._commits.get(commit_id)
        if commit is not None:
            return commit
        if commit_id in self._missing:
            return None

        commit = self.store.get_commit(commit_id)
        if commit is None:
            self._missing.add(commit_id)
            logger.debug("commit_not_found", commit_id=commit_id)
            return None

        self._commits[commit_id] = commit
        return commit

    def require(self, commit_id: str, tag_name: Optional[str] = None) -> Commit:
        """Return a commit or raise.

        Raises:
            DataIntegrityError: If the commit cannot be resolved
        """
        commit = self.get(commit_id)
        if commit is None:
            raise DataIntegrityError(commit_id, tag_name)
        return commit

    def walk(self, start: str, stop: Optional[Set[str]] = None) -> Iterator[str]:
        """Yield ids reachable from ``start`` through parent edges.

        Branches are pruned as soon as they reach an id in ``stop``. Ids the
        store cannot resolve are yielded too; callers check ``get`` to tell
        them apart.
        """
        stop = stop or set()
        seen: Set[str] = set()
        stack = [start]
        while stack:
            commit_id = stack.pop()
            if commit_id in seen or commit_id in stop:
                continue
            seen.add(commit_id)
            yield commit_id

            commit = self.get(commit_id)
            if commit is None:
                continue
            # Reversed so the first parent is explored first
            for parent in reversed(commit.parents):
                if parent not in seen and parent not in stop:
                    stack.append(parent)

    def tagged_ancestry(self, targets: Iterable[str]) -> Dict[str, Set[str]]:
        """Map each target to the other targets that are strict ancestors of it.

        Targets are processed oldest first; when a walk reaches a target whose
        ancestry is already known, that set is reused instead of walking on.

        Args:
            targets: Resolvable commit ids carrying tags

        Returns:
            Mapping of target id to its set of strict tagged ancestors
        """
        pending: List[str] = sorted(set(targets), key=lambda cid: (self.require(cid).timestamp, cid))
        target_set = set(pending)
        ancestry: Dict[str, Set[str]] = {}

        for target in pending:
            found: Set[str] = set()
            seen: Set[str] = {target}
            stack = list(self.require(target).parents)
            while stack:
                commit_id = stack.pop()
                if commit_id in seen:
                    continue
                seen.add(commit_id)

                if commit_id in target_set:
                    found.add(commit_id)
                    known = ancestry.get(commit_id)
                    if known is not None:
                        found |= known
                        continue

                commit = self.get(commit_id)
                if commit is not None:
                    stack.extend(commit.parents)

            ancestry[target] = found

        return ancestry

"""Partitioning of the commit DAG into per-release commit sets.

Releases are processed oldest to newest. Each release walks backward from its
tagged commit and stops wherever it meets a commit an earlier release already
owns, so every commit is attributed to exactly one release: the first one in
release order that can reach it. For commits reachable from several tags with
no ancestry between them (sibling branches sharing an untagged ancestor) this
first-in-order rule is the ownership policy.
"""

import threading
import time
from dataclasses import dataclass, field
from typing import List, Optional, Set

import structlog

from tagtickets.exceptions import DataIntegrityError
from tagtickets.models import Commit, Tag
from tagtickets.releases.graph import CommitGraph

logger = structlog.get_logger(__name__)

# How many commits to visit between deadline/cancel checks
CHECK_INTERVAL = 256


class WalkCancelled(Exception):
    """Raised inside a walk when the deadline passes or the run is cancelled."""


@dataclass
class Partition:
    """Commits first introduced by one release."""

    tag: Optional[Tag]
    commits: List[Commit] = field(default_factory=list)
    errors: List[DataIntegrityError] = field(default_factory=list)
    cancelled: bool = False

    @property
    def complete(self) -> bool:
        return not self.errors and not self.cancelled

    @property
    def commit_ids(self) -> Set[str]:
        return {commit.id for commit in self.commits}


@dataclass
class PartitionResult:
    """Per-release partitions in release order."""

    partitions: List[Partition] = field(default_factory=list)
    unreleased: Optional[Partition] = None
    covered: Set[str] = field(default_factory=set)
    warnings: List[str] = field(default_factory=list)
    partial: bool = False


class PartitionEngine:
    """Splits the commit DAG into disjoint per-release commit sets.

    The covered set is owned by the engine for the duration of one
    ``partition`` call and each release prunes against the covered set left
    by all releases before it, so releases are processed strictly in order.
    """

    def __init__(
        self,
        graph: CommitGraph,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        """Initialize the engine.

        Args:
            graph: Commit graph to walk
            timeout: Overall time budget in seconds for one ``partition`` call
            cancel_event: Event the caller may set to abort the walk
        """
        self.graph = graph
        self.timeout = timeout
        self.cancel_event = cancel_event
        self._deadline: Optional[float] = None

    def partition(
        self,
        releases: List[Tag],
        head: Optional[str] = None,
    ) -> PartitionResult:
        """Compute the exclusive commit set of every release.

        Args:
            releases: Tags ordered oldest to newest
            head: If given, commits reachable from it but not covered by any
                release are collected into ``PartitionResult.unreleased``

        Returns:
            PartitionResult; integrity problems and cancellation are recorded
            on it instead of being raised
        """
        self._deadline = time.monotonic() + self.timeout if self.timeout is not None else None
        result = PartitionResult()

        for tag in releases:
            if result.partial:
                result.partitions.append(Partition(tag=tag, cancelled=True))
                continue
            partition = self._walk_release(tag.target, tag, result.covered)
            result.partitions.append(partition)
            self._record(partition, result)

        if head is not None and not result.partial:
            partition = self._walk_release(head, None, result.covered)
            result.unreleased = partition
            self._record(partition, result)

        if result.partial:
            result.warnings.append("Walk aborted before all releases were processed; results are partial")

        return result

    def _record(self, partition: Partition, result: PartitionResult) -> None:
        result.covered |= partition.commit_ids
        for error in partition.errors:
            result.warnings.append(error.message)
        if partition.cancelled:
            result.partial = True
        logger.debug(
            "release_partitioned",
            tag=partition.tag.name if partition.tag else None,
            commits=len(partition.commits),
            complete=partition.complete,
        )

    def _walk_release(self, start: str, tag: Optional[Tag], covered: Set[str]) -> Partition:
        """Walk back from ``start``, pruning at commits already covered."""
        partition = Partition(tag=tag)
        tag_name = tag.name if tag else None

        try:
            for visited, commit_id in enumerate(self.graph.walk(start, stop=covered)):
                if visited % CHECK_INTERVAL == 0:
                    self._check_cancelled()
                commit = self.graph.get(commit_id)
                if commit is None:
                    error = DataIntegrityError(commit_id, tag_name)
                    logger.info("commit_unresolved", tag=tag_name, commit_id=commit_id)
                    partition.errors.append(error)
                    continue
                partition.commits.append(commit)
        except WalkCancelled:
            logger.info("walk_cancelled", tag=tag_name, commits=len(partition.commits))
            partition.cancelled = True

        partition.commits.sort(key=lambda c: (c.timestamp, c.id))
        return partition

    def _check_cancelled(self) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise WalkCancelled()
        if self._deadline is not None and time.monotonic() > self._deadline:
            raise WalkCancelled()

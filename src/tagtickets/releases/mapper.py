"""Release mapper - orchestrates one run from commit store to report."""

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

import structlog

from tagtickets.exceptions import DataIntegrityError
from tagtickets.extraction.base import BaseCommitStore
from tagtickets.models import Release, ReleaseReport
from tagtickets.releases.graph import CommitGraph
from tagtickets.releases.ordering import order_releases
from tagtickets.releases.partition import Partition, PartitionEngine
from tagtickets.releases.report import ReportAssembler
from tagtickets.releases.tickets import TicketExtractor

logger = structlog.get_logger(__name__)


@dataclass
class MappingResult:
    """Releases of one run plus the warnings collected along the way.

    ``releases`` holds tags whose commit could not be resolved first, then
    tagged releases oldest first, then the unreleased pseudo-release (if any).
    """

    releases: List[Release] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    partial: bool = False

    def get(self, label: str) -> Optional[Release]:
        for release in self.releases:
            if release.label == label:
                return release
        return None


class ReleaseMapper:
    """Maps a repository's commits and tickets onto its tags.

    Nothing is kept between runs: every call to ``map_releases`` builds a
    fresh commit graph over the store it was given.
    """

    def __init__(
        self,
        store: BaseCommitStore,
        extractor: Optional[TicketExtractor] = None,
        include_unreleased: bool = True,
        unreleased_label: str = "Unreleased",
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        """Initialize the mapper.

        Args:
            store: Commit store to read from
            extractor: Ticket extractor (defaults to PREFIX-123 keys)
            include_unreleased: Collect commits reachable from HEAD past the newest tag
            unreleased_label: Label for that pseudo-release
            timeout: Overall deadline in seconds for the graph walk
            cancel_event: Event the caller may set to abort the walk
        """
        self.store = store
        self.extractor = extractor or TicketExtractor()
        self.include_unreleased = include_unreleased
        self.unreleased_label = unreleased_label
        self.timeout = timeout
        self.cancel_event = cancel_event

    def map_releases(self) -> MappingResult:
        """Order tags, partition the DAG, and extract tickets per release.

        Returns:
            MappingResult

        Raises:
            AdapterError: If the store cannot be read
        """
        graph = CommitGraph(self.store)
        tags = self.store.resolve_tags()
        order = order_releases(tags, graph)

        head = self.store.head_commit() if self.include_unreleased else None
        engine = PartitionEngine(graph, timeout=self.timeout, cancel_event=self.cancel_event)
        partitioned = engine.partition(order.releases, head=head)

        result = MappingResult(partial=partitioned.partial)

        # Unresolvable tags have no position in history; they sort as oldest
        for tag in order.unreachable:
            error = DataIntegrityError(tag.target, tag.name)
            result.releases.append(
                Release(tag=tag, label=tag.name, complete=False, warnings=[error.message])
            )
            result.warnings.append(error.message)

        for partition in partitioned.partitions:
            target = graph.get(partition.tag.target)
            result.releases.append(
                self._to_release(partition, partition.tag.name, target.timestamp if target else None)
            )

        unreleased = partitioned.unreleased
        if unreleased is not None and (unreleased.commits or unreleased.errors):
            newest = unreleased.commits[-1].timestamp if unreleased.commits else None
            result.releases.append(self._to_release(unreleased, self.unreleased_label, newest))

        result.warnings.extend(partitioned.warnings)

        logger.info(
            "releases_mapped",
            tags=len(tags),
            releases=len(order.releases),
            unreachable=len(order.unreachable),
            commits=len(partitioned.covered),
            warnings=len(result.warnings),
        )
        return result

    def build_report(
        self,
        assembler: Optional[ReportAssembler] = None,
        name_filter: Optional[str] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> ReleaseReport:
        """Run the mapping and assemble a report.

        Args:
            assembler: Report assembler (defaults to tickets only, no links)
            name_filter: See ``ReportAssembler.assemble``
            since: See ``ReportAssembler.assemble``
            until: See ``ReportAssembler.assemble``

        Returns:
            ReleaseReport
        """
        assembler = assembler or ReportAssembler()
        result = self.map_releases()
        return assembler.assemble(
            result.releases,
            warnings=result.warnings,
            partial=result.partial,
            name_filter=name_filter,
            since=since,
            until=until,
        )

    def _to_release(self, partition: Partition, label: str, timestamp: Optional[datetime]) -> Release:
        warnings = [error.message for error in partition.errors]
        if partition.cancelled:
            warnings.append("Walk aborted before this release was fully processed")

        return Release(
            tag=partition.tag,
            label=label,
            commits=partition.commits,
            tickets=self.extractor.extract_all(partition.commits),
            timestamp=timestamp,
            complete=partition.complete,
            warnings=warnings,
        )

"""Release graph reconstruction: ordering, partitioning and ticket extraction."""

from tagtickets.releases.graph import CommitGraph
from tagtickets.releases.mapper import MappingResult, ReleaseMapper
from tagtickets.releases.ordering import ReleaseOrder, order_releases
from tagtickets.releases.partition import Partition, PartitionEngine, PartitionResult
from tagtickets.releases.report import ReportAssembler, format_ticket_url, parse_age
from tagtickets.releases.tickets import DEFAULT_TICKET_PATTERN, TicketExtractor, sort_ticket_keys

__all__ = [
    "CommitGraph",
    "ReleaseOrder",
    "order_releases",
    "Partition",
    "PartitionEngine",
    "PartitionResult",
    "TicketExtractor",
    "DEFAULT_TICKET_PATTERN",
    "sort_ticket_keys",
    "ReportAssembler",
    "format_ticket_url",
    "parse_age",
    "ReleaseMapper",
    "MappingResult",
]

"""Release ordering by ancestry, then commit time, then tag name."""

import heapq
import itertools
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

import structlog

from tagtickets.models import Tag
from tagtickets.releases.graph import CommitGraph

logger = structlog.get_logger(__name__)


@dataclass
class ReleaseOrder:
    """Tags in release order plus the tags that could not be placed."""

    releases: List[Tag] = field(default_factory=list)
    unreachable: List[Tag] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.releases)


def order_releases(tags: List[Tag], graph: CommitGraph) -> ReleaseOrder:
    """Order tags from oldest to newest release.

    A tag whose commit is a strict ancestor of another tag's commit always
    comes first. Among tags with no ancestry relation the older commit
    timestamp wins, then the lexicographically smaller tag name. This is a
    topological sort of the ancestry relation with (timestamp, name) choosing
    among the tags that are ready, so it stays a consistent total order even
    when commit timestamps disagree with ancestry.

    Tags whose target commit cannot be resolved go to ``unreachable``.

    Args:
        tags: Tags to order
        graph: Commit graph the tags point into

    Returns:
        ReleaseOrder
    """
    order = ReleaseOrder()
    by_target: Dict[str, List[Tag]] = {}

    for tag in sorted(tags, key=lambda t: t.name):
        if graph.get(tag.target) is None:
            logger.info("tag_target_unresolved", tag=tag.name, target=tag.target)
            order.unreachable.append(tag)
            continue
        by_target.setdefault(tag.target, []).append(tag)

    if not by_target:
        return order

    ancestry = graph.tagged_ancestry(by_target.keys())

    def sort_key(tag: Tag) -> Tuple:
        return (graph.require(tag.target).timestamp, tag.name)

    # Edges run from each tag on an ancestor commit to each tag on a descendant
    blockers: Dict[str, int] = {}
    followers: Dict[str, List[Tag]] = {}
    for target, target_tags in by_target.items():
        ancestor_tags = [t for ancestor in ancestry[target] for t in by_target[ancestor]]
        for tag in target_tags:
            blockers[tag.name] = len(ancestor_tags)
            for ancestor_tag in ancestor_tags:
                followers.setdefault(ancestor_tag.name, []).append(tag)

    counter = itertools.count()
    ready = [
        (sort_key(tag), next(counter), tag)
        for tag_list in by_target.values()
        for tag in tag_list
        if blockers[tag.name] == 0
    ]
    heapq.heapify(ready)

    while ready:
        _, _, tag = heapq.heappop(ready)
        order.releases.append(tag)
        for follower in followers.get(tag.name, []):
            blockers[follower.name] -= 1
            if blockers[follower.name] == 0:
                heapq.heappush(ready, (sort_key(follower), next(counter), follower))

    logger.debug(
        "releases_ordered",
        releases=len(order.releases),
        unreachable=len(order.unreachable),
    )
    return order

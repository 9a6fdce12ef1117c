"""Tests for the partition engine."""

import threading
from datetime import datetime, timedelta, timezone

import pytest

from tagtickets.extraction import InMemoryCommitStore
from tagtickets.releases.graph import CommitGraph
from tagtickets.releases.ordering import order_releases
from tagtickets.releases.partition import PartitionEngine


def partition_store(store, head=None, **kwargs):
    """Order the store's tags and partition them."""
    graph = CommitGraph(store)
    order = order_releases(store.resolve_tags(), graph)
    engine = PartitionEngine(graph, **kwargs)
    return engine.partition(order.releases, head=head)


def ids(partition):
    return {commit.id for commit in partition.commits}


@pytest.fixture
def linear_store():
    """a - b - c - d, tagged v1 at b and v2 at d."""
    store = InMemoryCommitStore()
    store.add_commit("a", message="Initial")
    store.add_commit("b", ["a"], "ABC-1")
    store.add_commit("c", ["b"], "ABC-2")
    store.add_commit("d", ["c"], "Release")
    store.add_tag("v1", "b")
    store.add_tag("v2", "d")
    return store


@pytest.fixture
def parallel_merge_store():
    """Two release branches off a shared base, both tagged, then merged.

        base - l1 (left)  \\
             \\ r1 (right) - merge (MERGE-9)
    """
    store = InMemoryCommitStore()
    store.add_commit("base", message="Initial")
    store.add_commit("l1", ["base"], "LEFT-1", move_head=False)
    store.add_commit("r1", ["base"], "RIGHT-1", move_head=False)
    store.add_commit("merge", ["l1", "r1"], "Merge branches, closes MERGE-9")
    store.add_tag("left", "l1")
    store.add_tag("right", "r1")
    store.add_tag("merged", "merge")
    return store


class TestPartition:
    """Tests for PartitionEngine.partition."""

    def test_linear_partition(self, linear_store):
        """Test that each release gets only its new commits."""
        result = partition_store(linear_store)

        assert [p.tag.name for p in result.partitions] == ["v1", "v2"]
        assert ids(result.partitions[0]) == {"a", "b"}
        assert ids(result.partitions[1]) == {"c", "d"}
        assert result.covered == {"a", "b", "c", "d"}
        assert result.warnings == []
        assert not result.partial

    def test_commits_are_oldest_first(self, linear_store):
        """Test commit ordering inside a partition."""
        result = partition_store(linear_store)

        assert [c.id for c in result.partitions[1].commits] == ["c", "d"]

    def test_merge_of_covered_parents(self, parallel_merge_store):
        """Test that a merge of two released branches only adds itself."""
        result = partition_store(parallel_merge_store)
        by_name = {p.tag.name: p for p in result.partitions}

        # left is older than right by timestamp, so it owns the shared base
        assert ids(by_name["left"]) == {"base", "l1"}
        assert ids(by_name["right"]) == {"r1"}
        assert ids(by_name["merged"]) == {"merge"}

    def test_merge_with_unique_side(self):
        """Test that only the unreleased side of a merge is attributed."""
        store = InMemoryCommitStore()
        store.add_commit("a", message="Initial")
        store.add_commit("f1", ["a"], "FEAT-1", move_head=False)
        store.add_commit("f2", ["f1"], "FEAT-2", move_head=False)
        store.add_commit("b", ["a"], "MAIN-1")
        store.add_tag("v1", "b")
        store.add_commit("m", ["b", "f2"], "Merge feature")
        store.add_tag("v2", "m")

        result = partition_store(store)

        assert ids(result.partitions[0]) == {"a", "b"}
        assert ids(result.partitions[1]) == {"f1", "f2", "m"}

    def test_same_commit_tags(self, linear_store):
        """Test that a second tag on the same commit yields an empty release."""
        linear_store.add_tag("v2-final", "d")

        result = partition_store(linear_store)
        by_name = {p.tag.name: p for p in result.partitions}

        assert ids(by_name["v2"]) == {"c", "d"}
        assert by_name["v2-final"].commits == []
        assert by_name["v2-final"].complete

    def test_disjoint_cover(self, parallel_merge_store):
        """Test that partitions never overlap and cover every tagged ancestor."""
        result = partition_store(parallel_merge_store)
        seen = set()
        for partition in result.partitions:
            assert not (ids(partition) & seen)
            seen |= ids(partition)

        graph = CommitGraph(parallel_merge_store)
        reachable = set()
        for tag in parallel_merge_store.resolve_tags():
            reachable |= set(graph.walk(tag.target))
        assert seen == reachable

    def test_unreleased_head(self, linear_store):
        """Test the untagged pseudo-release after the newest tag."""
        linear_store.add_commit("e", ["d"], "ABC-5 After release")

        result = partition_store(linear_store, head="e")

        assert ids(result.unreleased) == {"e"}
        assert result.unreleased.tag is None

    def test_head_on_tag_has_empty_unreleased(self, linear_store):
        """Test that HEAD on the newest tag leaves nothing unreleased."""
        result = partition_store(linear_store, head="d")

        assert result.unreleased.commits == []

    def test_no_tags_everything_unreleased(self):
        """Test the degenerate repository without tags."""
        store = InMemoryCommitStore()
        store.add_commit("a", message="Initial")
        store.add_commit("b", ["a"], "ABC-1")

        result = partition_store(store, head="b")

        assert result.partitions == []
        assert ids(result.unreleased) == {"a", "b"}


class TestIntegrityAndCancellation:
    """Tests for recovered errors and aborted walks."""

    def test_missing_parent_is_recovered(self, linear_store):
        """Test that a dangling parent marks only that release incomplete."""
        linear_store.add_commit("x", ["d", "lost"], "Merge lost branch")
        linear_store.add_tag("v3", "x")

        result = partition_store(linear_store)
        by_name = {p.tag.name: p for p in result.partitions}

        assert by_name["v1"].complete
        assert by_name["v2"].complete
        assert not by_name["v3"].complete
        assert ids(by_name["v3"]) == {"x"}
        assert [e.commit_id for e in by_name["v3"].errors] == ["lost"]
        assert len(result.warnings) == 1
        assert "lost" in result.warnings[0]
        assert not result.partial

    def test_cancel_event(self, linear_store):
        """Test that a set cancel event aborts with a partial result."""
        cancel = threading.Event()
        cancel.set()

        result = partition_store(linear_store, cancel_event=cancel)

        assert result.partial
        assert all(p.cancelled for p in result.partitions)
        assert any("partial" in w for w in result.warnings)

    def test_expired_deadline(self, linear_store):
        """Test that a zero-second budget aborts the walk."""
        result = partition_store(linear_store, timeout=-1)

        assert result.partial
        assert not result.partitions[0].complete

    def test_deadline_not_reached(self, linear_store):
        """Test that a generous budget changes nothing."""
        result = partition_store(linear_store, timeout=60)

        assert not result.partial
        assert all(p.complete for p in result.partitions)


def test_large_history_is_partitioned():
    """Test a long chain with periodic tags."""
    store = InMemoryCommitStore()
    start = datetime(2023, 1, 1, tzinfo=timezone.utc)
    previous = None
    for i in range(1000):
        commit_id = f"c{i}"
        store.add_commit(
            commit_id,
            [previous] if previous else [],
            f"TASK-{i}",
            timestamp=start + timedelta(hours=i),
        )
        if i % 100 == 99:
            store.add_tag(f"v{i // 100}", commit_id)
        previous = commit_id

    result = partition_store(store)

    assert len(result.partitions) == 10
    assert all(len(p.commits) == 100 for p in result.partitions)
    assert len(result.covered) == 1000

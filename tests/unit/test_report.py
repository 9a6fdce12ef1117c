"""Tests for report assembly."""

from datetime import datetime, timedelta, timezone

import pytest

from tagtickets.exceptions import ConfigurationError
from tagtickets.models import Commit, Release, Tag, TicketReference
from tagtickets.releases.report import ReportAssembler, format_ticket_url, parse_age

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_release(name, tickets, day=0, commits=None, complete=True, tagged=True):
    """Build a Release with one commit per ticket unless commits are given."""
    if commits is None:
        commits = [
            Commit(id=f"{name}-{i}", message=key, timestamp=T0 + timedelta(days=day, minutes=i))
            for i, key in enumerate(tickets)
        ]
    references = [
        TicketReference(key=key, commit_id=commit.id)
        for commit, key in zip(commits, tickets)
    ]
    return Release(
        tag=Tag(name=name, target=commits[-1].id if commits else "missing") if tagged else None,
        label=name,
        commits=commits,
        tickets=references,
        timestamp=T0 + timedelta(days=day) if tagged else None,
        complete=complete,
    )


@pytest.fixture
def releases():
    """Three releases, one per week."""
    return [
        make_release("v1.0", ["ABC-1"], day=0),
        make_release("v1.1", ["ABC-10", "ABC-2", "XYZ-3"], day=7),
        make_release("v2.0", [], day=14),
    ]


class TestAssemble:
    """Tests for ReportAssembler.assemble."""

    def test_entries_follow_release_order(self, releases):
        """Test labels and sorted tickets per entry."""
        report = ReportAssembler().assemble(releases)

        assert [e.label for e in report.entries] == ["v1.0", "v1.1", "v2.0"]
        assert report.entries[1].tickets == ["ABC-2", "ABC-10", "XYZ-3"]
        assert report.entries[2].tickets == []
        assert report.entries[1].commit_count == 3
        assert report.entries[0].commits == []

    def test_duplicate_keys_collapse(self):
        """Test that a key referenced by two commits appears once."""
        commits = [
            Commit(id="a", message="ABC-1", timestamp=T0),
            Commit(id="b", message="ABC-1 again", timestamp=T0 + timedelta(minutes=1)),
        ]
        release = make_release("v1", ["ABC-1", "ABC-1"], commits=commits)

        report = ReportAssembler().assemble([release])

        assert report.entries[0].tickets == ["ABC-1"]

    def test_warnings_and_partial_pass_through(self, releases):
        """Test that warnings and the partial flag reach the report."""
        report = ReportAssembler().assemble(releases, warnings=["boom"], partial=True)

        assert report.warnings == ["boom"]
        assert report.partial is True
        assert report.has_warnings

    def test_ticket_urls(self, releases):
        """Test ticket URL templating."""
        assembler = ReportAssembler(ticket_url="https://jira.example.com/browse/")
        report = assembler.assemble(releases)

        assert report.entries[0].ticket_urls == ["https://jira.example.com/browse/ABC-1"]

    def test_commit_lines_only_with_tickets(self):
        """Test that commits without tickets are hidden unless all_commits is set."""
        commits = [
            Commit(id="a" * 40, message="ABC-1 Add feature", timestamp=T0),
            Commit(id="b" * 40, message="Tidy up", timestamp=T0 + timedelta(minutes=1)),
        ]
        release = make_release("v1", ["ABC-1"], commits=commits)

        lines = ReportAssembler(show_commits=True).assemble([release]).entries[0].commits
        assert [line.short_id for line in lines] == ["aaaaaaa"]
        assert lines[0].tickets == ["ABC-1"]
        assert lines[0].summary == "ABC-1 Add feature"

        lines = ReportAssembler(all_commits=True).assemble([release]).entries[0].commits
        # Newest first
        assert [line.short_id for line in lines] == ["bbbbbbb", "aaaaaaa"]
        assert lines[0].tickets == []


class TestFilters:
    """Tests for name and date filtering."""

    def test_filter_matches_release_name(self, releases):
        """Test that a matching release keeps all of its tickets."""
        report = ReportAssembler().assemble(releases, name_filter="v1.1")

        assert [e.label for e in report.entries] == ["v1.1"]
        assert report.entries[0].tickets == ["ABC-2", "ABC-10", "XYZ-3"]

    def test_filter_matches_ticket(self, releases):
        """Test that other releases keep only matching tickets."""
        report = ReportAssembler().assemble(releases, name_filter="xyz")

        assert [e.label for e in report.entries] == ["v1.1"]
        assert report.entries[0].tickets == ["XYZ-3"]

    def test_filter_without_match(self, releases):
        """Test that nothing matches an unknown filter."""
        assert ReportAssembler().assemble(releases, name_filter="nope").entries == []

    def test_since_until(self, releases):
        """Test the date range filter on tag timestamps."""
        report = ReportAssembler().assemble(
            releases,
            since=T0 + timedelta(days=1),
            until=datetime(2024, 1, 10),
        )

        assert [e.label for e in report.entries] == ["v1.1"]

    def test_unreleased_uses_newest_commit_time(self):
        """Test that the untagged pseudo-release is dated by its newest commit."""
        release = make_release("Unreleased", ["ABC-9"], day=30, tagged=False)

        report = ReportAssembler().assemble([release], since=T0 + timedelta(days=29))

        assert [e.label for e in report.entries] == ["Unreleased"]
        assert report.entries[0].unreleased is True

    def test_date_filter_drops_undated_releases(self):
        """Test that an unresolved release has no date to compare."""
        release = Release(tag=Tag(name="broken", target="dead"), label="broken", complete=False)

        assert ReportAssembler().assemble([release], since=T0).entries == []
        assert len(ReportAssembler().assemble([release]).entries) == 1


class TestHelpers:
    """Tests for duration parsing and URL formatting."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("1y", timedelta(days=365)),
            ("2mon", timedelta(days=60)),
            ("3w 4d", timedelta(weeks=3, days=4)),
            ("5h6m7s", timedelta(hours=5, minutes=6, seconds=7)),
            ("1y 2mon 3w 4d 5h 6m 7s", timedelta(days=365 + 60 + 21 + 4, hours=5, minutes=6, seconds=7)),
        ],
    )
    def test_parse_age(self, text, expected):
        """Test supported duration units."""
        assert parse_age(text) == expected

    @pytest.mark.parametrize("text", ["", "abc", "1x", "5min", "1y junk"])
    def test_parse_age_invalid(self, text):
        """Test that malformed durations raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            parse_age(text)

    def test_format_ticket_url_placeholder(self):
        """Test {ticket} replacement."""
        assert format_ticket_url("https://t/{ticket}/view", "ABC-1") == "https://t/ABC-1/view"

    def test_format_ticket_url_append(self):
        """Test appending when there is no placeholder."""
        assert format_ticket_url("https://t/browse/", "ABC-1") == "https://t/browse/ABC-1"

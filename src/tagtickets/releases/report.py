"""Report assembly: releases to presentation-ready entries.

Everything here is a pure transformation; rendering is the CLI's job.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from tagtickets.exceptions import ConfigurationError
from tagtickets.models import CommitLine, Release, ReleaseReport, ReportEntry
from tagtickets.releases.tickets import sort_ticket_keys

_AGE_UNITS = {
    "y": timedelta(days=365),
    "mon": timedelta(days=30),
    "w": timedelta(weeks=1),
    "d": timedelta(days=1),
    "h": timedelta(hours=1),
    "m": timedelta(minutes=1),
    "s": timedelta(seconds=1),
}
_AGE_TOKEN = re.compile(r"(\d+)\s*(y|mon|w|d|h|m|s)(?![a-z])", re.IGNORECASE)


def parse_age(text: str) -> timedelta:
    """Parse a duration such as ``1y 2mon 3w 4d 5h 6m 7s``.

    Raises:
        ConfigurationError: If the text contains anything else
    """
    cleaned = text.strip()
    if not cleaned:
        raise ConfigurationError("Empty duration")

    total = timedelta()
    position = 0
    for match in _AGE_TOKEN.finditer(cleaned):
        if cleaned[position:match.start()].strip():
            raise ConfigurationError(f"Invalid duration: {text!r}")
        total += int(match.group(1)) * _AGE_UNITS[match.group(2).lower()]
        position = match.end()

    if position == 0 or cleaned[position:].strip():
        raise ConfigurationError(f"Invalid duration: {text!r}")
    return total


def format_ticket_url(template: str, key: str) -> str:
    """Link a ticket key: ``{ticket}`` is replaced, otherwise the key is appended."""
    if "{ticket}" in template:
        return template.replace("{ticket}", key)
    return f"{template}{key}"


class ReportAssembler:
    """Builds a ReleaseReport from releases in oldest-to-newest order."""

    def __init__(
        self,
        ticket_url: Optional[str] = None,
        show_commits: bool = False,
        all_commits: bool = False,
    ) -> None:
        """Initialize the assembler.

        Args:
            ticket_url: URL template for ticket links
            show_commits: Include one line per commit that references a ticket
            all_commits: Include commits without tickets too (implies show_commits)
        """
        self.ticket_url = ticket_url
        self.show_commits = show_commits or all_commits
        self.all_commits = all_commits

    def assemble(
        self,
        releases: List[Release],
        warnings: Optional[List[str]] = None,
        partial: bool = False,
        name_filter: Optional[str] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> ReleaseReport:
        """Turn releases into report entries.

        Args:
            releases: Releases in order
            warnings: Warnings collected during the run
            partial: Whether the run was aborted early
            name_filter: Keep releases whose label contains this text; for
                other releases keep only tickets containing it
            since: Drop releases tagged before this time
            until: Drop releases tagged after this time

        Returns:
            ReleaseReport with entries in the same order as ``releases``
        """
        entries = []
        for release in releases:
            if not self._in_range(release, since, until):
                continue
            entry = self._entry(release, name_filter)
            if entry is not None:
                entries.append(entry)

        return ReleaseReport(entries=entries, warnings=list(warnings or []), partial=partial)

    def _entry(self, release: Release, name_filter: Optional[str]) -> Optional[ReportEntry]:
        keys = release.ticket_keys
        lines = self._commit_lines(release) if self.show_commits else []

        if name_filter:
            needle = name_filter.lower()
            if needle not in release.label.lower():
                keys = [key for key in keys if needle in key.lower()]
                lines = [line for line in lines if any(needle in key.lower() for key in line.tickets)]
                if not keys:
                    return None

        return ReportEntry(
            label=release.label,
            tickets=keys,
            ticket_urls=[format_ticket_url(self.ticket_url, key) for key in keys] if self.ticket_url else [],
            commit_count=len(release.commits),
            commits=lines,
            timestamp=release.timestamp,
            complete=release.complete,
            unreleased=release.is_unreleased,
        )

    def _commit_lines(self, release: Release) -> List[CommitLine]:
        by_commit = {}
        for ref in release.tickets:
            by_commit.setdefault(ref.commit_id, []).append(ref.key)

        lines = []
        # Newest first, as in git log
        for commit in reversed(release.commits):
            keys = sort_ticket_keys(by_commit.get(commit.id, []))
            if not keys and not self.all_commits:
                continue
            lines.append(
                CommitLine(id=commit.id, short_id=commit.short_id, summary=commit.summary, tickets=keys)
            )
        return lines

    @staticmethod
    def _in_range(release: Release, since: Optional[datetime], until: Optional[datetime]) -> bool:
        if since is None and until is None:
            return True

        moment = release.timestamp
        if moment is None and release.commits:
            moment = release.commits[-1].timestamp
        if moment is None:
            return False

        if since is not None and moment < _aware(since):
            return False
        if until is not None and moment > _aware(until):
            return False
        return True


def _aware(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment

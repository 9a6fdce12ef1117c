"""Ticket key extraction from commit messages."""

import re
from typing import Iterable, List, Optional, Pattern

from tagtickets.exceptions import TicketPatternError
from tagtickets.models import Commit, TicketReference, ticket_sort_key

# PREFIX, a '-' or '_' separator, then digits. The prefix must start with a
# letter so numeric-only tokens never match.
DEFAULT_TICKET_PATTERN = r"\b(?P<prefix>[A-Za-z][A-Za-z0-9]*)[-_](?P<number>[0-9]+)\b"


def sort_ticket_keys(keys: Iterable[str]) -> List[str]:
    """Deduplicate and sort ticket keys naturally (ABC-2 before ABC-10)."""
    return sorted(set(keys), key=ticket_sort_key)


class TicketExtractor:
    """Finds ticket references such as ``PROJ-123`` in commit messages.

    Matching is purely lexical. Tokens that do not match are ignored.
    """

    def __init__(self, pattern: Optional[str] = None) -> None:
        """Compile the ticket pattern.

        Args:
            pattern: Custom regex, matched case-sensitively (use ``(?i)`` to
                ignore case). If it defines ``prefix`` and ``number`` groups
                they are normalized to ``PREFIX-number``, otherwise the whole
                match is upper-cased.

        Raises:
            TicketPatternError: If the pattern does not compile
        """
        self.pattern_source = pattern or DEFAULT_TICKET_PATTERN
        flags = 0 if pattern else re.IGNORECASE
        try:
            self.pattern: Pattern[str] = re.compile(self.pattern_source, flags)
        except re.error as e:
            raise TicketPatternError(f"Invalid ticket pattern {self.pattern_source!r}: {e}") from e

        groups = self.pattern.groupindex
        self._structured = "prefix" in groups and "number" in groups

    def extract_keys(self, message: str) -> List[str]:
        """Return every ticket key in a message, in order of appearance.

        Args:
            message: Commit message text

        Returns:
            Normalized keys (may contain duplicates if a key is repeated)
        """
        keys = []
        for match in self.pattern.finditer(message):
            key = self._normalize(match)
            if key:
                keys.append(key)
        return keys

    def extract(self, commit: Commit) -> List[TicketReference]:
        """Return the distinct ticket references of one commit."""
        seen = set()
        references = []
        for key in self.extract_keys(commit.message):
            if key in seen:
                continue
            seen.add(key)
            references.append(TicketReference(key=key, commit_id=commit.id))
        return references

    def extract_all(self, commits: Iterable[Commit]) -> List[TicketReference]:
        """Collect references over a set of commits.

        A key referenced by several commits keeps one reference per commit, so
        traceability is preserved; ``Release.ticket_keys`` collapses them.
        """
        references = []
        for commit in commits:
            references.extend(self.extract(commit))
        return references

    def _normalize(self, match: "re.Match[str]") -> Optional[str]:
        if self._structured:
            prefix = match.group("prefix")
            number = match.group("number")
            if not prefix or not number:
                return None
            return f"{prefix.upper()}-{number}"

        token = match.group(0).strip()
        return token.upper() or None

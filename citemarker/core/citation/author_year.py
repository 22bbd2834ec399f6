"""
Author-year citation markers.

Consecutive citations that render the same author list and year are
merged, keeping their uniquefier letters:

    [Beta, 2000a,b; Epsilon, 2001]       (in parenthesis)
    Beta [2000a,b]; Epsilon [2001]       (narrative)

Grouping is a fold over the ordered entries producing immutable
CitationGroup records; rendering is a separate step over those groups.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from citemarker.core.citation.models import (
    CitationMarkerEntry,
    NonUniqueCitationMarker,
    page_info_equal,
)
from citemarker.core.citation.names import NameFormatter
from citemarker.core.citation.style import StyleConfig
from citemarker.utils.exceptions import NonUniqueCitationMarkerError
from citemarker.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CitationGroup:
    """Entries sharing one rendered author-year prefix."""

    entries: tuple[CitationMarkerEntry, ...]

    @property
    def leader(self) -> CitationMarkerEntry:
        return self.entries[0]

    @property
    def page_info(self) -> Optional[str]:
        return self.leader.normalized_page_info

    @property
    def unique_letters(self) -> list[str]:
        return [e.unique_letter for e in self.entries if e.unique_letter]

    def contains_key(self, citation_key: str) -> bool:
        return any(e.citation_key == citation_key for e in self.entries)

    def extended(self, entry: CitationMarkerEntry) -> "CitationGroup":
        return CitationGroup(self.entries + (entry,))


class _MarkerMemo:
    """Normalized and expanded markers, computed once per entry per build."""

    def __init__(self, builder: "AuthorYearMarkerBuilder"):
        self._builder = builder
        self._normalized: dict[CitationMarkerEntry, str] = {}
        self._expanded: dict[CitationMarkerEntry, str] = {}

    def normalized(self, entry: CitationMarkerEntry) -> str:
        if entry not in self._normalized:
            self._normalized[entry] = self._builder.normalized_marker(entry)
        return self._normalized[entry]

    def expanded(self, entry: CitationMarkerEntry) -> str:
        if entry not in self._expanded:
            self._expanded[entry] = self._builder.normalized_marker(
                entry, first_appearance=True
            )
        return self._expanded[entry]


class AuthorYearMarkerBuilder:
    """Builds author-year in-text and bibliography markers."""

    def __init__(self, style: StyleConfig):
        self.style = style
        self.names = NameFormatter(style)

    def normalized_marker(
        self,
        entry: CitationMarkerEntry,
        first_appearance: bool = False,
        in_parenthesis: bool = True,
    ) -> str:
        """
        Author list and year without brackets, uniquefier or page info.

        Uses the first-appearance truncation when ``first_appearance`` is
        set, the regular one otherwise. Unresolved entries give the
        undefined marker text followed by the key.
        """
        style = self.style
        if entry.bib_entry is None:
            return style.undefined_citation_marker_text + entry.citation_key
        authors, year = self._author_and_year(entry, first_appearance, in_parenthesis)
        return authors + style.year_separator + year

    def group(
        self,
        entries: Iterable[CitationMarkerEntry],
        policy: NonUniqueCitationMarker = NonUniqueCitationMarker.THROWS,
    ) -> list[CitationGroup]:
        """
        Fold entries, in order, into groups.

        Raises:
            NonUniqueCitationMarkerError: under the THROWS policy, when two
                different records would merge without distinct letters.
        """
        memo = _MarkerMemo(self)
        groups: list[CitationGroup] = []
        for entry in entries:
            if groups and self._joins(groups[-1], entry, memo, policy):
                if not groups[-1].contains_key(entry.citation_key):
                    groups[-1] = groups[-1].extended(entry)
            else:
                groups.append(CitationGroup((entry,)))
        return groups

    def build(
        self,
        entries: Iterable[CitationMarkerEntry],
        in_parenthesis: bool = True,
        policy: NonUniqueCitationMarker = NonUniqueCitationMarker.THROWS,
    ) -> str:
        """
        Build the marker for one citation group.

        Args:
            entries: Cited entries in document (or position-sorted) order.
            in_parenthesis: "[Author, Year]" when True,
                "Author [Year]" when False.
            policy: Handling of records that would merge without
                distinct uniquefier letters.
        """
        groups = self.group(entries, policy)
        body = self.style.citation_separator.join(
            self.render_group(group, in_parenthesis) for group in groups
        )
        logger.debug(f"Author-year marker with {len(groups)} groups")
        if in_parenthesis:
            return f"{self.style.bracket_before}{body}{self.style.bracket_after}"
        return body

    def build_for_bibliography(self, entry: CitationMarkerEntry) -> str:
        """Label in front of a bibliography entry: "[Beta, 2000a] "."""
        style = self.style
        text = self.normalized_marker(entry)
        if entry.bib_entry is not None and entry.unique_letter:
            text += entry.unique_letter
        return f"{style.bracket_before_in_list}{text}{style.bracket_after_in_list} "

    def render_group(self, group: CitationGroup, in_parenthesis: bool) -> str:
        style = self.style
        leader = group.leader

        if leader.bib_entry is None:
            text = style.undefined_citation_marker_text + leader.citation_key
            if in_parenthesis:
                return text
            return f"{style.bracket_before}{text}{style.bracket_after}"

        authors, year = self._author_and_year(
            leader, leader.is_first_appearance_of_source, in_parenthesis
        )
        tail = year + style.uniquefier_separator.join(group.unique_letters)
        if group.page_info:
            tail += style.page_info_separator + group.page_info

        if in_parenthesis:
            return authors + style.year_separator + tail
        return (
            authors
            + style.in_text_year_separator
            + style.bracket_before
            + tail
            + style.bracket_after
        )

    def _author_and_year(
        self,
        entry: CitationMarkerEntry,
        first_appearance: bool,
        in_parenthesis: bool,
    ) -> tuple[str, str]:
        style = self.style
        bib = entry.bib_entry
        authors = self.names.format(
            bib.get_first_field(style.author_fields),
            first_appearance=first_appearance,
            in_parenthesis=in_parenthesis,
        ).text
        year = bib.get_first_field(style.year_fields) or ""
        return authors, year

    def _joins(
        self,
        group: CitationGroup,
        entry: CitationMarkerEntry,
        memo: _MarkerMemo,
        policy: NonUniqueCitationMarker,
    ) -> bool:
        leader = group.leader
        if leader.bib_entry is None or entry.bib_entry is None:
            return False

        if memo.normalized(entry) != memo.normalized(leader):
            return False

        # A shared page reference would be ambiguous across records
        same_key = entry.citation_key == leader.citation_key
        both_empty = not entry.normalized_page_info and not leader.normalized_page_info
        if not (both_empty or (same_key and page_info_equal(entry.page_info, leader.page_info))):
            return False

        # First appearances show more names; the shown names must agree
        if entry.is_first_appearance_of_source and not leader.is_first_appearance_of_source:
            return False
        if leader.is_first_appearance_of_source and memo.expanded(entry) != memo.expanded(leader):
            return False

        if group.contains_key(entry.citation_key):
            return True

        for member in group.entries:
            if member.unique_letter == entry.unique_letter:
                if policy is NonUniqueCitationMarker.THROWS:
                    raise NonUniqueCitationMarkerError(
                        member.citation_key, entry.citation_key, memo.normalized(entry)
                    )
                logger.debug(
                    f"Citation keys {member.citation_key} and {entry.citation_key} "
                    f"share a marker; keeping them apart"
                )
                return False
        return True

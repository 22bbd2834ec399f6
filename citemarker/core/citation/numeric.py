"""
Numeric citation markers.

    [1]   [1; 3]   [2-4]   [??key; 2-4]   [5; p. 12]
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from citemarker.core.citation.models import (
    CitationMarkerNumericBibEntry,
    CitationMarkerNumericEntry,
)
from citemarker.core.citation.style import StyleConfig
from citemarker.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class NumericBlock:
    """Entries rendered together: a consecutive run or a single entry."""

    entries: tuple[CitationMarkerNumericEntry, ...]

    @property
    def first(self) -> CitationMarkerNumericEntry:
        return self.entries[0]

    @property
    def last(self) -> CitationMarkerNumericEntry:
        return self.entries[-1]

    def accepts(self, entry: CitationMarkerNumericEntry) -> bool:
        """Whether entry continues this run."""
        last = self.last
        if entry.is_undefined or last.is_undefined:
            return False
        if entry.normalized_page_info or last.normalized_page_info:
            return False
        return entry.number == last.number + 1

    def extended(self, entry: CitationMarkerNumericEntry) -> "NumericBlock":
        return NumericBlock(self.entries + (entry,))


def order_numeric_entries(
    entries: Iterable[CitationMarkerNumericEntry],
) -> list[CitationMarkerNumericEntry]:
    """
    Undefined entries first in input order, then resolved ones by number.

    Exact repeats (same number, or same key when undefined, and equal
    page info) are kept once.
    """
    # Stable sort: number 0 sorts before every resolved number
    ordered = sorted(entries, key=lambda e: e.number)

    result = []
    seen = set()
    for entry in ordered:
        ident = entry.citation_key if entry.is_undefined else entry.number
        key = (entry.is_undefined, ident, entry.normalized_page_info)
        if key in seen:
            continue
        seen.add(key)
        result.append(entry)
    return result


class NumericMarkerBuilder:
    """Builds numeric in-text and bibliography markers."""

    def __init__(self, style: StyleConfig):
        self.style = style

    def build(
        self,
        entries: Iterable[CitationMarkerNumericEntry],
        min_grouping_count: Optional[int] = None,
        in_text_list: bool = False,
    ) -> str:
        """
        Build the marker for one citation group.

        Args:
            entries: Cited entries, in any order.
            min_grouping_count: Shortest run of consecutive numbers shown as
                a range. Zero or negative disables ranges. Defaults to the
                style's value.
            in_text_list: Use the in-list brackets and add a trailing space.
        """
        if min_grouping_count is None:
            min_grouping_count = self.style.min_grouping_count

        ordered = order_numeric_entries(entries)
        blocks = self.group(ordered, min_grouping_count)

        body = self.style.citation_separator.join(
            self._render_block(block, min_grouping_count) for block in blocks
        )
        logger.debug(
            f"Numeric marker from {len(ordered)} entries in {len(blocks)} blocks"
        )
        return self._wrap(body, in_text_list)

    def build_for_bibliography(self, entry: CitationMarkerNumericBibEntry) -> str:
        """Label in front of a bibliography entry: "[1] " or "[??key] "."""
        if entry.number is None:
            body = self.style.undefined_citation_marker_text + entry.citation_key
        else:
            body = str(entry.number)
        return self._wrap(body, in_text_list=True)

    @staticmethod
    def group(
        ordered: list[CitationMarkerNumericEntry],
        min_grouping_count: int,
    ) -> list[NumericBlock]:
        """Fold ordered entries into blocks of consecutive numbers."""
        if min_grouping_count <= 0:
            return [NumericBlock((entry,)) for entry in ordered]

        blocks: list[NumericBlock] = []
        for entry in ordered:
            if blocks and blocks[-1].accepts(entry):
                blocks[-1] = blocks[-1].extended(entry)
            else:
                blocks.append(NumericBlock((entry,)))
        return blocks

    def _render_block(self, block: NumericBlock, min_grouping_count: int) -> str:
        size = len(block.entries)
        if size >= 2 and size >= min_grouping_count:
            return f"{block.first.number}{self.style.grouping_separator}{block.last.number}"
        return self.style.citation_separator.join(
            self._render_entry(entry) for entry in block.entries
        )

    def _render_entry(self, entry: CitationMarkerNumericEntry) -> str:
        if entry.is_undefined:
            text = self.style.undefined_citation_marker_text + entry.citation_key
        else:
            text = str(entry.number)
        page_info = entry.normalized_page_info
        if page_info:
            text += self.style.page_info_separator + page_info
        return text

    def _wrap(self, body: str, in_text_list: bool) -> str:
        style = self.style
        if in_text_list:
            return f"{style.bracket_before_in_list}{body}{style.bracket_after_in_list} "
        return f"{style.bracket_before}{body}{style.bracket_after}"

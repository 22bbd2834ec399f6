"""
Citation marker engine.

Chooses the marker builder the style asks for and runs it, logging the
build and turning unexpected failures into MarkerBuildError. A failed
build returns nothing, so callers never insert a partial marker.
"""

from typing import Callable, Optional, Sequence, Union

from citemarker.config import get_default_style, get_settings
from citemarker.core.citation.author_year import AuthorYearMarkerBuilder
from citemarker.core.citation.models import (
    CitationMarkerEntry,
    CitationMarkerNumericBibEntry,
    CitationMarkerNumericEntry,
    NonUniqueCitationMarker,
)
from citemarker.core.citation.numeric import NumericMarkerBuilder
from citemarker.core.citation.style import StyleConfig
from citemarker.utils.exceptions import CitemarkerError, ConfigError, MarkerBuildError
from citemarker.utils.logging import LogContext, get_logger

logger = get_logger(__name__)


class CitationMarkerEngine:
    """
    Produces citation markers for one style.

    Responsibilities:
    - Numeric markers ([1; 3-5]) when the style numbers its entries
    - Author-year markers ([Beta, 2000a,b]) otherwise
    - Citation-key markers ([Beta2000]) when the style asks for keys
    - Bibliography labels for either kind
    """

    def __init__(
        self,
        style: Optional[StyleConfig] = None,
        policy: Optional[Union[NonUniqueCitationMarker, str]] = None,
    ):
        self.style = style or get_default_style()
        if policy is None:
            policy = get_settings().markers.non_unique_policy
        self.policy = self._resolve_policy(policy)
        self.numeric = NumericMarkerBuilder(self.style)
        self.author_year = AuthorYearMarkerBuilder(self.style)

    def create_citation_marker(
        self,
        entries: Sequence[CitationMarkerEntry],
        in_parenthesis: bool = True,
    ) -> str:
        """Author-year (or citation-key) marker for entries in citation order."""
        entries = list(entries)
        self._require_entries(entries)
        if self.style.citation_key_cite_markers:
            return self._run("citation_key", entries, lambda: self._citation_key_marker(entries))
        return self._run(
            "author_year",
            entries,
            lambda: self.author_year.build(entries, in_parenthesis, self.policy),
        )

    def create_numeric_marker(
        self,
        entries: Sequence[CitationMarkerNumericEntry],
        min_grouping_count: Optional[int] = None,
        in_text_list: bool = False,
    ) -> str:
        """Numeric marker; min_grouping_count defaults to configuration, then style."""
        entries = list(entries)
        self._require_entries(entries)
        if min_grouping_count is None:
            min_grouping_count = get_settings().markers.min_grouping_count_override
        return self._run(
            "numeric",
            entries,
            lambda: self.numeric.build(entries, min_grouping_count, in_text_list),
        )

    def create_marker(
        self,
        entries: Sequence[Union[CitationMarkerEntry, CitationMarkerNumericEntry]],
        in_parenthesis: bool = True,
    ) -> str:
        """Marker of the kind the style uses (numeric or author-year)."""
        entries = list(entries)
        expected = CitationMarkerNumericEntry if self.style.number_entries else CitationMarkerEntry
        wrong = [e for e in entries if not isinstance(e, expected)]
        if wrong:
            raise MarkerBuildError(
                f"Style {self.style.name!r} needs {expected.__name__} entries",
                details=f"Got {type(wrong[0]).__name__}",
            )
        if self.style.number_entries:
            return self.create_numeric_marker(entries)
        return self.create_citation_marker(entries, in_parenthesis)

    def create_bibliography_marker(
        self,
        entry: Union[CitationMarkerNumericBibEntry, CitationMarkerEntry],
    ) -> str:
        """Label placed in front of one bibliography entry."""
        if isinstance(entry, CitationMarkerNumericBibEntry):
            return self._run(
                "bibliography", [entry], lambda: self.numeric.build_for_bibliography(entry)
            )
        if self.style.citation_key_cite_markers:
            return self._run(
                "bibliography",
                [entry],
                lambda: f"{self.style.bracket_before_in_list}{entry.citation_key}"
                f"{self.style.bracket_after_in_list} ",
            )
        return self._run(
            "bibliography", [entry], lambda: self.author_year.build_for_bibliography(entry)
        )

    def _citation_key_marker(self, entries: list[CitationMarkerEntry]) -> str:
        keys: list[str] = []
        for entry in entries:
            if entry.citation_key not in keys:
                keys.append(entry.citation_key)
        body = self.style.citation_separator.join(keys)
        return f"{self.style.bracket_before}{body}{self.style.bracket_after}"

    @staticmethod
    def _resolve_policy(policy: Union[NonUniqueCitationMarker, str]) -> NonUniqueCitationMarker:
        if isinstance(policy, NonUniqueCitationMarker):
            return policy
        value = str(policy).strip().lower()
        try:
            return NonUniqueCitationMarker(value)
        except ValueError as e:
            choices = ", ".join(p.value for p in NonUniqueCitationMarker)
            raise ConfigError(
                f"Unknown non-unique marker policy: {policy!r}",
                details=f"Expected one of: {choices}",
            ) from e

    @staticmethod
    def _require_entries(entries: list) -> None:
        if not entries:
            raise MarkerBuildError("No entries to cite")

    def _run(self, kind: str, entries: list, build: Callable[[], str]) -> str:
        keys = ",".join(e.citation_key for e in entries)
        with LogContext(logger, style_name=self.style.name, citation_keys=keys, marker_kind=kind) as log:
            try:
                marker = build()
            except CitemarkerError as e:
                log.warning(f"{kind} marker for {keys} failed: {e.message}")
                raise
            except Exception as e:
                log.error(f"{kind} marker for {keys} failed: {e}", exc_info=True)
                raise MarkerBuildError(
                    f"Failed to build {kind} marker", details=str(e)
                ) from e
            log.debug(f"{kind} marker for {keys}: {marker!r}")
            return marker

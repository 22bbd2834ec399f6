"""
Citation style properties.

A StyleConfig is the read-only view of a bibliography style that the
marker builders consume. Parsing of native style files happens elsewhere;
this module accepts the already-extracted property mapping (using either
the style-file property names or the snake_case field names) or a YAML
document holding such a mapping.
"""

from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
import yaml

from citemarker.utils.exceptions import StyleError


class StyleConfig(BaseModel):
    """Immutable style properties for marker generation."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        extra="ignore",
    )

    name: str = Field("Default", alias="Name")

    # Global flags
    number_entries: bool = Field(False, alias="IsNumberEntries")
    sort_by_position: bool = Field(False, alias="IsSortByPosition")

    # Citation flags
    citation_key_cite_markers: bool = Field(False, alias="CitationKeyCitations")
    format_citations: bool = Field(False, alias="FormatCitations")
    bold_citations: bool = Field(False, alias="BoldCitations")
    italic_citations: bool = Field(False, alias="ItalicCitations")
    multi_cite_chronological: bool = Field(True, alias="MultiCiteChronological")

    # Author list
    author_field: str = Field("author/editor", alias="AuthorField")
    year_field: str = Field("year", alias="YearField")
    max_authors: int = Field(3, ge=-1, alias="MaxAuthors")
    max_authors_first: int = Field(-1, ge=-1, alias="MaxAuthorsFirst")
    max_authors_before_et_al: int = Field(1, ge=1, alias="MaxAuthorsBeforeEtAl")
    author_separator: str = Field(", ", alias="AuthorSeparator")
    author_last_separator: str = Field(" & ", alias="AuthorLastSeparator")
    author_last_separator_in_text: Optional[str] = Field(None, alias="AuthorLastSeparatorInText")
    oxford_comma: str = Field("", alias="OxfordComma")
    et_al_string: str = Field(" et al.", alias="EtAlString")

    # Marker layout
    year_separator: str = Field(", ", alias="YearSeparator")
    in_text_year_separator: str = Field(" ", alias="InTextYearSeparator")
    bracket_before: str = Field("[", alias="BracketBefore")
    bracket_after: str = Field("]", alias="BracketAfter")
    bracket_before_in_list: str = Field("[", alias="BracketBeforeInList")
    bracket_after_in_list: str = Field("]", alias="BracketAfterInList")
    citation_separator: str = Field("; ", alias="CitationSeparator")
    uniquefier_separator: str = Field(",", alias="UniquefierSeparator")
    page_info_separator: str = Field("; ", alias="PageInfoSeparator")
    grouping_separator: str = Field("-", alias="GroupedNumbersSeparator")
    min_grouping_count: int = Field(3, alias="MinimumGroupingCount")
    undefined_citation_marker_text: str = Field("??", alias="UndefinedCitationMarker")

    @classmethod
    def from_properties(cls, properties: Mapping[str, Any]) -> "StyleConfig":
        """Build a style from a property mapping.

        Raises:
            StyleError: if a property value cannot be used.
        """
        try:
            return cls.model_validate(dict(properties))
        except ValidationError as e:
            raise StyleError("Invalid style properties", details=str(e)) from e

    @classmethod
    def from_yaml(cls, path: Path) -> "StyleConfig":
        """Load a style from a YAML mapping of properties."""
        if not path.exists():
            raise StyleError(f"Style file not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise StyleError(f"Style file must hold a mapping: {path}")
        return cls.from_properties(data)

    def max_authors_for(self, is_first_appearance: bool) -> int:
        """Number of names to show, -1 meaning all of them."""
        return self.max_authors_first if is_first_appearance else self.max_authors

    def last_separator_for(self, in_parenthesis: bool) -> str:
        if in_parenthesis or self.author_last_separator_in_text is None:
            return self.author_last_separator
        return self.author_last_separator_in_text

    @property
    def author_fields(self) -> tuple[str, ...]:
        return tuple(f.strip().lower() for f in self.author_field.split("/") if f.strip())

    @property
    def year_fields(self) -> tuple[str, ...]:
        return tuple(f.strip().lower() for f in self.year_field.split("/") if f.strip())

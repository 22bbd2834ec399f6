"""
Citation marker models.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional

from citemarker.utils.exceptions import InvalidCitationEntryError


class NonUniqueCitationMarker(str, Enum):
    """What to do when two different records render the same marker."""

    THROWS = "throws"
    FORGIVEN = "forgiven"


def normalize_page_info(page_info: Optional[str]) -> Optional[str]:
    """Map missing and blank page info to None."""
    if page_info is None:
        return None
    stripped = page_info.strip()
    return stripped or None


def page_info_equal(a: Optional[str], b: Optional[str]) -> bool:
    """None and "" compare equal, anything else must match exactly."""
    return normalize_page_info(a) == normalize_page_info(b)


@dataclass(frozen=True)
class BibEntry:
    """A bibliographic record, as far as the marker builders need it."""

    citation_key: str
    fields: dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        # Field names are case-insensitive in BibTeX
        object.__setattr__(
            self, "fields", {name.lower(): value for name, value in self.fields.items()}
        )

    def get_field(self, name: str) -> Optional[str]:
        value = self.fields.get(name.lower())
        if value is None or not value.strip():
            return None
        return value

    def get_first_field(self, names: tuple[str, ...]) -> Optional[str]:
        """First present field among the fallbacks."""
        for name in names:
            value = self.get_field(name)
            if value is not None:
                return value
        return None

    def __hash__(self) -> int:
        return hash(self.citation_key)


@dataclass(frozen=True)
class CitationMarkerEntry:
    """One citation occurrence in an author-year document."""

    citation_key: str
    bib_entry: Optional[BibEntry] = None  # None: unresolved
    unique_letter: Optional[str] = None
    page_info: Optional[str] = None
    is_first_appearance_of_source: bool = False

    def __post_init__(self):
        letter = self.unique_letter
        if letter == "":
            object.__setattr__(self, "unique_letter", None)
        elif letter is not None and not (len(letter) == 1 and "a" <= letter <= "z"):
            raise InvalidCitationEntryError(
                self.citation_key, f"unique letter must be a..z, got {letter!r}"
            )

    @property
    def is_resolved(self) -> bool:
        return self.bib_entry is not None

    @property
    def normalized_page_info(self) -> Optional[str]:
        return normalize_page_info(self.page_info)

    def with_unique_letter(self, letter: Optional[str]) -> "CitationMarkerEntry":
        return replace(self, unique_letter=letter)


@dataclass(frozen=True)
class CitationMarkerNumericEntry:
    """One citation occurrence in a numbered document. Number 0 is undefined."""

    citation_key: str
    number: int
    page_info: Optional[str] = None

    def __post_init__(self):
        if self.number < 0:
            raise InvalidCitationEntryError(
                self.citation_key, f"citation number must be >= 0, got {self.number}"
            )

    @property
    def is_undefined(self) -> bool:
        return self.number == 0

    @property
    def normalized_page_info(self) -> Optional[str]:
        return normalize_page_info(self.page_info)


@dataclass(frozen=True)
class CitationMarkerNumericBibEntry:
    """A numbered entry of the bibliography list. None is undefined."""

    citation_key: str
    number: Optional[int] = None

    def __post_init__(self):
        if self.number is not None and self.number < 1:
            raise InvalidCitationEntryError(
                self.citation_key, f"bibliography number must be >= 1, got {self.number}"
            )

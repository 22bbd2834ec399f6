"""Citation marker generation."""
from .author_year import AuthorYearMarkerBuilder, CitationGroup
from .manager import CitationMarkerEngine
from .models import (
    BibEntry,
    CitationMarkerEntry,
    CitationMarkerNumericBibEntry,
    CitationMarkerNumericEntry,
    NonUniqueCitationMarker,
)
from .names import Institution, NameFormatter, Person, parse_author_list
from .numeric import NumericMarkerBuilder
from .style import StyleConfig
from .uniquefiers import apply_uniquefiers, assign_uniquefiers

__all__ = [
    "AuthorYearMarkerBuilder",
    "BibEntry",
    "CitationGroup",
    "CitationMarkerEngine",
    "CitationMarkerEntry",
    "CitationMarkerNumericBibEntry",
    "CitationMarkerNumericEntry",
    "Institution",
    "NameFormatter",
    "NonUniqueCitationMarker",
    "NumericMarkerBuilder",
    "Person",
    "StyleConfig",
    "apply_uniquefiers",
    "assign_uniquefiers",
    "parse_author_list",
]

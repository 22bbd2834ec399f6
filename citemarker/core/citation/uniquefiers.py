"""
Uniquefier letter assignment.

Different records whose normalized markers coincide ("Beta, 2000") get
letters a, b, c ... in order of first citation so their markers can be
told apart ("Beta, 2000a", "Beta, 2000b").
"""

from string import ascii_lowercase
from typing import Iterable

from citemarker.core.citation.author_year import AuthorYearMarkerBuilder
from citemarker.core.citation.models import CitationMarkerEntry
from citemarker.core.citation.style import StyleConfig
from citemarker.utils.exceptions import StyleError


def assign_uniquefiers(
    entries: Iterable[CitationMarkerEntry],
    style: StyleConfig,
) -> dict[str, str]:
    """Map citation key to letter for every key that needs one."""
    builder = AuthorYearMarkerBuilder(style)
    keys_by_marker: dict[str, list[str]] = {}
    for entry in entries:
        if entry.bib_entry is None:
            continue
        keys = keys_by_marker.setdefault(builder.normalized_marker(entry), [])
        if entry.citation_key not in keys:
            keys.append(entry.citation_key)

    letters: dict[str, str] = {}
    for marker, keys in keys_by_marker.items():
        if len(keys) < 2:
            continue
        if len(keys) > len(ascii_lowercase):
            raise StyleError(
                f"Too many records share the marker {marker!r}",
                details=f"{len(keys)} citation keys",
            )
        letters.update(zip(keys, ascii_lowercase))
    return letters


def apply_uniquefiers(
    entries: Iterable[CitationMarkerEntry],
    letters: dict[str, str],
) -> list[CitationMarkerEntry]:
    """Copies of the entries carrying their assigned letters."""
    return [e.with_unique_letter(letters.get(e.citation_key)) for e in entries]

"""Shared fixtures for citemarker tests."""
import pytest

from citemarker.config import clear_settings_cache
from citemarker.core.citation import (
    BibEntry,
    CitationMarkerEntry,
    CitationMarkerNumericEntry,
    StyleConfig,
)

BOSTROM_AUTHORS = (
    'Gustav Bostr\\"{o}m and Jaana W\\"{a}yrynen and Marine Bod\\\'{e}n'
    " and Konstantin Beznosov and Philippe Kruchten"
)


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch):
    """Every test starts from default settings."""
    for name in (
        "CITEMARKER_CONFIG_PATH",
        "CITEMARKER_MARKERS_NON_UNIQUE_POLICY",
        "CITEMARKER_MARKERS_DEFAULT_STYLE_PATH",
        "CITEMARKER_MARKERS_MIN_GROUPING_COUNT_OVERRIDE",
    ):
        monkeypatch.delenv(name, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def author_year_style():
    return StyleConfig()


@pytest.fixture
def numeric_style():
    return StyleConfig(
        name="Default [number] style file.",
        number_entries=True,
        sort_by_position=True,
        min_grouping_count=3,
    )


def bib(key, author=None, year=None, **fields):
    """BibEntry with only the given fields set."""
    values = {name: value for name, value in fields.items() if value is not None}
    if author is not None:
        values["author"] = author
    if year is not None:
        values["year"] = year
    return BibEntry(key, values)


def cite(entry, letter=None, page_info=None, first=False):
    """Citation of a resolved entry."""
    return CitationMarkerEntry(
        citation_key=entry.citation_key,
        bib_entry=entry,
        unique_letter=letter,
        page_info=page_info,
        is_first_appearance_of_source=first,
    )


def num(key, number, page_info=None):
    return CitationMarkerNumericEntry(key, number, page_info)

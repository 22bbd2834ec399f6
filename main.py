"""
Print the citation marker for a YAML list of cited entries.

Example input:

    style: styles/numeric.yaml      # optional, style properties
    in_parenthesis: true
    entries:
      - key: Beta2000a
        author: Alpha Beta
        year: "2000"
        unique_letter: a
      - key: Epsilon2001
        number: 4                   # numeric styles
        page_info: p. 12
"""

import argparse
import sys
from pathlib import Path

import yaml

from citemarker.config import apply_runtime_overrides, get_default_style
from citemarker.core.citation import (
    BibEntry,
    CitationMarkerEngine,
    CitationMarkerEntry,
    CitationMarkerNumericEntry,
    StyleConfig,
)
from citemarker.utils import setup_logging
from citemarker.utils.exceptions import CitemarkerError

_BIB_FIELDS = ("author", "editor", "year", "title")


def _to_entry(item: dict, numeric: bool):
    key = str(item["key"])
    page_info = item.get("page_info")
    if numeric:
        return CitationMarkerNumericEntry(key, int(item.get("number", 0)), page_info)

    fields = {name: str(item[name]) for name in _BIB_FIELDS if item.get(name) is not None}
    bib_entry = None if item.get("unresolved") else BibEntry(key, fields)
    return CitationMarkerEntry(
        citation_key=key,
        bib_entry=bib_entry,
        unique_letter=item.get("unique_letter"),
        page_info=page_info,
        is_first_appearance_of_source=bool(item.get("first_appearance", False)),
    )


def run(document: dict) -> str:
    style_path = document.get("style")
    style = StyleConfig.from_yaml(Path(style_path)) if style_path else get_default_style()
    engine = CitationMarkerEngine(style, policy=document.get("policy"))
    entries = [_to_entry(item, style.number_entries) for item in document.get("entries", [])]
    return engine.create_marker(entries, in_parenthesis=document.get("in_parenthesis", True))


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("input", help="YAML file with style and entries")
    parser.add_argument("--policy", choices=["throws", "forgiven"], help="Non-unique marker handling")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    args = parser.parse_args()

    with open(args.input, "r", encoding="utf-8") as f:
        document = yaml.safe_load(f) or {}

    if args.policy:
        apply_runtime_overrides("markers", {"non_unique_policy": args.policy})

    try:
        setup_logging(level=args.log_level)
        print(run(document))
    except CitemarkerError as e:
        print(f"ERROR: {e.message}", file=sys.stderr)
        if e.details:
            print(f"  {e.details}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""
Author name parsing and formatting.

Turns a raw BibTeX author (or editor) field into a list of person names
and renders the short forms used inside citation markers:

    "Gustav Bostr\\"{o}m and Jaana W\\"{a}yrynen"  ->  "Boström & Wäyrynen"
    "Alpha von Beta"                              ->  "von Beta"
    "{JabRef Development Team}"                   ->  "JabRef Development Team"
"""

from dataclasses import dataclass
from functools import lru_cache
import re
from typing import Optional, Union

from bibtexparser.latexenc import latex_to_unicode

from citemarker.core.citation.style import StyleConfig
from citemarker.utils.exceptions import StyleError

AUTHOR_SEPARATOR = " and "

_BRACED_ACCENT_RE = re.compile(r"\\([\"'`^~=.])\{(\w)\}")
_TIE_RE = re.compile(r"(?<!\\)~")


@dataclass(frozen=True)
class Person:
    """A person name split the BibTeX way."""

    last: str
    particle: str = ""  # "von", "van der", ...
    first: str = ""
    suffix: str = ""  # "Jr."

    @property
    def family_text(self) -> str:
        if self.particle:
            return f"{self.particle} {self.last}"
        return self.last

    @property
    def initials(self) -> str:
        parts = []
        for token in self.first.split():
            pieces = [p[0] + "." for p in token.split("-") if p]
            parts.append("-".join(pieces))
        return " ".join(parts)


@dataclass(frozen=True)
class Institution:
    """A corporate author, rendered verbatim."""

    display_text: str

    @property
    def family_text(self) -> str:
        return self.display_text


PersonName = Union[Person, Institution]


@dataclass(frozen=True)
class FormattedNameList:
    """Rendered author list and how many names it shows."""

    text: str
    shown: int
    total: int

    @property
    def truncated(self) -> bool:
        return self.shown < self.total


def _split_top_level(text: str, separator: str) -> list[str]:
    """Split on separator outside braces. Unbalanced braces are tolerated."""
    parts = []
    depth = 0
    start = 0
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth = max(depth - 1, 0)
        elif depth == 0 and text.startswith(separator, i):
            parts.append(text[start:i])
            i += len(separator)
            start = i
            continue
        i += 1
    parts.append(text[start:])
    return parts


def _tokenize(text: str) -> list[str]:
    """Whitespace tokens outside braces."""
    tokens = []
    current = []
    depth = 0
    for ch in text:
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth = max(depth - 1, 0)
        if ch.isspace() and depth == 0:
            if current:
                tokens.append("".join(current))
                current = []
            continue
        current.append(ch)
    if current:
        tokens.append("".join(current))
    return tokens


def _is_wrapped_in_braces(text: str) -> bool:
    """True when the first brace closes exactly at the last character."""
    if len(text) < 2 or text[0] != "{" or text[-1] != "}":
        return False
    depth = 0
    for i, ch in enumerate(text):
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i == len(text) - 1
    return False


def _is_balanced(text: str) -> bool:
    depth = 0
    for ch in text:
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth < 0:
                return False
    return depth == 0


def _decode(text: str) -> str:
    # \"{o} -> \"o, the form latex_to_unicode maps directly
    text = _BRACED_ACCENT_RE.sub(r"\\\1\2", text)
    # ~ is a tie, \~ an accent
    text = _TIE_RE.sub(" ", text)
    return latex_to_unicode(text).strip()


def _is_particle(token: str) -> bool:
    # Brace-protected tokens are never particles
    if token.startswith("{"):
        return False
    for ch in _decode(token):
        if ch.isalpha():
            return ch.islower()
    return False


def _split_von_last(tokens: list[str]) -> tuple[list[str], list[str]]:
    """Split "von Last" tokens, keeping at least one token as last name."""
    von_end = 0
    for i, token in enumerate(tokens[:-1]):
        if _is_particle(token):
            von_end = i + 1
    return tokens[:von_end], tokens[von_end:]


def _join(tokens: list[str]) -> str:
    return _decode(" ".join(tokens))


def parse_name(raw: str) -> Optional[PersonName]:
    """Parse one name. Blank input gives None."""
    text = raw.strip()
    if not text:
        return None

    if _is_wrapped_in_braces(text):
        return Institution(display_text=_decode(text[1:-1]))

    if not _is_balanced(text):
        text = text.replace("{", "").replace("}", "")

    comma_parts = [p.strip() for p in _split_top_level(text, ",")]
    if len(comma_parts) > 1:
        # "von Last, First" or "von Last, Jr, First"
        von, last = _split_von_last(_tokenize(comma_parts[0]))
        if len(comma_parts) == 2:
            suffix, first = "", comma_parts[1]
        else:
            suffix, first = comma_parts[1], ", ".join(comma_parts[2:])
        return Person(
            last=_join(last),
            particle=_join(von),
            first=_decode(first),
            suffix=_decode(suffix),
        )

    tokens = _tokenize(text)
    if len(tokens) == 1:
        return Person(last=_decode(tokens[0]))

    # "First von Last": the particle starts at the first lower-case token
    particle_start = None
    for i, token in enumerate(tokens[:-1]):
        if _is_particle(token):
            particle_start = i
            break

    if particle_start is None:
        return Person(last=_decode(tokens[-1]), first=_join(tokens[:-1]))

    von, last = _split_von_last(tokens[particle_start:])
    return Person(
        last=_join(last),
        particle=_join(von),
        first=_join(tokens[:particle_start]),
    )


@lru_cache(maxsize=1024)
def parse_author_list(raw: Optional[str]) -> tuple[PersonName, ...]:
    """Parse an author or editor field into names, in field order."""
    if raw is None:
        return ()
    names = []
    for part in _split_top_level(raw.strip(), AUTHOR_SEPARATOR):
        name = parse_name(part)
        if name is not None:
            names.append(name)
    return tuple(names)


def abbreviate(name: PersonName) -> str:
    """Bibliography form: "von Beta, A." or the institution text."""
    if isinstance(name, Institution):
        return name.display_text
    initials = name.initials
    family = name.family_text
    if name.suffix:
        family = f"{family}, {name.suffix}"
    if not initials:
        return family
    return f"{family}, {initials}"


class NameFormatter:
    """
    Renders author lists for citation markers.

    Separators, the "et al." text, the Oxford comma and name markup all
    come from the style.
    """

    def __init__(self, style: StyleConfig):
        self.style = style

    def format(
        self,
        raw_field: Optional[str],
        max_names: Optional[int] = None,
        first_appearance: bool = False,
        in_parenthesis: bool = True,
    ) -> FormattedNameList:
        """
        Format an author field.

        Args:
            raw_field: Raw author/editor field, None when missing.
            max_names: Show all names up to this many, -1 for all.
                Defaults to the style's limit for ``first_appearance``.
            first_appearance: First citation of the source in the document.
                A style with unlimited ``max_authors_first`` then shows all.
            in_parenthesis: Selects the separator before the last name.

        Raises:
            StyleError: for a max_names of 0 with names present, or < -1.
        """
        style = self.style
        if max_names is None or (first_appearance and style.max_authors_first == -1):
            max_names = style.max_authors_for(first_appearance)

        names = parse_author_list(raw_field)
        n_names = len(names)

        if max_names == 0 and n_names != 0:
            raise StyleError("max_names = 0 with a non-empty author list")
        if max_names < -1:
            raise StyleError(f"max_names must be >= -1, got {max_names}")

        if n_names == 0:
            return FormattedNameList(text="", shown=0, total=0)

        emit_all = max_names == -1 or n_names <= max_names
        family = [self._markup(name.family_text) for name in names]

        if emit_all:
            text = family[0]
            if n_names >= 2:
                text += "".join(style.author_separator + f for f in family[1:-1])
                if n_names >= 3:
                    text += style.oxford_comma
                text += style.last_separator_for(in_parenthesis) + family[-1]
            return FormattedNameList(text=text, shown=n_names, total=n_names)

        shown = min(style.max_authors_before_et_al, n_names)
        text = style.author_separator.join(family[:shown]) + style.et_al_string
        return FormattedNameList(text=text, shown=shown, total=n_names)

    def _markup(self, name: str) -> str:
        style = self.style
        if not style.format_citations or not name:
            return name
        if style.italic_citations:
            name = f"<i>{name}</i>"
        if style.bold_citations:
            name = f"<b>{name}</b>"
        return name

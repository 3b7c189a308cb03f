"""Person names and identifier canonicalisation."""

import re
import unicodedata
from typing import NamedTuple

ORCID_PATTERN = re.compile(r"(\d{4}-\d{4}-\d{4}-\d{3}[\dX])", re.IGNORECASE)
ROR_PATTERN = re.compile(r"^(?:https?://)?(?:www\.)?ror\.org/([0-9a-z]{9})/?$", re.IGNORECASE)
BARE_ROR_PATTERN = re.compile(r"^0[0-9a-z]{8}$", re.IGNORECASE)


class PersonName(NamedTuple):
    given_name: str | None
    family_name: str | None


def split_person_name(name: str | None) -> PersonName:
    """Split a single free-text name into given and family parts.

    The first comma separates ``family, given``. Without a comma the last
    whitespace separated token is the family name and everything before it
    the given name. A single token is a family name only.

    >>> split_person_name("Doe, Jane Q.")
    PersonName(given_name='Jane Q.', family_name='Doe')
    >>> split_person_name("Jane Doe")
    PersonName(given_name='Jane', family_name='Doe')
    """
    if not name or not name.strip():
        return PersonName(None, None)

    name = " ".join(name.split())
    if "," in name:
        family, given = name.split(",", 1)
        return PersonName(given.strip() or None, family.strip() or None)

    tokens = name.split(" ")
    if len(tokens) == 1:
        return PersonName(None, tokens[0])
    return PersonName(" ".join(tokens[:-1]), tokens[-1])


def normalise_name(name: str | None) -> str:
    """Comparison key for duplicate detection: case, accents and punctuation ignored."""
    if not name:
        return ""
    decomposed = unicodedata.normalize("NFKD", name)
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    cleaned = re.sub(r"[^\w\s]", " ", stripped.lower())
    return " ".join(sorted(cleaned.split()))


def canonical_orcid(value: str | None) -> str | None:
    """Return the bare ORCID iD (``0000-0002-1825-0097``) or None."""
    if not value:
        return None
    match = ORCID_PATTERN.search(value)
    return match.group(1).upper() if match else None


def canonical_ror(value: str | None) -> str | None:
    """Return ``https://ror.org/<id>`` for a ROR URL or bare ROR id, else None."""
    if not value:
        return None
    value = value.strip()
    match = ROR_PATTERN.match(value)
    if match:
        return f"https://ror.org/{match.group(1).lower()}"
    if BARE_ROR_PATTERN.match(value):
        return f"https://ror.org/{value.lower()}"
    return None


def is_ror(identifier: str | None, scheme: str | None = None) -> bool:
    if scheme and scheme.strip().upper() == "ROR":
        return bool(identifier)
    return canonical_ror(identifier) is not None and "ror.org" in (identifier or "").lower()


SCHEME_URIS = {
    "ORCID": "https://orcid.org",
    "ROR": "https://ror.org",
    "ISNI": "https://isni.org",
    "GRID": "https://www.grid.ac",
}


def scheme_uri(scheme: str | None) -> str | None:
    if not scheme:
        return None
    return SCHEME_URIS.get(scheme.strip().upper())


def identifier_scheme(identifier: str | None, scheme: str | None = None) -> str | None:
    """The declared scheme, else ROR or ORCID when the identifier is recognisably one.

    Any other identifier without a declared scheme gives None.

    >>> identifier_scheme("https://ror.org/04z8jg394")
    'ROR'
    >>> identifier_scheme("https://isni.org/isni/0000000121032683") is None
    True
    """
    if scheme and scheme.strip():
        return scheme.strip()
    if not identifier or not identifier.strip():
        return None
    value = identifier.strip()
    if is_ror(value):
        return "ROR"
    if ORCID_PATTERN.fullmatch(value) or (
        "orcid.org/" in value.lower() and canonical_orcid(value)
    ):
        return "ORCID"
    return None
